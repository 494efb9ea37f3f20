"""Validation layer for meter readings and charge inputs."""

from flight_billing.validators.meter_validators import (
    MeterValidators,
    validate_charge_input,
    validate_meter_reading,
)
from flight_billing.validators.validation_report import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
)

__all__ = [
    "MeterValidators",
    "ValidationReport",
    "ValidationIssue",
    "ValidationSeverity",
    "validate_charge_input",
    "validate_meter_reading",
]
