"""Validation report for collecting meter and charge input issues."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional


class ValidationSeverity(IntEnum):
    """Severity levels for validation issues."""

    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class ValidationIssue:
    """Represents a single validation issue.

    Attributes:
        severity: The severity level of the issue
        field: The field name that has the issue
        message: Human-readable description of the issue
        value: The value that caused the issue
        context: Optional context information (e.g., booking, basis)
    """

    severity: ValidationSeverity
    field: str
    message: str
    value: Any
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        context_str = ""
        if self.context:
            context_parts = [f"{k}={v}" for k, v in self.context.items()]
            context_str = f" ({', '.join(context_parts)})"

        return f"[{self.severity.name}] {self.field}: {self.message}{context_str}"


class ValidationReport:
    """Collects and manages validation issues.

    Accumulates errors, warnings and info messages so that a caller sees
    every problem with a meter reading at once instead of the first one.

    Example:
        >>> report = ValidationReport()
        >>> report.add_error("hobbs_end", "End Hobbs must be greater than Start Hobbs", 99.0)
        >>> report.is_valid()
        False
        >>> report.first_error_message()
        'End Hobbs must be greater than Start Hobbs'
    """

    def __init__(self) -> None:
        self.issues: List[ValidationIssue] = []

    def _count(self, severity: ValidationSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def error_count(self) -> int:
        return self._count(ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(ValidationSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(ValidationSeverity.INFO)

    def is_valid(self) -> bool:
        """Check if validation passed (no errors).

        Warnings and info messages do not affect validity.
        """
        return self.error_count == 0

    def has_errors(self) -> bool:
        return self.error_count > 0

    def _add(
        self,
        severity: ValidationSeverity,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]],
    ) -> None:
        self.issues.append(
            ValidationIssue(
                severity=severity,
                field=field,
                message=message,
                value=value,
                context=context,
            )
        )

    def add_error(
        self,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add an error to the report."""
        self._add(ValidationSeverity.ERROR, field, message, value, context)

    def add_warning(
        self,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add a warning to the report."""
        self._add(ValidationSeverity.WARNING, field, message, value, context)

    def add_info(
        self,
        field: str,
        message: str,
        value: Any,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add an info message to the report."""
        self._add(ValidationSeverity.INFO, field, message, value, context)

    def get_errors(self) -> List[ValidationIssue]:
        return [
            issue for issue in self.issues if issue.severity == ValidationSeverity.ERROR
        ]

    def get_warnings(self) -> List[ValidationIssue]:
        return [
            issue
            for issue in self.issues
            if issue.severity == ValidationSeverity.WARNING
        ]

    def first_error_message(self) -> Optional[str]:
        """Message of the first error, used as the detail of a failed result."""
        errors = self.get_errors()
        return errors[0].message if errors else None

    def merge(self, other: "ValidationReport") -> None:
        """Merge another validation report into this one."""
        self.issues.extend(other.issues)

    def summary(self) -> str:
        """Get a summary with counts of errors, warnings, and info messages."""
        parts = []
        if self.error_count > 0:
            parts.append(f"{self.error_count} error(s)")
        if self.warning_count > 0:
            parts.append(f"{self.warning_count} warning(s)")
        if self.info_count > 0:
            parts.append(f"{self.info_count} info message(s)")

        if not parts:
            return "No issues found"

        return ", ".join(parts)

    def format(self, min_severity: ValidationSeverity = ValidationSeverity.INFO) -> str:
        """Format the validation report for display.

        Args:
            min_severity: Lowest severity to include

        Returns:
            Formatted string with the issues grouped by severity
        """
        if not self.issues:
            return "Validation successful - no issues found"

        lines = [f"Validation Report - {self.summary()}", "=" * 60]

        for severity, heading in (
            (ValidationSeverity.ERROR, "ERRORS"),
            (ValidationSeverity.WARNING, "WARNINGS"),
            (ValidationSeverity.INFO, "INFO"),
        ):
            if severity < min_severity:
                continue
            issues = [issue for issue in self.issues if issue.severity == severity]
            if issues:
                lines.append(f"\n{heading}:")
                lines.extend(f"  - {issue}" for issue in issues)

        return "\n".join(lines)
