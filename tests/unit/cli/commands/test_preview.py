"""Unit tests for preview command."""

import json

import pytest
from click.testing import CliRunner

from flight_billing.cli.commands.preview import preview_charges

RATES = {
    "tax_rate": "0.15",
    "aircraft": {"ac-1": {"ft-dual": "150.00", "ft-solo": "140.00"}},
    "instructor": {"ins-1": {"ft-dual": {"rate": "80.00", "taxable": True}}},
}

FLIGHT_ARGS = [
    "--aircraft-id",
    "ac-1",
    "--registration",
    "ZK-ABC",
    "--flight-type-id",
    "ft-dual",
    "--instructor-id",
    "ins-1",
    "--hobbs-start",
    "100.0",
    "--hobbs-end",
    "101.5",
    "--tach-start",
    "50.0",
    "--tach-end",
    "51.2",
]


class TestPreviewCommand:
    """Test suite for preview command."""

    @pytest.fixture
    def runner(self):
        """Create a Click CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def rates_file(self, tmp_path):
        path = tmp_path / "rates.json"
        path.write_text(json.dumps(RATES))
        return str(path)

    def test_dual_flight_table(self, runner, rates_file, mock_env):
        result = runner.invoke(preview_charges, ["--rates", rates_file] + FLIGHT_ARGS)

        assert result.exit_code == 0, result.output
        assert "Pricing flight on ZK-ABC" in result.output
        assert "396.75" in result.output
        assert "Preview complete (nothing was saved)" in result.output

    def test_json_output(self, runner, rates_file, mock_env):
        """Test --json prints segments, items and totals."""
        result = runner.invoke(
            preview_charges, ["--rates", rates_file, "--json"] + FLIGHT_ARGS
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data["segments"]) == 1
        assert len(data["line_items"]) == 2
        assert data["totals"]["subtotal"] == "345.00"
        assert data["totals"]["tax"] == "51.75"
        assert data["totals"]["total"] == "396.75"
        assert data["flight_log"]["dual_time"] == "1.5"

    def test_solo_continuation(self, runner, rates_file, mock_env):
        result = runner.invoke(
            preview_charges,
            ["--rates", rates_file, "--json"]
            + FLIGHT_ARGS
            + ["--solo-end-hobbs", "102.0", "--solo-flight-type-id", "ft-solo"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert len(data["segments"]) == 2
        assert len(data["line_items"]) == 3

    def test_missing_rate_is_configuration_error(self, runner, rates_file, mock_env):
        args = ["--rates", rates_file] + FLIGHT_ARGS
        args[args.index("ft-dual")] = "ft-aerobatics"

        result = runner.invoke(preview_charges, args)

        assert result.exit_code == 1
        assert "Configuration Error" in result.output
        assert "No aircraft rate configured" in result.output

    def test_missing_instructor_is_validation_error(
        self, runner, rates_file, mock_env
    ):
        args = ["--rates", rates_file] + FLIGHT_ARGS
        index = args.index("--instructor-id")
        del args[index : index + 2]

        result = runner.invoke(preview_charges, args)

        assert result.exit_code == 3
        assert "Data Validation Error" in result.output

    def test_unreadable_rate_file(self, runner, tmp_path, mock_env):
        result = runner.invoke(
            preview_charges,
            ["--rates", str(tmp_path / "missing.json")] + FLIGHT_ARGS,
        )

        assert result.exit_code == 1
        assert "Cannot read rate file" in result.output
