"""Tests for the command line interface."""

import pytest
from datetime import date
from decimal import Decimal

from ifrs16.cli.main import cli
from ifrs16.domain.entities import ERPPostingResponse
from ifrs16.database.sqlalchemy_db import SQLAlchemyDatabase
from ifrs16.domain.errors import IntegrationError, PersistenceError
from conftest import FakeERPGateway


def _invoke(cli_runner, temp_db, args, gateway=None, input=None):
    obj = {"erp_gateway": gateway} if gateway is not None else None
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], obj=obj, input=input)


def _create_lease(cli_runner, temp_db, number="L-001", frequency="annually", end="2029-01-01", payment="1000"):
    return _invoke(
        cli_runner,
        temp_db,
        [
            "lease", "create", number,
            "--commencement", "2024-01-01",
            "--end", end,
            "--payment", payment,
            "--frequency", frequency,
            "--rate", "6%",
            "--description", "Office space",
        ],
    )


class TestLeaseCommands:
    """Tests for lease register commands."""

    def test_create(self, cli_runner, temp_db):
        """Test creating a lease prints its initial values."""
        result = _create_lease(cli_runner, temp_db)

        assert result.exit_code == 0, result.output
        assert "Created lease 'L-001'" in result.output
        assert "Initial lease liability: 4,212.36 USD" in result.output
        assert temp_db.get_lease_by_number("L-001") is not None

    def test_create_invalid_rate(self, cli_runner, temp_db):
        """Test a rate that cannot be parsed."""
        result = _invoke(
            cli_runner, temp_db,
            ["lease", "create", "L-001", "--commencement", "2024-01-01", "--end", "2025-01-01",
             "--payment", "100", "--rate", "lots"],
        )
        assert result.exit_code == 1
        assert "Invalid rate format" in result.output

    def test_create_end_before_start(self, cli_runner, temp_db):
        """Test that validation errors are reported."""
        result = _create_lease(cli_runner, temp_db, end="2023-01-01")
        assert result.exit_code == 1
        assert "Error: End date 2023-01-01 is before commencement date 2024-01-01" in result.output

    def test_create_duplicate(self, cli_runner, temp_db):
        """Test creating a lease number twice."""
        _create_lease(cli_runner, temp_db)
        result = _create_lease(cli_runner, temp_db)
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_list_show_activate_terminate(self, cli_runner, temp_db):
        """Test the lease lifecycle from the command line."""
        _create_lease(cli_runner, temp_db)

        result = _invoke(cli_runner, temp_db, ["lease", "list"])
        assert result.exit_code == 0
        assert "L-001" in result.output
        assert "draft" in result.output

        result = _invoke(cli_runner, temp_db, ["lease", "activate", "L-001"])
        assert result.exit_code == 0
        assert "Activated lease 'L-001'" in result.output

        result = _invoke(cli_runner, temp_db, ["lease", "show", "L-001"])
        assert result.exit_code == 0
        assert "Status: active" in result.output
        assert "Payment: 1,000.00 USD (annually)" in result.output
        assert "Discount rate: 6.0000%" in result.output

        result = _invoke(cli_runner, temp_db, ["lease", "terminate", "L-001"], input="y\n")
        assert result.exit_code == 0
        assert "Terminated lease 'L-001'" in result.output

        result = _invoke(cli_runner, temp_db, ["lease", "list", "--status", "terminated"])
        assert "L-001" in result.output

    def test_update_draft_lease(self, cli_runner, temp_db):
        """Test changing the terms of a draft lease."""
        _create_lease(cli_runner, temp_db)

        result = _invoke(cli_runner, temp_db, ["lease", "update", "L-001", "--payment", "2,000", "--number", "L-002"])

        assert result.exit_code == 0, result.output
        assert "Updated lease 'L-002'" in result.output
        assert "Initial lease liability: 8,424.73 USD" in result.output
        assert temp_db.get_lease_by_number("L-002").lease_payment == Decimal("2000")

    def test_update_active_lease_refused(self, cli_runner, temp_db):
        """Test that an active lease's terms cannot change."""
        _create_lease(cli_runner, temp_db)
        _invoke(cli_runner, temp_db, ["lease", "activate", "L-001"])

        result = _invoke(cli_runner, temp_db, ["lease", "update", "L-001", "--rate", "5%"])

        assert result.exit_code == 1
        assert "can no longer change" in result.output

    def test_update_invalid_amount(self, cli_runner, temp_db):
        """Test a payment that cannot be parsed."""
        _create_lease(cli_runner, temp_db)
        result = _invoke(cli_runner, temp_db, ["lease", "update", "L-001", "--payment", "lots"])
        assert result.exit_code == 1
        assert "Invalid amount format" in result.output

    def test_delete(self, cli_runner, temp_db):
        """Test deleting a lease after confirming."""
        _create_lease(cli_runner, temp_db)

        result = _invoke(cli_runner, temp_db, ["lease", "delete", "L-001"], input="n\n")
        assert "Deletion cancelled." in result.output
        assert temp_db.get_lease_by_number("L-001") is not None

        result = _invoke(cli_runner, temp_db, ["lease", "delete", "L-001", "--yes"])
        assert result.exit_code == 0, result.output
        assert "Deleted lease 'L-001'" in result.output
        assert temp_db.get_lease_by_number("L-001") is None

    def test_show_unknown_lease(self, cli_runner, temp_db):
        """Test showing a lease that doesn't exist."""
        result = _invoke(cli_runner, temp_db, ["lease", "show", "nope"])
        assert result.exit_code == 1
        assert "Error: Lease 'nope' not found" in result.output


class TestScheduleCommands:
    """Tests for schedule and calculations commands."""

    def test_schedule_preview(self, cli_runner, temp_db):
        """Test that previewing prints every period and saves nothing."""
        _create_lease(cli_runner, temp_db)

        result = _invoke(cli_runner, temp_db, ["schedule", "L-001"])

        assert result.exit_code == 0, result.output
        assert "2024-01-01" in result.output
        assert "2029-01-01" in result.output
        assert "252.74" in result.output
        assert "Saved" not in result.output
        lease = temp_db.get_lease_by_number("L-001")
        assert temp_db.list_calculations_for_lease(lease.id) == []

    def test_schedule_save_and_list(self, cli_runner, temp_db):
        """Test saving a schedule and listing the saved periods."""
        _create_lease(cli_runner, temp_db)

        result = _invoke(cli_runner, temp_db, ["schedule", "L-001", "--save"])
        assert result.exit_code == 0, result.output
        assert "Saved 6 periods" in result.output

        result = _invoke(cli_runner, temp_db, ["calculations", "L-001"])
        assert result.exit_code == 0
        assert "Posted" in result.output
        assert result.output.count(" | no") == 6

        result = _invoke(cli_runner, temp_db, ["schedule", "L-001", "--save"])
        assert result.exit_code == 1

    def test_calculation_show(self, cli_runner, temp_db):
        """Test showing one saved calculation."""
        _create_lease(cli_runner, temp_db)
        _invoke(cli_runner, temp_db, ["schedule", "L-001", "--save"])
        lease = temp_db.get_lease_by_number("L-001")
        calc = temp_db.list_calculations_for_lease(lease.id)[0]

        result = _invoke(cli_runner, temp_db, ["calculation", "show", "L-001", str(calc.id)])

        assert result.exit_code == 0, result.output
        assert f"Calculation {calc.id} for period 2024-01-01" in result.output
        assert "Interest expense: 252.74" in result.output
        assert "Posted: no" in result.output

        result = _invoke(cli_runner, temp_db, ["calculation", "show", "L-001", "999"])
        assert result.exit_code == 1
        assert "Calculation 999 not found for lease L-001" in result.output


class TestPeriodEndCommand:
    """Tests for the period-end command."""

    def test_runs_active_leases(self, cli_runner, temp_db):
        """Test a period-end run from the command line."""
        _create_lease(cli_runner, temp_db, frequency="monthly", payment="500")
        _invoke(cli_runner, temp_db, ["lease", "activate", "L-001"])

        result = _invoke(cli_runner, temp_db, ["period-end", "2024-01-31"])
        assert result.exit_code == 0, result.output
        assert "1 of 1 leases processed" in result.output

        result = _invoke(cli_runner, temp_db, ["period-end", "2024-01-31"])
        assert result.exit_code == 0
        assert "Already calculated: 1" in result.output

    def test_invalid_date(self, cli_runner, temp_db):
        """Test a period date that cannot be parsed."""
        result = _invoke(cli_runner, temp_db, ["period-end", "someday"])
        assert result.exit_code == 1
        assert "Invalid date format" in result.output

    def test_unreadable_lease_store(self, cli_runner, temp_db, monkeypatch):
        """Test that a failing lease store is reported without a traceback."""

        def get_active_leases_as_of(self, as_of, tenant_id=None):
            raise PersistenceError("Database operation failed: disk I/O error")

        monkeypatch.setattr(SQLAlchemyDatabase, "get_active_leases_as_of", get_active_leases_as_of)
        result = _invoke(cli_runner, temp_db, ["period-end", "2024-01-31"])

        assert result.exit_code == 1
        assert "Error: Database operation failed: disk I/O error" in result.output


class TestPostCommands:
    """Tests for ERP posting commands."""

    @pytest.fixture
    def calculated_period(self, cli_runner, temp_db):
        _create_lease(cli_runner, temp_db, frequency="monthly", payment="500")
        _invoke(cli_runner, temp_db, ["lease", "activate", "L-001"])
        _invoke(cli_runner, temp_db, ["period-end", "2024-01-31"])
        return date(2024, 1, 31)

    def test_preview(self, cli_runner, temp_db, calculated_period):
        """Test previewing a period."""
        result = _invoke(cli_runner, temp_db, ["post", "preview", "2024-01-31", "-v"])

        assert result.exit_code == 0, result.output
        assert "Calculations: 1 (1 unposted)" in result.output
        assert "Lease payments: 500.00" in result.output
        assert "Journal lines to post: 6" in result.output
        assert "L-001-2024-01" in result.output

    def test_post_period(self, cli_runner, temp_db, calculated_period):
        """Test posting a period through the ERP gateway."""
        gateway = FakeERPGateway(response=ERPPostingResponse(success=True, batch_id="B-77"))

        result = _invoke(cli_runner, temp_db, ["post", "period", "2024-01-31", "--timeout", "10"], gateway=gateway)

        assert result.exit_code == 0, result.output
        assert "batch B-77" in result.output
        assert "Journal lines sent: 6" in result.output
        assert gateway.timeouts == [10.0]
        calc = temp_db.get_calculations_for_period(calculated_period)[0]
        assert calc.erp_transaction_id == "B-77"

        result = _invoke(cli_runner, temp_db, ["post", "period", "2024-01-31"], gateway=gateway)
        assert result.exit_code == 0
        assert "Nothing to post" in result.output

    def test_post_ids_failure(self, cli_runner, temp_db, calculated_period):
        """Test that an ERP failure exits with an error."""
        gateway = FakeERPGateway(error=IntegrationError("ERP request timed out after 30.0s"))
        calc = temp_db.get_calculations_for_period(calculated_period)[0]

        result = _invoke(cli_runner, temp_db, ["post", "ids", str(calc.id)], gateway=gateway)

        assert result.exit_code == 1
        assert "Error: ERP integration failed: ERP request timed out after 30.0s" in result.output

    def test_post_unknown_ids(self, cli_runner, temp_db, erp_gateway):
        """Test posting IDs that don't exist."""
        result = _invoke(cli_runner, temp_db, ["post", "ids", "404"], gateway=erp_gateway)
        assert result.exit_code == 1
        assert "No valid calculations found for posting" in result.output

    def test_release_batch(self, cli_runner, temp_db, calculated_period, erp_gateway):
        """Test freeing calculations left behind by an unfinished batch."""
        calc = temp_db.get_calculations_for_period(calculated_period)[0]
        temp_db.claim_for_posting([calc.id], "IFRS16-20240131-235959")

        result = _invoke(cli_runner, temp_db, ["post", "ids", str(calc.id)], gateway=erp_gateway)
        assert result.exit_code == 1
        assert "already being posted" in result.output

        result = _invoke(cli_runner, temp_db, ["post", "release", "IFRS16-20240131-235959", "--yes"])
        assert result.exit_code == 0, result.output
        assert "Released 1 calculations from batch IFRS16-20240131-235959" in result.output

        result = _invoke(cli_runner, temp_db, ["post", "ids", str(calc.id)], gateway=erp_gateway)
        assert result.exit_code == 0, result.output
        assert len(erp_gateway.requests) == 1

    def test_post_without_erp_configured(self, cli_runner, temp_db, monkeypatch, tmp_path):
        """Test posting with no ERP base URL."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("IFRS16_ERP_BASE_URL", raising=False)
        result = _invoke(cli_runner, temp_db, ["post", "period", "2024-01-31"])
        assert result.exit_code == 1
        assert "ERP base URL is not configured" in result.output


class TestERPCommands:
    """Tests for ERP inspection commands."""

    def test_health(self, cli_runner, temp_db):
        """Test the ERP health check."""
        result = _invoke(cli_runner, temp_db, ["erp", "health"], gateway=FakeERPGateway())
        assert result.exit_code == 0
        assert "ERP connection OK" in result.output

        result = _invoke(cli_runner, temp_db, ["erp", "health"], gateway=FakeERPGateway(healthy=False))
        assert result.exit_code == 1

    def test_assets(self, cli_runner, temp_db, sample_assets):
        """Test listing and showing ERP assets."""
        gateway = FakeERPGateway(assets=sample_assets)

        result = _invoke(cli_runner, temp_db, ["erp", "assets"], gateway=gateway)
        assert result.exit_code == 0
        assert "Head office" in result.output
        assert "42,000.00" in result.output

        result = _invoke(cli_runner, temp_db, ["erp", "assets", "A-9"], gateway=gateway)
        assert result.exit_code == 1
        assert "ERP asset 'A-9' not found" in result.output

    def test_assets_unreachable(self, cli_runner, temp_db):
        """Test listing assets when the ERP is down."""
        gateway = FakeERPGateway(error=IntegrationError("Failed to fetch assets from ERP system: refused"))
        result = _invoke(cli_runner, temp_db, ["erp", "assets"], gateway=gateway)
        assert result.exit_code == 1
        assert "refused" in result.output
