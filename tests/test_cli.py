"""Integration tests for end-to-end CLI workflows."""

import re

import pytest

from pathxpress.cli.main import cli


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI against the temporary database."""

    def _run(*args):
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args])

    return _run


def _id_from(output: str) -> str:
    # Output like "Created client 'Acme Trading' (ID: 1)"
    match = re.search(r"\(ID: (\d+)\)", output)
    assert match is not None, output
    return match.group(1)


def test_help_needs_no_database(cli_runner):
    """Test --help works without touching a database."""
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Courier billing" in result.output


def test_full_billing_workflow(run):
    """Test client setup, shipping, invoicing and COD remittance end to end."""
    result = run("tier", "seed")
    assert result.exit_code == 0
    assert "Created 8 rate tiers" in result.output

    result = run("client", "create", "Acme Trading", "--email", "billing@acme.test", "--cod")
    assert result.exit_code == 0
    assert "Created client 'Acme Trading'" in result.output

    result = run("rate", "Acme Trading", "--weight", "7")
    assert result.exit_code == 0
    assert "Total:             16.00" in result.output

    result = run("shipment", "create", "Acme Trading", "--weight", "7", "--cod", "250")
    assert result.exit_code == 0
    waybill = re.search(r"PX\d{9}", result.output).group(0)

    for status in ("picked_up", "in_transit", "out_for_delivery", "delivered"):
        result = run("shipment", "status", waybill, status)
        assert result.exit_code == 0, result.output
    assert "is now delivered" in result.output

    result = run("invoice", "generate", "Acme Trading", "--period", "this-month")
    assert result.exit_code == 0, result.output
    assert "total 16.00 AED" in result.output
    invoice_id = _id_from(result.output)

    result = run("invoice", "generate", "Acme Trading", "--period", "this-month")
    assert result.exit_code == 1
    assert "No billable shipments found for this period" in result.output

    result = run("invoice", "show", invoice_id)
    assert result.exit_code == 0
    assert waybill in result.output

    result = run("invoice", "status", invoice_id, "paid", "--reference", "TRX-1")
    assert result.exit_code == 0
    assert "is now paid" in result.output

    result = run("cod", "list", "--client", "Acme Trading")
    assert result.exit_code == 0
    record_id = re.search(r"ID:\s*(\d+)", result.output).group(1)

    result = run("cod", "status", record_id, "collected")
    assert result.exit_code == 0

    result = run("remittance", "create", "Acme Trading", record_id, "--method", "bank_transfer")
    assert result.exit_code == 0, result.output
    assert "Gross: 250.00 AED" in result.output
    assert "Fee:   8.25" in result.output
    assert "Net:   241.75" in result.output
    remittance_id = _id_from(result.output)

    for status in ("processed", "completed"):
        result = run("remittance", "status", remittance_id, status)
        assert result.exit_code == 0, result.output

    result = run("cod", "summary", "--client", "Acme Trading")
    assert result.exit_code == 0
    assert re.search(r"Remitted:\s+250\.00", result.output)


def test_cod_fee_command(run):
    """Test the COD fee calculator."""
    result = run("cod", "fee", "500")
    assert result.exit_code == 0
    assert "COD fee: 16.50" in result.output


def test_config_set_and_list(run):
    """Test changing a platform default."""
    result = run("config", "set", "cod_min_fee", "8")
    assert result.exit_code == 0
    assert "Set COD_MIN_FEE = 8" in result.output

    result = run("config", "list")
    assert result.exit_code == 0
    assert re.search(r"COD_MIN_FEE\s+= 8", result.output)

    result = run("config", "set", "NOPE", "1")
    assert result.exit_code == 1
    assert "Unknown config key" in result.output

    result = run("config", "set", "COD_FEE_PERCENTAGE", "NaN")
    assert result.exit_code == 1
    assert "COD_FEE_PERCENTAGE" in result.output


def test_unknown_client(run):
    """Test commands naming a missing client fail cleanly."""
    result = run("rate", "Nobody LLC", "--weight", "1")
    assert result.exit_code == 1
    assert "Not found" in result.output


def test_invalid_amount(run):
    """Test malformed amounts are reported, not raised."""
    run("client", "create", "Acme Trading")
    result = run("shipment", "create", "Acme Trading", "--weight", "heavy")
    assert result.exit_code == 1
    assert "Error" in result.output


def test_duplicate_client(run):
    """Test creating the same client twice."""
    run("client", "create", "Acme Trading")
    result = run("client", "create", "Acme Trading")
    assert result.exit_code == 1
    assert "Conflict" in result.output


def test_client_rates_and_show(run):
    """Test custom rates are visible on the client."""
    run("client", "create", "Acme Trading")
    result = run("client", "set-rates", "Acme Trading", "--dom-base", "12", "--dom-per-kg", "0.5")
    assert result.exit_code == 0
    assert "now uses custom rates" in result.output

    result = run("rate", "Acme Trading", "--weight", "7")
    assert result.exit_code == 0
    assert "Total:             13.00" in result.output

    result = run("client", "show", "Acme Trading")
    assert result.exit_code == 0
    assert "DOM custom rate:   12.00 + 0.50/kg" in result.output
