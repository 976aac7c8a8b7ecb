"""Tests for the procedure surface."""

import re
from datetime import datetime
from decimal import Decimal

import pytest

from pathxpress.domain.entities import ServiceType
from pathxpress.procedures import (
    BAD_REQUEST,
    CONFLICT,
    FORBIDDEN,
    NOT_FOUND,
    Caller,
    ProcedureError,
    Procedures,
)

ADMIN = {"role": "admin", "user_id": 1}


@pytest.fixture
def procedures(temp_db):
    return Procedures(temp_db)


@pytest.fixture
def customer(sample_client):
    return {"role": "customer", "user_id": 50, "client_id": sample_client.id}


def _code(excinfo) -> str:
    return excinfo.value.code


class TestCaller:
    """Tests for caller validation."""

    def test_customer_needs_client(self, procedures):
        """Test a customer caller without a client is a bad request."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.calculate_cod_fee({"role": "customer", "user_id": 5}, {"cod_amount": "100"})
        assert _code(excinfo) == BAD_REQUEST

    def test_unknown_role(self, procedures):
        """Test roles other than admin and customer are rejected."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.calculate_cod_fee({"role": "courier", "user_id": 5}, {"cod_amount": "100"})
        assert _code(excinfo) == BAD_REQUEST

    def test_model_instance_accepted(self, procedures):
        """Test a Caller model can be passed directly."""
        result = procedures.calculate_cod_fee(Caller(role="admin", user_id=1), {"cod_amount": "100"})
        assert result.fee == Decimal("3.30")


class TestCalculateRate:
    """Tests for the calculate_rate procedure."""

    def test_rate(self, procedures, customer, sample_client, default_tiers):
        """Test a customer can price their own shipment."""
        result = procedures.calculate_rate(
            customer, {"client_id": sample_client.id, "service_type": "DOM", "weight": "7"}
        )
        assert result.total_rate == Decimal("16.00")
        assert result.base_rate == Decimal("14.00")
        assert result.additional_charges == Decimal("2.00")
        assert result.chargeable_weight == Decimal("7.00")
        assert result.volumetric_weight is None
        assert result.basis == "auto_tier"

    def test_other_clients_rate_forbidden(self, procedures, customer, other_client, default_tiers):
        """Test a customer cannot price for another client."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.calculate_rate(
                customer, {"client_id": other_client.id, "service_type": "DOM", "weight": "1"}
            )
        assert _code(excinfo) == FORBIDDEN

    @pytest.mark.parametrize(
        "payload",
        [
            {"service_type": "DOM", "weight": "1"},
            {"client_id": 1, "service_type": "XYZ", "weight": "1"},
            {"client_id": 1, "service_type": "DOM", "weight": "0"},
            {"client_id": 1, "service_type": "DOM", "weight": "1", "length": "-4"},
        ],
    )
    def test_bad_payloads(self, procedures, payload):
        """Test malformed payloads are bad requests."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.calculate_rate(ADMIN, payload)
        assert _code(excinfo) == BAD_REQUEST

    def test_no_tier_is_not_found(self, procedures, sample_client):
        """Test pricing without any tier configured."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.calculate_rate(
                ADMIN, {"client_id": sample_client.id, "service_type": "SDD", "weight": "1"}
            )
        assert _code(excinfo) == NOT_FOUND


class TestCalculateCODFee:
    """Tests for the calculate_cod_fee procedure."""

    def test_rounded_fee(self, procedures):
        """Test the fee leaves rounded half-up to cents."""
        result = procedures.calculate_cod_fee(ADMIN, {"cod_amount": "95.50"})
        assert result.fee == Decimal("3.15")

    def test_customer_uses_own_schedule(self, procedures, customer, client_service, sample_client, other_client):
        """Test a customer's client_id in the payload is ignored."""
        client_service.update_cod_settings(sample_client.id, cod_allowed=True, min_fee=Decimal("8"))
        result = procedures.calculate_cod_fee(
            customer, {"cod_amount": "100", "client_id": other_client.id}
        )
        assert result.fee == Decimal("8.00")

    def test_unknown_client(self, procedures):
        """Test an unknown client is NOT_FOUND."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.calculate_cod_fee(ADMIN, {"cod_amount": "100", "client_id": 999})
        assert _code(excinfo) == NOT_FOUND


class TestAdminOnly:
    """Tests for procedures reserved to admins."""

    @pytest.mark.parametrize(
        "name, payload",
        [
            ("generate_invoice", {"client_id": 1, "period_start": "2025-03-01", "period_end": "2025-03-31"}),
            ("create_remittance", {"client_id": 1, "cod_record_ids": [1]}),
            ("update_invoice_status", {"invoice_id": 1, "status": "paid"}),
            ("adjust_invoice", {"invoice_id": 1, "notes": "x"}),
            ("update_remittance_status", {"remittance_id": 1, "status": "processed"}),
            ("update_cod_status", {"cod_record_id": 1, "status": "collected"}),
        ],
    )
    def test_customer_forbidden(self, procedures, customer, name, payload):
        """Test customers cannot call admin procedures."""
        with pytest.raises(ProcedureError) as excinfo:
            getattr(procedures, name)(customer, payload)
        assert _code(excinfo) == FORBIDDEN


class TestInvoiceProcedures:
    """Tests for invoice procedures."""

    @pytest.fixture
    def billable(self, shipment_service, deliver, sample_client, default_tiers):
        shipment = shipment_service.create_shipment(
            sample_client.id, ServiceType.DOM, Decimal("7"), created_at=datetime(2025, 3, 5)
        )
        return deliver(shipment.id)

    def _generate(self, procedures, client_id):
        return procedures.generate_invoice(
            ADMIN, {"client_id": client_id, "period_start": "2025-03-01", "period_end": "2025-03-31"}
        )

    def test_generate_and_view(self, procedures, customer, sample_client, billable):
        """Test an admin bills and the customer reads their invoice."""
        created = self._generate(procedures, sample_client.id)
        assert re.match(r"^INV-\d{4}-\d{6}$", created.invoice_number)

        details = procedures.get_invoice_details(customer, {"invoice_id": created.invoice_id})
        assert details.invoice.total == Decimal("16.00")
        assert details.invoice.balance == Decimal("16.00")
        assert [item.shipment_id for item in details.items] == [billable.id]

    def test_nothing_billable(self, procedures, sample_client, billable):
        """Test a second run over the same period is a bad request."""
        self._generate(procedures, sample_client.id)
        with pytest.raises(ProcedureError) as excinfo:
            self._generate(procedures, sample_client.id)
        assert _code(excinfo) == BAD_REQUEST
        assert "No billable shipments found for this period" in excinfo.value.message

    def test_other_customer_cannot_view(self, procedures, sample_client, other_client, billable):
        """Test invoices are private to their client."""
        created = self._generate(procedures, sample_client.id)
        stranger = {"role": "customer", "user_id": 9, "client_id": other_client.id}
        with pytest.raises(ProcedureError) as excinfo:
            procedures.get_invoice_details(stranger, {"invoice_id": created.invoice_id})
        assert _code(excinfo) == FORBIDDEN

    def test_missing_invoice(self, procedures):
        """Test viewing a missing invoice."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.get_invoice_details(ADMIN, {"invoice_id": 404})
        assert _code(excinfo) == NOT_FOUND

    def test_pay_and_adjust(self, procedures, sample_client, billable):
        """Test status and adjustment procedures keep the totals consistent."""
        created = self._generate(procedures, sample_client.id)
        adjusted = procedures.adjust_invoice(
            ADMIN, {"invoice_id": created.invoice_id, "subtotal": "12.005", "adjustment_notes": "Goodwill"}
        )
        assert adjusted.subtotal == Decimal("12.01")
        assert adjusted.total == Decimal("12.01")
        assert adjusted.is_adjusted is True

        paid = procedures.update_invoice_status(
            ADMIN, {"invoice_id": created.invoice_id, "status": "paid", "payment_date": "2025-04-03"}
        )
        assert paid.balance == Decimal("0.00")
        assert paid.amount_paid == Decimal("12.01")

        with pytest.raises(ProcedureError) as excinfo:
            procedures.update_invoice_status(ADMIN, {"invoice_id": created.invoice_id, "status": "pending"})
        assert _code(excinfo) == BAD_REQUEST


class TestRemittanceProcedures:
    """Tests for remittance procedures."""

    def test_create_and_complete(self, procedures, customer, collected_cod_record, sample_client):
        """Test the remittance flow from creation to completion."""
        ids = [
            collected_cod_record(sample_client.id, amount).id
            for amount in ("250.00", "180.00", "95.50")
        ]
        created = procedures.create_remittance(
            ADMIN, {"client_id": sample_client.id, "cod_record_ids": ids, "payment_method": "bank_transfer"}
        )
        assert re.match(r"^REM-\d{4}-\d{6}$", created.remittance_number)
        assert created.gross_amount == Decimal("525.50")
        assert created.fee_amount == Decimal("17.34")
        assert created.net_amount == Decimal("508.16")

        details = procedures.get_remittance_details(customer, {"remittance_id": created.remittance_id})
        assert len(details.items) == 3
        assert details.remittance.status == "pending"

        procedures.update_remittance_status(ADMIN, {"remittance_id": created.remittance_id, "status": "processed"})
        done = procedures.update_remittance_status(
            ADMIN, {"remittance_id": created.remittance_id, "status": "completed"}
        )
        assert done.completed_date is not None

        summary = procedures.get_cod_summary(customer, {})
        assert summary.remitted == Decimal("525.50")
        assert summary.collected == Decimal("0.00")

    def test_empty_selection(self, procedures, sample_client):
        """Test an empty record list is rejected by the payload model."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.create_remittance(ADMIN, {"client_id": sample_client.id, "cod_record_ids": []})
        assert _code(excinfo) == BAD_REQUEST

    def test_double_remit(self, procedures, collected_cod_record, sample_client):
        """Test remitting the same record twice fails."""
        record = collected_cod_record(sample_client.id, "100.00")
        payload = {"client_id": sample_client.id, "cod_record_ids": [record.id]}
        procedures.create_remittance(ADMIN, payload)
        with pytest.raises(ProcedureError) as excinfo:
            procedures.create_remittance(ADMIN, payload)
        assert _code(excinfo) in (BAD_REQUEST, CONFLICT)


class TestShipmentAndCOD:
    """Tests for shipment and COD record procedures."""

    def test_create_shipment(self, procedures, customer, sample_client):
        """Test a customer books a COD shipment."""
        result = procedures.create_shipment(
            customer,
            {"client_id": sample_client.id, "service_type": "DOM", "weight": "1.2", "cod_amount": "80"},
        )
        assert re.match(r"^PX\d{9}$", result.waybill_number)
        assert result.status == "pending_pickup"
        assert result.cod_required is True
        assert result.cod_amount == Decimal("80.00")

    @pytest.mark.parametrize(
        "field, value", [("weight", "0.004"), ("cod_amount", "0.004"), ("length", "1.005")]
    )
    def test_create_shipment_sub_cent_values(self, procedures, customer, sample_client, field, value):
        """Test values finer than the stored two decimal places are refused."""
        payload = {"client_id": sample_client.id, "service_type": "DOM", "weight": "1"}
        payload[field] = value
        with pytest.raises(ProcedureError) as excinfo:
            procedures.create_shipment(customer, payload)
        assert _code(excinfo) == BAD_REQUEST

    def test_create_shipment_for_other_client(self, procedures, customer, other_client):
        """Test a customer cannot book for another client."""
        with pytest.raises(ProcedureError) as excinfo:
            procedures.create_shipment(
                customer, {"client_id": other_client.id, "service_type": "DOM", "weight": "1"}
            )
        assert _code(excinfo) == FORBIDDEN

    def test_update_cod_status(self, procedures, shipment_service, cod_service, sample_client):
        """Test an admin marks COD cash collected."""
        shipment = shipment_service.create_shipment(
            sample_client.id, ServiceType.DOM, Decimal("1"), cod_amount=Decimal("45")
        )
        record = cod_service.list_records(client_id=sample_client.id)[0]
        result = procedures.update_cod_status(
            ADMIN,
            {"cod_record_id": record.id, "status": "collected", "collected_date": "2025-03-11T10:00:00"},
        )
        assert result.shipment_id == shipment.id
        assert result.status == "collected"
        assert result.collected_date == datetime(2025, 3, 11, 10, 0)

        with pytest.raises(ProcedureError) as excinfo:
            procedures.update_cod_status(ADMIN, {"cod_record_id": record.id, "status": "remitted"})
        assert _code(excinfo) == BAD_REQUEST
