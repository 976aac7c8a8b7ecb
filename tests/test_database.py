"""Tests for the SQLAlchemy database layer and mappers."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from pathxpress.database.mappers import (
    cod_record_to_domain,
    invoice_to_domain,
    rate_tier_to_domain,
    shipment_to_domain,
)
from pathxpress.database.models import (
    CODRecord as ORMCODRecord,
    Invoice as ORMInvoice,
    RateTier as ORMRateTier,
    Shipment as ORMShipment,
)
from pathxpress.domain.entities import (
    CODStatus,
    InvoiceStatus,
    OrderType,
    RateTier,
    ServiceType,
    ShipmentStatus,
)
from pathxpress.domain.errors import ConflictError, NotFoundError


class TestMappers:
    """Tests for ORM to domain conversion."""

    def test_rate_tier_to_domain(self):
        """Test converting ORM RateTier to domain RateTier."""
        orm_tier = ORMRateTier(
            id=4,
            service_type="SDD",
            min_volume=0,
            max_volume=None,
            base_rate=18.0,
            additional_kg_rate=Decimal("1.00"),
            max_weight=Decimal("10"),
            is_active=1,
        )
        tier = rate_tier_to_domain(orm_tier)

        assert isinstance(tier, RateTier)
        assert tier.service_type == ServiceType.SDD
        assert tier.base_rate == Decimal("18.0")
        assert tier.is_active is True
        assert tier.covers(10_000)

    def test_shipment_to_domain(self):
        """Test status strings become enums."""
        orm_shipment = ORMShipment(
            id=1,
            client_id=2,
            waybill_number="PX202500001",
            service_type="DOM",
            weight=Decimal("1.50"),
            status="out_for_delivery",
            cod_required=False,
            fit_on_delivery=False,
            order_type="return",
            return_charged=True,
            created_at=datetime.now(UTC),
        )
        shipment = shipment_to_domain(orm_shipment)

        assert shipment.status == ShipmentStatus.OUT_FOR_DELIVERY
        assert shipment.order_type == OrderType.RETURN
        assert shipment.length is None
        assert shipment.charge is None

    def test_cod_record_takes_client_from_shipment(self):
        """Test the record's client comes from its shipment."""
        orm_record = ORMCODRecord(
            id=9,
            shipment_id=1,
            cod_amount=Decimal("250.00"),
            cod_currency="AED",
            status="collected",
            created_at=datetime.now(UTC),
        )
        orm_record.shipment = ORMShipment(id=1, client_id=3)
        record = cod_record_to_domain(orm_record)

        assert record.client_id == 3
        assert record.status == CODStatus.COLLECTED
        assert record.remittance_id is None

    def test_invoice_to_domain(self):
        """Test invoice flags and status are typed."""
        orm_invoice = ORMInvoice(
            id=1,
            client_id=2,
            invoice_number="INV-2025-000001",
            period_from=date(2025, 3, 1),
            period_to=date(2025, 3, 31),
            issue_date=date(2025, 4, 1),
            due_date=date(2025, 5, 1),
            currency="AED",
            subtotal=Decimal("30.00"),
            taxes=Decimal("0.00"),
            total=Decimal("30.00"),
            amount_paid=Decimal("0.00"),
            balance=Decimal("30.00"),
            status="overdue",
            is_adjusted=0,
            created_at=datetime.now(UTC),
        )
        invoice = invoice_to_domain(orm_invoice)

        assert invoice.status == InvoiceStatus.OVERDUE
        assert invoice.is_adjusted is False
        assert invoice.total == Decimal("30.00")


class TestConditionalUpdates:
    """Tests for status updates guarded by the expected current status."""

    def test_stale_shipment_status(self, temp_db, shipment_service, sample_client):
        """Test a shipment update from a stale status is a conflict."""
        shipment = shipment_service.create_shipment(sample_client.id, ServiceType.DOM, Decimal("1"))
        shipment_service.update_status(shipment.id, ShipmentStatus.PICKED_UP)
        with pytest.raises(ConflictError):
            temp_db.update_shipment_status(
                shipment.id,
                expected_status=ShipmentStatus.PENDING_PICKUP,
                status=ShipmentStatus.PICKED_UP,
            )

    def test_missing_shipment(self, temp_db):
        """Test updating a missing shipment is not found."""
        with pytest.raises(NotFoundError):
            temp_db.update_shipment_status(
                5, expected_status=ShipmentStatus.PENDING_PICKUP, status=ShipmentStatus.PICKED_UP
            )

    def test_linked_cod_record_is_frozen(
        self, temp_db, remittance_service, collected_cod_record, sample_client
    ):
        """Test a record attached to a remittance cannot change status."""
        record = collected_cod_record(sample_client.id, "100.00")
        remittance_service.create_remittance(sample_client.id, [record.id])
        with pytest.raises(ConflictError):
            temp_db.update_cod_record_status(
                record.id, expected_status=CODStatus.COLLECTED, status=CODStatus.DISPUTED
            )

    def test_unknown_invoice_field(self, temp_db):
        """Test invoice updates only accept known fields."""
        with pytest.raises(ValueError, match="Cannot update invoice fields"):
            temp_db.update_invoice(1, {"invoice_number": "INV-2025-999999"})


class TestBillableShipments:
    """Tests for selecting shipments to invoice."""

    def test_invoiced_shipments_excluded(
        self, temp_db, invoice_service, shipment_service, deliver, sample_client, default_tiers
    ):
        """Test a shipment appears in at most one invoice."""
        shipment = shipment_service.create_shipment(
            sample_client.id, ServiceType.DOM, Decimal("1"), created_at=datetime(2025, 3, 9)
        )
        deliver(shipment.id)
        start, end = date(2025, 3, 1), date(2025, 3, 31)

        assert [s.id for s in temp_db.list_billable_shipments(sample_client.id, start, end)] == [
            shipment.id
        ]
        invoice_service.generate_invoice(sample_client.id, start, end)
        assert temp_db.list_billable_shipments(sample_client.id, start, end) == []
        assert (
            temp_db.list_billable_shipments(sample_client.id, start, end, shipment_ids=[shipment.id])
            == []
        )

    def test_count_client_shipments_window(self, temp_db, shipment_service, sample_client):
        """Test the volume count honours its [start, end) window."""
        for created_at in (
            datetime(2025, 2, 28, 23, 59),
            datetime(2025, 3, 1, 0, 0),
            datetime(2025, 3, 15, 12, 0),
            datetime(2025, 3, 16, 0, 0),
        ):
            shipment_service.create_shipment(
                sample_client.id, ServiceType.DOM, Decimal("1"), created_at=created_at
            )
        count = temp_db.count_client_shipments(
            sample_client.id, datetime(2025, 3, 1), datetime(2025, 3, 16)
        )
        assert count == 2


def test_config_entries(temp_db):
    """Test config entries are created then replaced."""
    temp_db.set_config_entry("COD_MIN_FEE", "5", "Minimum COD fee")
    temp_db.set_config_entry("COD_MIN_FEE", "6")
    assert temp_db.get_config_entries() == {"COD_MIN_FEE": "6"}
