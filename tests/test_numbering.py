"""Tests for document numbers."""

from datetime import datetime
from decimal import Decimal

import pytest

from pathxpress.domain import numbering
from pathxpress.domain.entities import ServiceType
from pathxpress.domain.errors import ConflictError


def test_waybill_format():
    """Test waybills are PX, the year and five digits."""
    assert numbering.format_number(numbering.WAYBILL, 2025, 1) == "PX202500001"
    assert numbering.format_number(numbering.WAYBILL, 2025, 99999) == "PX202599999"


def test_invoice_format():
    """Test invoice numbers are INV-year-six digits."""
    assert numbering.format_number(numbering.INVOICE, 2025, 42) == "INV-2025-000042"


def test_remittance_format():
    """Test remittance numbers are REM-year-six digits."""
    assert numbering.format_number(numbering.REMITTANCE, 2026, 7) == "REM-2026-000007"


def test_sequence_exhausted():
    """Test a sequence that outgrows its width is a conflict."""
    with pytest.raises(ConflictError):
        numbering.format_number(numbering.WAYBILL, 2025, 100000)


def test_is_waybill_number():
    """Test waybill recognition."""
    assert numbering.is_waybill_number("PX202500001")
    assert not numbering.is_waybill_number("PX2025001")
    assert not numbering.is_waybill_number("INV-2025-000001")


def test_sequences_are_yearly(shipment_service, sample_client):
    """Test each year starts its own waybill sequence."""
    first = shipment_service.create_shipment(
        sample_client.id, ServiceType.DOM, Decimal("1"), created_at=datetime(2025, 12, 31)
    )
    second = shipment_service.create_shipment(
        sample_client.id, ServiceType.DOM, Decimal("1"), created_at=datetime(2025, 12, 31)
    )
    third = shipment_service.create_shipment(
        sample_client.id, ServiceType.DOM, Decimal("1"), created_at=datetime(2026, 1, 1)
    )
    assert first.waybill_number == "PX202500001"
    assert second.waybill_number == "PX202500002"
    assert third.waybill_number == "PX202600001"
