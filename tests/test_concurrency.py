"""Tests for behaviour under concurrent writers.

Each worker gets its own database instance on the same file, the way
separate processes would.
"""

import queue
import threading
from datetime import date, datetime
from decimal import Decimal

import pytest

from pathxpress.database.factories import create_sqlite_database
from pathxpress.domain.entities import ServiceType
from pathxpress.domain.errors import ConflictError, DomainError, ValidationError
from pathxpress.domain.invoice import InvoiceService
from pathxpress.domain.remittance import RemittanceService
from pathxpress.domain.shipment import ShipmentService


@pytest.fixture
def three_collected(collected_cod_record, sample_client):
    """Three collected COD records for the sample client."""
    return [
        collected_cod_record(sample_client.id, amount) for amount in ("250.00", "180.00", "95.50")
    ]


def _run_concurrently(temp_db, count, target):
    """Run target(db) in count threads released together; return results and errors."""
    databases = [create_sqlite_database(temp_db.database_path) for _ in range(count)]
    barrier = threading.Barrier(count)
    results = []
    errors = []
    lock = threading.Lock()

    def worker(db):
        barrier.wait()
        try:
            value = target(db)
        except DomainError as e:
            with lock:
                errors.append(e)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker, args=(db,)) for db in databases]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    for db in databases:
        db.disconnect()
    return results, errors


def test_waybill_numbers_unique(temp_db, sample_client):
    """Test concurrent shipment creation never reuses a waybill number."""

    def create(db):
        service = ShipmentService(db)
        return [
            service.create_shipment(sample_client.id, ServiceType.DOM, Decimal("1")).waybill_number
            for _ in range(5)
        ]

    results, errors = _run_concurrently(temp_db, 4, create)

    assert errors == []
    waybills = [number for batch in results for number in batch]
    assert len(waybills) == 20
    assert len(set(waybills)) == 20


def test_record_remitted_once(temp_db, sample_client, three_collected):
    """Test two remittances racing for the same records: exactly one wins."""
    ids = [record.id for record in three_collected]

    def remit(db):
        return RemittanceService(db).create_remittance(sample_client.id, ids)

    results, errors = _run_concurrently(temp_db, 2, remit)

    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], (ConflictError, ValidationError))
    assert len(RemittanceService(temp_db).list_remittances()) == 1


def test_shipment_invoiced_once(temp_db, sample_client, shipment_service, deliver, default_tiers):
    """Test two invoice runs racing over one period bill each shipment once."""
    for day in (3, 4, 5):
        shipment = shipment_service.create_shipment(
            sample_client.id, ServiceType.DOM, Decimal("2"), created_at=datetime(2025, 3, day)
        )
        deliver(shipment.id)

    def generate(db):
        return InvoiceService(db).generate_invoice(
            sample_client.id, date(2025, 3, 1), date(2025, 3, 31)
        )

    results, errors = _run_concurrently(temp_db, 2, generate)

    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], (ConflictError, ValidationError))
    invoice = results[0]
    items = InvoiceService(temp_db).get_invoice_details(invoice.id).items
    assert len(items) == 3


def test_concurrent_invoices_get_distinct_numbers(
    temp_db, client_service, shipment_service, deliver, default_tiers
):
    """Test invoice runs for different clients all succeed with their own numbers."""
    pending = queue.SimpleQueue()
    for index in range(4):
        client_id = client_service.create_client(company_name=f"Trader {index}")
        shipment = shipment_service.create_shipment(
            client_id, ServiceType.DOM, Decimal("2"), created_at=datetime(2025, 3, 6)
        )
        deliver(shipment.id)
        pending.put(client_id)

    def generate(db):
        return InvoiceService(db).generate_invoice(
            pending.get(), date(2025, 3, 1), date(2025, 3, 31)
        )

    results, errors = _run_concurrently(temp_db, 4, generate)

    assert errors == []
    numbers = {invoice.invoice_number for invoice in results}
    assert len(numbers) == 4
    assert all(number.startswith("INV-") for number in numbers)
    assert len({invoice.client_id for invoice in results}) == 4


def test_disjoint_remittances_get_distinct_numbers(temp_db, collected_cod_record, sample_client):
    """Test remittances over separate records all succeed with their own numbers."""
    pending = queue.SimpleQueue()
    for _ in range(6):
        pending.put(collected_cod_record(sample_client.id, "100.00").id)

    def remit(db):
        return RemittanceService(db).create_remittance(sample_client.id, [pending.get()])

    results, errors = _run_concurrently(temp_db, 6, remit)

    assert errors == []
    numbers = {remittance.remittance_number for remittance in results}
    assert len(numbers) == 6
    assert all(number.startswith("REM-") for number in numbers)
    assert len(RemittanceService(temp_db).list_remittances()) == 6


def test_reads_proceed_during_open_write(temp_db, sample_client):
    """Test a read on another connection is not queued behind a write transaction."""
    writer = create_sqlite_database(temp_db.database_path)
    try:
        with writer._transaction():
            assert temp_db.get_client(sample_client.id).company_name == "Acme Trading"
            assert temp_db.get_config_entries() == {}
    finally:
        writer.disconnect()
