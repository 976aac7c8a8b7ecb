"""Shared pytest fixtures for pathxpress tests."""

import tempfile
import os
from datetime import datetime
from decimal import Decimal
import pytest

from pathxpress.database.factories import create_sqlite_database
from pathxpress.domain.client import ClientService
from pathxpress.domain.cod import CODService
from pathxpress.domain.entities import CODStatus, ServiceType, ShipmentStatus
from pathxpress.domain.invoice import InvoiceService
from pathxpress.domain.rates import RateService
from pathxpress.domain.remittance import RemittanceService
from pathxpress.domain.settings import ConfigService
from pathxpress.domain.shipment import ShipmentService

DELIVERY_PATH = [
    ShipmentStatus.PICKED_UP,
    ShipmentStatus.IN_TRANSIT,
    ShipmentStatus.OUT_FOR_DELIVERY,
    ShipmentStatus.DELIVERED,
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def client_service(temp_db):
    """Create a ClientService with a temporary database."""
    return ClientService(temp_db)


@pytest.fixture
def rate_service(temp_db):
    """Create a RateService with a temporary database."""
    return RateService(temp_db)


@pytest.fixture
def cod_service(temp_db):
    """Create a CODService with a temporary database."""
    return CODService(temp_db)


@pytest.fixture
def shipment_service(temp_db):
    """Create a ShipmentService with a temporary database."""
    return ShipmentService(temp_db)


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def remittance_service(temp_db):
    """Create a RemittanceService with a temporary database."""
    return RemittanceService(temp_db)


@pytest.fixture
def config_service(temp_db):
    """Create a ConfigService with a temporary database."""
    return ConfigService(temp_db)


@pytest.fixture
def default_tiers(rate_service):
    """Seed the standard DOM and SDD rate tiers."""
    rate_service.seed_default_tiers()
    return rate_service.list_tiers()


@pytest.fixture
def sample_client(client_service):
    """Create a COD-enabled sample client."""
    client_id = client_service.create_client(
        company_name="Acme Trading", billing_email="billing@acme.test", cod_allowed=True
    )
    return client_service.get_client(client_id)


@pytest.fixture
def other_client(client_service):
    """Create a second COD-enabled client."""
    client_id = client_service.create_client(company_name="Desert Goods", cod_allowed=True)
    return client_service.get_client(client_id)


@pytest.fixture
def deliver(shipment_service):
    """Return a helper that walks a shipment through to delivered."""

    def _deliver(shipment_id: int):
        for status in DELIVERY_PATH:
            shipment_service.update_status(shipment_id, status)
        return shipment_service.get_shipment(shipment_id)

    return _deliver


@pytest.fixture
def collected_cod_record(shipment_service, cod_service):
    """Return a helper that creates a COD shipment and marks its cash collected."""

    def _collected(client_id: int, amount: str, currency: str = "AED"):
        shipment = shipment_service.create_shipment(
            client_id=client_id,
            service_type=ServiceType.DOM,
            weight=Decimal("1"),
            cod_amount=Decimal(amount),
            cod_currency=currency,
            created_at=datetime(2025, 3, 10, 9, 0),
        )
        record = next(
            r for r in cod_service.list_records(client_id=client_id) if r.shipment_id == shipment.id
        )
        return cod_service.update_status(record.id, CODStatus.COLLECTED)

    return _collected


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
