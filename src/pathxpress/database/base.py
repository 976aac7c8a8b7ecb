"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Sequence
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from pathxpress.domain.entities import (
    RateTier,
    ClientAccount,
    Shipment,
    CODRecord,
    CODRemittance,
    CODRemittanceItem,
    CODSummary,
    Invoice,
    InvoiceItem,
    NewInvoiceItem,
    ServiceType,
    ShipmentStatus,
    CODStatus,
    RemittanceStatus,
    OrderType,
)


class Database(ABC):
    """Abstract database interface for pathxpress.

    Every write method runs in its own transaction: it either commits fully or
    raises and leaves nothing behind.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Service configuration
    @abstractmethod
    def get_config_entries(self) -> dict[str, str]:
        """Return all stored service configuration values keyed by name."""
        pass

    @abstractmethod
    def set_config_entry(self, key: str, value: str, description: Optional[str] = None) -> None:
        """Create or replace a service configuration value."""
        pass

    # Rate tier operations
    @abstractmethod
    def create_rate_tier(
        self,
        service_type: ServiceType,
        min_volume: int,
        max_volume: Optional[int],
        base_rate: Decimal,
        additional_kg_rate: Decimal,
        max_weight: Decimal,
        is_active: bool = True,
    ) -> int:
        """Create a rate tier. Returns tier ID."""
        pass

    @abstractmethod
    def get_rate_tier(self, tier_id: int) -> Optional[RateTier]:
        """Get rate tier by ID."""
        pass

    @abstractmethod
    def list_rate_tiers(
        self, service_type: Optional[ServiceType] = None, active_only: bool = True
    ) -> list[RateTier]:
        """List rate tiers ordered by service type and minimum volume."""
        pass

    @abstractmethod
    def set_rate_tier_active(self, tier_id: int, is_active: bool) -> None:
        """Activate or deactivate a rate tier."""
        pass

    # Client operations
    @abstractmethod
    def create_client(
        self,
        company_name: str,
        billing_email: Optional[str] = None,
        default_currency: str = "AED",
        cod_allowed: bool = False,
        fod_allowed: bool = False,
        fod_fee: Optional[Decimal] = None,
        return_fee: Optional[Decimal] = None,
    ) -> int:
        """Create a client account. Returns client ID."""
        pass

    @abstractmethod
    def get_client(self, client_id: int) -> Optional[ClientAccount]:
        """Get client account by ID."""
        pass

    @abstractmethod
    def get_client_by_name(self, company_name: str) -> Optional[ClientAccount]:
        """Get client account by company name."""
        pass

    @abstractmethod
    def list_clients(self) -> list[ClientAccount]:
        """List all client accounts."""
        pass

    @abstractmethod
    def update_client_rates(
        self,
        client_id: int,
        manual_rate_tier_id: Optional[int],
        custom_dom_base_rate: Optional[Decimal],
        custom_dom_per_kg: Optional[Decimal],
        custom_sdd_base_rate: Optional[Decimal],
        custom_sdd_per_kg: Optional[Decimal],
        custom_max_weight: Optional[Decimal],
    ) -> None:
        """Replace a client's rate assignment."""
        pass

    @abstractmethod
    def update_client_cod_settings(
        self,
        client_id: int,
        cod_allowed: bool,
        cod_fee_percent: Optional[Decimal],
        cod_min_fee: Optional[Decimal],
        cod_max_fee: Optional[Decimal],
    ) -> None:
        """Replace a client's COD fee overrides."""
        pass

    @abstractmethod
    def update_client_fod_settings(
        self,
        client_id: int,
        fod_allowed: bool,
        fod_fee: Optional[Decimal],
        return_fee: Optional[Decimal],
    ) -> None:
        """Replace a client's fit-on-delivery and return fee settings."""
        pass

    @abstractmethod
    def count_client_shipments(
        self, client_id: int, start: datetime, end: datetime
    ) -> int:
        """Count shipments created by a client in [start, end)."""
        pass

    # Shipment operations
    @abstractmethod
    def create_shipment(
        self,
        client_id: int,
        service_type: ServiceType,
        weight: Decimal,
        length: Optional[Decimal] = None,
        width: Optional[Decimal] = None,
        height: Optional[Decimal] = None,
        cod_amount: Optional[Decimal] = None,
        cod_currency: Optional[str] = None,
        charge: Optional[Decimal] = None,
        fit_on_delivery: bool = False,
        order_type: OrderType = OrderType.STANDARD,
        return_charged: bool = True,
        city: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Shipment:
        """Create a shipment with a fresh waybill number.

        When ``cod_amount`` is given the shipment is marked COD and its
        pending COD record is created in the same transaction.
        """
        pass

    @abstractmethod
    def get_shipment(self, shipment_id: int) -> Optional[Shipment]:
        """Get shipment by ID."""
        pass

    @abstractmethod
    def get_shipment_by_waybill(self, waybill_number: str) -> Optional[Shipment]:
        """Get shipment by waybill number."""
        pass

    @abstractmethod
    def list_shipments(
        self, client_id: Optional[int] = None, status: Optional[ShipmentStatus] = None
    ) -> list[Shipment]:
        """List shipments, newest first, with optional filters."""
        pass

    @abstractmethod
    def update_shipment_status(
        self,
        shipment_id: int,
        expected_status: ShipmentStatus,
        status: ShipmentStatus,
        delivered_at: Optional[datetime] = None,
    ) -> None:
        """Move a shipment from expected_status to status.

        Raises ConflictError if the shipment changed status concurrently.
        """
        pass

    # COD record operations
    @abstractmethod
    def get_cod_record(self, cod_record_id: int) -> Optional[CODRecord]:
        """Get COD record by ID."""
        pass

    @abstractmethod
    def get_cod_records(self, cod_record_ids: Sequence[int]) -> list[CODRecord]:
        """Get the COD records that exist among the given IDs."""
        pass

    @abstractmethod
    def list_cod_records(
        self, client_id: Optional[int] = None, status: Optional[CODStatus] = None
    ) -> list[CODRecord]:
        """List COD records, newest first, with optional filters."""
        pass

    @abstractmethod
    def update_cod_record_status(
        self,
        cod_record_id: int,
        expected_status: CODStatus,
        status: CODStatus,
        collected_date: Optional[datetime] = None,
    ) -> None:
        """Move an unremitted COD record from expected_status to status.

        Raises ConflictError if the record changed concurrently or is attached
        to a remittance.
        """
        pass

    @abstractmethod
    def get_cod_summary(self, client_id: Optional[int] = None) -> CODSummary:
        """Sum COD amounts by lifecycle bucket, for one client or globally."""
        pass

    # Invoice operations
    @abstractmethod
    def list_billable_shipments(
        self,
        client_id: int,
        period_start: date,
        period_end: date,
        shipment_ids: Optional[Sequence[int]] = None,
    ) -> list[Shipment]:
        """List delivered shipments not yet attached to any invoice.

        Without shipment_ids, only shipments created within the inclusive
        period qualify; with shipment_ids, only those shipments qualify.
        """
        pass

    @abstractmethod
    def create_invoice(
        self,
        client_id: int,
        period_from: date,
        period_to: date,
        issue_date: date,
        due_date: date,
        currency: str,
        subtotal: Decimal,
        taxes: Decimal,
        total: Decimal,
        items: Sequence[NewInvoiceItem],
    ) -> Invoice:
        """Persist an invoice and its items atomically with a new number.

        Raises ConflictError if any shipment was invoiced concurrently.
        """
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def list_invoices(self, client_id: Optional[int] = None) -> list[Invoice]:
        """List invoices, newest first."""
        pass

    @abstractmethod
    def get_invoice_items(self, invoice_id: int) -> list[InvoiceItem]:
        """Get the line items of an invoice."""
        pass

    @abstractmethod
    def update_invoice(self, invoice_id: int, changes: dict[str, Any]) -> None:
        """Apply field changes to an invoice."""
        pass

    # Remittance operations
    @abstractmethod
    def create_remittance(
        self,
        client_id: int,
        cod_record_ids: Sequence[int],
        gross_amount: Decimal,
        fee_amount: Decimal,
        fee_percentage: Decimal,
        total_amount: Decimal,
        currency: str,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> CODRemittance:
        """Persist a remittance, claim its COD records and add items atomically.

        Raises ConflictError if any record is no longer collected and free.
        """
        pass

    @abstractmethod
    def get_remittance(self, remittance_id: int) -> Optional[CODRemittance]:
        """Get remittance by ID."""
        pass

    @abstractmethod
    def list_remittances(self, client_id: Optional[int] = None) -> list[CODRemittance]:
        """List remittances, newest first."""
        pass

    @abstractmethod
    def get_remittance_items(self, remittance_id: int) -> list[CODRemittanceItem]:
        """Get the items of a remittance."""
        pass

    @abstractmethod
    def update_remittance_status(
        self,
        remittance_id: int,
        expected_status: RemittanceStatus,
        status: RemittanceStatus,
        changed_at: datetime,
    ) -> None:
        """Advance a remittance from expected_status to status.

        Moving to completed marks every included COD record remitted in the
        same transaction.
        """
        pass
