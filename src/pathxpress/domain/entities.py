"""Domain model entities for pathxpress.

These are pure data classes representing billing concepts, independent of
the database schema. Services and procedures only ever see these types; the
database layer converts ORM rows through the mappers module.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class ServiceType(str, Enum):
    """Delivery service offered to clients."""

    DOM = "DOM"
    SDD = "SDD"


class ShipmentStatus(str, Enum):
    """Lifecycle of a shipment."""

    PENDING_PICKUP = "pending_pickup"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    FAILED_DELIVERY = "failed_delivery"
    RETURNED = "returned"
    CANCELED = "canceled"


class OrderType(str, Enum):
    """Kind of shipment order."""

    STANDARD = "standard"
    RETURN = "return"
    EXCHANGE = "exchange"


class CODStatus(str, Enum):
    """Lifecycle of a cash-on-delivery record."""

    PENDING_COLLECTION = "pending_collection"
    COLLECTED = "collected"
    REMITTED = "remitted"
    DISPUTED = "disputed"
    CANCELLED = "cancelled"


class RemittanceStatus(str, Enum):
    """Lifecycle of a COD remittance batch."""

    PENDING = "pending"
    PROCESSED = "processed"
    COMPLETED = "completed"


class InvoiceStatus(str, Enum):
    """Payment state of an invoice."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


# Allowed status transitions per entity. Anything not listed is rejected.
SHIPMENT_TRANSITIONS: dict[ShipmentStatus, frozenset[ShipmentStatus]] = {
    ShipmentStatus.PENDING_PICKUP: frozenset(
        {ShipmentStatus.PICKED_UP, ShipmentStatus.CANCELED}
    ),
    ShipmentStatus.PICKED_UP: frozenset(
        {ShipmentStatus.IN_TRANSIT, ShipmentStatus.CANCELED}
    ),
    ShipmentStatus.IN_TRANSIT: frozenset(
        {ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.RETURNED}
    ),
    ShipmentStatus.OUT_FOR_DELIVERY: frozenset(
        {ShipmentStatus.DELIVERED, ShipmentStatus.FAILED_DELIVERY}
    ),
    ShipmentStatus.FAILED_DELIVERY: frozenset(
        {ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.RETURNED}
    ),
    ShipmentStatus.DELIVERED: frozenset(),
    ShipmentStatus.RETURNED: frozenset(),
    ShipmentStatus.CANCELED: frozenset(),
}

COD_TRANSITIONS: dict[CODStatus, frozenset[CODStatus]] = {
    CODStatus.PENDING_COLLECTION: frozenset(
        {CODStatus.COLLECTED, CODStatus.DISPUTED, CODStatus.CANCELLED}
    ),
    CODStatus.COLLECTED: frozenset({CODStatus.DISPUTED}),
    CODStatus.DISPUTED: frozenset(
        {CODStatus.COLLECTED, CODStatus.CANCELLED}
    ),
    # Remitted is only reached through remittance completion.
    CODStatus.REMITTED: frozenset(),
    CODStatus.CANCELLED: frozenset(),
}

REMITTANCE_TRANSITIONS: dict[RemittanceStatus, frozenset[RemittanceStatus]] = {
    RemittanceStatus.PENDING: frozenset({RemittanceStatus.PROCESSED}),
    RemittanceStatus.PROCESSED: frozenset({RemittanceStatus.COMPLETED}),
    RemittanceStatus.COMPLETED: frozenset(),
}

INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.PENDING: frozenset({InvoiceStatus.PAID, InvoiceStatus.OVERDUE}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}


@dataclass(frozen=True)
class RateTier:
    """Pricing row for a service type and monthly volume bracket."""

    id: int
    service_type: ServiceType
    min_volume: int
    max_volume: Optional[int]
    base_rate: Decimal
    additional_kg_rate: Decimal
    max_weight: Decimal
    is_active: bool

    def covers(self, volume: int) -> bool:
        """Return True if the volume falls in this tier's bracket."""
        if volume < self.min_volume:
            return False
        return self.max_volume is None or volume <= self.max_volume


@dataclass(frozen=True)
class ClientAccount:
    """Shipping client with its billing overrides."""

    id: int
    company_name: str
    billing_email: Optional[str]
    default_currency: str
    cod_allowed: bool
    cod_fee_percent: Optional[Decimal]
    cod_min_fee: Optional[Decimal]
    cod_max_fee: Optional[Decimal]
    manual_rate_tier_id: Optional[int]
    custom_dom_base_rate: Optional[Decimal]
    custom_dom_per_kg: Optional[Decimal]
    custom_sdd_base_rate: Optional[Decimal]
    custom_sdd_per_kg: Optional[Decimal]
    custom_max_weight: Optional[Decimal]
    fod_allowed: bool
    fod_fee: Optional[Decimal]
    return_fee: Optional[Decimal]
    is_active: bool
    created_at: datetime

    def custom_rates_for(
        self, service_type: ServiceType
    ) -> tuple[Optional[Decimal], Optional[Decimal]]:
        """Return (base rate, per kg rate) custom overrides for a service type."""
        if service_type == ServiceType.SDD:
            return self.custom_sdd_base_rate, self.custom_sdd_per_kg
        return self.custom_dom_base_rate, self.custom_dom_per_kg


@dataclass(frozen=True)
class Shipment:
    """Shipment (order) entity."""

    id: int
    client_id: int
    waybill_number: str
    service_type: ServiceType
    weight: Decimal
    length: Optional[Decimal]
    width: Optional[Decimal]
    height: Optional[Decimal]
    status: ShipmentStatus
    cod_required: bool
    cod_amount: Optional[Decimal]
    cod_currency: Optional[str]
    charge: Optional[Decimal]
    fit_on_delivery: bool
    order_type: OrderType
    return_charged: bool
    city: Optional[str]
    created_at: datetime
    delivered_at: Optional[datetime] = None


@dataclass(frozen=True)
class CODRecord:
    """Cash collected (or to be collected) for one shipment."""

    id: int
    shipment_id: int
    client_id: int
    cod_amount: Decimal
    cod_currency: str
    status: CODStatus
    collected_date: Optional[datetime]
    remitted_to_client_date: Optional[datetime]
    remittance_id: Optional[int]
    notes: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class CODRemittanceItem:
    """Link between a remittance and one COD record."""

    id: int
    remittance_id: int
    cod_record_id: int
    shipment_id: int
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class CODRemittance:
    """Batched payout of collected COD funds to a client."""

    id: int
    client_id: int
    remittance_number: str
    gross_amount: Decimal
    fee_amount: Decimal
    fee_percentage: Decimal
    total_amount: Decimal
    currency: str
    shipment_count: int
    status: RemittanceStatus
    payment_method: Optional[str]
    payment_reference: Optional[str]
    processed_date: Optional[datetime]
    completed_date: Optional[datetime]
    notes: Optional[str]
    created_by: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class InvoiceItem:
    """Invoice line, usually one billed shipment."""

    id: int
    invoice_id: int
    shipment_id: Optional[int]
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass(frozen=True)
class Invoice:
    """Client invoice for a billing period."""

    id: int
    client_id: int
    invoice_number: str
    period_from: date
    period_to: date
    issue_date: date
    due_date: date
    currency: str
    subtotal: Decimal
    taxes: Decimal
    total: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: InvoiceStatus
    payment_date: Optional[date]
    payment_reference: Optional[str]
    notes: Optional[str]
    adjustment_notes: Optional[str]
    is_adjusted: bool
    last_adjusted_by: Optional[int]
    last_adjusted_at: Optional[datetime]
    created_at: datetime


@dataclass(frozen=True)
class NewInvoiceItem:
    """Invoice line that has been priced but not yet persisted."""

    shipment_id: Optional[int]
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass(frozen=True)
class CustomRateBasis:
    """Client-negotiated rates for a service type."""

    base_rate: Decimal
    additional_kg_rate: Decimal
    max_weight: Decimal
    kind: str = field(default="custom", init=False)


@dataclass(frozen=True)
class ManualTierBasis:
    """Tier pinned to the client by an admin."""

    tier: RateTier
    kind: str = field(default="manual_tier", init=False)


@dataclass(frozen=True)
class AutoTierBasis:
    """Tier selected by the client's monthly shipment volume."""

    tier: RateTier
    monthly_volume: int
    kind: str = field(default="auto_tier", init=False)


RateBasis = Union[CustomRateBasis, ManualTierBasis, AutoTierBasis]


@dataclass(frozen=True)
class RateQuote:
    """Result of pricing one shipment."""

    total_rate: Decimal
    chargeable_weight: Decimal
    volumetric_weight: Optional[Decimal]
    base_rate: Decimal
    additional_charges: Decimal
    basis: RateBasis


@dataclass(frozen=True)
class CODSummary:
    """Totals of COD amounts by lifecycle bucket."""

    pending: Decimal
    collected: Decimal
    remitted: Decimal

    @property
    def total(self) -> Decimal:
        return self.pending + self.collected + self.remitted


@dataclass(frozen=True)
class InvoiceDetails:
    """Invoice together with its line items."""

    invoice: Invoice
    items: tuple[InvoiceItem, ...]


@dataclass(frozen=True)
class RemittanceDetails:
    """Remittance together with its items."""

    remittance: CODRemittance
    items: tuple[CODRemittanceItem, ...]
