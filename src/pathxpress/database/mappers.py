"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic: status strings become enums and
integer flags become booleans here, so services only handle typed entities.
"""

from decimal import Decimal
from typing import Optional

from pathxpress.domain import entities as domain
from pathxpress.database.models import (
    RateTier as ORMRateTier,
    ClientAccount as ORMClientAccount,
    Shipment as ORMShipment,
    CODRecord as ORMCODRecord,
    CODRemittance as ORMCODRemittance,
    CODRemittanceItem as ORMCODRemittanceItem,
    Invoice as ORMInvoice,
    InvoiceItem as ORMInvoiceItem,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def rate_tier_to_domain(orm_tier: ORMRateTier) -> domain.RateTier:
    """Convert SQLAlchemy RateTier model to domain RateTier entity."""
    return domain.RateTier(
        id=orm_tier.id,
        service_type=domain.ServiceType(orm_tier.service_type),
        min_volume=orm_tier.min_volume,
        max_volume=orm_tier.max_volume,
        base_rate=_decimal(orm_tier.base_rate),
        additional_kg_rate=_decimal(orm_tier.additional_kg_rate),
        max_weight=_decimal(orm_tier.max_weight),
        is_active=bool(orm_tier.is_active),
    )


def client_to_domain(orm_client: ORMClientAccount) -> domain.ClientAccount:
    """Convert SQLAlchemy ClientAccount model to domain ClientAccount entity."""
    return domain.ClientAccount(
        id=orm_client.id,
        company_name=orm_client.company_name,
        billing_email=orm_client.billing_email,
        default_currency=orm_client.default_currency,
        cod_allowed=bool(orm_client.cod_allowed),
        cod_fee_percent=_decimal(orm_client.cod_fee_percent),
        cod_min_fee=_decimal(orm_client.cod_min_fee),
        cod_max_fee=_decimal(orm_client.cod_max_fee),
        manual_rate_tier_id=orm_client.manual_rate_tier_id,
        custom_dom_base_rate=_decimal(orm_client.custom_dom_base_rate),
        custom_dom_per_kg=_decimal(orm_client.custom_dom_per_kg),
        custom_sdd_base_rate=_decimal(orm_client.custom_sdd_base_rate),
        custom_sdd_per_kg=_decimal(orm_client.custom_sdd_per_kg),
        custom_max_weight=_decimal(orm_client.custom_max_weight),
        fod_allowed=bool(orm_client.fod_allowed),
        fod_fee=_decimal(orm_client.fod_fee),
        return_fee=_decimal(orm_client.return_fee),
        is_active=bool(orm_client.is_active),
        created_at=orm_client.created_at,
    )


def shipment_to_domain(orm_shipment: ORMShipment) -> domain.Shipment:
    """Convert SQLAlchemy Shipment model to domain Shipment entity."""
    return domain.Shipment(
        id=orm_shipment.id,
        client_id=orm_shipment.client_id,
        waybill_number=orm_shipment.waybill_number,
        service_type=domain.ServiceType(orm_shipment.service_type),
        weight=_decimal(orm_shipment.weight),
        length=_decimal(orm_shipment.length),
        width=_decimal(orm_shipment.width),
        height=_decimal(orm_shipment.height),
        status=domain.ShipmentStatus(orm_shipment.status),
        cod_required=bool(orm_shipment.cod_required),
        cod_amount=_decimal(orm_shipment.cod_amount),
        cod_currency=orm_shipment.cod_currency,
        charge=_decimal(orm_shipment.charge),
        fit_on_delivery=bool(orm_shipment.fit_on_delivery),
        order_type=domain.OrderType(orm_shipment.order_type),
        return_charged=bool(orm_shipment.return_charged),
        city=orm_shipment.city,
        created_at=orm_shipment.created_at,
        delivered_at=orm_shipment.delivered_at,
    )


def cod_record_to_domain(orm_record: ORMCODRecord) -> domain.CODRecord:
    """Convert SQLAlchemy CODRecord model to domain CODRecord entity."""
    return domain.CODRecord(
        id=orm_record.id,
        shipment_id=orm_record.shipment_id,
        client_id=orm_record.shipment.client_id,
        cod_amount=_decimal(orm_record.cod_amount),
        cod_currency=orm_record.cod_currency,
        status=domain.CODStatus(orm_record.status),
        collected_date=orm_record.collected_date,
        remitted_to_client_date=orm_record.remitted_to_client_date,
        remittance_id=orm_record.remittance_id,
        notes=orm_record.notes,
        created_at=orm_record.created_at,
    )


def remittance_to_domain(orm_remittance: ORMCODRemittance) -> domain.CODRemittance:
    """Convert SQLAlchemy CODRemittance model to domain CODRemittance entity."""
    return domain.CODRemittance(
        id=orm_remittance.id,
        client_id=orm_remittance.client_id,
        remittance_number=orm_remittance.remittance_number,
        gross_amount=_decimal(orm_remittance.gross_amount),
        fee_amount=_decimal(orm_remittance.fee_amount),
        fee_percentage=_decimal(orm_remittance.fee_percentage),
        total_amount=_decimal(orm_remittance.total_amount),
        currency=orm_remittance.currency,
        shipment_count=orm_remittance.shipment_count,
        status=domain.RemittanceStatus(orm_remittance.status),
        payment_method=orm_remittance.payment_method,
        payment_reference=orm_remittance.payment_reference,
        processed_date=orm_remittance.processed_date,
        completed_date=orm_remittance.completed_date,
        notes=orm_remittance.notes,
        created_by=orm_remittance.created_by,
        created_at=orm_remittance.created_at,
    )


def remittance_item_to_domain(orm_item: ORMCODRemittanceItem) -> domain.CODRemittanceItem:
    """Convert SQLAlchemy CODRemittanceItem model to domain entity."""
    return domain.CODRemittanceItem(
        id=orm_item.id,
        remittance_id=orm_item.remittance_id,
        cod_record_id=orm_item.cod_record_id,
        shipment_id=orm_item.shipment_id,
        amount=_decimal(orm_item.amount),
        currency=orm_item.currency,
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        client_id=orm_invoice.client_id,
        invoice_number=orm_invoice.invoice_number,
        period_from=orm_invoice.period_from,
        period_to=orm_invoice.period_to,
        issue_date=orm_invoice.issue_date,
        due_date=orm_invoice.due_date,
        currency=orm_invoice.currency,
        subtotal=_decimal(orm_invoice.subtotal),
        taxes=_decimal(orm_invoice.taxes),
        total=_decimal(orm_invoice.total),
        amount_paid=_decimal(orm_invoice.amount_paid),
        balance=_decimal(orm_invoice.balance),
        status=domain.InvoiceStatus(orm_invoice.status),
        payment_date=orm_invoice.payment_date,
        payment_reference=orm_invoice.payment_reference,
        notes=orm_invoice.notes,
        adjustment_notes=orm_invoice.adjustment_notes,
        is_adjusted=bool(orm_invoice.is_adjusted),
        last_adjusted_by=orm_invoice.last_adjusted_by,
        last_adjusted_at=orm_invoice.last_adjusted_at,
        created_at=orm_invoice.created_at,
    )


def invoice_item_to_domain(orm_item: ORMInvoiceItem) -> domain.InvoiceItem:
    """Convert SQLAlchemy InvoiceItem model to domain InvoiceItem entity."""
    return domain.InvoiceItem(
        id=orm_item.id,
        invoice_id=orm_item.invoice_id,
        shipment_id=orm_item.shipment_id,
        description=orm_item.description,
        quantity=orm_item.quantity,
        unit_price=_decimal(orm_item.unit_price),
        total=_decimal(orm_item.total),
    )
