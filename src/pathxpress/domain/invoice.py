"""Invoice generation and invoice lifecycle domain service."""

import logging
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal
from typing import Optional, Sequence

from pathxpress.database.base import Database
from pathxpress.domain.config import ServiceConfig, load_service_config
from pathxpress.domain.entities import (
    INVOICE_TRANSITIONS,
    ClientAccount,
    Invoice,
    InvoiceDetails,
    InvoiceStatus,
    NewInvoiceItem,
    OrderType,
    Shipment,
)
from pathxpress.domain.errors import (
    NotFoundError,
    ValidationError,
    client_not_found,
    invalid_transition,
    invoice_not_found,
    no_billable_shipments,
)
from pathxpress.domain.rates import RateService
from pathxpress.utils.amount_parser import round_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def invoice_totals(
    items: Sequence[NewInvoiceItem], tax_percent: Decimal
) -> tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, taxes, total) for a set of priced lines."""
    subtotal = round_money(sum((item.total for item in items), ZERO))
    taxes = round_money(subtotal * Decimal(tax_percent) / Decimal("100"))
    return subtotal, taxes, subtotal + taxes


class InvoiceService:
    """Service for billing clients and managing invoices."""

    def __init__(self, db: Database):
        """Initialize invoice service.

        Args:
            db: Database instance
        """
        self.db = db
        self.rate_service = RateService(db)

    def _shipment_lines(
        self,
        client: ClientAccount,
        shipment: Shipment,
        period_end: date,
        config: ServiceConfig,
    ) -> list[NewInvoiceItem]:
        """Price one shipment into its invoice lines."""
        if shipment.order_type == OrderType.RETURN:
            description = f"Return shipment {shipment.waybill_number}"
            if not shipment.return_charged:
                price = ZERO
            elif client.return_fee is not None:
                price = client.return_fee
            else:
                price = self._shipment_price(client, shipment, period_end, config)
        else:
            description = f"{shipment.service_type.value} shipment {shipment.waybill_number}"
            price = self._shipment_price(client, shipment, period_end, config)

        price = round_money(price)
        lines = [
            NewInvoiceItem(
                shipment_id=shipment.id,
                description=description,
                quantity=1,
                unit_price=price,
                total=price,
            )
        ]

        if client.fod_allowed and shipment.fit_on_delivery:
            fod_fee = round_money(
                client.fod_fee if client.fod_fee is not None else config.fod_default_fee
            )
            lines.append(
                NewInvoiceItem(
                    shipment_id=None,
                    description=f"Fit on delivery fee {shipment.waybill_number}",
                    quantity=1,
                    unit_price=fod_fee,
                    total=fod_fee,
                )
            )
        return lines

    def _shipment_price(
        self,
        client: ClientAccount,
        shipment: Shipment,
        period_end: date,
        config: ServiceConfig,
    ) -> Decimal:
        if shipment.charge is not None:
            return shipment.charge
        quote = self.rate_service.calculate_rate(
            client.id,
            shipment.service_type,
            shipment.weight,
            length=shipment.length,
            width=shipment.width,
            height=shipment.height,
            as_of=period_end,
            config=config,
        )
        return quote.total_rate

    def generate_invoice(
        self,
        client_id: int,
        period_start: date,
        period_end: date,
        shipment_ids: Optional[Sequence[int]] = None,
        issue_date: Optional[date] = None,
    ) -> Invoice:
        """Bill a client's delivered, not yet invoiced shipments.

        Args:
            client_id: Client to bill
            period_start: First day of the period (inclusive)
            period_end: Last day of the period (inclusive)
            shipment_ids: Bill only these shipments, ignoring the period
            issue_date: Issue date (defaults to today, UTC)

        Returns:
            Created invoice

        Raises:
            ValidationError: If the period is invalid or nothing is billable
            NotFoundError: If client doesn't exist
            ConflictError: If a shipment was invoiced concurrently
        """
        if period_start > period_end:
            raise ValidationError("Period start must not be after period end")

        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        config = load_service_config(self.db.get_config_entries())
        shipments = self.db.list_billable_shipments(
            client_id, period_start, period_end, shipment_ids=shipment_ids
        )
        if not shipments:
            raise ValidationError(no_billable_shipments())

        items: list[NewInvoiceItem] = []
        for shipment in shipments:
            items.extend(self._shipment_lines(client, shipment, period_end, config))

        subtotal, taxes, total = invoice_totals(items, config.invoice_tax_percent)
        issue_date = issue_date or datetime.now(UTC).date()

        invoice = self.db.create_invoice(
            client_id=client_id,
            period_from=period_start,
            period_to=period_end,
            issue_date=issue_date,
            due_date=issue_date + timedelta(days=config.invoice_due_days),
            currency=client.default_currency or config.default_currency,
            subtotal=subtotal,
            taxes=taxes,
            total=total,
            items=items,
        )
        logger.info(
            "Created invoice %s for client %s: %d shipments, total %s",
            invoice.invoice_number,
            client_id,
            len(shipments),
            invoice.total,
        )
        return invoice

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID."""
        return self.db.get_invoice(invoice_id)

    def get_invoice_details(self, invoice_id: int) -> InvoiceDetails:
        """Get an invoice with its line items.

        Raises:
            NotFoundError: If invoice doesn't exist
        """
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return InvoiceDetails(invoice=invoice, items=tuple(self.db.get_invoice_items(invoice_id)))

    def list_invoices(self, client_id: Optional[int] = None) -> list[Invoice]:
        """List invoices, optionally for one client."""
        return self.db.list_invoices(client_id=client_id)

    def update_status(
        self,
        invoice_id: int,
        status: InvoiceStatus,
        payment_date: Optional[date] = None,
        payment_reference: Optional[str] = None,
    ) -> Invoice:
        """Move an invoice to a new payment status.

        Marking an invoice paid records the payment date and settles the
        balance.

        Raises:
            NotFoundError: If invoice doesn't exist
            ValidationError: If the transition is not allowed
        """
        status = InvoiceStatus(status)
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))

        if status not in INVOICE_TRANSITIONS[invoice.status]:
            raise ValidationError(
                invalid_transition("invoice", invoice.status.value, status.value)
            )

        changes: dict = {"status": status}
        if status == InvoiceStatus.PAID:
            changes["payment_date"] = payment_date or datetime.now(UTC).date()
            changes["amount_paid"] = invoice.total
            changes["balance"] = ZERO
            if payment_reference is not None:
                changes["payment_reference"] = payment_reference

        self.db.update_invoice(invoice_id, changes)
        logger.info(
            "Invoice %s moved from %s to %s",
            invoice.invoice_number,
            invoice.status.value,
            status.value,
        )
        return self.db.get_invoice(invoice_id)

    def adjust_invoice(
        self,
        invoice_id: int,
        adjusted_by: Optional[int],
        subtotal: Optional[Decimal] = None,
        taxes: Optional[Decimal] = None,
        amount_paid: Optional[Decimal] = None,
        notes: Optional[str] = None,
        adjustment_notes: Optional[str] = None,
    ) -> Invoice:
        """Correct an invoice's amounts or notes.

        The total and balance are always recomputed, so total equals
        subtotal + taxes and balance equals total - amount_paid.

        Args:
            invoice_id: Invoice to adjust
            adjusted_by: User making the adjustment
            subtotal: New subtotal
            taxes: New taxes
            amount_paid: New amount paid
            notes: New invoice notes
            adjustment_notes: Reason for the adjustment

        Returns:
            Adjusted invoice

        Raises:
            NotFoundError: If invoice doesn't exist
            ValidationError: If nothing changes or an amount is invalid
        """
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))

        if all(
            value is None for value in (subtotal, taxes, amount_paid, notes, adjustment_notes)
        ):
            raise ValidationError("Nothing to adjust")

        for label, value in (("Subtotal", subtotal), ("Taxes", taxes), ("Amount paid", amount_paid)):
            if value is not None and value < 0:
                raise ValidationError(f"{label} must not be negative")

        new_subtotal = round_money(subtotal) if subtotal is not None else invoice.subtotal
        new_taxes = round_money(taxes) if taxes is not None else invoice.taxes
        new_paid = round_money(amount_paid) if amount_paid is not None else invoice.amount_paid
        new_total = new_subtotal + new_taxes
        if new_paid > new_total:
            raise ValidationError("Amount paid must not exceed the invoice total")

        changes: dict = {
            "subtotal": new_subtotal,
            "taxes": new_taxes,
            "total": new_total,
            "amount_paid": new_paid,
            "balance": new_total - new_paid,
            "is_adjusted": True,
            "last_adjusted_by": adjusted_by,
            "last_adjusted_at": datetime.now(UTC),
        }
        if notes is not None:
            changes["notes"] = notes
        if adjustment_notes is not None:
            changes["adjustment_notes"] = adjustment_notes

        self.db.update_invoice(invoice_id, changes)
        logger.info("Invoice %s adjusted by %s", invoice.invoice_number, adjusted_by)
        return self.db.get_invoice(invoice_id)
