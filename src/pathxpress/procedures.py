"""Typed procedures exposed to the portal.

Each procedure takes the calling user's context and a raw payload, validates
the payload with a pydantic model, checks the caller's role and returns a
pydantic output model. Domain errors are translated to ``ProcedureError``
with a stable code; money leaves this module rounded to 2 places, half-up.
"""

import functools
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, model_validator

from pathxpress.database.base import Database
from pathxpress.domain.cod import CODService
from pathxpress.domain.entities import (
    CODRemittance,
    CODStatus,
    Invoice,
    InvoiceStatus,
    OrderType,
    RemittanceStatus,
    ServiceType,
    ShipmentStatus,
)
from pathxpress.domain.errors import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from pathxpress.domain.invoice import InvoiceService
from pathxpress.domain.rates import RateService
from pathxpress.domain.remittance import RemittanceService
from pathxpress.domain.shipment import ShipmentService
from pathxpress.utils.amount_parser import round_money

logger = logging.getLogger(__name__)

BAD_REQUEST = "BAD_REQUEST"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
FORBIDDEN = "FORBIDDEN"


class ProcedureError(Exception):
    """Error returned to procedure callers."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ── Caller context ───────────────────────────────────────────

class Caller(BaseModel):
    """Authenticated user calling a procedure."""
    role: Literal["admin", "customer"]
    user_id: int
    client_id: int | None = None

    @model_validator(mode="after")
    def _customer_has_client(self) -> "Caller":
        if self.role == "customer" and self.client_id is None:
            raise ValueError("customer callers must carry a client_id")
        return self

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# ── Inputs ───────────────────────────────────────────────────

class CalculateRateInput(BaseModel):
    client_id: int
    service_type: ServiceType
    weight: Decimal = Field(..., gt=0)
    length: Decimal | None = Field(None, ge=0)
    width: Decimal | None = Field(None, ge=0)
    height: Decimal | None = Field(None, ge=0)


class CalculateCODFeeInput(BaseModel):
    cod_amount: Decimal = Field(..., gt=0)
    client_id: int | None = None


class GenerateInvoiceInput(BaseModel):
    client_id: int
    period_start: date
    period_end: date
    shipment_ids: list[int] | None = None


class CreateRemittanceInput(BaseModel):
    client_id: int
    cod_record_ids: list[int] = Field(..., min_length=1)
    payment_method: str | None = Field(None, max_length=50)
    payment_reference: str | None = Field(None, max_length=100)
    notes: str | None = None


class InvoiceIdInput(BaseModel):
    invoice_id: int


class RemittanceIdInput(BaseModel):
    remittance_id: int


class UpdateInvoiceStatusInput(BaseModel):
    invoice_id: int
    status: InvoiceStatus
    payment_date: date | None = None
    payment_reference: str | None = Field(None, max_length=255)


class AdjustInvoiceInput(BaseModel):
    invoice_id: int
    subtotal: Decimal | None = Field(None, ge=0)
    taxes: Decimal | None = Field(None, ge=0)
    amount_paid: Decimal | None = Field(None, ge=0)
    notes: str | None = None
    adjustment_notes: str | None = None


class UpdateRemittanceStatusInput(BaseModel):
    remittance_id: int
    status: RemittanceStatus


class UpdateCODStatusInput(BaseModel):
    cod_record_id: int
    status: CODStatus
    collected_date: datetime | None = None


class CreateShipmentInput(BaseModel):
    client_id: int
    service_type: ServiceType
    # Stored with two decimal places
    weight: Decimal = Field(..., gt=0, decimal_places=2)
    length: Decimal | None = Field(None, ge=0, decimal_places=2)
    width: Decimal | None = Field(None, ge=0, decimal_places=2)
    height: Decimal | None = Field(None, ge=0, decimal_places=2)
    cod_amount: Decimal | None = Field(None, gt=0, decimal_places=2)
    cod_currency: str | None = Field(None, max_length=10)
    fit_on_delivery: bool = False
    order_type: OrderType = OrderType.STANDARD
    return_charged: bool = True
    city: str | None = None


class CODSummaryInput(BaseModel):
    client_id: int | None = None


# ── Outputs ──────────────────────────────────────────────────

class RateOut(BaseModel):
    total_rate: Decimal
    chargeable_weight: Decimal
    volumetric_weight: Decimal | None
    base_rate: Decimal
    additional_charges: Decimal
    basis: str


class CODFeeOut(BaseModel):
    fee: Decimal


class GenerateInvoiceOut(BaseModel):
    invoice_id: int
    invoice_number: str


class CreateRemittanceOut(BaseModel):
    remittance_id: int
    remittance_number: str
    gross_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal


class InvoiceOut(BaseModel):
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
    payment_date: date | None
    payment_reference: str | None
    notes: str | None
    adjustment_notes: str | None
    is_adjusted: bool


class InvoiceItemOut(BaseModel):
    id: int
    shipment_id: int | None
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


class InvoiceDetailsOut(BaseModel):
    invoice: InvoiceOut
    items: list[InvoiceItemOut]


class RemittanceOut(BaseModel):
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
    payment_method: str | None
    payment_reference: str | None
    processed_date: datetime | None
    completed_date: datetime | None
    notes: str | None


class RemittanceItemOut(BaseModel):
    id: int
    cod_record_id: int
    shipment_id: int
    amount: Decimal
    currency: str


class RemittanceDetailsOut(BaseModel):
    remittance: RemittanceOut
    items: list[RemittanceItemOut]


class CODRecordOut(BaseModel):
    id: int
    shipment_id: int
    cod_amount: Decimal
    cod_currency: str
    status: CODStatus
    collected_date: datetime | None
    remittance_id: int | None


class ShipmentOut(BaseModel):
    id: int
    client_id: int
    waybill_number: str
    service_type: ServiceType
    status: ShipmentStatus
    cod_required: bool
    cod_amount: Decimal | None


class CODSummaryOut(BaseModel):
    pending: Decimal
    collected: Decimal
    remitted: Decimal
    total: Decimal


# ── Helpers ──────────────────────────────────────────────────

_ERROR_CODES: list[tuple[type[DomainError], str]] = [
    (NotFoundError, NOT_FOUND),
    (ConflictError, CONFLICT),
    (ForbiddenError, FORBIDDEN),
    (ValidationError, BAD_REQUEST),
]


def _error_code(error: DomainError) -> str:
    for error_type, code in _ERROR_CODES:
        if isinstance(error, error_type):
            return code
    return BAD_REQUEST


def procedure(func: Callable) -> Callable:
    """Validate the caller and payload, and translate errors to ProcedureError."""

    @functools.wraps(func)
    def wrapper(self, caller: Caller | dict, payload: Optional[dict] = None):
        try:
            if not isinstance(caller, Caller):
                caller = Caller.model_validate(caller)
            return func(self, caller, payload or {})
        except PydanticValidationError as e:
            raise ProcedureError(BAD_REQUEST, str(e)) from e
        except DomainError as e:
            code = _error_code(e)
            if code == CONFLICT:
                logger.warning("%s conflict: %s", func.__name__, e)
            raise ProcedureError(code, str(e)) from e

    return wrapper


def _require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise ForbiddenError("Admin access required")


def _require_client_access(caller: Caller, client_id: int) -> None:
    if not caller.is_admin and caller.client_id != client_id:
        raise ForbiddenError("Access denied")


def _invoice_out(invoice: Invoice) -> InvoiceOut:
    return InvoiceOut(
        id=invoice.id,
        client_id=invoice.client_id,
        invoice_number=invoice.invoice_number,
        period_from=invoice.period_from,
        period_to=invoice.period_to,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        currency=invoice.currency,
        subtotal=round_money(invoice.subtotal),
        taxes=round_money(invoice.taxes),
        total=round_money(invoice.total),
        amount_paid=round_money(invoice.amount_paid),
        balance=round_money(invoice.balance),
        status=invoice.status,
        payment_date=invoice.payment_date,
        payment_reference=invoice.payment_reference,
        notes=invoice.notes,
        adjustment_notes=invoice.adjustment_notes,
        is_adjusted=invoice.is_adjusted,
    )


def _remittance_out(remittance: CODRemittance) -> RemittanceOut:
    return RemittanceOut(
        id=remittance.id,
        client_id=remittance.client_id,
        remittance_number=remittance.remittance_number,
        gross_amount=round_money(remittance.gross_amount),
        fee_amount=round_money(remittance.fee_amount),
        fee_percentage=remittance.fee_percentage,
        total_amount=round_money(remittance.total_amount),
        currency=remittance.currency,
        shipment_count=remittance.shipment_count,
        status=remittance.status,
        payment_method=remittance.payment_method,
        payment_reference=remittance.payment_reference,
        processed_date=remittance.processed_date,
        completed_date=remittance.completed_date,
        notes=remittance.notes,
    )


class Procedures:
    """Procedure surface over the billing services."""

    def __init__(self, db: Database):
        self.db = db
        self.rates = RateService(db)
        self.cod = CODService(db)
        self.invoices = InvoiceService(db)
        self.remittances = RemittanceService(db)
        self.shipments = ShipmentService(db)

    @procedure
    def calculate_rate(self, caller: Caller, payload: dict[str, Any]) -> RateOut:
        data = CalculateRateInput.model_validate(payload)
        _require_client_access(caller, data.client_id)
        quote = self.rates.calculate_rate(
            data.client_id,
            data.service_type,
            data.weight,
            length=data.length,
            width=data.width,
            height=data.height,
        )
        return RateOut(
            total_rate=round_money(quote.total_rate),
            chargeable_weight=round_money(quote.chargeable_weight),
            volumetric_weight=(
                round_money(quote.volumetric_weight)
                if quote.volumetric_weight is not None
                else None
            ),
            base_rate=round_money(quote.base_rate),
            additional_charges=round_money(quote.additional_charges),
            basis=quote.basis.kind,
        )

    @procedure
    def calculate_cod_fee(self, caller: Caller, payload: dict[str, Any]) -> CODFeeOut:
        data = CalculateCODFeeInput.model_validate(payload)
        # Customers are always priced on their own schedule
        client_id = data.client_id if caller.is_admin else caller.client_id
        fee = self.cod.calculate_fee(data.cod_amount, client_id=client_id)
        return CODFeeOut(fee=round_money(fee))

    @procedure
    def generate_invoice(self, caller: Caller, payload: dict[str, Any]) -> GenerateInvoiceOut:
        _require_admin(caller)
        data = GenerateInvoiceInput.model_validate(payload)
        invoice = self.invoices.generate_invoice(
            data.client_id,
            data.period_start,
            data.period_end,
            shipment_ids=data.shipment_ids,
        )
        return GenerateInvoiceOut(invoice_id=invoice.id, invoice_number=invoice.invoice_number)

    @procedure
    def create_remittance(self, caller: Caller, payload: dict[str, Any]) -> CreateRemittanceOut:
        _require_admin(caller)
        data = CreateRemittanceInput.model_validate(payload)
        remittance = self.remittances.create_remittance(
            data.client_id,
            data.cod_record_ids,
            payment_method=data.payment_method,
            payment_reference=data.payment_reference,
            notes=data.notes,
            created_by=caller.user_id,
        )
        return CreateRemittanceOut(
            remittance_id=remittance.id,
            remittance_number=remittance.remittance_number,
            gross_amount=round_money(remittance.gross_amount),
            fee_amount=round_money(remittance.fee_amount),
            net_amount=round_money(remittance.total_amount),
        )

    @procedure
    def get_invoice_details(self, caller: Caller, payload: dict[str, Any]) -> InvoiceDetailsOut:
        data = InvoiceIdInput.model_validate(payload)
        details = self.invoices.get_invoice_details(data.invoice_id)
        _require_client_access(caller, details.invoice.client_id)
        return InvoiceDetailsOut(
            invoice=_invoice_out(details.invoice),
            items=[
                InvoiceItemOut(
                    id=item.id,
                    shipment_id=item.shipment_id,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=round_money(item.unit_price),
                    total=round_money(item.total),
                )
                for item in details.items
            ],
        )

    @procedure
    def get_remittance_details(
        self, caller: Caller, payload: dict[str, Any]
    ) -> RemittanceDetailsOut:
        data = RemittanceIdInput.model_validate(payload)
        details = self.remittances.get_remittance_details(data.remittance_id)
        _require_client_access(caller, details.remittance.client_id)
        return RemittanceDetailsOut(
            remittance=_remittance_out(details.remittance),
            items=[
                RemittanceItemOut(
                    id=item.id,
                    cod_record_id=item.cod_record_id,
                    shipment_id=item.shipment_id,
                    amount=round_money(item.amount),
                    currency=item.currency,
                )
                for item in details.items
            ],
        )

    @procedure
    def update_invoice_status(self, caller: Caller, payload: dict[str, Any]) -> InvoiceOut:
        _require_admin(caller)
        data = UpdateInvoiceStatusInput.model_validate(payload)
        invoice = self.invoices.update_status(
            data.invoice_id,
            data.status,
            payment_date=data.payment_date,
            payment_reference=data.payment_reference,
        )
        return _invoice_out(invoice)

    @procedure
    def adjust_invoice(self, caller: Caller, payload: dict[str, Any]) -> InvoiceOut:
        _require_admin(caller)
        data = AdjustInvoiceInput.model_validate(payload)
        invoice = self.invoices.adjust_invoice(
            data.invoice_id,
            adjusted_by=caller.user_id,
            subtotal=data.subtotal,
            taxes=data.taxes,
            amount_paid=data.amount_paid,
            notes=data.notes,
            adjustment_notes=data.adjustment_notes,
        )
        return _invoice_out(invoice)

    @procedure
    def update_remittance_status(self, caller: Caller, payload: dict[str, Any]) -> RemittanceOut:
        _require_admin(caller)
        data = UpdateRemittanceStatusInput.model_validate(payload)
        return _remittance_out(self.remittances.update_status(data.remittance_id, data.status))

    @procedure
    def update_cod_status(self, caller: Caller, payload: dict[str, Any]) -> CODRecordOut:
        _require_admin(caller)
        data = UpdateCODStatusInput.model_validate(payload)
        record = self.cod.update_status(
            data.cod_record_id, data.status, collected_date=data.collected_date
        )
        return CODRecordOut(
            id=record.id,
            shipment_id=record.shipment_id,
            cod_amount=round_money(record.cod_amount),
            cod_currency=record.cod_currency,
            status=record.status,
            collected_date=record.collected_date,
            remittance_id=record.remittance_id,
        )

    @procedure
    def create_shipment(self, caller: Caller, payload: dict[str, Any]) -> ShipmentOut:
        data = CreateShipmentInput.model_validate(payload)
        _require_client_access(caller, data.client_id)
        shipment = self.shipments.create_shipment(
            data.client_id,
            data.service_type,
            data.weight,
            length=data.length,
            width=data.width,
            height=data.height,
            cod_amount=data.cod_amount,
            cod_currency=data.cod_currency,
            fit_on_delivery=data.fit_on_delivery,
            order_type=data.order_type,
            return_charged=data.return_charged,
            city=data.city,
        )
        return ShipmentOut(
            id=shipment.id,
            client_id=shipment.client_id,
            waybill_number=shipment.waybill_number,
            service_type=shipment.service_type,
            status=shipment.status,
            cod_required=shipment.cod_required,
            cod_amount=(
                round_money(shipment.cod_amount) if shipment.cod_amount is not None else None
            ),
        )

    @procedure
    def get_cod_summary(self, caller: Caller, payload: dict[str, Any]) -> CODSummaryOut:
        data = CODSummaryInput.model_validate(payload)
        client_id = data.client_id if caller.is_admin else caller.client_id
        summary = self.cod.get_summary(client_id=client_id)
        return CODSummaryOut(
            pending=round_money(summary.pending),
            collected=round_money(summary.collected),
            remitted=round_money(summary.remitted),
            total=round_money(summary.total),
        )
