"""COD remittance building and lifecycle domain service."""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional, Sequence

from pathxpress.database.base import Database
from pathxpress.domain.cod import calculate_cod_fee, fee_schedule
from pathxpress.domain.config import load_service_config
from pathxpress.domain.entities import (
    REMITTANCE_TRANSITIONS,
    CODRemittance,
    CODStatus,
    RemittanceDetails,
    RemittanceStatus,
)
from pathxpress.domain.errors import (
    NotFoundError,
    ValidationError,
    client_not_found,
    cod_record_not_found,
    cod_records_not_remittable,
    invalid_transition,
    remittance_not_found,
)
from pathxpress.utils.amount_parser import round_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemittanceTotals:
    """Gross, fee and net amounts of a remittance."""

    gross_amount: Decimal
    fee_amount: Decimal
    total_amount: Decimal


def summarize_remittance(amounts: Sequence[Decimal], fee_amount: Decimal) -> RemittanceTotals:
    """Combine record amounts and a fee into remittance totals.

    The gross is the exact sum of the amounts and the net is gross - fee.

    Raises:
        ValidationError: If there are no amounts or the fee exceeds the gross
    """
    if not amounts:
        raise ValidationError("At least one COD record is required")
    gross = sum((Decimal(amount) for amount in amounts), Decimal("0"))
    fee = Decimal(fee_amount)
    if fee < 0:
        raise ValidationError("Fee must not be negative")
    if fee > gross:
        raise ValidationError("Fee must not exceed the gross amount")
    return RemittanceTotals(gross_amount=gross, fee_amount=fee, total_amount=gross - fee)


class RemittanceService:
    """Service for paying collected COD funds out to clients."""

    def __init__(self, db: Database):
        """Initialize remittance service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_remittance(
        self,
        client_id: int,
        cod_record_ids: Sequence[int],
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
        notes: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> CODRemittance:
        """Batch collected COD records into a pending remittance.

        The fee is the sum of each record's fee under the client's schedule,
        rounded once. Records stay ``collected`` until the remittance
        completes.

        Args:
            client_id: Client being paid
            cod_record_ids: COD records to include
            payment_method: Optional payment method
            payment_reference: Optional payment reference
            notes: Optional notes
            created_by: User creating the remittance

        Returns:
            Created remittance

        Raises:
            ValidationError: If the selection is empty, has duplicates, mixes
                currencies or contains records that cannot be remitted
            NotFoundError: If client or a record doesn't exist
            ConflictError: If a record was remitted concurrently
        """
        record_ids = list(cod_record_ids)
        if not record_ids:
            raise ValidationError("At least one COD record is required")
        duplicates = sorted(rid for rid, count in Counter(record_ids).items() if count > 1)
        if duplicates:
            raise ValidationError(
                f"Duplicate COD record ids: {', '.join(str(rid) for rid in duplicates)}"
            )

        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        records = self.db.get_cod_records(record_ids)
        found = {record.id for record in records}
        missing = [rid for rid in record_ids if rid not in found]
        if missing:
            raise NotFoundError(cod_record_not_found(missing[0]))

        invalid = [
            record.id
            for record in records
            if record.client_id != client_id
            or record.status != CODStatus.COLLECTED
            or record.remittance_id is not None
        ]
        if invalid:
            raise ValidationError(cod_records_not_remittable(invalid))

        currencies = {record.cod_currency for record in records}
        if len(currencies) > 1:
            raise ValidationError(
                f"COD records mix currencies ({', '.join(sorted(currencies))}); "
                "remit each currency separately"
            )

        config = load_service_config(self.db.get_config_entries())
        percent, min_fee, max_fee = fee_schedule(client, config)
        fee = round_money(
            sum(
                (calculate_cod_fee(r.cod_amount, percent, min_fee, max_fee) for r in records),
                Decimal("0"),
            )
        )
        gross = sum((record.cod_amount for record in records), Decimal("0"))
        if fee > gross:
            raise ValidationError(
                f"COD fee {fee} exceeds the collected {gross}; lower the client's COD "
                "minimum fee or add more records to this remittance"
            )
        totals = summarize_remittance([record.cod_amount for record in records], fee)

        remittance = self.db.create_remittance(
            client_id=client_id,
            cod_record_ids=record_ids,
            gross_amount=totals.gross_amount,
            fee_amount=totals.fee_amount,
            fee_percentage=percent,
            total_amount=totals.total_amount,
            currency=currencies.pop(),
            payment_method=payment_method,
            payment_reference=payment_reference,
            notes=notes,
            created_by=created_by,
        )
        logger.info(
            "Created remittance %s for client %s: %d records, net %s",
            remittance.remittance_number,
            client_id,
            len(record_ids),
            remittance.total_amount,
        )
        return remittance

    def get_remittance(self, remittance_id: int) -> Optional[CODRemittance]:
        """Get remittance by ID."""
        return self.db.get_remittance(remittance_id)

    def get_remittance_details(self, remittance_id: int) -> RemittanceDetails:
        """Get a remittance with its items.

        Raises:
            NotFoundError: If remittance doesn't exist
        """
        remittance = self.db.get_remittance(remittance_id)
        if remittance is None:
            raise NotFoundError(remittance_not_found(remittance_id))
        return RemittanceDetails(
            remittance=remittance, items=tuple(self.db.get_remittance_items(remittance_id))
        )

    def list_remittances(self, client_id: Optional[int] = None) -> list[CODRemittance]:
        """List remittances, optionally for one client."""
        return self.db.list_remittances(client_id=client_id)

    def update_status(self, remittance_id: int, status: RemittanceStatus) -> CODRemittance:
        """Advance a remittance.

        Completing a remittance marks all of its COD records remitted.

        Raises:
            NotFoundError: If remittance doesn't exist
            ValidationError: If the transition is not allowed
            ConflictError: If the remittance changed status concurrently
        """
        status = RemittanceStatus(status)
        remittance = self.db.get_remittance(remittance_id)
        if remittance is None:
            raise NotFoundError(remittance_not_found(remittance_id))

        if status not in REMITTANCE_TRANSITIONS[remittance.status]:
            raise ValidationError(
                invalid_transition("remittance", remittance.status.value, status.value)
            )

        self.db.update_remittance_status(
            remittance_id,
            expected_status=remittance.status,
            status=status,
            changed_at=datetime.now(UTC),
        )
        logger.info(
            "Remittance %s moved from %s to %s",
            remittance.remittance_number,
            remittance.status.value,
            status.value,
        )
        return self.db.get_remittance(remittance_id)
