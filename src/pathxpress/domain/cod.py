"""Cash-on-delivery fee calculation and COD record lifecycle."""

import logging
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from pathxpress.database.base import Database
from pathxpress.domain.config import ServiceConfig, load_service_config
from pathxpress.domain.entities import (
    COD_TRANSITIONS,
    ClientAccount,
    CODRecord,
    CODStatus,
    CODSummary,
)
from pathxpress.domain.errors import (
    NotFoundError,
    ValidationError,
    client_not_found,
    cod_record_not_found,
    invalid_transition,
)

logger = logging.getLogger(__name__)


def calculate_cod_fee(
    cod_amount: Decimal,
    fee_percent: Decimal,
    min_fee: Decimal,
    max_fee: Optional[Decimal] = None,
) -> Decimal:
    """Compute the fee for handling a COD collection.

    fee = max(min_fee, min(max_fee, cod_amount * fee_percent / 100)). A
    max_fee of None or zero means no cap.

    Returns:
        Precise, unrounded fee

    Raises:
        ValidationError: If cod_amount is not positive
    """
    if cod_amount is None or Decimal(cod_amount) <= 0:
        raise ValidationError("COD amount must be greater than zero")

    fee = Decimal(cod_amount) * Decimal(fee_percent) / Decimal("100")
    if max_fee:
        fee = min(fee, Decimal(max_fee))
    return max(Decimal(min_fee), fee)


def fee_schedule(
    client: Optional[ClientAccount], config: ServiceConfig
) -> tuple[Decimal, Decimal, Optional[Decimal]]:
    """Return (percent, minimum, maximum) for a client, falling back to defaults."""
    if client is None:
        return config.cod_fee_percentage, config.cod_min_fee, config.cod_max_fee
    percent = client.cod_fee_percent if client.cod_fee_percent is not None else config.cod_fee_percentage
    min_fee = client.cod_min_fee if client.cod_min_fee is not None else config.cod_min_fee
    max_fee = client.cod_max_fee if client.cod_max_fee is not None else config.cod_max_fee
    return percent, min_fee, max_fee


class CODService:
    """Service for COD fees, records and summaries."""

    def __init__(self, db: Database):
        """Initialize COD service.

        Args:
            db: Database instance
        """
        self.db = db

    def calculate_fee(
        self,
        cod_amount: Decimal,
        client_id: Optional[int] = None,
        config: Optional[ServiceConfig] = None,
    ) -> Decimal:
        """Compute the COD fee using the client's schedule or the platform defaults.

        Args:
            cod_amount: Amount to be collected
            client_id: Optional client whose overrides apply
            config: Configuration to use (loaded from the database if None)

        Returns:
            Precise, unrounded fee

        Raises:
            ValidationError: If cod_amount is not positive
            NotFoundError: If client_id is given but doesn't exist
        """
        if config is None:
            config = load_service_config(self.db.get_config_entries())

        client = None
        if client_id is not None:
            client = self.db.get_client(client_id)
            if client is None:
                raise NotFoundError(client_not_found(client_id))

        percent, min_fee, max_fee = fee_schedule(client, config)
        return calculate_cod_fee(cod_amount, percent, min_fee, max_fee)

    def get_record(self, cod_record_id: int) -> Optional[CODRecord]:
        """Get COD record by ID."""
        return self.db.get_cod_record(cod_record_id)

    def list_records(
        self, client_id: Optional[int] = None, status: Optional[CODStatus] = None
    ) -> list[CODRecord]:
        """List COD records with optional filters."""
        return self.db.list_cod_records(client_id=client_id, status=status)

    def get_summary(self, client_id: Optional[int] = None) -> CODSummary:
        """Get pending, collected and remitted totals."""
        return self.db.get_cod_summary(client_id=client_id)

    def update_status(
        self,
        cod_record_id: int,
        status: CODStatus,
        collected_date: Optional[datetime] = None,
    ) -> CODRecord:
        """Move a COD record to a new status.

        Records reach ``remitted`` only when their remittance completes, so
        that target is never accepted here.

        Args:
            cod_record_id: COD record to update
            status: Target status
            collected_date: When the cash was collected (defaults to now)

        Returns:
            Updated COD record

        Raises:
            NotFoundError: If record doesn't exist
            ValidationError: If the transition is not allowed
            ConflictError: If the record is attached to a remittance or
                changed concurrently
        """
        status = CODStatus(status)
        record = self.db.get_cod_record(cod_record_id)
        if record is None:
            raise NotFoundError(cod_record_not_found(cod_record_id))

        if status not in COD_TRANSITIONS[record.status]:
            raise ValidationError(
                invalid_transition("COD record", record.status.value, status.value)
            )

        if status == CODStatus.COLLECTED:
            collected_date = collected_date or datetime.now(UTC)
        else:
            collected_date = None

        self.db.update_cod_record_status(
            cod_record_id,
            expected_status=record.status,
            status=status,
            collected_date=collected_date,
        )
        logger.info(
            "COD record %s moved from %s to %s", cod_record_id, record.status.value, status.value
        )
        return self.db.get_cod_record(cod_record_id)
