"""Client account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from pathxpress.database.base import Database
from pathxpress.domain.config import load_service_config
from pathxpress.domain.entities import ClientAccount
from pathxpress.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    client_not_found,
    rate_tier_not_found,
)

logger = logging.getLogger(__name__)


def _require_non_negative(label: str, value: Optional[Decimal]) -> None:
    if value is not None and value < 0:
        raise ValidationError(f"{label} must not be negative")


class ClientService:
    """Service for managing client accounts and their billing overrides."""

    def __init__(self, db: Database):
        """Initialize client service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_client(
        self,
        company_name: str,
        billing_email: Optional[str] = None,
        default_currency: Optional[str] = None,
        cod_allowed: bool = False,
        fod_allowed: bool = False,
        fod_fee: Optional[Decimal] = None,
        return_fee: Optional[Decimal] = None,
    ) -> int:
        """Create a new client account.

        Args:
            company_name: Unique company name
            billing_email: Optional billing email
            default_currency: Billing currency (defaults to DEFAULT_CURRENCY)
            cod_allowed: Whether COD shipments are accepted for the client
            fod_allowed: Whether fit-on-delivery is offered to the client
            fod_fee: Client fit-on-delivery fee override
            return_fee: Flat fee billed for return shipments

        Returns:
            Client ID

        Raises:
            ValidationError: If the name is empty or a fee is negative
            ConflictError: If a client with the same name exists
        """
        company_name = (company_name or "").strip()
        if not company_name:
            raise ValidationError("Company name is required")
        _require_non_negative("FOD fee", fod_fee)
        _require_non_negative("Return fee", return_fee)

        if self.db.get_client_by_name(company_name) is not None:
            raise ConflictError(f"Client with name '{company_name}' already exists")

        if default_currency is None:
            default_currency = load_service_config(self.db.get_config_entries()).default_currency

        client_id = self.db.create_client(
            company_name=company_name,
            billing_email=billing_email,
            default_currency=default_currency.upper(),
            cod_allowed=cod_allowed,
            fod_allowed=fod_allowed,
            fod_fee=fod_fee,
            return_fee=return_fee,
        )
        logger.info("Created client %s (%s)", client_id, company_name)
        return client_id

    def get_client(self, client_id: int) -> Optional[ClientAccount]:
        """Get client by ID.

        Args:
            client_id: Client ID

        Returns:
            Client entity or None if not found
        """
        return self.db.get_client(client_id)

    def get_client_by_name(self, company_name: str) -> Optional[ClientAccount]:
        """Get client by company name."""
        return self.db.get_client_by_name(company_name)

    def list_clients(self) -> list[ClientAccount]:
        """List all clients.

        Returns:
            List of client entities
        """
        return self.db.list_clients()

    def _require_client(self, client_id: int) -> ClientAccount:
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))
        return client

    def assign_manual_tier(self, client_id: int, tier_id: int) -> None:
        """Pin a client to a rate tier, clearing any custom rates.

        Raises:
            NotFoundError: If client or tier doesn't exist
        """
        self._require_client(client_id)
        if self.db.get_rate_tier(tier_id) is None:
            raise NotFoundError(rate_tier_not_found(tier_id))

        self.db.update_client_rates(
            client_id,
            manual_rate_tier_id=tier_id,
            custom_dom_base_rate=None,
            custom_dom_per_kg=None,
            custom_sdd_base_rate=None,
            custom_sdd_per_kg=None,
            custom_max_weight=None,
        )
        logger.info("Client %s pinned to rate tier %s", client_id, tier_id)

    def set_custom_rates(
        self,
        client_id: int,
        dom_base_rate: Optional[Decimal] = None,
        dom_per_kg: Optional[Decimal] = None,
        sdd_base_rate: Optional[Decimal] = None,
        sdd_per_kg: Optional[Decimal] = None,
        max_weight: Optional[Decimal] = None,
    ) -> None:
        """Give a client negotiated rates, clearing any manual tier.

        Raises:
            NotFoundError: If client doesn't exist
            ValidationError: If no base rate is given or a value is invalid
        """
        self._require_client(client_id)
        if dom_base_rate is None and sdd_base_rate is None:
            raise ValidationError("Custom rates need a DOM or SDD base rate")
        for label, value in (
            ("DOM base rate", dom_base_rate),
            ("DOM per kg rate", dom_per_kg),
            ("SDD base rate", sdd_base_rate),
            ("SDD per kg rate", sdd_per_kg),
        ):
            _require_non_negative(label, value)
        if max_weight is not None and max_weight <= 0:
            raise ValidationError("Max weight must be greater than zero")

        self.db.update_client_rates(
            client_id,
            manual_rate_tier_id=None,
            custom_dom_base_rate=dom_base_rate,
            custom_dom_per_kg=dom_per_kg,
            custom_sdd_base_rate=sdd_base_rate,
            custom_sdd_per_kg=sdd_per_kg,
            custom_max_weight=max_weight,
        )
        logger.info("Client %s switched to custom rates", client_id)

    def clear_rates(self, client_id: int) -> None:
        """Return a client to automatic volume-based tiers."""
        self._require_client(client_id)
        self.db.update_client_rates(
            client_id,
            manual_rate_tier_id=None,
            custom_dom_base_rate=None,
            custom_dom_per_kg=None,
            custom_sdd_base_rate=None,
            custom_sdd_per_kg=None,
            custom_max_weight=None,
        )
        logger.info("Client %s returned to automatic rate tiers", client_id)

    def update_cod_settings(
        self,
        client_id: int,
        cod_allowed: bool,
        fee_percent: Optional[Decimal] = None,
        min_fee: Optional[Decimal] = None,
        max_fee: Optional[Decimal] = None,
    ) -> None:
        """Set whether a client accepts COD and its fee overrides.

        Unset overrides fall back to the platform defaults.

        Raises:
            NotFoundError: If client doesn't exist
            ValidationError: If a value is out of range
        """
        self._require_client(client_id)
        _require_non_negative("COD fee percent", fee_percent)
        _require_non_negative("COD minimum fee", min_fee)
        _require_non_negative("COD maximum fee", max_fee)
        if fee_percent is not None and fee_percent > 100:
            raise ValidationError("COD fee percent must not exceed 100")

        self.db.update_client_cod_settings(
            client_id,
            cod_allowed=cod_allowed,
            cod_fee_percent=fee_percent,
            cod_min_fee=min_fee,
            cod_max_fee=max_fee,
        )
        logger.info("Updated COD settings for client %s", client_id)

    def update_fod_settings(
        self,
        client_id: int,
        fod_allowed: bool,
        fod_fee: Optional[Decimal] = None,
        return_fee: Optional[Decimal] = None,
    ) -> None:
        """Set a client's fit-on-delivery and return fee settings.

        Raises:
            NotFoundError: If client doesn't exist
            ValidationError: If a fee is negative
        """
        self._require_client(client_id)
        _require_non_negative("FOD fee", fod_fee)
        _require_non_negative("Return fee", return_fee)
        self.db.update_client_fod_settings(
            client_id, fod_allowed=fod_allowed, fod_fee=fod_fee, return_fee=return_fee
        )
        logger.info("Updated FOD settings for client %s", client_id)
