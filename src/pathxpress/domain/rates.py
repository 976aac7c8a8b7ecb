"""Rate calculation and rate tier domain service.

Pricing is base rate plus a per-kilogram charge for weight above the tier's
maximum weight. The rate basis is chosen in priority order: client custom
rates, then a manually assigned tier, then the tier matching the client's
month-to-date shipment volume.
"""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal, ROUND_CEILING
from typing import Optional

from pathxpress.database.base import Database
from pathxpress.domain.config import ServiceConfig, load_service_config
from pathxpress.domain.entities import (
    AutoTierBasis,
    ClientAccount,
    CustomRateBasis,
    ManualTierBasis,
    RateBasis,
    RateQuote,
    RateTier,
    ServiceType,
)
from pathxpress.domain.errors import (
    NotFoundError,
    ValidationError,
    client_not_found,
    no_active_tier,
    rate_tier_not_found,
)
from pathxpress.utils.date_parser import month_to_date_bounds

logger = logging.getLogger(__name__)

DEFAULT_VOLUMETRIC_DIVISOR = Decimal("5000")

# (service type, min volume, max volume, base rate, additional kg rate, max weight)
DEFAULT_TIERS = [
    (ServiceType.DOM, 0, 399, "14.00", "1.00", "5"),
    (ServiceType.DOM, 400, 499, "14.00", "1.00", "5"),
    (ServiceType.DOM, 500, 599, "11.00", "1.00", "5"),
    (ServiceType.DOM, 600, 699, "10.00", "1.00", "5"),
    (ServiceType.DOM, 700, 799, "9.50", "1.00", "5"),
    (ServiceType.DOM, 800, 899, "9.00", "1.00", "5"),
    (ServiceType.DOM, 900, None, "8.00", "1.00", "5"),
    (ServiceType.SDD, 0, None, "18.00", "1.00", "10"),
]


def volumetric_weight(
    length: Optional[Decimal],
    width: Optional[Decimal],
    height: Optional[Decimal],
    divisor: Decimal = DEFAULT_VOLUMETRIC_DIVISOR,
) -> Optional[Decimal]:
    """Compute volumetric weight in kg from dimensions in cm.

    Returns None unless all three dimensions are present and positive.

    Raises:
        ValidationError: If a dimension is negative
    """
    dimensions = (length, width, height)
    for dimension in dimensions:
        if dimension is not None and dimension < 0:
            raise ValidationError("Dimensions must not be negative")
    if any(d is None or d == 0 for d in dimensions):
        return None
    return Decimal(length) * Decimal(width) * Decimal(height) / Decimal(divisor)


def chargeable_weight(weight: Decimal, volumetric: Optional[Decimal]) -> Decimal:
    """Return the greater of actual and volumetric weight."""
    if volumetric is None:
        return Decimal(weight)
    return max(Decimal(weight), volumetric)


def calculate_charge(
    base_rate: Decimal,
    additional_kg_rate: Decimal,
    max_weight: Decimal,
    weight: Decimal,
    round_up_extra_kg: bool = False,
) -> tuple[Decimal, Decimal]:
    """Price a chargeable weight against a rate.

    Args:
        base_rate: Price covering weight up to max_weight
        additional_kg_rate: Price per kilogram above max_weight
        max_weight: Weight covered by the base rate
        weight: Chargeable weight
        round_up_extra_kg: Bill extra weight in whole kilograms

    Returns:
        Tuple of (additional charges, total rate)
    """
    extra_kg = max(Decimal("0"), Decimal(weight) - Decimal(max_weight))
    if round_up_extra_kg:
        extra_kg = extra_kg.to_integral_value(rounding=ROUND_CEILING)
    additional = extra_kg * Decimal(additional_kg_rate)
    return additional, Decimal(base_rate) + additional


def select_volume_tier(tiers: list[RateTier], monthly_volume: int) -> Optional[RateTier]:
    """Pick the tier whose bracket contains the volume.

    Tiers must be ordered by min_volume. When the volume falls outside every
    bracket the highest bracket applies.
    """
    for tier in tiers:
        if tier.covers(monthly_volume):
            return tier
    if tiers:
        return tiers[-1]
    return None


class RateService:
    """Service for rate tiers and shipment pricing."""

    def __init__(self, db: Database):
        """Initialize rate service.

        Args:
            db: Database instance
        """
        self.db = db

    def resolve_rate_basis(
        self,
        client: ClientAccount,
        service_type: ServiceType,
        as_of: date,
        config: ServiceConfig,
    ) -> RateBasis:
        """Choose the rate basis for a client and service type.

        Args:
            client: Client account being priced
            service_type: Service type being priced
            as_of: Date whose month-to-date volume drives automatic tiers
            config: Current service configuration

        Returns:
            CustomRateBasis, ManualTierBasis or AutoTierBasis

        Raises:
            NotFoundError: If no active tier exists for the service type
        """
        service_type = ServiceType(service_type)

        custom_base, custom_per_kg = client.custom_rates_for(service_type)
        if custom_base is not None:
            return CustomRateBasis(
                base_rate=custom_base,
                additional_kg_rate=custom_per_kg if custom_per_kg is not None else Decimal("0"),
                max_weight=(
                    client.custom_max_weight
                    if client.custom_max_weight is not None
                    else config.default_max_weight
                ),
            )

        if client.manual_rate_tier_id is not None:
            tier = self.db.get_rate_tier(client.manual_rate_tier_id)
            if tier is not None and tier.is_active and tier.service_type == service_type:
                return ManualTierBasis(tier=tier)
            logger.debug(
                "Manual tier %s does not apply to %s for client %s",
                client.manual_rate_tier_id,
                service_type.value,
                client.id,
            )

        start, end = month_to_date_bounds(as_of)
        monthly_volume = self.db.count_client_shipments(client.id, start, end)
        tiers = self.db.list_rate_tiers(service_type=service_type, active_only=True)
        tier = select_volume_tier(tiers, monthly_volume)
        if tier is None:
            raise NotFoundError(no_active_tier(service_type.value))
        return AutoTierBasis(tier=tier, monthly_volume=monthly_volume)

    def calculate_rate(
        self,
        client_id: int,
        service_type: ServiceType,
        weight: Decimal,
        length: Optional[Decimal] = None,
        width: Optional[Decimal] = None,
        height: Optional[Decimal] = None,
        as_of: Optional[date] = None,
        config: Optional[ServiceConfig] = None,
    ) -> RateQuote:
        """Price a shipment for a client.

        Args:
            client_id: Client being priced
            service_type: DOM or SDD
            weight: Actual weight in kg
            length: Optional length in cm
            width: Optional width in cm
            height: Optional height in cm
            as_of: Pricing date (defaults to today, UTC)
            config: Configuration to use (loaded from the database if None)

        Returns:
            RateQuote with precise, unrounded amounts

        Raises:
            ValidationError: If weight is not positive or a dimension is negative
            NotFoundError: If client or a usable rate tier doesn't exist
        """
        try:
            service_type = ServiceType(service_type)
        except ValueError:
            raise ValidationError(f"Unknown service type '{service_type}'")
        if weight is None or Decimal(weight) <= 0:
            raise ValidationError("Weight must be greater than zero")

        if config is None:
            config = load_service_config(self.db.get_config_entries())

        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))

        volumetric = volumetric_weight(length, width, height, config.volumetric_divisor)
        chargeable = chargeable_weight(Decimal(weight), volumetric)

        basis = self.resolve_rate_basis(
            client, service_type, as_of or datetime.now(UTC).date(), config
        )
        if isinstance(basis, CustomRateBasis):
            base_rate = basis.base_rate
            additional_kg_rate = basis.additional_kg_rate
            max_weight = basis.max_weight
        else:
            base_rate = basis.tier.base_rate
            additional_kg_rate = basis.tier.additional_kg_rate
            max_weight = basis.tier.max_weight

        additional, total = calculate_charge(
            base_rate,
            additional_kg_rate,
            max_weight,
            chargeable,
            round_up_extra_kg=config.rate_round_up_extra_kg,
        )
        logger.debug(
            "Rated client %s %s %skg via %s: %s",
            client_id,
            service_type.value,
            chargeable,
            basis.kind,
            total,
        )
        return RateQuote(
            total_rate=total,
            chargeable_weight=chargeable,
            volumetric_weight=volumetric,
            base_rate=base_rate,
            additional_charges=additional,
            basis=basis,
        )

    def create_tier(
        self,
        service_type: ServiceType,
        min_volume: int,
        max_volume: Optional[int],
        base_rate: Decimal,
        additional_kg_rate: Decimal,
        max_weight: Optional[Decimal] = None,
    ) -> int:
        """Create a rate tier.

        Returns:
            Tier ID

        Raises:
            ValidationError: If the bracket or prices are invalid
        """
        if min_volume < 0:
            raise ValidationError("Minimum volume must not be negative")
        if max_volume is not None and max_volume < min_volume:
            raise ValidationError("Maximum volume must not be below minimum volume")
        if base_rate < 0 or additional_kg_rate < 0:
            raise ValidationError("Rates must not be negative")
        if max_weight is None:
            max_weight = load_service_config(self.db.get_config_entries()).default_max_weight
        if max_weight <= 0:
            raise ValidationError("Max weight must be greater than zero")

        tier_id = self.db.create_rate_tier(
            service_type=ServiceType(service_type),
            min_volume=min_volume,
            max_volume=max_volume,
            base_rate=base_rate,
            additional_kg_rate=additional_kg_rate,
            max_weight=max_weight,
        )
        logger.info("Created %s rate tier %s", ServiceType(service_type).value, tier_id)
        return tier_id

    def get_tier(self, tier_id: int) -> Optional[RateTier]:
        """Get rate tier by ID."""
        return self.db.get_rate_tier(tier_id)

    def list_tiers(
        self, service_type: Optional[ServiceType] = None, include_inactive: bool = False
    ) -> list[RateTier]:
        """List rate tiers."""
        return self.db.list_rate_tiers(service_type=service_type, active_only=not include_inactive)

    def set_tier_active(self, tier_id: int, is_active: bool) -> None:
        """Activate or deactivate a rate tier.

        Raises:
            NotFoundError: If tier doesn't exist
        """
        if self.db.get_rate_tier(tier_id) is None:
            raise NotFoundError(rate_tier_not_found(tier_id))
        self.db.set_rate_tier_active(tier_id, is_active)
        logger.info("Rate tier %s %s", tier_id, "activated" if is_active else "deactivated")

    def seed_default_tiers(self) -> int:
        """Create the standard DOM and SDD tiers if no tiers exist yet.

        Returns:
            Number of tiers created (0 if tiers were already present)
        """
        if self.db.list_rate_tiers(active_only=False):
            logger.info("Rate tiers already present, skipping seed")
            return 0

        for service_type, min_volume, max_volume, base, per_kg, max_weight in DEFAULT_TIERS:
            self.db.create_rate_tier(
                service_type=service_type,
                min_volume=min_volume,
                max_volume=max_volume,
                base_rate=Decimal(base),
                additional_kg_rate=Decimal(per_kg),
                max_weight=Decimal(max_weight),
            )
        logger.info("Seeded %d default rate tiers", len(DEFAULT_TIERS))
        return len(DEFAULT_TIERS)
