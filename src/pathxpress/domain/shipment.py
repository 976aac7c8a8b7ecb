"""Shipment domain service."""

import logging
from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from pathxpress.database.base import Database
from pathxpress.domain.entities import (
    SHIPMENT_TRANSITIONS,
    OrderType,
    ServiceType,
    Shipment,
    ShipmentStatus,
)
from pathxpress.domain.errors import (
    NotFoundError,
    ValidationError,
    client_not_found,
    invalid_transition,
    shipment_not_found,
)
from pathxpress.utils.amount_parser import round_money

logger = logging.getLogger(__name__)


class ShipmentService:
    """Service for creating shipments and tracking their status."""

    def __init__(self, db: Database):
        """Initialize shipment service.

        Args:
            db: Database instance
        """
        self.db = db

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
        """Create a shipment with a new waybill number.

        A COD shipment gets its pending COD record in the same transaction.

        Args:
            client_id: Owning client
            service_type: DOM or SDD
            weight: Actual weight in kg
            length: Optional length in cm
            width: Optional width in cm
            height: Optional height in cm
            cod_amount: Amount to collect on delivery, if any
            cod_currency: COD currency (defaults to the client's currency)
            charge: Pre-agreed shipping charge, if already priced
            fit_on_delivery: Whether fit-on-delivery was requested
            order_type: standard, return or exchange
            return_charged: Whether a return shipment is billed
            city: Destination city
            created_at: Creation time (defaults to now, UTC)

        Returns:
            Created shipment entity

        Raises:
            NotFoundError: If client doesn't exist
            ValidationError: If weight, dimensions or COD settings are invalid
        """
        client = self.db.get_client(client_id)
        if client is None:
            raise NotFoundError(client_not_found(client_id))
        if not client.is_active:
            raise ValidationError(f"Client {client_id} is inactive")

        # Weights, dimensions and amounts are stored to the cent
        weight, length, width, height, cod_amount, charge = (
            None if value is None else round_money(Decimal(value))
            for value in (weight, length, width, height, cod_amount, charge)
        )

        if weight is None or weight <= 0:
            raise ValidationError("Weight must be greater than zero")
        for dimension in (length, width, height):
            if dimension is not None and dimension < 0:
                raise ValidationError("Dimensions must not be negative")
        if charge is not None and charge < 0:
            raise ValidationError("Charge must not be negative")

        if cod_amount is not None:
            if cod_amount <= 0:
                raise ValidationError("COD amount must be greater than zero")
            if not client.cod_allowed:
                raise ValidationError(f"Client {client_id} is not allowed COD shipments")
            cod_currency = (cod_currency or client.default_currency).upper()

        shipment = self.db.create_shipment(
            client_id=client_id,
            service_type=ServiceType(service_type),
            weight=weight,
            length=length,
            width=width,
            height=height,
            cod_amount=cod_amount,
            cod_currency=cod_currency,
            charge=charge,
            fit_on_delivery=fit_on_delivery,
            order_type=OrderType(order_type),
            return_charged=return_charged,
            city=city,
            created_at=created_at,
        )
        logger.info("Created shipment %s for client %s", shipment.waybill_number, client_id)
        return shipment

    def get_shipment(self, shipment_id: int) -> Optional[Shipment]:
        """Get shipment by ID."""
        return self.db.get_shipment(shipment_id)

    def get_shipment_by_waybill(self, waybill_number: str) -> Optional[Shipment]:
        """Get shipment by waybill number."""
        return self.db.get_shipment_by_waybill(waybill_number.strip().upper())

    def list_shipments(
        self, client_id: Optional[int] = None, status: Optional[ShipmentStatus] = None
    ) -> list[Shipment]:
        """List shipments with optional filters."""
        return self.db.list_shipments(client_id=client_id, status=status)

    def update_status(
        self,
        shipment_id: int,
        status: ShipmentStatus,
        changed_at: Optional[datetime] = None,
    ) -> Shipment:
        """Move a shipment to a new status.

        Args:
            shipment_id: Shipment to update
            status: Target status
            changed_at: When the change happened (defaults to now, UTC)

        Returns:
            Updated shipment

        Raises:
            NotFoundError: If shipment doesn't exist
            ValidationError: If the transition is not allowed
            ConflictError: If the shipment changed status concurrently
        """
        status = ShipmentStatus(status)
        shipment = self.db.get_shipment(shipment_id)
        if shipment is None:
            raise NotFoundError(shipment_not_found(shipment_id))

        if status not in SHIPMENT_TRANSITIONS[shipment.status]:
            raise ValidationError(
                invalid_transition("shipment", shipment.status.value, status.value)
            )

        delivered_at = None
        if status == ShipmentStatus.DELIVERED:
            delivered_at = changed_at or datetime.now(UTC)

        self.db.update_shipment_status(
            shipment_id,
            expected_status=shipment.status,
            status=status,
            delivered_at=delivered_at,
        )
        logger.info(
            "Shipment %s moved from %s to %s",
            shipment.waybill_number,
            shipment.status.value,
            status.value,
        )
        return self.db.get_shipment(shipment_id)
