"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or double remits."""


class ForbiddenError(DomainError):
    """Caller may not act on the requested entity."""


def client_not_found(client_id: int) -> str:
    """Return message for missing client account."""
    return f"Client {client_id} not found"


def rate_tier_not_found(tier_id: int) -> str:
    """Return message for missing rate tier."""
    return f"Rate tier {tier_id} not found"


def no_active_tier(service_type: str) -> str:
    """Return message when no active tier covers a service type."""
    return f"No active rate tier configured for service type {service_type}"


def shipment_not_found(shipment_id: int) -> str:
    """Return message for missing shipment."""
    return f"Shipment {shipment_id} not found"


def cod_record_not_found(cod_record_id: int) -> str:
    """Return message for missing COD record."""
    return f"COD record {cod_record_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def remittance_not_found(remittance_id: int) -> str:
    """Return message for missing remittance."""
    return f"Remittance {remittance_id} not found"


def no_billable_shipments() -> str:
    """Return message when an invoice run finds nothing to bill."""
    return "No billable shipments found for this period"


def invalid_transition(entity: str, current: str, target: str) -> str:
    """Return message for a rejected status transition."""
    return f"Cannot change {entity} status from '{current}' to '{target}'"


def cod_records_not_remittable(record_ids: list[int]) -> str:
    """Return message when selected COD records cannot be remitted."""
    ids = ", ".join(str(record_id) for record_id in record_ids)
    plural = "s" if len(record_ids) != 1 else ""
    return (
        f"COD record{plural} {ids} cannot be remitted: "
        "records must be collected, unremitted and owned by the client"
    )
