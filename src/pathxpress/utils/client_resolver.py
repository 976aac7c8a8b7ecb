"""Utility for resolving client names to IDs."""

from pathxpress.domain.client import ClientService
from pathxpress.domain.errors import NotFoundError, client_not_found


def resolve_client(client_service: ClientService, client: str | int) -> int:
    """Resolve client company name or ID to client ID.

    Args:
        client_service: ClientService instance
        client: Company name (str) or ID (int or string representation of int)

    Returns:
        Client ID

    Raises:
        NotFoundError: If client is not found
    """
    if isinstance(client, int):
        if client_service.get_client(client) is None:
            raise NotFoundError(client_not_found(client))
        return client

    try:
        client_id = int(client)
    except (ValueError, TypeError):
        client_id = None

    if client_id is not None:
        if client_service.get_client(client_id) is None:
            raise NotFoundError(client_not_found(client_id))
        return client_id

    found = client_service.get_client_by_name(client)
    if found is None:
        raise NotFoundError(f"Client '{client}' not found")
    return found.id
