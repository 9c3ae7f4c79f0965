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
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


def entity_not_found(entity_name: str, entity_id: int) -> str:
    """Return message for a missing entity."""
    return f"{entity_name} {entity_id} not found"


def validation_failed(messages: list[str]) -> str:
    """Return the flattened validation failure message."""
    return f"Validation failed: {'; '.join(messages)}"


def duplicate_value(entity_name: str, field: str, value: object) -> str:
    """Return message for a uniqueness violation."""
    return f"{entity_name} with {field} '{value}' already exists"


def insufficient_stock(product_name: str, available: int, requested: int) -> str:
    """Return message when a stock lot cannot cover a sale line."""
    return (
        f"Insufficient stock for product {product_name}: "
        f"{available} available, {requested} requested"
    )


def account_role_missing(role_name: str, account_name: str) -> str:
    """Return message when a posting role has no account."""
    return (
        f"No account '{account_name}' for posting role '{role_name}'. "
        "Run 'bizledger init-accounts' to create the default chart of accounts."
    )


def account_delete_blocked(account_id: int, entry_count: int) -> str:
    """Return message when an account still has journal entries."""
    return (
        f"Cannot delete account {account_id}: it has {entry_count} journal "
        f"entr{'ies' if entry_count != 1 else 'y'}. Deactivate it instead."
    )
