"""Factory for creating sponsor inventory backends."""

from typing import Any

from .base import SponsorInventory


def create_sponsor_inventory(
    backend: str = "memory",
    **kwargs: Any
) -> SponsorInventory:
    """Create a sponsor inventory backend.

    Args:
        backend: Backend type ("memory" or "sqlite")
        **kwargs: Backend-specific configuration

    Returns:
        SponsorInventory instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemorySponsorInventory
        return InMemorySponsorInventory(**kwargs)

    elif backend == "sqlite":
        from .sqlite import SQLiteSponsorInventory
        return SQLiteSponsorInventory(**kwargs)

    raise ValueError(
        f"Unsupported sponsor backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
