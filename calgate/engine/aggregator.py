"""Group the viewer's credentials into integration categories.

The summary is derived fully from the live credential set and the static
catalog; nothing here is persisted.
"""

import logging
from typing import Callable, Dict, List, Sequence

from calgate.engine.connection import compute_connection_state
from calgate.engine.errors import AggregationError
from calgate.models.credential import Credential
from calgate.models.integration import (
    CatalogEntry,
    IntegrationCategory,
    IntegrationDescriptor,
    IntegrationsSummary,
    IntegrationVariant,
)

logger = logging.getLogger(__name__)


def count_active(items: Sequence[IntegrationDescriptor]) -> int:
    """Number of descriptors holding at least one credential."""
    return sum(1 for item in items if item.credential_ids)


def build_descriptor(entry: CatalogEntry, credentials: Sequence[Credential]) -> IntegrationDescriptor:
    """Join a catalog entry with the viewer's credentials of the same type."""
    credential_ids = sorted(c.id for c in credentials if c.type == entry.type)
    descriptor = IntegrationDescriptor(**entry.model_dump(), credential_ids=credential_ids)
    descriptor.state = compute_connection_state(descriptor)
    return descriptor


def aggregate_integrations(
    credentials: Sequence[Credential],
    catalog: Sequence[CatalogEntry],
) -> IntegrationsSummary:
    """Build the per-category summary.

    Items keep catalog order. Credentials whose type is not in the catalog are
    ignored.
    """
    grouped: Dict[str, List[IntegrationDescriptor]] = {variant.value: [] for variant in IntegrationVariant}
    for entry in catalog:
        grouped[entry.variant].append(build_descriptor(entry, credentials))

    return IntegrationsSummary(
        **{
            variant: IntegrationCategory(items=items, num_active=count_active(items))
            for variant, items in grouped.items()
        }
    )


def load_integrations(
    fetch_credentials: Callable[[], Sequence[Credential]],
    catalog: Sequence[CatalogEntry],
) -> IntegrationsSummary:
    """Fetch credentials and aggregate them as a single unit.

    Raises:
        AggregationError: If the credential fetch fails (no partial result)
    """
    try:
        credentials = list(fetch_credentials())
    except Exception as e:
        logger.error(f"Failed to load credentials for integrations: {type(e).__name__}: {str(e)}")
        raise AggregationError("Could not load integrations") from e
    return aggregate_integrations(credentials, catalog)
