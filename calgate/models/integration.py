"""Integration catalog and aggregation models for calgate."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class IntegrationVariant(str, Enum):
    """Category an integration belongs to."""
    CONFERENCING = "conferencing"
    PAYMENT = "payment"
    CALENDAR = "calendar"


class ConnectionStateKind(str, Enum):
    """Connection state of a single provider for the viewer."""
    CONNECTED = "connected"
    NOT_INSTALLED = "not_installed"
    ZERO_CONFIG_INSTALLED = "zero_config_installed"
    CONNECTABLE = "connectable"


class ConnectionState(BaseModel):
    """Tagged connection state; credential_ids is only populated when connected."""

    kind: ConnectionStateKind
    credential_ids: List[int] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class CatalogEntry(BaseModel):
    """Static description of a provider integration the platform knows about."""

    type: str = Field(..., description="Provider type tag")
    title: str
    image_src: str
    description: str
    variant: IntegrationVariant
    installed: bool = Field(..., description="Whether the integration is configured on this deployment")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class IntegrationDescriptor(CatalogEntry):
    """A catalog entry joined with the viewer's credentials for that provider."""

    credential_ids: List[int] = Field(default_factory=list)
    state: Optional[ConnectionState] = None


class IntegrationCategory(BaseModel):
    """Items of one variant plus the number of connected providers."""

    items: List[IntegrationDescriptor] = Field(default_factory=list)
    num_active: int = 0


class IntegrationsSummary(BaseModel):
    """Response of the viewer.integrations query."""

    conferencing: IntegrationCategory
    payment: IntegrationCategory
    calendar: IntegrationCategory

    def all_credential_ids(self) -> List[int]:
        """Credential ids held across every descriptor of every category."""
        ids: List[int] = []
        for category in (self.conferencing, self.payment, self.calendar):
            for item in category.items:
                ids.extend(item.credential_ids)
        return ids
