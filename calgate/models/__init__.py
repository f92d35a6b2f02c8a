"""Data models for calgate."""

from calgate.models.credential import Credential
from calgate.models.user import User, AvailabilityRule, SelectedCalendar
from calgate.models.integration import (
    CatalogEntry,
    ConnectionState,
    ConnectionStateKind,
    IntegrationCategory,
    IntegrationDescriptor,
    IntegrationsSummary,
    IntegrationVariant,
)

__all__ = [
    "Credential",
    "User",
    "AvailabilityRule",
    "SelectedCalendar",
    "CatalogEntry",
    "ConnectionState",
    "ConnectionStateKind",
    "IntegrationCategory",
    "IntegrationDescriptor",
    "IntegrationsSummary",
    "IntegrationVariant",
]
