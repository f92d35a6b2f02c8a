"""Connect/disconnect actions for provider integrations.

Each descriptor resolves to exactly one ConnectionState. Mutations never touch
a cache themselves: a successful mutation returns a RefreshIntegrations
command that the caller dispatches to whatever cache it owns.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from calgate.engine.catalog import find_entry
from calgate.engine.errors import ConnectionRejected, MutationFailure
from calgate.models.constants import DAILY_VIDEO_TYPE, VIEWER_INTEGRATIONS_QUERY
from calgate.models.credential import Credential
from calgate.models.integration import (
    CatalogEntry,
    ConnectionState,
    ConnectionStateKind,
    IntegrationDescriptor,
    IntegrationsSummary,
)

logger = logging.getLogger(__name__)


def compute_connection_state(descriptor: IntegrationDescriptor) -> ConnectionState:
    """Resolve the single connection state of a descriptor.

    Checked in order: connected, not installed, zero-config, connectable.
    """
    if descriptor.credential_ids:
        return ConnectionState(kind=ConnectionStateKind.CONNECTED, credential_ids=list(descriptor.credential_ids))
    if not descriptor.installed:
        return ConnectionState(kind=ConnectionStateKind.NOT_INSTALLED)
    if descriptor.type == DAILY_VIDEO_TYPE:
        return ConnectionState(kind=ConnectionStateKind.ZERO_CONFIG_INSTALLED)
    return ConnectionState(kind=ConnectionStateKind.CONNECTABLE)


@dataclass(frozen=True)
class PrimaryAction:
    """What the integrations list offers for one descriptor."""
    kind: str  # "disconnect" | "warning" | "label" | "connect"
    label: str  # translation key
    credential_id: Optional[int] = None
    provider_type: Optional[str] = None


def primary_action(descriptor: IntegrationDescriptor) -> PrimaryAction:
    """Map a descriptor's state to its single action.

    Only the first credential is offered for disconnect; a second credential
    of the same type stays connected until the first one is gone.
    """
    state = descriptor.state or compute_connection_state(descriptor)
    if state.kind == ConnectionStateKind.CONNECTED:
        return PrimaryAction(kind="disconnect", label="disconnect", credential_id=state.credential_ids[0])
    if state.kind == ConnectionStateKind.NOT_INSTALLED:
        return PrimaryAction(kind="warning", label="not_installed")
    if state.kind == ConnectionStateKind.ZERO_CONFIG_INSTALLED:
        return PrimaryAction(kind="label", label="installed")
    return PrimaryAction(kind="connect", label="connect", provider_type=descriptor.type)


@dataclass(frozen=True)
class RefreshIntegrations:
    """Command: the viewer.integrations query is stale and must be refetched."""
    query_key: str = VIEWER_INTEGRATIONS_QUERY


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a successful connect or disconnect."""
    action: str  # "connect" | "disconnect"
    credential: Optional[Credential] = None
    credential_id: Optional[int] = None
    commands: Tuple[RefreshIntegrations, ...] = field(default_factory=lambda: (RefreshIntegrations(),))

    @property
    def refresh_keys(self) -> List[str]:
        return [command.query_key for command in self.commands]


class CredentialGateway:
    """Store operations the controller needs; implemented per backend."""

    def create(self, provider_type: str, key: Dict[str, Any]) -> Credential:
        raise NotImplementedError

    def delete(self, credential_id: int) -> int:
        raise NotImplementedError


class ConnectionController:
    """Validates and performs connect/disconnect for one viewer."""

    def __init__(
        self,
        gateway: CredentialGateway,
        load_summary: Callable[[], IntegrationsSummary],
        catalog: Sequence[CatalogEntry],
        authorize_base_path: str = "/api/integrations",
    ):
        self.gateway = gateway
        self.load_summary = load_summary
        self.catalog = list(catalog)
        self.authorize_base_path = authorize_base_path.rstrip("/")

    def _connectable_entry(self, provider_type: str) -> CatalogEntry:
        entry = find_entry(self.catalog, provider_type)
        if entry is None:
            raise ConnectionRejected(f"Unknown integration type: {provider_type}")
        if provider_type == DAILY_VIDEO_TYPE:
            raise ConnectionRejected(f"{provider_type} is installed for everyone and cannot be connected")
        if not entry.installed:
            raise ConnectionRejected(f"{provider_type} is not installed")
        return entry

    def authorize_url(self, provider_type: str) -> str:
        """Path that starts the provider's external authorization flow."""
        entry = self._connectable_entry(provider_type)
        return f"{self.authorize_base_path}/{entry.type}/add"

    def connect(self, provider_type: str, key: Dict[str, Any]) -> MutationResult:
        """Record the credential produced by a completed provider authorization.

        Raises:
            ConnectionRejected: Unknown, not installed, or zero-config provider
            MutationFailure: The store failed
        """
        self._connectable_entry(provider_type)
        try:
            credential = self.gateway.create(provider_type, key)
        except ConnectionRejected:
            raise
        except Exception as e:
            logger.error(f"Connect {provider_type} failed: {type(e).__name__}: {str(e)}")
            raise MutationFailure(f"Failed to connect {provider_type}") from e
        logger.info(f"Connected {provider_type} (credential {credential.id})")
        return MutationResult(action="connect", credential=credential, credential_id=credential.id)

    def disconnect(self, credential_id: int) -> MutationResult:
        """Delete one of the viewer's credentials.

        Raises:
            ConnectionRejected: The id is not held by any descriptor of the viewer
            MutationFailure: The store failed
        """
        summary = self.load_summary()
        if credential_id not in summary.all_credential_ids():
            raise ConnectionRejected(f"Credential {credential_id} is not connected")
        try:
            deleted = self.gateway.delete(credential_id)
        except ConnectionRejected:
            raise
        except Exception as e:
            logger.error(f"Disconnect credential {credential_id} failed: {type(e).__name__}: {str(e)}")
            raise MutationFailure(f"Failed to disconnect credential {credential_id}") from e
        if not deleted:
            raise ConnectionRejected(f"Credential {credential_id} is not connected")
        logger.info(f"Disconnected credential {credential_id}")
        return MutationResult(action="disconnect", credential_id=credential_id)
