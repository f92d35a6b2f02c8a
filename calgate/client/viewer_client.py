"""HTTP client for the calgate viewer API.

Owns a QueryCache for `viewer.me` and `viewer.integrations`. Mutations go
through the same ConnectionController the server uses, so invalid
connect/disconnect requests are rejected before any network call and a
failed mutation never invalidates the cache.
"""

import os
from typing import Any, Dict, List, Optional
import requests
from dotenv import load_dotenv

from calgate.engine.connection import ConnectionController, CredentialGateway, MutationResult
from calgate.engine.errors import ConnectionRejected, MutationFailure, TransientFetchFailure
from calgate.engine.gate import GateInputs, LocaleState, SessionState, ViewerState
from calgate.engine.query_cache import QueryCache
from calgate.models.constants import VIEWER_INTEGRATIONS_QUERY, VIEWER_ME_QUERY, VIEWER_ME_RETRY_LIMIT
from calgate.models.credential import Credential
from calgate.models.integration import CatalogEntry, IntegrationsSummary
from calgate.models.user import User

load_dotenv()


class _HttpCredentialGateway(CredentialGateway):
    def __init__(self, client: "ViewerClient"):
        self.client = client

    def create(self, provider_type: str, key: Dict[str, Any]) -> Credential:
        data = self.client._post("/viewer/integrations/connect", {"type": provider_type, "key": key})
        return Credential(id=data["credential_id"], type=provider_type, user_id=self.client.viewer_id or "")

    def delete(self, credential_id: int) -> int:
        self.client._post("/viewer/integrations/disconnect", {"id": credential_id})
        return 1


class ViewerClient:
    """Client for one viewer's session."""

    def __init__(
        self,
        session_token: Optional[str] = None,
        base_url: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        """Initialize viewer client.

        Args:
            session_token: Session JWT from the auth provider (None = signed out)
            base_url: API root. If None, reads from CALGATE_BASE_URL env var.
            http: requests session to use (one is created if omitted)
            timeout: Request timeout in seconds
        """
        self.base_url = (base_url or os.getenv("CALGATE_BASE_URL", "http://localhost:8000")).rstrip("/")
        self.session_token = session_token
        self.http = http or requests.Session()
        self.timeout = timeout
        self.viewer_id: Optional[str] = None

        self.cache = QueryCache()
        self.cache.register(VIEWER_ME_QUERY, self._fetch_me, retry=VIEWER_ME_RETRY_LIMIT)
        self.cache.register(VIEWER_INTEGRATIONS_QUERY, self._fetch_integrations)

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.session_token:
            headers["Authorization"] = f"Bearer {self.session_token}"
        return headers

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        return self.http.get(f"{self.base_url}{path}", headers=self.headers, params=params, timeout=self.timeout)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            # Non-JSON error body (e.g. from a proxy)
            return response.reason
        if isinstance(body, dict) and body.get("detail"):
            return str(body["detail"])
        return response.reason

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.http.post(
                f"{self.base_url}{path}", headers=self.headers, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise MutationFailure(f"POST {path} failed: {e}") from e
        if response.status_code in (404, 409):
            raise ConnectionRejected(self._error_detail(response))
        if not response.ok:
            raise MutationFailure(f"POST {path} failed with status {response.status_code}")
        return response.json()

    def _fetch_me(self) -> User:
        response = self._get("/viewer/me")
        response.raise_for_status()
        user = User(**response.json())
        self.viewer_id = user.id
        return user

    def _fetch_integrations(self) -> IntegrationsSummary:
        response = self._get("/viewer/integrations")
        response.raise_for_status()
        return IntegrationsSummary(**response.json())

    def me(self) -> User:
        """Viewer record (cached; retried on failure)."""
        return self.cache.fetch(VIEWER_ME_QUERY)

    def integrations(self) -> IntegrationsSummary:
        """Integrations summary (cached until a mutation invalidates it)."""
        return self.cache.fetch(VIEWER_INTEGRATIONS_QUERY)

    def _controller(self) -> ConnectionController:
        summary = self.integrations()
        catalog: List[CatalogEntry] = [
            CatalogEntry(**item.model_dump(include=set(CatalogEntry.model_fields)))
            for category in (summary.conferencing, summary.payment, summary.calendar)
            for item in category.items
        ]
        return ConnectionController(_HttpCredentialGateway(self), self.integrations, catalog)

    def connect(self, provider_type: str, key: Optional[Dict[str, Any]] = None) -> MutationResult:
        """Record a completed authorization, then refresh the integrations query."""
        result = self._controller().connect(provider_type, key or {})
        self.cache.dispatch(result.commands)
        return result

    def disconnect(self, credential_id: int) -> MutationResult:
        """Delete a credential, then refresh the integrations query."""
        result = self._controller().disconnect(credential_id)
        self.cache.dispatch(result.commands)
        return result

    def user_exists(self, handle: str) -> bool:
        """Existence check for a public handle."""
        response = self._get("/api/user/exists", params={"user": handle})
        if response.status_code == 400:
            return False
        response.raise_for_status()
        return True

    def gate_inputs(self, path: str, session_loading: bool = False, locale_loading: bool = False) -> GateInputs:
        """Build access-gate inputs from this client's session and cache."""
        if self.session_token and not session_loading:
            try:
                self.me()
            except TransientFetchFailure:
                pass  # reported through the viewer state
        return GateInputs(
            session=SessionState(session=self.session_token, loading=session_loading),
            viewer=ViewerState.from_query(self.cache.state(VIEWER_ME_QUERY)),
            locale=LocaleState(loading=locale_loading),
            path=path,
        )
