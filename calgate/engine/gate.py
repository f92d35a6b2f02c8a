"""Access gate for the authenticated application shell.

`reduce_gate` is a pure function of session, viewer and locale state: it
decides whether to show the loader, redirect, or render protected content.
`AccessGate` applies those decisions for one mounted shell: it commits
redirects (once, and only while still mounted on the same route) and emits a
page-view event per path.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional
from urllib.parse import urlencode

from calgate.engine.onboarding import should_show_onboarding
from calgate.engine.query_cache import QueryState, QueryStatus
from calgate.models.constants import CALLBACK_URL_PARAM, LOGIN_PATH, ONBOARDING_PATH
from calgate.models.user import User

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    """Where the gate is in its decision sequence."""
    CHECKING_SESSION = "checking_session"
    REDIRECT_LOGIN = "redirect_login"
    CHECKING_ONBOARDING = "checking_onboarding"  # waiting on the viewer record or the locale bundle
    REDIRECT_ONBOARDING = "redirect_onboarding"
    READY = "ready"
    ERROR = "error"  # viewer fetch failed after retries


@dataclass(frozen=True)
class SessionState:
    session: Optional[Any] = None
    loading: bool = False


@dataclass(frozen=True)
class ViewerState:
    status: QueryStatus = QueryStatus.IDLE
    user: Optional[User] = None
    error: Optional[BaseException] = None

    @classmethod
    def from_query(cls, state: QueryState) -> "ViewerState":
        return cls(status=state.status, user=state.data, error=state.error)


@dataclass(frozen=True)
class LocaleState:
    loading: bool = False


@dataclass(frozen=True)
class GateInputs:
    session: SessionState
    viewer: ViewerState
    locale: LocaleState
    path: str  # current path including query string


@dataclass(frozen=True)
class GateDecision:
    state: GateState
    path: str
    show_loader: bool
    redirect_to: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def render_content(self) -> bool:
        return self.state == GateState.READY and not self.show_loader


def login_redirect_url(path: str) -> str:
    """Login URL that sends the user back to `path` after authenticating."""
    return f"{LOGIN_PATH}?{urlencode({CALLBACK_URL_PARAM: path})}"


def reduce_gate(inputs: GateInputs) -> GateDecision:
    """Decide what the shell shows for the given inputs."""
    session, viewer, locale = inputs.session, inputs.viewer, inputs.locale
    has_session = session.session is not None
    session_loading = session.loading and not has_session

    redirecting_to_onboarding = (
        has_session
        and viewer.status == QueryStatus.SUCCESS
        and viewer.user is not None
        and should_show_onboarding(viewer.user)
    )
    # OR'd rather than sequenced so the shell never flickers between states.
    show_loader = locale.loading or redirecting_to_onboarding or session_loading

    if session_loading:
        return GateDecision(GateState.CHECKING_SESSION, inputs.path, show_loader)

    if not has_session:
        return GateDecision(
            GateState.REDIRECT_LOGIN,
            inputs.path,
            show_loader,
            redirect_to=login_redirect_url(inputs.path),
        )

    if redirecting_to_onboarding:
        return GateDecision(GateState.REDIRECT_ONBOARDING, inputs.path, show_loader, redirect_to=ONBOARDING_PATH)

    if viewer.status == QueryStatus.ERROR:
        return GateDecision(GateState.ERROR, inputs.path, show_loader, error=viewer.error)

    if viewer.status in (QueryStatus.IDLE, QueryStatus.LOADING) or locale.loading:
        return GateDecision(GateState.CHECKING_ONBOARDING, inputs.path, True)

    return GateDecision(GateState.READY, inputs.path, show_loader)


class AccessGate:
    """Applies gate decisions for one mounted shell.

    Args:
        navigate: Replaces the current location (no history entry)
        track_page_view: Called once per distinct path; must not block
    """

    def __init__(
        self,
        navigate: Callable[[str], None],
        track_page_view: Optional[Callable[[str], None]] = None,
    ):
        self.navigate = navigate
        self.track_page_view = track_page_view
        self.mounted = True
        self.current_path: Optional[str] = None
        self._tracked_path: Optional[str] = None
        self._pending: Optional[GateDecision] = None
        self._committed = set()

    def evaluate(self, inputs: GateInputs) -> GateDecision:
        """Reduce the inputs and queue the decision's redirect, if any."""
        self.current_path = inputs.path
        self._emit_page_view(inputs.path)
        decision = reduce_gate(inputs)
        if decision.redirect_to:
            self._pending = decision
        return decision

    def flush(self) -> Optional[str]:
        """Commit the queued redirect if the shell is still on the same route.

        Returns the redirect target, or None if nothing was committed.
        """
        decision, self._pending = self._pending, None
        if decision is None:
            return None
        if not self.mounted or decision.path != self.current_path:
            logger.debug(f"Dropped redirect to {decision.redirect_to}: shell left {decision.path}")
            return None
        marker = (decision.path, decision.redirect_to)
        if marker in self._committed:
            return None
        self._committed.add(marker)
        self.navigate(decision.redirect_to)
        return decision.redirect_to

    def render(self, inputs: GateInputs) -> GateDecision:
        """Evaluate and immediately commit."""
        decision = self.evaluate(inputs)
        self.flush()
        return decision

    def route_changed(self, path: str) -> None:
        self.current_path = path

    def unmount(self) -> None:
        self.mounted = False
        self._pending = None

    def _emit_page_view(self, path: str) -> None:
        if self.track_page_view is None or path == self._tracked_path:
            return
        self._tracked_path = path
        try:
            self.track_page_view(path)
        except Exception as e:
            # Telemetry never affects the page.
            logger.debug(f"Page view telemetry failed for {path}: {type(e).__name__}: {str(e)}")
