"""FastAPI web application for calgate."""

import html
import json
import logging
from typing import List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from calgate.api.api_models import (
    AuthorizeUrlResponse,
    ConnectRequest,
    DisconnectRequest,
    MutationResponse,
)
from calgate.api.public import public_app
from calgate.auth.dependencies import get_current_user, get_session_user_id
from calgate.database.credential_repository import CredentialRepository, RepositoryCredentialGateway
from calgate.database.database import get_db
from calgate.database.user_repository import UserRepository
from calgate.engine.aggregator import load_integrations
from calgate.engine.catalog import build_catalog
from calgate.engine.connection import ConnectionController, MutationResult, primary_action
from calgate.engine.errors import AggregationError, ConnectionRejected, MutationFailure, TransientFetchFailure
from calgate.engine.gate import AccessGate, GateInputs, GateState, LocaleState, SessionState, ViewerState
from calgate.engine.query_cache import QueryCache, QueryStatus
from calgate.integrations.telemetry import TelemetryClient
from calgate.models.constants import VIEWER_ME_QUERY, VIEWER_ME_RETRY_LIMIT
from calgate.models.integration import CatalogEntry, IntegrationCategory, IntegrationsSummary
from calgate.models.user import User

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="calgate API",
    description="Third-party integrations and access gating for the scheduling app",
    version="0.1.0"
)

app.mount("/api", public_app)


def get_catalog() -> List[CatalogEntry]:
    """Provider catalog with installed flags from the current environment."""
    return build_catalog()


def get_telemetry() -> TelemetryClient:
    return TelemetryClient()


def get_connection_controller(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    catalog: List[CatalogEntry] = Depends(get_catalog),
) -> ConnectionController:
    repo = CredentialRepository(db)
    return ConnectionController(
        gateway=RepositoryCredentialGateway(repo, user.id),
        load_summary=lambda: load_integrations(lambda: repo.list_for_user(user.id), catalog),
        catalog=catalog,
    )


def _mutation_response(result: MutationResult) -> MutationResponse:
    return MutationResponse(
        action=result.action,
        credential_id=result.credential_id,
        refresh=result.refresh_keys,
    )


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


@app.get("/viewer/me", response_model=User)
async def viewer_me(user: User = Depends(get_current_user)):
    """Current viewer record."""
    return user


@app.get("/viewer/integrations", response_model=IntegrationsSummary)
async def viewer_integrations(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    catalog: List[CatalogEntry] = Depends(get_catalog),
):
    """Viewer's integrations grouped by category."""
    repo = CredentialRepository(db)
    try:
        return load_integrations(lambda: repo.list_for_user(user.id), catalog)
    except AggregationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"{str(e)}. Try again.")


@app.get("/viewer/integrations/{provider_type}/authorize-url", response_model=AuthorizeUrlResponse)
async def authorize_url(provider_type: str, controller: ConnectionController = Depends(get_connection_controller)):
    """URL that starts the external authorization for a provider."""
    try:
        return AuthorizeUrlResponse(url=controller.authorize_url(provider_type))
    except ConnectionRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@app.post("/viewer/integrations/connect", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def connect_integration(
    request: ConnectRequest,
    controller: ConnectionController = Depends(get_connection_controller),
):
    """Store the credential produced by a completed provider authorization."""
    try:
        result = controller.connect(request.type, request.key)
    except ConnectionRejected as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except MutationFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return _mutation_response(result)


@app.post("/viewer/integrations/disconnect", response_model=MutationResponse)
async def disconnect_integration(
    request: DisconnectRequest,
    controller: ConnectionController = Depends(get_connection_controller),
):
    """Delete one of the viewer's credentials."""
    try:
        result = controller.disconnect(request.id)
    except ConnectionRejected as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except AggregationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except MutationFailure as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return _mutation_response(result)


def _render_category(title: str, category: IntegrationCategory) -> str:
    rows = []
    for item in category.items:
        action = primary_action(item)
        if action.kind == "disconnect":
            control = (
                f'<button onclick="disconnect({action.credential_id})" class="warn">Disconnect</button>'
            )
        elif action.kind == "warning":
            control = '<span class="alert">Not installed</span>'
        elif action.kind == "label":
            control = "<span>Installed</span>"
        else:
            control = f'<button onclick="connect({html.escape(json.dumps(item.type))})">Connect</button>'
        rows.append(
            f"<tr><td>{html.escape(item.title)}</td><td>{html.escape(item.description)}</td><td>{control}</td></tr>"
        )
    return (
        f"<h2>{html.escape(title)} <small>({category.num_active} connected)</small></h2>"
        f"<table>{''.join(rows)}</table>"
    )


def _page(body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        status_code=status_code,
        content=f"""<!DOCTYPE html>
<html>
<head>
    <title>Integrations</title>
    <meta name="robots" content="noindex,nofollow">
    <style>
        body {{ font-family: Arial, sans-serif; max-width: 900px; margin: 50px auto; padding: 20px; }}
        table {{ width: 100%; border-collapse: collapse; margin-bottom: 30px; }}
        td {{ padding: 8px; border-bottom: 1px solid #ddd; }}
        .alert {{ color: #b45309; }}
        button.warn {{ color: #b91c1c; }}
    </style>
</head>
<body>
{body}
<script>
    async function mutate(path, payload) {{
        const response = await fetch(path, {{
            method: 'POST',
            headers: {{ 'Content-Type': 'application/json' }},
            body: JSON.stringify(payload),
        }});
        if (!response.ok) {{
            const errorData = await response.json();
            alert('Error: ' + (errorData.detail || response.statusText));
            return;
        }}
        window.location.reload();
    }}
    async function connect(type) {{
        const response = await fetch('/viewer/integrations/' + type + '/authorize-url');
        const data = await response.json();
        if (data.url) {{ window.location.href = data.url; }}
    }}
    function disconnect(id) {{ return mutate('/viewer/integrations/disconnect', {{ id: id }}); }}
</script>
</body>
</html>""",
    )


@app.get("/integrations", response_class=HTMLResponse)
async def integrations_page(
    request: Request,
    background_tasks: BackgroundTasks,
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
    catalog: List[CatalogEntry] = Depends(get_catalog),
    telemetry: TelemetryClient = Depends(get_telemetry),
):
    """Integrations page inside the gated shell."""
    path = request.url.path + (f"?{request.url.query}" if request.url.query else "")

    cache = QueryCache()
    users = UserRepository(db)
    cache.register(VIEWER_ME_QUERY, lambda: users.get(user_id), retry=VIEWER_ME_RETRY_LIMIT)
    if user_id:
        try:
            cache.fetch(VIEWER_ME_QUERY)
        except TransientFetchFailure:
            pass  # surfaced below through the gate's ERROR state
    viewer_state = ViewerState.from_query(cache.state(VIEWER_ME_QUERY))
    if viewer_state.status == QueryStatus.SUCCESS and viewer_state.user is None:
        # Session for a user that no longer exists.
        user_id = None

    redirects: List[str] = []
    gate = AccessGate(
        navigate=redirects.append,
        track_page_view=lambda p: background_tasks.add_task(telemetry.track_page_view, p),
    )
    decision = gate.render(
        GateInputs(
            session=SessionState(session=user_id),
            viewer=viewer_state,
            locale=LocaleState(loading=False),
            path=path,
        )
    )

    if redirects:
        return RedirectResponse(url=redirects[0], status_code=status.HTTP_302_FOUND)
    if decision.state == GateState.ERROR:
        return _page('<p>Could not load your account. <a href="">Try again</a></p>', status_code=503)
    if not decision.render_content:
        return _page("<p>Loading...</p>")

    repo = CredentialRepository(db)
    try:
        summary = load_integrations(lambda: repo.list_for_user(user_id), catalog)
    except AggregationError:
        return _page('<h1>Integrations</h1><p>Could not load integrations. <a href="">Try again</a></p>', status_code=503)

    return _page(
        "<h1>Integrations</h1><p>Connect your favourite apps.</p>"
        + _render_category("Conferencing", summary.conferencing)
        + _render_category("Payment", summary.payment)
        + _render_category("Calendars", summary.calendar)
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
