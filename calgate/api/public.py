"""Public endpoints callable from any origin (signup pages, embeds)."""

from typing import Optional
from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from calgate.api.api_models import MessageResponse
from calgate.database.database import get_db
from calgate.database.user_repository import UserRepository
from calgate.engine.errors import UserNotFound
from calgate.engine.existence import ensure_user_exists
from calgate.models.constants import USER_FOUND_MESSAGE, USER_NOT_FOUND_MESSAGE

CORS_METHODS = ["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"]

public_app = FastAPI(title="calgate public API")

public_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=CORS_METHODS,
    allow_headers=["*"],
)


@public_app.api_route(
    "/user/exists",
    methods=CORS_METHODS,
    response_model=MessageResponse,
    responses={400: {"model": MessageResponse}},
)
async def user_exists(user: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    """Tell whether a handle belongs to a fully onboarded user."""
    try:
        ensure_user_exists(UserRepository(db).get_by_username, user)
    except UserNotFound:
        return JSONResponse(status_code=400, content={"message": USER_NOT_FOUND_MESSAGE})
    return MessageResponse(message=USER_FOUND_MESSAGE)
