"""Request/response models for the viewer and public endpoints."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ConnectRequest(BaseModel):
    """Request model for recording a completed provider authorization."""
    type: str = Field(..., description="Provider type tag")
    key: Dict[str, Any] = Field(default_factory=dict, description="Provider credential payload")


class DisconnectRequest(BaseModel):
    """Request model for deleting a credential."""
    id: int = Field(..., description="Credential ID to delete")


class MutationResponse(BaseModel):
    """Response model for connect/disconnect."""
    action: str
    credential_id: Optional[int] = None
    refresh: List[str] = Field(default_factory=list, description="Query keys the caller must refetch")


class AuthorizeUrlResponse(BaseModel):
    url: str


class MessageResponse(BaseModel):
    message: str
