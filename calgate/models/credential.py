"""Credential data model for calgate."""

from pydantic import BaseModel, Field


class Credential(BaseModel):
    """A stored connection between a user and a third-party provider.

    The provider secret payload is deliberately not part of this model; it
    only exists encrypted in the database layer.
    """

    id: int = Field(..., description="Unique credential identifier")
    type: str = Field(..., description="Provider type tag (e.g. 'zoom_video', 'stripe_payment')")
    user_id: str = Field(..., description="User ID who owns this credential")
