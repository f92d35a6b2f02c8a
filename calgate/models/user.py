"""User data model for calgate."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from calgate.models.credential import Credential


class AvailabilityRule(BaseModel):
    """Weekly availability window (minutes from midnight)."""

    days: List[int] = Field(default_factory=list, description="Weekdays (0=Sunday .. 6=Saturday)")
    start_time: int = Field(0, ge=0, le=1440)
    end_time: int = Field(1440, ge=0, le=1440)


class SelectedCalendar(BaseModel):
    """A calendar the user selected for conflict checking."""

    integration: str = Field(..., description="Calendar provider type (e.g. 'google_calendar')")
    external_id: str = Field(..., description="Calendar ID on the provider side")


class User(BaseModel):
    """User model for calgate."""

    id: str = Field(..., description="Unique user identifier")
    username: Optional[str] = Field(None, description="Unique public handle")
    email: str = Field(..., description="User email address")
    name: Optional[str] = Field(None, description="User display name")
    time_zone: str = Field("Europe/London", description="IANA time zone")
    buffer_time: int = Field(0, ge=0, description="Buffer between bookings in minutes")
    start_time: int = Field(0, ge=0, le=1440, description="Earliest bookable minute of the day")
    end_time: int = Field(1440, ge=0, le=1440, description="Latest bookable minute of the day")
    availability: List[AvailabilityRule] = Field(default_factory=list)
    completed_onboarding: bool = Field(False, description="Whether the getting-started flow was finished")
    selected_calendars: List[SelectedCalendar] = Field(default_factory=list)
    credentials: List[Credential] = Field(default_factory=list)
    created_date: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")
