"""SQLAlchemy database models for calgate."""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from calgate.database.database import Base


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    # Primary key (auth provider subject)
    id = Column(String, primary_key=True)

    # Public handle; NULL until chosen during signup
    username = Column(String, nullable=True, unique=True, index=True)

    # User profile
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)

    # Booking preferences
    time_zone = Column(String, nullable=False, default="Europe/London")
    buffer_time = Column(Integer, nullable=False, default=0)
    start_time = Column(Integer, nullable=False, default=0)
    end_time = Column(Integer, nullable=False, default=1440)

    # Availability rules (stored as JSON array of {days, start_time, end_time})
    availability = Column(JSON, nullable=False, default=list)

    completed_onboarding = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    credentials = relationship(
        "CredentialDB",
        order_by="CredentialDB.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    selected_calendars = relationship(
        "SelectedCalendarDB",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from calgate.models.user import User, AvailabilityRule, SelectedCalendar
        return User(
            id=self.id,
            username=self.username,
            email=self.email,
            name=self.name,
            time_zone=self.time_zone,
            buffer_time=self.buffer_time,
            start_time=self.start_time,
            end_time=self.end_time,
            availability=[AvailabilityRule(**rule) for rule in (self.availability or [])],
            completed_onboarding=self.completed_onboarding,
            selected_calendars=[
                SelectedCalendar(integration=c.integration, external_id=c.external_id)
                for c in self.selected_calendars
            ],
            credentials=[c.to_pydantic() for c in self.credentials],
            created_date=self.created_date,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model.

        Credentials are not copied; they are only created through the
        credential repository so their key payload gets encrypted.
        """
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            name=user.name,
            time_zone=user.time_zone,
            buffer_time=user.buffer_time,
            start_time=user.start_time,
            end_time=user.end_time,
            availability=[rule.model_dump() for rule in user.availability],
            completed_onboarding=user.completed_onboarding,
            selected_calendars=[
                SelectedCalendarDB(user_id=user.id, integration=c.integration, external_id=c.external_id)
                for c in user.selected_calendars
            ],
            created_date=user.created_date,
            updated_at=user.updated_at,
        )


class CredentialDB(Base):
    """A user's connection to a third-party provider.

    The provider payload is stored encrypted-at-rest (see repository layer); do NOT log it.
    """

    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String, nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    key_encrypted = Column(String, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from calgate.models.credential import Credential
        return Credential(id=self.id, type=self.type, user_id=self.user_id)


class SelectedCalendarDB(Base):
    """Calendar selected by a user for conflict checking."""

    __tablename__ = "selected_calendars"
    __table_args__ = (
        UniqueConstraint("user_id", "integration", "external_id", name="uq_selected_calendar"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    integration = Column(String, nullable=False)
    external_id = Column(String, nullable=False)
