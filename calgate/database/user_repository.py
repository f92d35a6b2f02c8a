"""Repository for User database operations."""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from calgate.models.user import User
from calgate.database.models import UserDB, SelectedCalendarDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None

    def get_by_username(self, username: str) -> Optional[User]:
        """Get user by unique handle."""
        if not username:
            return None
        user_db = self.db.query(UserDB).filter(UserDB.username == username).first()
        return user_db.to_pydantic() if user_db else None

    def create_or_update(self, user: User) -> User:
        """Create or update user (upsert).

        Args:
            user: User object to create or update

        Returns:
            Created or updated User object
        """
        user_db = self.db.query(UserDB).filter(UserDB.id == user.id).first()

        if user_db:
            # Update existing user
            user_db.username = user.username
            user_db.email = user.email
            user_db.name = user.name
            user_db.time_zone = user.time_zone
            user_db.buffer_time = user.buffer_time
            user_db.start_time = user.start_time
            user_db.end_time = user.end_time
            user_db.availability = [rule.model_dump() for rule in user.availability]
            user_db.completed_onboarding = user.completed_onboarding
            user_db.selected_calendars = [
                SelectedCalendarDB(user_id=user.id, integration=c.integration, external_id=c.external_id)
                for c in user.selected_calendars
            ]
            user_db.updated_at = user.updated_at
            try:
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Updated user {user.id}: {user.username}")
                return user_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to update user {user.id}: {type(e).__name__}: {str(e)}")
                raise
        else:
            # Create new user
            try:
                user_db = UserDB.from_pydantic(user)
                self.db.add(user_db)
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Created user {user.id}: {user.username}")
                return user_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to create user {user.id}: {type(e).__name__}: {str(e)}")
                raise
