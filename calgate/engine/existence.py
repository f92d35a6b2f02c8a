"""Handle existence check used by signup and embed flows."""

import logging
from typing import Callable, Optional

from calgate.engine.errors import UserNotFound
from calgate.models.user import User

logger = logging.getLogger(__name__)


def ensure_user_exists(find_by_username: Callable[[str], Optional[User]], handle: Optional[str]) -> User:
    """Return the user behind `handle` if they finished onboarding.

    An account that has not completed onboarding is reported exactly like a
    missing one so in-progress signups cannot be enumerated.

    Raises:
        UserNotFound: No user, or onboarding incomplete
    """
    user = find_by_username(handle) if handle else None
    if user is None or not user.completed_onboarding:
        logger.debug("Existence check miss")
        raise UserNotFound("User not found")
    return user
