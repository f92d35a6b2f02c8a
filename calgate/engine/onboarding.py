"""Onboarding predicate for calgate.

Users who signed up after the getting-started flow was introduced must finish
it before they can use the app. Older accounts are grandfathered in.
"""

from datetime import timezone

from calgate.models.constants import ONBOARDING_INTRODUCED_AT
from calgate.models.user import User


def should_show_onboarding(user: User) -> bool:
    """Return True if the user must be sent to the getting-started flow."""
    if user.completed_onboarding:
        return False
    created = user.created_date
    if created.tzinfo is not None:
        created = created.astimezone(timezone.utc).replace(tzinfo=None)
    return created > ONBOARDING_INTRODUCED_AT
