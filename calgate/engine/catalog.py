"""Static provider catalog for calgate.

Order matters: it is the display order of every category. A provider is
"installed" when the deployment carries the settings it needs; installation
is independent of whether the viewer has connected it.
"""

import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from calgate.models.constants import DAILY_VIDEO_TYPE
from calgate.models.integration import CatalogEntry, IntegrationVariant

load_dotenv()


def _has(env: Mapping[str, str], *names: str) -> bool:
    return all(env.get(name) for name in names)


def build_catalog(env: Optional[Mapping[str, str]] = None) -> List[CatalogEntry]:
    """Build the provider catalog, resolving installed flags from the environment.

    Args:
        env: Mapping to read settings from (defaults to os.environ)

    Returns:
        Catalog entries in display order
    """
    env = os.environ if env is None else env
    return [
        CatalogEntry(
            type="google_calendar",
            title="Google Calendar",
            image_src="integrations/google-calendar.svg",
            description="For personal and business calendars",
            variant=IntegrationVariant.CALENDAR,
            installed=_has(env, "GOOGLE_API_CREDENTIALS"),
        ),
        CatalogEntry(
            type="office365_calendar",
            title="Office 365 / Outlook.com Calendar",
            image_src="integrations/outlook.svg",
            description="For personal and business calendars",
            variant=IntegrationVariant.CALENDAR,
            installed=_has(env, "MS_GRAPH_CLIENT_ID", "MS_GRAPH_CLIENT_SECRET"),
        ),
        CatalogEntry(
            type="zoom_video",
            title="Zoom",
            image_src="integrations/zoom.svg",
            description="Video Conferencing",
            variant=IntegrationVariant.CONFERENCING,
            installed=_has(env, "ZOOM_CLIENT_ID", "ZOOM_CLIENT_SECRET"),
        ),
        CatalogEntry(
            type=DAILY_VIDEO_TYPE,
            title="Daily.co Video",
            image_src="integrations/daily.svg",
            description="Video Conferencing",
            variant=IntegrationVariant.CONFERENCING,
            installed=True,
        ),
        CatalogEntry(
            type="caldav_calendar",
            title="CalDav Server",
            image_src="integrations/caldav.svg",
            description="For personal and business calendars",
            variant=IntegrationVariant.CALENDAR,
            installed=True,
        ),
        CatalogEntry(
            type="stripe_payment",
            title="Stripe",
            image_src="integrations/stripe.svg",
            description="Collect payments",
            variant=IntegrationVariant.PAYMENT,
            installed=_has(env, "STRIPE_CLIENT_ID", "STRIPE_PUBLIC_KEY", "STRIPE_PRIVATE_KEY"),
        ),
        CatalogEntry(
            type="apple_calendar",
            title="Apple Calendar",
            image_src="integrations/apple-calendar.svg",
            description="For personal and business calendars",
            variant=IntegrationVariant.CALENDAR,
            installed=True,
        ),
    ]


def find_entry(catalog: List[CatalogEntry], provider_type: str) -> Optional[CatalogEntry]:
    """Look up a catalog entry by provider type."""
    for entry in catalog:
        if entry.type == provider_type:
            return entry
    return None
