"""Constants for calgate.

This module centralizes route targets, reserved provider types and query keys.
"""

from datetime import datetime


# Provider types
DAILY_VIDEO_TYPE = "daily_video"  # Zero-config: installed for everyone, never connected explicitly

# Query keys
VIEWER_ME_QUERY = "viewer.me"
VIEWER_INTEGRATIONS_QUERY = "viewer.integrations"

# The identity fetch is retried this many additional times before failing
VIEWER_ME_RETRY_LIMIT = 3

# Redirect targets
LOGIN_PATH = "/auth/login"
ONBOARDING_PATH = "/getting-started"
CALLBACK_URL_PARAM = "callbackUrl"

# Accounts created before this date never see the getting-started flow
ONBOARDING_INTRODUCED_AT = datetime(2021, 9, 1)

# Existence check messages
USER_FOUND_MESSAGE = "User is found"
USER_NOT_FOUND_MESSAGE = "User not found"
