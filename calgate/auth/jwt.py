"""Session token validation for calgate.

Sessions are issued by the external auth provider as signed JWTs; this
module only needs the shared secret to verify them. `create_session_token`
mints the same shape of token for local development and tests.
"""

import os
import jwt
from datetime import datetime, timedelta
from typing import Optional, Dict
from dotenv import load_dotenv

load_dotenv()

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))


def create_session_token(user_id: str) -> str:
    """Mint a session token for a user.

    Args:
        user_id: Viewer ID stored in the `sub` claim

    Returns:
        Encoded JWT expiring after JWT_EXPIRATION_HOURS
    """
    issued_at = datetime.utcnow()
    claims = {"sub": user_id, "iat": issued_at, "exp": issued_at + timedelta(hours=JWT_EXPIRATION_HOURS)}
    return jwt.encode(claims, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str) -> Optional[Dict]:
    """Verify a session token.

    Args:
        token: Encoded JWT from the bearer header or session cookie

    Returns:
        Claims dict, or None if the signature is wrong or the token expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        # ExpiredSignatureError is a subclass
        return None


def get_user_id_from_token(token: str) -> Optional[str]:
    """Viewer ID of a session token, or None when the token does not verify."""
    claims = decode_session_token(token)
    return claims.get("sub") if claims else None
