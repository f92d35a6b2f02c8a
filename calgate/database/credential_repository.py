"""Repository for per-user provider credentials.

Security notes:
- Credential keys are secrets: store encrypted-at-rest and never log raw values.
- Only ids and provider types ever leave this module.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.orm import Session

from calgate.database.models import CredentialDB
from calgate.engine.connection import CredentialGateway
from calgate.models.credential import Credential

logger = logging.getLogger(__name__)


def _require_fernet() -> Fernet:
    key = os.getenv("CREDENTIAL_ENCRYPTION_KEY", "").strip()
    if not key:
        raise RuntimeError(
            "CREDENTIAL_ENCRYPTION_KEY is not set. "
            "Set it to a Fernet key (base64 urlsafe 32-byte) to enable encrypted credential storage."
        )
    return Fernet(key)


def encrypt_key(raw: Dict[str, Any]) -> str:
    f = _require_fernet()
    return f.encrypt(json.dumps(raw, sort_keys=True).encode("utf-8")).decode("utf-8")


def decrypt_key(enc: str) -> Dict[str, Any]:
    f = _require_fernet()
    try:
        return json.loads(f.decrypt(enc.encode("utf-8")).decode("utf-8"))
    except InvalidToken as e:
        raise RuntimeError("Stored credential could not be decrypted; CREDENTIAL_ENCRYPTION_KEY may be wrong.") from e


class CredentialRepository:
    """Repository for Credential database operations."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[Credential]:
        """List a user's credentials in id order."""
        rows = (
            self.db.query(CredentialDB)
            .filter(CredentialDB.user_id == user_id)
            .order_by(CredentialDB.id)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def get(self, user_id: str, credential_id: int) -> Optional[Credential]:
        row = (
            self.db.query(CredentialDB)
            .filter(CredentialDB.id == credential_id, CredentialDB.user_id == user_id)
            .first()
        )
        return row.to_pydantic() if row else None

    def create(self, user_id: str, provider_type: str, key: Dict[str, Any]) -> Credential:
        """Store a new credential produced by a completed provider authorization."""
        try:
            row = CredentialDB(
                type=provider_type,
                user_id=user_id,
                key_encrypted=encrypt_key(key),
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created credential {row.id} ({provider_type}) for user {user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create {provider_type} credential for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, user_id: str, credential_id: int) -> int:
        """Delete one of the user's credentials.

        Returns number of rows deleted (0 or 1).
        """
        try:
            affected = (
                self.db.query(CredentialDB)
                .filter(CredentialDB.id == credential_id, CredentialDB.user_id == user_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete credential {credential_id} for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
        logger.debug(f"Deleted credential {credential_id} for user {user_id} (rows={affected})")
        return int(affected)


class RepositoryCredentialGateway(CredentialGateway):
    """Credential gateway bound to one user's rows."""

    def __init__(self, repository: CredentialRepository, user_id: str):
        self.repository = repository
        self.user_id = user_id

    def create(self, provider_type: str, key: Dict[str, Any]) -> Credential:
        return self.repository.create(self.user_id, provider_type, key)

    def delete(self, credential_id: int) -> int:
        return self.repository.delete(self.user_id, credential_id)
