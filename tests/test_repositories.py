"""Tests for the user and credential repositories."""

import pytest
from cryptography.fernet import Fernet

from calgate.database.credential_repository import (
    CredentialRepository,
    RepositoryCredentialGateway,
    decrypt_key,
    encrypt_key,
)
from calgate.database.models import CredentialDB
from calgate.models.user import AvailabilityRule, SelectedCalendar


class TestUserRepository:
    """Test user lookups."""

    def test_get_by_username(self, user_repository, test_user_id):
        user = user_repository.get_by_username("tester")
        assert user is not None
        assert user.id == test_user_id

    def test_get_by_unknown_username(self, user_repository):
        assert user_repository.get_by_username("ghost") is None
        assert user_repository.get_by_username("") is None

    def test_user_fields_round_trip(self, user_repository, user_factory):
        user = user_factory(
            "u-42",
            "carol",
            time_zone="America/New_York",
            buffer_time=15,
            start_time=540,
            end_time=1020,
            availability=[AvailabilityRule(days=[1, 2, 3], start_time=540, end_time=1020)],
            selected_calendars=[SelectedCalendar(integration="google_calendar", external_id="primary")],
        )
        user_repository.create_or_update(user)

        stored = user_repository.get("u-42")
        assert stored.time_zone == "America/New_York"
        assert stored.buffer_time == 15
        assert stored.availability[0].days == [1, 2, 3]
        assert stored.selected_calendars[0].external_id == "primary"


class TestCredentialRepository:
    """Test credential storage."""

    def test_create_and_list_in_id_order(self, credential_repository, test_user_id):
        first = credential_repository.create(test_user_id, "zoom_video", {"access_token": "a"})
        second = credential_repository.create(test_user_id, "zoom_video", {"access_token": "b"})

        listed = credential_repository.list_for_user(test_user_id)
        assert [c.id for c in listed] == [first.id, second.id]

    def test_key_is_encrypted_at_rest(self, credential_repository, db_session, test_user_id):
        created = credential_repository.create(test_user_id, "stripe_payment", {"stripe_user_id": "acct_1"})

        row = db_session.query(CredentialDB).filter(CredentialDB.id == created.id).first()
        assert "acct_1" not in row.key_encrypted
        assert decrypt_key(row.key_encrypted) == {"stripe_user_id": "acct_1"}

    def test_viewer_sees_credentials_on_user_record(self, credential_repository, user_repository, test_user_id):
        credential_repository.create(test_user_id, "zoom_video", {})
        user = user_repository.get(test_user_id)
        assert [c.type for c in user.credentials] == ["zoom_video"]

    def test_delete_only_own_credentials(self, credential_repository, user_repository, user_factory, test_user_id):
        user_repository.create_or_update(user_factory("other", "other"))
        theirs = credential_repository.create("other", "zoom_video", {})

        assert credential_repository.delete(test_user_id, theirs.id) == 0
        assert credential_repository.get("other", theirs.id) is not None

    def test_gateway_is_bound_to_user(self, credential_repository, test_user_id):
        gateway = RepositoryCredentialGateway(credential_repository, test_user_id)
        credential = gateway.create("zoom_video", {})
        assert credential.user_id == test_user_id
        assert gateway.delete(credential.id) == 1
        assert credential_repository.list_for_user(test_user_id) == []

    def test_decrypt_with_wrong_key_fails(self, monkeypatch):
        token = encrypt_key({"secret": "x"})
        monkeypatch.setenv("CREDENTIAL_ENCRYPTION_KEY", Fernet.generate_key().decode("utf-8"))
        with pytest.raises(RuntimeError):
            decrypt_key(token)

    def test_missing_encryption_key(self, monkeypatch):
        monkeypatch.delenv("CREDENTIAL_ENCRYPTION_KEY")
        with pytest.raises(RuntimeError):
            encrypt_key({"secret": "x"})
