from __future__ import annotations

from datetime import datetime, timezone

import pytest
from mongoengine import ValidationError
from passlib.hash import bcrypt

from natours.models.user import User
from natours.services.auth import authenticate, change_password, ensure_fresh_token
from natours.services.credentials import changed_password_after
from natours.utils.base.errors import InvalidCredentialsError, StaleCredentialError
from natours.utils.security import needs_rehash, verify_password

from tests.conftest import PASSWORD

CHANGED_AT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_authenticate(make_user):
    user = make_user()

    assert authenticate("Jonas@Natours.io", PASSWORD).id == user.id
    with pytest.raises(InvalidCredentialsError):
        authenticate("jonas@natours.io", "wrongpass1")
    with pytest.raises(InvalidCredentialsError):
        authenticate("nobody@natours.io", PASSWORD)
    with pytest.raises(InvalidCredentialsError):
        authenticate("", PASSWORD)


def test_authenticate_upgrades_weak_hash_without_stamping_change(make_user):
    user = make_user()
    User._get_collection().update_one({"_id": user.id}, {"$set": {"password": bcrypt.using(rounds=4).hash(PASSWORD)}})

    upgraded = authenticate("jonas@natours.io", PASSWORD)

    assert not needs_rehash(upgraded.password)
    assert verify_password(PASSWORD, upgraded.password)
    assert upgraded.password_changed_at is None


def test_changed_password_after():
    user = User(name="Jonas", email="jonas@natours.io", password=PASSWORD)
    assert changed_password_after(user, 0) is False

    user.password_changed_at = CHANGED_AT
    issued = int(CHANGED_AT.timestamp())
    assert changed_password_after(user, issued - 1) is True
    assert changed_password_after(user, issued) is False
    assert changed_password_after(user, issued + 60) is False

    user.password_changed_at = CHANGED_AT.replace(tzinfo=None, microsecond=900000)
    assert changed_password_after(user, issued) is False


def test_token_minted_right_after_change_stays_fresh(make_user):
    user = make_user()
    change_password(user, PASSWORD, "newpass123", "newpass123")

    issued_now = int(datetime.now(timezone.utc).timestamp())
    ensure_fresh_token(user, issued_now)

    with pytest.raises(StaleCredentialError):
        ensure_fresh_token(user, issued_now - 3600)


def test_change_password(make_user):
    user = make_user()

    with pytest.raises(InvalidCredentialsError):
        change_password(user, "not-the-password", "newpass123", "newpass123")
    with pytest.raises(ValidationError):
        change_password(user, PASSWORD, "newpass123", "mismatch123")

    stored = User.objects.get(id=user.id)
    assert verify_password(PASSWORD, stored.password)

    change_password(stored, PASSWORD, "newpass123", "newpass123")
    assert authenticate("jonas@natours.io", "newpass123").password_changed_at is not None
