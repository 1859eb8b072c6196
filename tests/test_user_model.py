from __future__ import annotations

from datetime import timedelta

import pytest
from mongoengine import NotUniqueError, ValidationError

from natours.models.user import User
from natours.utils.base.dates import utcnow
from natours.utils.security import verify_password

from tests.conftest import PASSWORD


def test_create_hashes_password_and_drops_confirm(make_user):
    user = make_user()

    assert user.password != PASSWORD
    assert verify_password(PASSWORD, user.password)
    assert user.password_confirm is None
    assert user.password_changed_at is None

    raw = User._get_collection().find_one({"_id": user.id})
    assert raw["password"] == user.password
    assert "passwordConfirm" not in raw
    assert "password_confirm" not in raw
    assert "passwordChangedAt" not in raw


def test_confirm_mismatch_is_validation_error_before_hashing():
    user = User(name="Jonas", email="jonas@natours.io", password=PASSWORD, password_confirm="different1")

    with pytest.raises(ValidationError) as exc:
        user.save()

    assert "Passwords are not the same!" in str(exc.value)
    assert user.password == PASSWORD
    assert User.objects.count() == 0


def test_email_is_trimmed_lowercased_and_validated(make_user):
    user = make_user(email="  Jonas@Natours.IO ")
    assert user.email == "jonas@natours.io"
    assert User.objects(email="jonas@natours.io").count() == 1

    with pytest.raises(ValidationError):
        User(name="Jonas", email="not-an-email", password=PASSWORD, password_confirm=PASSWORD).save()


def test_short_password_rejected():
    with pytest.raises(ValidationError):
        User(name="Jonas", email="jonas@natours.io", password="short", password_confirm="short").save()


def test_unknown_role_rejected():
    with pytest.raises(ValidationError):
        User(name="Jonas", email="jonas@natours.io", role="owner", password=PASSWORD, password_confirm=PASSWORD).save()


def test_password_update_rehashes_and_backdates_change(make_user):
    user = make_user()
    loaded = User.objects.get(id=user.id)

    before = utcnow()
    loaded.password = "newpass123"
    loaded.password_confirm = "newpass123"
    loaded.save()
    after = utcnow()

    assert verify_password("newpass123", loaded.password)
    assert before - timedelta(seconds=1) <= loaded.password_changed_at <= after - timedelta(seconds=1)
    stored = User.objects.get(id=user.id)
    assert verify_password("newpass123", stored.password)
    assert stored.password_changed_at is not None


def test_update_without_password_change_leaves_hash_alone(make_user):
    user = make_user()
    original_hash = user.password

    loaded = User.objects.get(id=user.id)
    loaded.name = "Jonas S."
    loaded.save()

    stored = User.objects.get(id=user.id)
    assert stored.name == "Jonas S."
    assert stored.password == original_hash
    assert stored.password_changed_at is None


def test_update_setting_password_requires_confirm(make_user):
    user = make_user()
    loaded = User.objects.get(id=user.id)
    loaded.password = "newpass123"

    with pytest.raises(ValidationError):
        loaded.save()
    assert User.objects.get(id=user.id).password == user.password


def test_reset_fields_must_be_set_together(make_user):
    user = make_user()
    user.password_reset_token = "abc"

    with pytest.raises(ValidationError):
        user.save()


def test_output_hides_credentials(make_user):
    output = make_user().to_output()

    assert output["email"] == "jonas@natours.io"
    assert output["role"] == "user"
    for hidden in ("password", "password_confirm", "password_reset_token", "password_reset_expires"):
        assert hidden not in output
    assert output["id"]


def test_duplicate_email_rejected_by_index(make_user):
    make_user()
    with pytest.raises(NotUniqueError):
        make_user(email="JONAS@natours.io")
