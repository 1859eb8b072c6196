from __future__ import annotations

from natours.models.user import User
from natours.services.credentials import changed_password_after
from natours.utils.base.errors import InvalidCredentialsError, StaleCredentialError
from natours.utils.logging import get_logger
from natours.utils.security import hash_password, needs_rehash, verify_password

logger = get_logger(__name__)


def authenticate(email: str, password: str) -> User:
    """Return the user behind ``email`` if ``password`` matches.

    Unknown e-mail and wrong password raise the same error. Hashes made with
    outdated settings are upgraded in place without counting as a password change.
    """
    raw = (email or "").strip().lower()
    user: User | None = User.objects(email=raw).first() if raw else None
    if not user or not verify_password(password, user.password):
        raise InvalidCredentialsError("Incorrect email or password")
    if needs_rehash(user.password):
        User.objects(id=user.id).update_one(set__password=hash_password(password))
        user.reload()
    return user


def change_password(user: User, current_password: str, password: str, password_confirm: str) -> User:
    """Replace the password of a logged-in user after re-checking the current one."""
    if not verify_password(current_password, user.password):
        raise InvalidCredentialsError("Your current password is wrong")
    user.password = password
    user.password_confirm = password_confirm
    user.save()
    return user


def ensure_fresh_token(user: User, token_issued_at: int) -> None:
    """Reject an access token minted before the user's last password change."""
    if changed_password_after(user, token_issued_at):
        logger.info("Rejected stale token for user %s", user.id)
        raise StaleCredentialError("User recently changed password! Please log in again.")
