"""Password reset tokens.

Only the sha256 digest of a token is stored on the user; the plaintext goes
back to the caller, who hands it to a delivery channel.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from mongoengine import SaveConditionError

from natours.models.user import User
from natours.utils.base.dates import utcnow
from natours.utils.base.errors import NotFoundOrExpiredError, ResetDeliveryError
from natours.utils.config import settings
from natours.utils.logging import get_logger
from natours.utils.security import digest_token, generate_reset_token

logger = get_logger(__name__)

INVALID_TOKEN_MESSAGE = "Token is invalid or has expired"


def issue_reset_token(user: User, now: Optional[datetime] = None) -> str:
    """Mint a reset token for ``user``, replacing any outstanding one."""
    token = generate_reset_token()
    user.password_reset_token = digest_token(token)
    user.password_reset_expires = (now or utcnow()) + timedelta(minutes=settings.password_reset_expires_minutes)
    user.save(validate=False)
    logger.info("Issued password reset token for user %s", user.id)
    return token


def revoke_reset_token(user: User) -> None:
    user.password_reset_token = None
    user.password_reset_expires = None
    user.save(validate=False)
    logger.info("Revoked password reset token for user %s", user.id)


def consume_reset_token(token: str, password: str, password_confirm: str, now: Optional[datetime] = None) -> User:
    """Set a new password using a reset token and burn the token.

    The password update and the token removal go out as one conditional write
    keyed on the token digest, so a second consumer of the same token fails.
    """
    live = {
        "password_reset_token": digest_token(token or ""),
        "password_reset_expires__gt": now or utcnow(),
    }
    user: User | None = User.objects(**live).first()
    if not user:
        raise NotFoundOrExpiredError(INVALID_TOKEN_MESSAGE)

    user.password = password
    user.password_confirm = password_confirm
    user.password_reset_token = None
    user.password_reset_expires = None
    try:
        user.save(save_condition=live)
    except SaveConditionError:
        raise NotFoundOrExpiredError(INVALID_TOKEN_MESSAGE) from None
    logger.info("Password reset completed for user %s", user.id)
    return user


def request_password_reset(
    email: str,
    deliver: Callable[[User, str], None],
    now: Optional[datetime] = None,
) -> bool:
    """Issue a token for the account behind ``email`` and hand it to ``deliver``.

    Returns False when no account matches. If delivery fails the token is
    revoked and ``ResetDeliveryError`` is raised.
    """
    raw = (email or "").strip().lower()
    if not raw:
        return False
    user: User | None = User.objects(email=raw).first()
    if not user:
        return False
    token = issue_reset_token(user, now=now)
    try:
        deliver(user, token)
    except Exception as exc:
        logger.warning("Reset token delivery failed for user %s: %s", user.id, exc)
        revoke_reset_token(user)
        raise ResetDeliveryError("There was an error sending the reset token. Try again later!") from exc
    return True
