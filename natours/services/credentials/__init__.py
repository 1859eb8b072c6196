"""Credential manager: persist-time password handling and token freshness.

Nothing here touches the database; ``User.before_persist`` calls ``on_persist``
with the changeset of the pending write.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from natours.models.base import Changeset
from natours.utils.base.dates import as_utc, utcnow
from natours.utils.logging import get_logger
from natours.utils.security import hash_password

if TYPE_CHECKING:
    from natours.models.user import User

logger = get_logger(__name__)

# Backdates passwordChangedAt so a token minted in the same second as the change stays valid.
PASSWORD_CHANGED_BACKDATE = timedelta(seconds=1)


def on_persist(user: "User", changeset: Changeset, now: Optional[datetime] = None) -> None:
    """Hash a newly set password and stamp the change.

    No-op unless ``password`` is part of the changeset. The stamp is skipped
    for a record's first insert.
    """
    if not changeset.touches("password"):
        return
    user.password = hash_password(user.password)
    user.password_confirm = None
    if changeset.is_new:
        return
    user.password_changed_at = (now or utcnow()) - PASSWORD_CHANGED_BACKDATE
    logger.info("Password changed for user %s", user.id)


def changed_password_after(user: "User", token_issued_at: int) -> bool:
    """Return True when a token issued at ``token_issued_at`` (epoch seconds)
    predates the user's last password change."""
    if user.password_changed_at is None:
        return False
    changed_at = int(as_utc(user.password_changed_at).timestamp())
    return token_issued_at < changed_at
