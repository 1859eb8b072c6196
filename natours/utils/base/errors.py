"""Errors raised by the credential lifecycle.

Document validation and conditional saves use mongoengine's own
``ValidationError`` and ``SaveConditionError``.
"""


class CredentialError(Exception):
    """Base class for credential lifecycle errors."""


class InvalidCredentialsError(CredentialError):
    pass


class NotFoundOrExpiredError(CredentialError):
    """Reset token unknown, already used or past its expiry.

    The three cases share one message so callers cannot tell them apart.
    """


class StaleCredentialError(CredentialError):
    """Access token was issued before the last password change."""


class ResetDeliveryError(CredentialError):
    pass
