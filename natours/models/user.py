from mongoengine import DateTimeField, EmailField, StringField, ValidationError

from natours.models.base import BaseDocument, Changeset
from natours.services import credentials
from natours.utils.base import Role

PRIVATE_FIELDS = ("password", "password_reset_token", "password_reset_expires")


class User(BaseDocument):
    """User document.

    Fields:
    - name (str): Full name, trimmed
    - email (str, unique): Login identifier, stored trimmed and lower-cased
    - photo (str|None): Photo reference
    - role (str): user/guide/lead-guide/admin
    - password (str, hashed): Bcrypt hash, never serialized
    - password_changed_at (datetime|None): Last password change, backdated by one second
    - password_reset_token (str|None): sha256 of the outstanding reset token
    - password_reset_expires (datetime|None): Expiry of the outstanding reset token

    ``password_confirm`` is a plain attribute, not a field, so it is never written.
    """
    name = StringField(required=True, null=False)
    email = EmailField(required=True, null=False, unique=True)
    photo = StringField(required=False, null=True)
    role = StringField(required=True, null=False, choices=Role.choices(), default=Role.USER.value)
    password = StringField(required=True, null=False, min_length=8)
    password_changed_at = DateTimeField(required=False, null=True, db_field="passwordChangedAt")
    password_reset_token = StringField(required=False, null=True, db_field="passwordResetToken")
    password_reset_expires = DateTimeField(required=False, null=True, db_field="passwordResetExpires")

    meta = {
        "collection": "users",
        "indexes": [
            {"fields": ["password_reset_token"], "sparse": True},
        ],
    }

    def __init__(self, *args, password_confirm=None, **values):
        super().__init__(*args, **values)
        self.password_confirm = password_confirm

    def clean(self) -> None:
        if isinstance(self.name, str):
            self.name = self.name.strip()
        if isinstance(self.email, str):
            self.email = self.email.strip().lower()
        if self.changeset().touches("password") and self.password_confirm != self.password:
            raise ValidationError("Passwords are not the same!", field_name="password_confirm")
        if (self.password_reset_token is None) != (self.password_reset_expires is None):
            raise ValidationError("Reset token and expiry must be set together", field_name="password_reset_token")

    def before_persist(self, changeset: Changeset) -> None:
        credentials.on_persist(self, changeset)

    def to_output(self, fields=None, exclude=None):
        exclude = list(exclude or []) + list(PRIVATE_FIELDS)
        return super().to_output(fields, exclude)
