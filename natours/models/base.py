from dataclasses import dataclass
from datetime import datetime
from typing import Any

from bson.objectid import ObjectId
from mongoengine import Document, DictField, DateTimeField

from natours.utils.base.dates import utcnow


@dataclass(frozen=True)
class Changeset:
    """Fields a pending write touches, by attribute name.

    A new document counts every populated field as changed.
    """
    fields: frozenset
    is_new: bool

    def touches(self, field: str) -> bool:
        return field in self.fields


class BaseDocumentMixin:
    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Document):
            return value.to_output() if hasattr(value, "to_output") else str(value.id)
        if isinstance(value, list):
            return [self._sanitize_value(v) for v in value]
        if isinstance(value, dict):
            return {k: self._sanitize_value(v) for k, v in value.items()}
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, ObjectId):
            return str(value)
        return value

    def to_output(self, fields=None, exclude=None):
        data: dict[str, Any] = {}
        exclude = exclude or []
        fields = fields or self._fields.keys()

        for field in fields:
            if field in exclude:
                continue
            value = getattr(self, field)
            data[field] = self._sanitize_value(value)

        data["id"] = str(self.id) if self.id else None
        return data


class BaseDocument(Document, BaseDocumentMixin):
    metadata = DictField(default=dict, null=False)
    created_at = DateTimeField(default=utcnow, null=False)
    updated_at = DateTimeField(default=utcnow, null=False)

    meta = {
        "abstract": True,
    }

    def changeset(self) -> Changeset:
        if self._created or self.pk is None:
            populated = {name for name in self._fields if self._data.get(name) is not None}
            return Changeset(fields=frozenset(populated), is_new=True)
        changed = set()
        for key in self._get_changed_fields():
            root = key.split(".")[0]
            changed.add(self._reverse_db_field_map.get(root, root))
        return Changeset(fields=frozenset(changed), is_new=False)

    def before_persist(self, changeset: Changeset) -> None:
        """Lifecycle hook run after validation and before the write."""

    def save(self, *args, validate=True, clean=True, **kwargs):
        """Validate, run ``before_persist`` with the pending changeset, then write.

        ``save_condition`` and the other keyword arguments go to mongoengine.
        """
        if validate:
            self.validate(clean=clean)
        self.before_persist(self.changeset())
        self.updated_at = utcnow()
        return super().save(*args, validate=False, **kwargs)
