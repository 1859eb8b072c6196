"""Tour lifecycle hooks.

``TourQuerySet`` and ``Tour.before_persist`` call these at fixed points:

- before create/update: derive ``slug`` from ``name``
- before any read: hide secret tours, start the read timer
- after a read: report elapsed time
- before any aggregation: hide secret tours ahead of the caller's stages
"""

from __future__ import annotations

import re
import time
import unicodedata
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

from mongoengine import ValidationError
from mongoengine.queryset.transform import UPDATE_OPERATORS

from natours.models.base import Changeset
from natours.utils.logging import get_logger

if TYPE_CHECKING:
    from natours.models.tour import Tour

logger = get_logger(__name__)

SECRET_FIELD = "secretTour"
VISIBLE_FILTER = {SECRET_FIELD: {"$ne": True}}
DERIVED_FIELDS = ("name", "slug")
NAME_SETTERS = {"set", "set_on_insert", "$set", "$setOnInsert"}
PIPELINE_STAGES = ("$set", "$addFields", "$unset")


def slugify(name: str) -> str:
    text = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9\s-]", "", text).strip().lower()
    return re.sub(r"[\s-]+", "-", text).strip("-")


def before_save(tour: "Tour", changeset: Changeset) -> None:
    tour.slug = slugify(tour.name)


def split_update_key(key: str) -> tuple[str, str]:
    """``set__name`` -> ("set", "name"); a bare ``name`` is an implicit set."""
    parts = key.split("__")
    if parts[0] in UPDATE_OPERATORS and len(parts) > 1:
        return parts[0], parts[1]
    return "set", parts[0]


def _reject(operation: str) -> None:
    raise ValidationError(f"{operation} cannot change name or slug; slug is derived from name", field_name="slug")


def _raw_update(raw: Any) -> Any:
    if isinstance(raw, list):
        for stage in raw:
            for operator, spec in stage.items():
                if operator not in PIPELINE_STAGES:
                    _reject(f"Pipeline stage {operator}")
                keys = [spec] if isinstance(spec, str) else list(spec)
                if any(key.split(".")[0] in DERIVED_FIELDS for key in keys):
                    _reject(f"Pipeline stage {operator}")
        return raw

    update: dict[str, Any] = {}
    for operator, spec in raw.items():
        if operator in NAME_SETTERS:
            spec = {key: value for key, value in spec.items() if key != "slug"}
            if spec.get("name") is not None:
                spec["slug"] = slugify(spec["name"])
            if not spec:
                continue
        elif any(key.split(".")[0] in DERIVED_FIELDS for key in spec):
            _reject(operator)
        elif operator == "$rename" and any(value in DERIVED_FIELDS for value in spec.values()):
            _reject(operator)
        update[operator] = spec
    return update


def before_update(update: dict[str, Any]) -> dict[str, Any]:
    """Keep ``slug`` derived in collection updates.

    Takes mongoengine update keywords (``set__name=...``) and ``__raw__``
    documents or pipelines. A supplied slug is dropped and setting the name
    adds the matching slug under the same operator. Any other operator that
    touches name or slug is rejected.
    """
    result: dict[str, Any] = {}
    for key, value in update.items():
        if key == "__raw__":
            result[key] = _raw_update(value)
            continue
        operator, name = split_update_key(key)
        if operator == "rename" and value in DERIVED_FIELDS:
            _reject("rename")
        if name not in DERIVED_FIELDS:
            result[key] = value
            continue
        if operator not in NAME_SETTERS:
            _reject(operator)
        if name == "name":
            result[key] = value
            if value is not None:
                result[f"{operator}__slug"] = slugify(value)
    return result


def visible_query(query: dict[str, Any], include_secret: bool = False) -> dict[str, Any]:
    if include_secret:
        return query
    if not query:
        return dict(VISIBLE_FILTER)
    return {"$and": [query, dict(VISIBLE_FILTER)]}


def before_aggregate(pipeline: Iterable[dict], include_secret: bool = False) -> list[dict]:
    stages = list(pipeline)
    if include_secret:
        return stages
    return [{"$match": dict(VISIBLE_FILTER)}] + stages


@dataclass
class ReadTimer:
    """Elapsed time of one read, from the pre-read hook to the post-read hook."""
    operation: str
    started_at: float = field(default_factory=time.perf_counter)
    elapsed_ms: Optional[float] = None

    def stop(self) -> float:
        if self.elapsed_ms is None:
            self.elapsed_ms = (time.perf_counter() - self.started_at) * 1000
            logger.debug("Tour %s took %.2f ms", self.operation, self.elapsed_ms)
        return self.elapsed_ms


def before_read(operation: str) -> ReadTimer:
    return ReadTimer(operation)


def after_read(timer: Optional[ReadTimer]) -> Optional[float]:
    return timer.stop() if timer is not None else None
