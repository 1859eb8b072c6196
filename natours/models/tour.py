from functools import wraps
from typing import Any, Optional

from mongoengine import (
    BooleanField,
    DateTimeField,
    FloatField,
    IntField,
    ListField,
    QuerySet,
    StringField,
    ValidationError,
)

from natours.models.base import BaseDocument, Changeset
from natours.services import tour_lifecycle
from natours.utils.base import Difficulty

UPDATE_OPTIONS = frozenset({
    "upsert", "multi", "write_concern", "read_concern", "full_result", "array_filters",
    "remove", "new", "full_response",
})


def check_discount(price: Any, price_discount: Any) -> None:
    numbers = (int, float)
    if isinstance(price, numbers) and isinstance(price_discount, numbers) and price_discount >= price:
        raise ValidationError(
            f"Discount price ({price_discount}) should be below regular price", field_name="price_discount",
        )


def timed_read(operation: str):
    """Run a read between the pre-read and post-read hooks."""
    def decorator(method):
        @wraps(method)
        def wrapper(self, *args, **kwargs):
            timer = tour_lifecycle.before_read(operation)
            try:
                return method(self, *args, **kwargs)
            finally:
                tour_lifecycle.after_read(timer)
        return wrapper
    return decorator


class TourQuerySet(QuerySet):
    """Tour queries with the visibility filter always applied.

    Every query mongoengine builds (find, count, distinct, update, delete,
    modify) goes through ``visible_query`` and every pipeline through
    ``before_aggregate``. ``with_secret()`` is the only way to see secret tours.
    """

    def __init__(self, document, collection):
        super().__init__(document, collection)
        self._include_secret = False

    def _clone_into(self, new_qs):
        new_qs = super()._clone_into(new_qs)
        new_qs._include_secret = self._include_secret
        return new_qs

    def with_secret(self) -> "TourQuerySet":
        queryset = self.clone()
        queryset._include_secret = True
        return queryset

    @property
    def _query(self):
        return tour_lifecycle.visible_query(super()._query, include_secret=self._include_secret)

    def _iter_results(self):
        timer = tour_lifecycle.before_read("find")
        try:
            yield from super()._iter_results()
        finally:
            tour_lifecycle.after_read(timer)

    @timed_read("first")
    def first(self):
        return super().first()

    @timed_read("get")
    def get(self, *q_objs, **query):
        return super().get(*q_objs, **query)

    @timed_read("count")
    def count(self, with_limit_and_skip=False):
        return super().count(with_limit_and_skip)

    @timed_read("distinct")
    def distinct(self, field):
        return super().distinct(field)

    @timed_read("in_bulk")
    def in_bulk(self, object_ids):
        return {tour.pk: tour for tour in self.clone().filter(pk__in=object_ids)}

    @timed_read("aggregate")
    def aggregate(self, pipeline, **kwargs):
        stages = tour_lifecycle.before_aggregate(pipeline, include_secret=self._include_secret)
        return super().aggregate(stages, **kwargs)

    def update(self, *args, **kwargs):
        return super().update(*args, **self._prepare_update(kwargs))

    def modify(self, *args, **kwargs):
        return super().modify(*args, **self._prepare_update(kwargs))

    def _prepare_update(self, kwargs: dict) -> dict:
        options = {key: value for key, value in kwargs.items() if key in UPDATE_OPTIONS}
        update = tour_lifecycle.before_update({k: v for k, v in kwargs.items() if k not in UPDATE_OPTIONS})
        self._check_update(update)
        return {**options, **update}

    def _check_update(self, update: dict) -> None:
        """Validate the values an update sets before it reaches the driver."""
        values: dict[str, Any] = {}
        for key, value in update.items():
            if key == "__raw__":
                if isinstance(value, dict):
                    for operator in ("$set", "$setOnInsert"):
                        for db_key, raw_value in (value.get(operator) or {}).items():
                            if db_key in self._document._reverse_db_field_map:
                                values[self._document._reverse_db_field_map[db_key]] = raw_value
                continue
            operator, name = tour_lifecycle.split_update_key(key)
            if operator in ("set", "set_on_insert") and len(key.split("__")) <= 2:
                values[name] = value

        for name, value in values.items():
            field = self._document._fields.get(name)
            if field is None:
                continue
            if value is None:
                if field.required:
                    raise ValidationError("Field is required", field_name=name)
                continue
            field._validate(value)

        price, discount = values.get("price"), values.get("price_discount")
        if price is not None and discount is not None:
            check_discount(price, discount)
        elif discount is not None:
            for tour in self.clone().filter(price__lte=discount).only("price"):
                check_discount(tour.price, discount)
        elif price is not None:
            for tour in self.clone().filter(price_discount__gte=price).only("price_discount"):
                check_discount(price, tour.price_discount)


class Tour(BaseDocument):
    """Tour document.

    Fields:
    - name (str, unique): 10-40 chars, trimmed
    - slug (str): always slugify(name), set on every save and collection update
    - duration/max_group_size (int)
    - difficulty (str): easy/medium/difficult
    - price/price_discount (float): discount must stay below price
    - ratings_average/ratings_quantity: 1-5 average, count
    - summary/description/image_cover/images/start_dates: descriptive data
    - secret_tour (bool): hidden from every query unless ``with_secret()`` is used
    """
    name = StringField(required=True, null=False, unique=True, min_length=10, max_length=40)
    slug = StringField(required=False, null=True)
    duration = IntField(required=True, null=False, min_value=1)
    max_group_size = IntField(required=True, null=False, min_value=1, db_field="maxGroupSize")
    difficulty = StringField(required=True, null=False, choices=Difficulty.choices())
    ratings_average = FloatField(default=4.5, min_value=1, max_value=5, db_field="ratingsAverage")
    ratings_quantity = IntField(default=0, min_value=0, db_field="ratingsQuantity")
    price = FloatField(required=True, null=False, min_value=0)
    price_discount = FloatField(required=False, null=True, db_field="priceDiscount")
    summary = StringField(required=False, null=True)
    description = StringField(required=False, null=True)
    image_cover = StringField(required=False, null=True, db_field="imageCover")
    images = ListField(StringField())
    start_dates = ListField(DateTimeField(), db_field="startDates")
    secret_tour = BooleanField(default=False, db_field="secretTour")

    meta = {
        "collection": "tours",
        "queryset_class": TourQuerySet,
        "indexes": [
            {"fields": ["slug"]},
            {"fields": ["price", "-ratings_average"]},
        ],
    }

    @property
    def _qs(self):
        # Instance reload/update/delete address one loaded tour by primary key.
        return super()._qs.with_secret()

    @property
    def duration_weeks(self) -> Optional[float]:
        return self.duration / 7 if self.duration else None

    def clean(self) -> None:
        for name in ("name", "summary", "description"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, value.strip())
        check_discount(self.price, self.price_discount)

    def before_persist(self, changeset: Changeset) -> None:
        tour_lifecycle.before_save(self, changeset)

    def to_output(self, fields=None, exclude=None):
        output = super().to_output(fields, exclude)
        output["duration_weeks"] = self.duration_weeks
        return output
