from typing import Any

import certifi
from mongoengine import connect, disconnect

from natours.utils.config import settings
from natours.utils.logging import get_logger

logger = get_logger(__name__)


def init_mongo(**overrides: Any) -> None:
    """Register the default mongoengine connection.

    ``overrides`` replace the options built from settings; an override of
    ``None`` drops the option. Tests pass ``mongo_client_class`` here.
    """
    options: dict[str, Any] = {
        "db": settings.mongo_db,
        "host": settings.mongo_uri,
        "alias": "default",
        "tlsCAFile": certifi.where(),
        "tz_aware": True,
    }
    options.update(overrides)
    connect(**{key: value for key, value in options.items() if value is not None})
    logger.info("%s (%s) connected to Mongo db %s", settings.app_name, settings.environment, options.get("db"))


def close_mongo() -> None:
    disconnect(alias="default")
