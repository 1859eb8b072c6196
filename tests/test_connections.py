from __future__ import annotations

import logging

import mongomock
import pytest
from mongoengine.connection import ConnectionFailure

from natours.connections.mongo import close_mongo, init_mongo
from natours.models.user import User
from natours.utils.config import settings


def test_queries_fail_loudly_without_connection():
    close_mongo()

    with pytest.raises(ConnectionFailure):
        User.objects.count()


def test_reconnect_logs_app_and_database(caplog):
    close_mongo()
    caplog.set_level(logging.INFO, logger="natours.connections.mongo")

    init_mongo(db="natours-other", host="mongodb://localhost", mongo_client_class=mongomock.MongoClient, tlsCAFile=None)

    assert f"{settings.app_name} ({settings.environment}) connected to Mongo db natours-other" in caplog.text
    assert User.objects.count() == 0
