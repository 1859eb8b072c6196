from __future__ import annotations

import mongomock
import pytest
from mongoengine import get_connection

from natours.connections.mongo import close_mongo, init_mongo
from natours.models.user import User

PASSWORD = "pass1234!"
TEST_DB = "natours-test"


@pytest.fixture(autouse=True)
def mongo():
    """Fresh in-memory database per test."""
    init_mongo(db=TEST_DB, host="mongodb://localhost", mongo_client_class=mongomock.MongoClient, tlsCAFile=None)
    get_connection().drop_database(TEST_DB)
    yield
    close_mongo()


@pytest.fixture()
def make_user():
    def _make(email: str = "jonas@natours.io", password: str = PASSWORD, **extra) -> User:
        user = User(name="Jonas Schmedtmann", email=email, password=password, password_confirm=password, **extra)
        return user.save()
    return _make
