from types import SimpleNamespace

import pytest

from config import Config
from database import transaction
from errors import ApiError


class FakeTransaction:
    def __init__(self, session):
        self.session = session

    def __enter__(self):
        self.session.events.append("start_transaction")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.session.events.append("abort" if exc_type else "commit")
        return False


class FakeSession:
    def __init__(self):
        self.events = []

    def start_transaction(self):
        return FakeTransaction(self)

    def __enter__(self):
        self.events.append("start_session")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.events.append("end_session")
        return False


@pytest.fixture()
def session(monkeypatch):
    monkeypatch.setattr(Config, "MONGO_TRANSACTIONS", True)
    return FakeSession()


def test_transaction_yields_session(session):
    db = SimpleNamespace(client=SimpleNamespace(start_session=lambda: session))

    with transaction(db) as active:
        assert active is session

    assert session.events == ["start_session", "start_transaction", "commit", "end_session"]


def test_transaction_aborts_on_error(session):
    db = SimpleNamespace(client=SimpleNamespace(start_session=lambda: session))

    with pytest.raises(ApiError):
        with transaction(db):
            raise ApiError(403, "Not allowed")

    assert session.events == ["start_session", "start_transaction", "abort", "end_session"]


def test_transaction_disabled_yields_none(db):
    with transaction(db) as active:
        assert active is None
