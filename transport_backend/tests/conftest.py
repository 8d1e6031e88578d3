import pytest

from transport_backend.config import TestConfig
from transport_backend.extensions import db
from transport_backend.server import create_app


@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return db.session
