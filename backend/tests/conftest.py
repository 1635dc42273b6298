"""
Pytest fixtures for stoktrack backend tests.

Provides test database setup, users for both roles, catalog rows, and a test
client with bearer-token helpers.
"""

from datetime import timedelta

import pytest
from stoktrack import create_app
from stoktrack.extensions import db
from stoktrack.models import User, Product, Kiosk
from stoktrack.models.auth import ROLE_FIELD_ASSISTANT, ROLE_AREA_MANAGER
from stoktrack.services import session_service
from stoktrack.services.scope import Actor
from stoktrack.time_utils import local_today


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(db_session, name, email, role):
    user = User(name=name, email=email, role=role, is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def field_user(db_session):
    """Field Assistant U1."""
    return _make_user(db_session, "Sari", "sari@example.com", ROLE_FIELD_ASSISTANT)


@pytest.fixture(scope='function')
def other_field_user(db_session):
    """Field Assistant U2."""
    return _make_user(db_session, "Budi", "budi@example.com", ROLE_FIELD_ASSISTANT)


@pytest.fixture(scope='function')
def manager(db_session):
    """Assistant Area Manager."""
    return _make_user(db_session, "Rina", "rina@example.com", ROLE_AREA_MANAGER)


@pytest.fixture(scope='function')
def unknown_role_user(db_session):
    return _make_user(db_session, "Tamu", "tamu@example.com", "Regional Auditor")


@pytest.fixture(scope='function')
def product(db_session):
    product = Product(name="Benih Jagung Hibrida", package_unit="Sak 5kg", unit="sak")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def other_product(db_session):
    product = Product(name="Pupuk Cair", package_unit="Botol 500ml", unit="botol")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def kiosk(db_session):
    kiosk = Kiosk(name="Kios Makmur")
    db_session.add(kiosk)
    db_session.commit()
    return kiosk


@pytest.fixture(scope='function')
def other_kiosk(db_session):
    kiosk = Kiosk(name="Kios Sejahtera")
    db_session.add(kiosk)
    db_session.commit()
    return kiosk


@pytest.fixture(scope='function')
def field_actor(field_user):
    return Actor.from_user(field_user)


@pytest.fixture(scope='function')
def other_field_actor(other_field_user):
    return Actor.from_user(other_field_user)


@pytest.fixture(scope='function')
def manager_actor(manager):
    return Actor.from_user(manager)


def days_ago(days: int):
    """A business date `days` before today in the configured timezone."""
    return local_today() - timedelta(days=days)


def auth_headers_for(user) -> dict:
    """Issue a bearer token for user and build the Authorization header."""
    _, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def field_headers(field_user):
    return auth_headers_for(field_user)


@pytest.fixture(scope='function')
def other_field_headers(other_field_user):
    return auth_headers_for(other_field_user)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return auth_headers_for(manager)
