"""
Test configuration and shared fixtures for CareHub tests.

This file contains:
- Centralized test configuration
- Shared fixtures used across multiple test files
- Common test utilities
"""

import pytest
from carehub import create_app
from carehub.models import db, Profile, ROLE_STAFF, ROLE_ADMIN, ROLE_SUPER_ADMIN
from carehub.utils.auth_utils import hash_password, generate_jwt_token


# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SECRET_KEY': 'test-secret-key',
    'JWT_SECRET_KEY': 'test-jwt-secret-key',
    'MAIL_SERVER': 'localhost',
    'MAIL_PORT': 587,
    'MAIL_USE_TLS': False,
    'MAIL_USE_SSL': False,
    'MAIL_USERNAME': 'test@example.com',
    'MAIL_PASSWORD': 'test-password',
    'MAIL_DEFAULT_SENDER': 'test@example.com',
    'FRONTEND_URL': 'http://localhost:5173',
    'NOTION_PAGE_DELAY': 0,
    'EMBEDDING_DELAY': 0,
    'SCORM_UPLOAD_WORKERS': 4,
    'INVITATION_EXPIRY_DAYS': 7
}

TEST_PASSWORD = 'CarePass123'


@pytest.fixture
def app(tmp_path):
    """Create and configure a new app instance for each test."""
    app = create_app(dict(TEST_CONFIG, STORAGE_ROOT=str(tmp_path / 'storage')))
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


def make_profile(db_session, email, role=ROLE_STAFF, first_name='Test', last_name='User'):
    """Create and persist a profile with the shared test password."""
    profile = Profile(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role
    )
    db_session.add(profile)
    db_session.commit()
    return profile


def auth_headers(profile):
    """Bearer headers for a profile (requires an app context)."""
    return {'Authorization': f"Bearer {generate_jwt_token(profile.user_id)}"}


@pytest.fixture
def staff_profile(db_session):
    """Create a staff member."""
    return make_profile(db_session, 'carer@example.com', ROLE_STAFF, 'Casey', 'Carer')


@pytest.fixture
def admin_profile(db_session):
    """Create an admin."""
    return make_profile(db_session, 'manager@example.com', ROLE_ADMIN, 'Morgan', 'Manager')


@pytest.fixture
def super_admin_profile(db_session):
    """Create a super-admin."""
    return make_profile(db_session, 'owner@example.com', ROLE_SUPER_ADMIN, 'Sam', 'Owner')


@pytest.fixture
def staff_headers(staff_profile):
    return auth_headers(staff_profile)


@pytest.fixture
def admin_headers(admin_profile):
    return auth_headers(admin_profile)


@pytest.fixture
def super_admin_headers(super_admin_profile):
    return auth_headers(super_admin_profile)
