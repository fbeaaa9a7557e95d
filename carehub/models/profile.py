"""
Profile Model

This module contains the Profile model: a staff member's account, name and role.
"""

from datetime import datetime
from .database import db
from .utils import generate_id, generate_user_id

ROLE_STAFF = 'staff'
ROLE_ADMIN = 'admin'
ROLE_SUPER_ADMIN = 'super-admin'
ROLES = (ROLE_STAFF, ROLE_ADMIN, ROLE_SUPER_ADMIN)


class Profile(db.Model):
    """Staff profile used for authentication, assignment and authorship"""
    __tablename__ = 'profiles'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), unique=True, nullable=False, default=generate_user_id)
    email = db.Column(db.String(254), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    role = db.Column(db.String(20), nullable=False, default=ROLE_STAFF)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, email, password_hash, first_name=None, last_name=None, role=ROLE_STAFF):
        """Initialize a profile with a validated email and role"""
        # Import validators here to avoid circular imports
        from ..utils.validators import validate_email

        email_validation = validate_email(email)
        if not email_validation.is_valid:
            raise ValueError(email_validation.error_message)
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        self.id = generate_id()
        self.user_id = generate_user_id()
        self.email = email_validation.sanitized_value
        self.password_hash = password_hash
        self.first_name = first_name
        self.last_name = last_name
        self.role = role

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def is_admin(self):
        """Admins and super-admins share admin capabilities"""
        return self.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN)

    def is_super_admin(self):
        return self.role == ROLE_SUPER_ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class EmployeeProfile(db.Model):
    """Work-preference summary built from the profile chat"""
    __tablename__ = 'employee_profiles'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.user_id'), unique=True, nullable=False)
    summary = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'summary': self.summary,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
