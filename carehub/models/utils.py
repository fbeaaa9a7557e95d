"""
Model Utilities

This module contains utility functions for the models package.
"""

import secrets
import string
import uuid


def generate_id():
    """Generate a row identifier (UUID4 string)"""
    return str(uuid.uuid4())


def generate_user_id():
    """Generate a unique 12-character public user ID"""
    return ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(12))


def generate_invitation_token():
    """Generate an invitation token"""
    return str(uuid.uuid4())
