"""
Authentication Utilities

FLOW OVERVIEW
- hash_password / verify_password: bcrypt password hashing.
- generate_jwt_token / verify_jwt_token: HS256 bearer tokens carrying the profile user_id.
- authenticate_profile(email, password): credential check for /auth/login.
- token_required / admin_required / super_admin_required: route decorators that
  resolve `Authorization: Bearer <token>` into g.current_profile.
"""

from datetime import datetime, timedelta
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, jsonify, request

from ..models import Profile


def hash_password(password):
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    if not password or not password_hash:
        return False
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def generate_jwt_token(user_id, expires_in=None):
    """Generate a JWT token for profile authentication"""
    if expires_in is None:
        expires_in = current_app.config.get('JWT_ACCESS_TOKEN_EXPIRES', 3600)
    payload = {
        'user_id': user_id,
        'exp': datetime.utcnow() + timedelta(seconds=expires_in),
        'iat': datetime.utcnow()
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET_KEY'], algorithm='HS256')


def verify_jwt_token(token):
    """Verify and decode a JWT token"""
    try:
        return jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def authenticate_profile(email, password):
    """Return the profile for valid credentials, else None"""
    if not email:
        return None
    profile = Profile.query.filter_by(email=email.strip().lower()).first()
    if profile and verify_password(password, profile.password_hash):
        return profile
    return None


def get_bearer_profile():
    """Resolve the Authorization header into a Profile, or None"""
    auth_header = (request.headers.get('Authorization') or '').strip()
    if not auth_header.lower().startswith('bearer '):
        return None
    token = auth_header.split(' ', 1)[1].strip()
    payload = verify_jwt_token(token)
    if not payload:
        return None
    return Profile.query.filter_by(user_id=payload.get('user_id')).first()


def token_required(f):
    """Decorator to require a valid bearer token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        profile = get_bearer_profile()
        if profile is None:
            return jsonify({'success': False, 'error': 'Unauthorized'}), 401
        g.current_profile = profile
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require an admin or super-admin bearer token"""
    @wraps(f)
    @token_required
    def decorated_function(*args, **kwargs):
        if not g.current_profile.is_admin():
            return jsonify({'success': False, 'error': 'Admin access required'}), 403
        return f(*args, **kwargs)
    return decorated_function


def super_admin_required(f):
    @wraps(f)
    @token_required
    def decorated_function(*args, **kwargs):
        if not g.current_profile.is_super_admin():
            return jsonify({'success': False, 'error': 'Super admin access required'}), 403
        return f(*args, **kwargs)
    return decorated_function
