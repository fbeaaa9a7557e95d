"""
Authentication Routes

FLOW OVERVIEW
- /auth/login [POST]
  • Authenticate email/password → issue bearer JWT.
- /auth/me [GET]
  • Bearer gate; return the caller's profile.
- /auth/invitations/<token> [GET]
  • Validate an invitation token (unknown, expired or already accepted).
- /auth/invitations/<token>/accept [POST]
  • Validate password and names → create profile with the invited role → mark accepted.
"""

from flask import Blueprint, request, jsonify, g, current_app
from ..models import db, Profile, UserInvitation
from ..utils.auth_utils import (
    authenticate_profile, generate_jwt_token, hash_password, token_required
)
from ..utils.validators import validate_new_password, require_fields
from ..utils.error_handlers import error_response

auth_bp = Blueprint('auth', __name__)

INVALID_INVITATION = 'Invalid or expired invitation'


@auth_bp.route('/login', methods=['POST'])
def login():
    """Exchange credentials for a bearer token"""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return error_response('Email and password are required', 400)

    profile = authenticate_profile(email, password)
    if profile is None:
        current_app.logger.info(f"Failed login for {email}")
        return error_response('Invalid email or password', 401)

    return jsonify({
        'success': True,
        'token': generate_jwt_token(profile.user_id),
        'profile': profile.to_dict()
    })


@auth_bp.route('/me')
@token_required
def me():
    return jsonify({'success': True, 'profile': g.current_profile.to_dict()})


def _find_invitation(token):
    """Return (invitation, error_response) for an invitation token"""
    invitation = UserInvitation.query.filter_by(invitation_token=token).first()
    if invitation is None:
        return None, error_response(INVALID_INVITATION, 404)
    error = invitation.validation_error()
    if error:
        return None, error_response(error, 400)
    return invitation, None


@auth_bp.route('/invitations/<token>')
def validate_invitation(token):
    """Check an invitation before showing the accept form"""
    invitation, failure = _find_invitation(token)
    if failure:
        return failure
    return jsonify({'success': True, 'invitation': invitation.to_dict()})


@auth_bp.route('/invitations/<token>/accept', methods=['POST'])
def accept_invitation(token):
    """Create the invitee's profile and mark the invitation accepted"""
    invitation, failure = _find_invitation(token)
    if failure:
        return failure

    data = request.get_json(silent=True) or {}
    names = require_fields(data, ('first_name', 'last_name'), 'First and last name are required')
    if not names.is_valid:
        return error_response(names.error_message, 400)

    password = validate_new_password(data.get('password'))
    if not password.is_valid:
        return error_response(password.error_message, 400)
    if 'confirm_password' in data and data['confirm_password'] != data.get('password'):
        return error_response('Passwords do not match', 400)

    if Profile.query.filter_by(email=invitation.email.lower()).first():
        return error_response('An account with this email already exists', 409)

    try:
        profile = Profile(
            email=invitation.email,
            password_hash=hash_password(password.sanitized_value),
            first_name=data['first_name'].strip(),
            last_name=data['last_name'].strip(),
            role=invitation.role
        )
        db.session.add(profile)
        invitation.accept()
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return error_response(str(e), 400)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error accepting invitation: {str(e)}")
        return error_response('Failed to accept invitation', 500)

    current_app.logger.info(f"Invitation accepted by {profile.email} as {profile.role}")
    return jsonify({
        'success': True,
        'token': generate_jwt_token(profile.user_id),
        'profile': profile.to_dict()
    }), 201
