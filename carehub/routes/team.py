"""
Team Routes

FLOW OVERVIEW
- /api/team/invitations [GET, POST]
  • Admin gate; list invitations / create an invitation and email the accept link.
- /api/team/invitations/<id> [DELETE]
  • Admin gate; delete an invitation.
- /api/team/invitations/cleanup [POST]
  • Admin gate; delete unaccepted invitations past their expiry.
- /api/team/permissions [GET]
  • Super-admin gate; every tab/sub-tab permission row.
- /api/team/permissions/<tab_id> [GET]
  • Bearer gate; enabled sub-tabs of a tab for the caller's role.
- /api/team/permissions/<id>/toggle [POST]
  • Super-admin gate; flip a sub-tab's visibility.
"""

from flask import Blueprint, request, jsonify, g, current_app
from ..models import db, UserInvitation, AdminPermission, Profile
from ..utils.auth_utils import token_required, admin_required, super_admin_required
from ..utils.error_handlers import error_response
from ..utils.mailer import send_invitation_email
from ..utils.validators import validate_email, validate_role

team_bp = Blueprint('team', __name__)


@team_bp.route('/invitations')
@admin_required
def list_invitations():
    invitations = UserInvitation.query.order_by(UserInvitation.created_at.desc()).all()
    return jsonify({'success': True, 'invitations': [inv.to_dict() for inv in invitations]})


@team_bp.route('/invitations', methods=['POST'])
@admin_required
def create_invitation():
    """Create an invitation and send the invitation email"""
    data = request.get_json(silent=True) or {}

    email = validate_email(data.get('email'))
    if not email.is_valid:
        return error_response(email.error_message, 400)
    role = validate_role(data.get('role') or 'staff')
    if not role.is_valid:
        return error_response(role.error_message, 400)

    if Profile.query.filter_by(email=email.sanitized_value).first():
        return error_response('A user with this email already exists', 409)

    inviter = g.current_profile
    invitation = UserInvitation(
        email=email.sanitized_value,
        role=role.sanitized_value,
        invited_by=inviter.user_id,
        expires_in_days=current_app.config.get('INVITATION_EXPIRY_DAYS', 7)
    )
    db.session.add(invitation)
    db.session.commit()

    # The invitation row is kept when the email fails so it can be resent
    if not send_invitation_email(invitation, inviter.full_name or inviter.email):
        return error_response('Failed to send email', 500)

    return jsonify({
        'success': True,
        'message': f"Invitation sent to {invitation.email}",
        'invitation': invitation.to_dict()
    }), 201


@team_bp.route('/invitations/<invitation_id>', methods=['DELETE'])
@admin_required
def delete_invitation(invitation_id):
    invitation = db.session.get(UserInvitation, invitation_id)
    if invitation is None:
        return error_response('Invitation not found', 404)
    db.session.delete(invitation)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Invitation deleted'})


@team_bp.route('/invitations/cleanup', methods=['POST'])
@admin_required
def cleanup_invitations():
    deleted = UserInvitation.cleanup_expired()
    current_app.logger.info(f"Removed {deleted} expired invitations")
    return jsonify({'success': True, 'deleted': deleted})


@team_bp.route('/permissions')
@super_admin_required
def list_permissions():
    return jsonify({
        'success': True,
        'permissions': [permission.to_dict() for permission in AdminPermission.ordered()]
    })


@team_bp.route('/permissions/<tab_id>')
@token_required
def enabled_subtabs(tab_id):
    """Sub-tabs of a tab the caller may see"""
    subtabs = AdminPermission.get_enabled_subtabs(g.current_profile.role, tab_id)
    return jsonify({'success': True, 'tab_id': tab_id, 'subtabs': subtabs})


@team_bp.route('/permissions/<permission_id>/toggle', methods=['POST'])
@super_admin_required
def toggle_permission(permission_id):
    permission = db.session.get(AdminPermission, permission_id)
    if permission is None:
        return error_response('Permission not found', 404)
    permission.toggle()
    current_app.logger.info(
        f"Permission {permission.tab_id}/{permission.subtab_id} set to {permission.is_enabled}"
    )
    return jsonify({'success': True, 'permission': permission.to_dict()})
