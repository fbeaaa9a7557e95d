"""
Tests for team invitations and admin tab permissions.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

from carehub.models import AdminPermission, UserInvitation
from carehub.utils.mailer import mail


def add_permission(db_session, tab_id, subtab_id, is_enabled=True):
    permission = AdminPermission(tab_id=tab_id, subtab_id=subtab_id, is_enabled=is_enabled)
    db_session.add(permission)
    db_session.commit()
    return permission


class TestInvitations:

    def test_create_sends_email(self, client, admin_headers):
        with mail.record_messages() as outbox:
            response = client.post('/api/team/invitations', headers=admin_headers,
                                   json={'email': 'New.Carer@Example.com', 'role': 'staff'})

        assert response.status_code == 201
        data = response.get_json()
        assert data['message'] == 'Invitation sent to new.carer@example.com'
        assert data['invitation']['status'] == 'pending'

        assert len(outbox) == 1
        assert outbox[0].subject == "You're invited to join the team as staff"
        invitation = UserInvitation.query.one()
        assert f"http://localhost:5173/accept-invitation?token={invitation.invitation_token}" in outbox[0].html
        assert 'Morgan Manager' in outbox[0].html

    def test_invalid_role(self, client, admin_headers):
        response = client.post('/api/team/invitations', headers=admin_headers,
                               json={'email': 'x@example.com', 'role': 'owner'})
        assert response.status_code == 400

    def test_invalid_email(self, client, admin_headers):
        response = client.post('/api/team/invitations', headers=admin_headers, json={'email': 'nope'})
        assert response.status_code == 400

    def test_existing_user(self, client, admin_headers, staff_profile):
        response = client.post('/api/team/invitations', headers=admin_headers,
                               json={'email': 'carer@example.com'})
        assert response.status_code == 409

    def test_email_failure_keeps_invitation(self, client, admin_headers):
        with patch('carehub.utils.mailer.mail.send', side_effect=ConnectionRefusedError('smtp down')):
            response = client.post('/api/team/invitations', headers=admin_headers,
                                   json={'email': 'later@example.com', 'role': 'admin'})
        assert response.status_code == 500
        assert response.get_json()['error'] == 'Failed to send email'
        assert UserInvitation.query.filter_by(email='later@example.com').count() == 1

    def test_list_and_delete(self, client, db_session, admin_headers, admin_profile):
        invitation = UserInvitation('a@example.com', 'staff', admin_profile.user_id)
        db_session.add(invitation)
        db_session.commit()

        listed = client.get('/api/team/invitations', headers=admin_headers).get_json()
        assert [inv['email'] for inv in listed['invitations']] == ['a@example.com']

        response = client.delete(f'/api/team/invitations/{invitation.id}', headers=admin_headers)
        assert response.status_code == 200
        assert UserInvitation.query.count() == 0
        assert client.delete(f'/api/team/invitations/{invitation.id}', headers=admin_headers).status_code == 404

    def test_cleanup_removes_only_expired_unaccepted(self, client, db_session, admin_headers, admin_profile):
        expired = UserInvitation('old@example.com', 'staff', admin_profile.user_id)
        expired.invitation_expires_at = datetime.utcnow() - timedelta(days=1)
        accepted = UserInvitation('done@example.com', 'staff', admin_profile.user_id)
        accepted.invitation_expires_at = datetime.utcnow() - timedelta(days=1)
        accepted.accept()
        fresh = UserInvitation('fresh@example.com', 'staff', admin_profile.user_id)
        db_session.add_all([expired, accepted, fresh])
        db_session.commit()

        response = client.post('/api/team/invitations/cleanup', headers=admin_headers)
        assert response.get_json()['deleted'] == 1
        assert sorted(inv.email for inv in UserInvitation.query.all()) == ['done@example.com', 'fresh@example.com']


class TestPermissions:

    def test_admin_defaults_to_enabled(self, db_session):
        assert AdminPermission.is_subtab_enabled('admin', 'team', 'invitations') is True
        add_permission(db_session, 'team', 'invitations', is_enabled=False)
        assert AdminPermission.is_subtab_enabled('admin', 'team', 'invitations') is False
        assert AdminPermission.is_subtab_enabled('super-admin', 'team', 'invitations') is False

    def test_staff_limited_to_staff_tabs(self, db_session):
        assert AdminPermission.is_subtab_enabled('staff', 'training', 'assignments') is True
        assert AdminPermission.is_subtab_enabled('staff', 'team', 'invitations') is False

    def test_staff_respect_disabled_rows(self, db_session):
        add_permission(db_session, 'training', 'reports', is_enabled=False)
        assert AdminPermission.is_subtab_enabled('staff', 'training', 'reports') is False
        assert AdminPermission.get_enabled_subtabs('staff', 'training') == []

    def test_list_requires_super_admin(self, client, admin_headers):
        response = client.get('/api/team/permissions', headers=admin_headers)
        assert response.status_code == 403

    def test_list_and_toggle(self, client, db_session, super_admin_headers):
        permission = add_permission(db_session, 'training', 'reports')
        listed = client.get('/api/team/permissions', headers=super_admin_headers).get_json()
        assert listed['permissions'][0]['subtab_id'] == 'reports'

        response = client.post(f'/api/team/permissions/{permission.id}/toggle', headers=super_admin_headers)
        assert response.status_code == 200
        assert response.get_json()['permission']['is_enabled'] is False

    def test_toggle_unknown(self, client, super_admin_headers):
        response = client.post('/api/team/permissions/missing/toggle', headers=super_admin_headers)
        assert response.status_code == 404

    def test_enabled_subtabs_for_role(self, client, db_session, admin_headers, staff_headers):
        add_permission(db_session, 'team', 'invitations')
        add_permission(db_session, 'team', 'permissions', is_enabled=False)

        admin_view = client.get('/api/team/permissions/team', headers=admin_headers).get_json()
        assert admin_view['subtabs'] == ['invitations']
        staff_view = client.get('/api/team/permissions/team', headers=staff_headers).get_json()
        assert staff_view['subtabs'] == []

    def test_staff_do_not_see_disabled_training_subtabs(self, client, db_session, staff_headers):
        add_permission(db_session, 'training', 'assignments')
        add_permission(db_session, 'training', 'reports', is_enabled=False)

        staff_view = client.get('/api/team/permissions/training', headers=staff_headers).get_json()
        assert staff_view['subtabs'] == ['assignments']
