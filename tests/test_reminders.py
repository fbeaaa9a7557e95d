"""
Tests for reminder emails and the automated reminder sweep.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from carehub.models import Course, CourseFrequency, CourseAssignment, TrainingNotification
from carehub.utils.mailer import (
    mail, reminder_subject, format_date, send_training_reminder,
    REMINDER_UPCOMING, REMINDER_OVERDUE, REMINDER_FREQUENCY
)
from carehub.utils.reminders import run_automated_reminders


class TestReminderContent:

    @pytest.mark.parametrize('is_overdue, reminder_type, expected', [
        (True, REMINDER_UPCOMING, 'URGENT: Overdue Training - Falls'),
        (False, REMINDER_UPCOMING, 'Training Reminder - Falls'),
        (False, REMINDER_FREQUENCY, 'Training Due - Falls'),
        (True, REMINDER_FREQUENCY, 'URGENT: Overdue Training - Falls'),
    ])
    def test_subjects(self, is_overdue, reminder_type, expected):
        assert reminder_subject('Falls', is_overdue, reminder_type) == expected

    def test_format_date(self):
        assert format_date(datetime(2024, 3, 5)) == 'March 05, 2024'
        assert format_date('2024-03-05T10:00:00') == 'March 05, 2024'
        assert format_date('next week') == 'next week'
        assert format_date(None) == 'Not set'

    def test_missing_fields(self, app_context):
        with pytest.raises(ValueError, match='Missing required fields'):
            send_training_reminder('', 'Falls', None)
        with pytest.raises(ValueError):
            send_training_reminder('carer@example.com', None, None)

    def test_overdue_email_body(self, app_context):
        with mail.record_messages() as outbox:
            assert send_training_reminder('carer@example.com', 'Falls <Prevention>', '2024-03-05',
                                          is_overdue=True) is True
        assert len(outbox) == 1
        assert outbox[0].recipients == ['carer@example.com']
        assert 'Training Overdue' in outbox[0].html
        assert 'Falls &lt;Prevention&gt;' in outbox[0].html
        assert 'March 05, 2024' in outbox[0].html

    def test_send_failure_returns_false(self, app_context):
        with patch('carehub.utils.mailer.mail.send', side_effect=ConnectionRefusedError('smtp down')):
            assert send_training_reminder('carer@example.com', 'Falls', None) is False


class TestAutomatedReminders:

    def _assign(self, db_session, course, assignee, assigner, due_date, completion_count=0):
        assignment = CourseAssignment(course_id=course.id, assigned_to=assignee.user_id,
                                      assigned_by=assigner.user_id, due_date=due_date,
                                      completion_count=completion_count)
        db_session.add(assignment)
        db_session.commit()
        return assignment

    def _course(self, db_session, creator, title='Falls', notifications=True):
        course = Course(title=title, created_by=creator.user_id)
        if notifications is not None:
            course.frequencies.append(CourseFrequency(frequency_months=12,
                                                      email_notifications_enabled=notifications))
        db_session.add(course)
        db_session.commit()
        return course

    def test_sends_upcoming_and_overdue(self, db_session, staff_profile, admin_profile):
        now = datetime.utcnow()
        course = self._course(db_session, admin_profile)
        self._assign(db_session, course, staff_profile, admin_profile, now + timedelta(days=3))
        self._assign(db_session, course, staff_profile, admin_profile, now - timedelta(days=2))
        self._assign(db_session, course, staff_profile, admin_profile, now + timedelta(days=20))
        self._assign(db_session, course, staff_profile, admin_profile, now + timedelta(days=1), completion_count=1)
        self._assign(db_session, course, staff_profile, admin_profile, None)

        with mail.record_messages() as outbox:
            results = run_automated_reminders()

        assert results == {'upcoming': 1, 'overdue': 1, 'total': 2}
        assert sorted(msg.subject for msg in outbox) == [
            'Training Reminder - Falls', 'URGENT: Overdue Training - Falls'
        ]
        notifications = TrainingNotification.query.all()
        assert sorted(n.notification_type for n in notifications) == [REMINDER_OVERDUE, REMINDER_UPCOMING]

    def test_notifications_disabled(self, db_session, staff_profile, admin_profile):
        course = self._course(db_session, admin_profile, notifications=False)
        self._assign(db_session, course, staff_profile, admin_profile, datetime.utcnow() + timedelta(days=1))
        with mail.record_messages() as outbox:
            results = run_automated_reminders()
        assert results['total'] == 0
        assert outbox == []

    def test_course_without_frequencies_skipped(self, db_session, staff_profile, admin_profile):
        course = self._course(db_session, admin_profile, notifications=None)
        self._assign(db_session, course, staff_profile, admin_profile, datetime.utcnow() + timedelta(days=1))
        with mail.record_messages() as outbox:
            results = run_automated_reminders()
        assert results == {'upcoming': 0, 'overdue': 0, 'total': 0}
        assert outbox == []

    def test_failed_email_not_counted(self, db_session, staff_profile, admin_profile):
        course = self._course(db_session, admin_profile)
        self._assign(db_session, course, staff_profile, admin_profile, datetime.utcnow() + timedelta(days=1))
        with patch('carehub.utils.mailer.mail.send', side_effect=RuntimeError('smtp down')):
            results = run_automated_reminders()
        assert results['total'] == 0
        assert TrainingNotification.query.count() == 0


class TestReminderEndpoints:

    def test_send_requires_admin(self, client, staff_headers):
        response = client.post('/api/training/reminders/send', headers=staff_headers, json={})
        assert response.status_code == 403

    def test_send_missing_fields(self, client, admin_headers):
        response = client.post('/api/training/reminders/send', headers=admin_headers,
                               json={'email': 'carer@example.com'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Missing required fields'

    def test_send(self, client, admin_headers):
        with mail.record_messages() as outbox:
            response = client.post('/api/training/reminders/send', headers=admin_headers, json={
                'email': 'carer@example.com',
                'courseTitle': 'Falls',
                'dueDate': '2030-01-01',
                'reminderType': 'frequency'
            })
        assert response.status_code == 200
        assert outbox[0].subject == 'Training Due - Falls'

    def test_send_failure(self, client, admin_headers):
        with patch('carehub.utils.mailer.mail.send', side_effect=RuntimeError('smtp down')):
            response = client.post('/api/training/reminders/send', headers=admin_headers, json={
                'email': 'carer@example.com', 'courseTitle': 'Falls'
            })
        assert response.status_code == 500
        assert response.get_json()['error'] == 'Failed to send email'

    def test_run(self, client, admin_headers):
        response = client.post('/api/training/reminders/run', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['results'] == {'upcoming': 0, 'overdue': 0, 'total': 0}
