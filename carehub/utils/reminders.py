"""
Automated training reminders.

Finds incomplete assignments due within the next 7 days (or already overdue),
emails the assignee and records a training notification per email sent.
"""

import logging
from datetime import datetime, timedelta

from ..models import db, CourseAssignment, TrainingNotification
from .mailer import send_training_reminder, REMINDER_OVERDUE, REMINDER_UPCOMING

logger = logging.getLogger(__name__)

REMINDER_WINDOW_DAYS = 7


def run_automated_reminders(now=None):
    """Send reminders and return counts {upcoming, overdue, total}"""
    now = now or datetime.utcnow()
    window_end = now + timedelta(days=REMINDER_WINDOW_DAYS)

    assignments = (
        CourseAssignment.query
        .filter(CourseAssignment.due_date.isnot(None))
        .filter(CourseAssignment.due_date <= window_end)
        .filter(CourseAssignment.completion_count == 0)
        .all()
    )

    upcoming = 0
    overdue = 0
    for assignment in assignments:
        assignee = assignment.assignee
        if assignee is None or not assignee.email:
            continue
        course = assignment.course
        if course is not None and not course.notifications_enabled():
            continue

        is_overdue = assignment.due_date < now
        notification_type = REMINDER_OVERDUE if is_overdue else REMINDER_UPCOMING
        sent = send_training_reminder(
            assignee.email,
            course.title if course else 'Unknown Course',
            assignment.due_date,
            is_overdue=is_overdue,
            reminder_type=notification_type
        )
        if not sent:
            continue

        if is_overdue:
            overdue += 1
        else:
            upcoming += 1
        db.session.add(TrainingNotification(
            user_id=assignment.assigned_to,
            assignment_id=assignment.id,
            notification_type=notification_type,
            sent_at=datetime.utcnow()
        ))

    db.session.commit()
    logger.info(f"Automated reminders processed: {upcoming} upcoming, {overdue} overdue")
    return {'upcoming': upcoming, 'overdue': overdue, 'total': upcoming + overdue}
