"""
Training Routes

FLOW OVERVIEW
- /api/training/courses [GET, POST]
  • List courses / admin creates a course with optional recurrence frequencies.
- /api/training/assignments [GET, POST]
  • Assignment dashboard for the caller (admins may pass ?user_id=) /
    admin assigns a course to a staff member.
- /api/training/assignments/<id>/complete [POST]
  • Assignee records a signed completion (both acknowledgments required).
- /api/training/reminders/send [POST]
  • Admin sends a single training reminder email.
- /api/training/reminders/run [POST]
  • Admin runs the automated reminder sweep.
"""

from datetime import datetime, timezone
from flask import Blueprint, request, jsonify, g, current_app
from ..models import db, Course, CourseFrequency, CourseAssignment, Profile
from ..utils.assignments import assignments_overview, record_completion
from ..utils.auth_utils import token_required, admin_required
from ..utils.error_handlers import error_response
from ..utils.mailer import send_training_reminder, REMINDER_UPCOMING
from ..utils.reminders import run_automated_reminders
from ..utils.validators import require_fields, sanitize_input

training_bp = Blueprint('training', __name__)


def parse_datetime(value):
    """ISO date or datetime string → naive UTC datetime; None when blank"""
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=None)


@training_bp.route('/courses')
@token_required
def list_courses():
    courses = Course.query.order_by(Course.created_at.desc()).all()
    return jsonify({'success': True, 'courses': [course.to_dict() for course in courses]})


@training_bp.route('/courses', methods=['POST'])
@admin_required
def create_course():
    """Create a standard course"""
    data = request.get_json(silent=True) or {}
    check = require_fields(data, ('title',), 'Course title is required')
    if not check.is_valid:
        return error_response(check.error_message, 400)

    try:
        course = Course(
            title=sanitize_input(data['title'], 255),
            description=sanitize_input(data.get('description')),
            content=data.get('content'),
            duration_hours=data.get('duration_hours'),
            is_mandatory=bool(data.get('is_mandatory', False)),
            created_by=g.current_profile.user_id
        )
        for frequency in data.get('frequencies') or []:
            course.frequencies.append(CourseFrequency(
                frequency_months=int(frequency['frequency_months']),
                role=frequency.get('role'),
                email_notifications_enabled=frequency.get('email_notifications_enabled', True)
            ))
        db.session.add(course)
        db.session.commit()
    except (KeyError, TypeError, ValueError) as e:
        db.session.rollback()
        return error_response(f"Invalid course data: {str(e)}", 400)

    current_app.logger.info(f"Course created: {course.title}")
    return jsonify({'success': True, 'course': course.to_dict()}), 201


@training_bp.route('/assignments')
@token_required
def list_assignments():
    """Assignments, groups, next-up card and compliance summary"""
    user_id = g.current_profile.user_id
    requested = request.args.get('user_id')
    if requested and requested != user_id:
        if not g.current_profile.is_admin():
            return error_response('Admin access required', 403)
        user_id = requested
    return jsonify({'success': True, **assignments_overview(user_id)})


@training_bp.route('/assignments', methods=['POST'])
@admin_required
def create_assignment():
    data = request.get_json(silent=True) or {}
    check = require_fields(data, ('course_id', 'assigned_to'), 'course_id and assigned_to are required')
    if not check.is_valid:
        return error_response(check.error_message, 400)

    course = db.session.get(Course, data['course_id'])
    if course is None:
        return error_response('Course not found', 404)
    assignee = Profile.query.filter_by(user_id=data['assigned_to']).first()
    if assignee is None:
        return error_response('Staff member not found', 404)

    try:
        due_date = parse_datetime(data.get('due_date'))
    except ValueError:
        return error_response('Invalid due_date', 400)

    assignment = CourseAssignment(
        course_id=course.id,
        assigned_to=assignee.user_id,
        assigned_by=g.current_profile.user_id,
        due_date=due_date,
        is_mandatory=data.get('is_mandatory')
    )
    db.session.add(assignment)
    db.session.commit()
    return jsonify({'success': True, 'assignment': assignment.to_dict()}), 201


@training_bp.route('/assignments/<assignment_id>/complete', methods=['POST'])
@token_required
def complete_assignment(assignment_id):
    """Record a signed completion for the caller's assignment"""
    assignment = db.session.get(CourseAssignment, assignment_id)
    if assignment is None:
        return error_response('Assignment not found', 404)
    if assignment.assigned_to != g.current_profile.user_id:
        return error_response('You can only complete your own assignments', 403)

    data = request.get_json(silent=True) or {}
    if not (data.get('acknowledge_completion') and data.get('acknowledge_accuracy')):
        return error_response('Please acknowledge both statements to complete the course.', 400)
    signature = (data.get('signature') or '').strip()
    if not signature:
        return error_response('Please provide your digital signature to complete the course.', 400)

    try:
        completion = record_completion(
            assignment,
            g.current_profile,
            signature,
            score=data.get('score'),
            notes=data.get('notes')
        )
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error recording completion: {str(e)}")
        return error_response('Failed to record course completion. Please try again.', 500)

    return jsonify({
        'success': True,
        'completion': completion.to_dict(),
        'assignment': assignment.to_dict()
    }), 201


@training_bp.route('/reminders/send', methods=['POST'])
@admin_required
def send_reminder():
    data = request.get_json(silent=True) or {}
    try:
        sent = send_training_reminder(
            data.get('email'),
            data.get('courseTitle'),
            data.get('dueDate'),
            is_overdue=bool(data.get('isOverdue', False)),
            reminder_type=data.get('reminderType') or REMINDER_UPCOMING
        )
    except ValueError as e:
        return error_response(str(e), 400)

    if not sent:
        return error_response('Failed to send email', 500)
    return jsonify({'success': True, 'message': 'Training reminder sent successfully'})


@training_bp.route('/reminders/run', methods=['POST'])
@admin_required
def run_reminders():
    results = run_automated_reminders()
    return jsonify({'success': True, 'message': 'Automated reminders processed', 'results': results})
