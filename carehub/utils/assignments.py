"""
Assignment status and compliance derivation.

FLOW OVERVIEW
- derive_assignment_status(row, now): completed, overdue, in_progress or not_started.
- build_assignment(row, now): assignment view with progress, standards and status.
- group_assignments / next_up / compliance_summary over a learner's assignments.
- assignments_overview(user_id, now): everything the training dashboard needs.
- record_completion(...): signed completion; next due date from the course frequency.
"""

import calendar
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models import db, Course, CourseAssignment, CourseCompletion

STATUS_COMPLETED = 'completed'
STATUS_OVERDUE = 'overdue'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_NOT_STARTED = 'not_started'

DUE_SOON_DAYS = 7
SECONDS_PER_DAY = 24 * 60 * 60

# (keywords, standards) in the order they are applied
STANDARD_KEYWORDS = (
    (('infection', 'clinical'), ('Std 5', 'Std 4')),
    (('safety',), ('Std 4',)),
    (('customer', 'service', 'dignity', 'choice'), ('Std 1', 'Std 3')),
    (('nutrition', 'food'), ('Std 6',)),
)
DEFAULT_STANDARD = 'Std 3'


def standards_for_course_title(title: str) -> List[str]:
    """Map a course title onto aged-care quality standards by keyword"""
    lowered = (title or '').lower()
    standards = []
    for keywords, mapped in STANDARD_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            for standard in mapped:
                if standard not in standards:
                    standards.append(standard)
    return standards or [DEFAULT_STANDARD]


def derive_assignment_status(row: CourseAssignment, now: datetime) -> str:
    if (row.completion_count or 0) > 0:
        return STATUS_COMPLETED
    if row.due_date and row.due_date < now:
        return STATUS_OVERDUE
    if (row.progress_percent or 0) > 0:
        return STATUS_IN_PROGRESS
    return STATUS_NOT_STARTED


def calculate_progress_percent(row: CourseAssignment) -> int:
    if (row.completion_count or 0) > 0:
        return 100
    return row.progress_percent or 0


def days_until(due_date: datetime, now: datetime) -> int:
    """Whole days until the due date, rounded up"""
    return math.ceil((due_date - now).total_seconds() / SECONDS_PER_DAY)


def is_due_soon(assignment: Dict[str, Any], now: datetime) -> bool:
    if assignment['status'] in (STATUS_COMPLETED, STATUS_OVERDUE):
        return False
    if not assignment['_due_date']:
        return False
    return days_until(assignment['_due_date'], now) <= DUE_SOON_DAYS


def build_assignment(row: CourseAssignment, now: datetime) -> Dict[str, Any]:
    course = row.course
    title = course.title if course else 'Unknown Course'
    return {
        'id': row.id,
        'courseId': row.course_id,
        'title': title,
        'dueDate': row.due_date.isoformat() if row.due_date else None,
        'isMandatory': bool(row.is_mandatory or (course and course.is_mandatory)),
        'progressPercent': calculate_progress_percent(row),
        'lastLaunchedAt': row.last_launched_at.isoformat() if row.last_launched_at else None,
        'estimatedMinutes': course.duration_hours * 60 if course and course.duration_hours else None,
        'status': derive_assignment_status(row, now),
        'standards': standards_for_course_title(title),
        '_due_date': row.due_date,
    }


def group_assignments(assignments: List[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            'title': 'Overdue',
            'assignments': [a for a in assignments if a['status'] == STATUS_OVERDUE],
            'emptyMessage': 'No overdue assignments',
        },
        {
            'title': 'Due Soon',
            'assignments': [a for a in assignments if is_due_soon(a, now)],
            'emptyMessage': 'No assignments due soon',
        },
        {
            'title': 'In Progress',
            'assignments': [a for a in assignments if a['status'] == STATUS_IN_PROGRESS],
            'emptyMessage': 'No courses in progress',
        },
        {
            'title': 'Not Started',
            'assignments': [a for a in assignments if a['status'] == STATUS_NOT_STARTED],
            'emptyMessage': 'No pending assignments',
        },
    ]


def next_up(assignments: List[Dict[str, Any]], now: datetime) -> Optional[Dict[str, Any]]:
    """First overdue, else first due soon, else first in progress, else first not started"""
    candidates = (
        lambda a: a['status'] == STATUS_OVERDUE,
        lambda a: is_due_soon(a, now),
        lambda a: a['status'] == STATUS_IN_PROGRESS,
        lambda a: a['status'] == STATUS_NOT_STARTED,
    )
    for matches in candidates:
        found = next((a for a in assignments if matches(a)), None)
        if found is not None:
            return found
    return None


def compliance_summary(assignments: List[Dict[str, Any]], now: datetime) -> Dict[str, int]:
    mandatory = [a for a in assignments if a['isMandatory']]
    completed_mandatory = [a for a in mandatory if a['status'] == STATUS_COMPLETED]
    coverage = 0
    if mandatory:
        # Half-up rounding
        coverage = int(math.floor(len(completed_mandatory) / len(mandatory) * 100 + 0.5))
    return {
        'mandatoryCoverage': coverage,
        'overdueCount': sum(1 for a in assignments if a['status'] == STATUS_OVERDUE),
        'dueSoonCount': sum(1 for a in assignments if is_due_soon(a, now)),
    }


def _public(assignment: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if assignment is None:
        return None
    return {k: v for k, v in assignment.items() if not k.startswith('_')}


def assignments_overview(user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Assignments, groups, next-up and compliance for one learner"""
    now = now or datetime.utcnow()
    rows = (
        CourseAssignment.query
        .filter_by(assigned_to=user_id)
        .order_by(CourseAssignment.due_date.is_(None), CourseAssignment.due_date.asc())
        .all()
    )
    assignments = [build_assignment(row, now) for row in rows]
    groups = group_assignments(assignments, now)
    return {
        'assignments': [_public(a) for a in assignments],
        'groups': [
            dict(group, assignments=[_public(a) for a in group['assignments']]) for group in groups
        ],
        'nextUp': _public(next_up(assignments, now)),
        'compliance': compliance_summary(assignments, now),
    }


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping to the last day of the month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def frequency_months_for(course: Course, role: Optional[str]) -> Optional[int]:
    """Role-specific frequency first, then the course-wide one"""
    if course is None or not course.frequencies:
        return None
    by_role = {freq.role: freq.frequency_months for freq in course.frequencies}
    if role in by_role:
        return by_role[role]
    if None in by_role:
        return by_role[None]
    return course.frequencies[0].frequency_months


def record_completion(assignment: CourseAssignment, profile, signature: str,
                      score: Optional[float] = None, notes: Optional[str] = None,
                      now: Optional[datetime] = None) -> CourseCompletion:
    """Add a signed completion and roll the assignment's recurrence forward"""
    now = now or datetime.utcnow()
    completion = CourseCompletion(
        assignment_id=assignment.id,
        completed_by=profile.user_id,
        completed_at=now,
        score=score,
        notes=notes,
        signature=signature
    )
    db.session.add(completion)

    assignment.completion_count = (assignment.completion_count or 0) + 1
    assignment.last_completed_at = now
    assignment.progress_percent = 100
    months = frequency_months_for(assignment.course, profile.role)
    assignment.next_due_date = add_months(now, months) if months else None
    return completion
