"""
Training Models

This module contains Course, CourseFrequency, CourseAssignment and CourseCompletion.
"""

from datetime import datetime
from .database import db
from .utils import generate_id


class Course(db.Model):
    """A training course; SCORM courses point at re-hosted package content"""
    __tablename__ = 'courses'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    content = db.Column(db.Text)
    course_type = db.Column(db.String(20), nullable=False, default='standard')  # standard, scorm
    duration_hours = db.Column(db.Float)
    is_mandatory = db.Column(db.Boolean, default=False)
    scorm_package_path = db.Column(db.String(255))
    scorm_manifest_data = db.Column(db.JSON)
    scorm_entry_point = db.Column(db.String(255))
    created_by = db.Column(db.String(36), db.ForeignKey('profiles.user_id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    frequencies = db.relationship('CourseFrequency', backref='course', lazy=True,
                                  cascade='all, delete-orphan')
    assignments = db.relationship('CourseAssignment', backref='course', lazy=True,
                                  cascade='all, delete-orphan')

    def notifications_enabled(self):
        """Email reminders need at least one frequency row that does not disable them"""
        return any(freq.email_notifications_enabled is not False for freq in self.frequencies)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'course_type': self.course_type,
            'duration_hours': self.duration_hours,
            'is_mandatory': self.is_mandatory,
            'scorm_package_path': self.scorm_package_path,
            'scorm_manifest_data': self.scorm_manifest_data,
            'scorm_entry_point': self.scorm_entry_point,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class CourseFrequency(db.Model):
    """How often a course must be repeated, optionally per role"""
    __tablename__ = 'course_frequencies'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False)
    frequency_months = db.Column(db.Integer, nullable=False)
    role = db.Column(db.String(20))
    email_notifications_enabled = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class CourseAssignment(db.Model):
    """A course assigned to a staff member with an optional due date"""
    __tablename__ = 'course_assignments'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False)
    assigned_to = db.Column(db.String(36), db.ForeignKey('profiles.user_id'), nullable=False)
    assigned_by = db.Column(db.String(36), db.ForeignKey('profiles.user_id'), nullable=False)
    due_date = db.Column(db.DateTime)
    is_mandatory = db.Column(db.Boolean)
    completion_count = db.Column(db.Integer, default=0, nullable=False)
    last_completed_at = db.Column(db.DateTime)
    next_due_date = db.Column(db.DateTime)
    progress_percent = db.Column(db.Integer, default=0)
    last_launched_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    assignee = db.relationship('Profile', foreign_keys=[assigned_to])
    completions = db.relationship('CourseCompletion', backref='assignment', lazy=True,
                                  cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'course_id': self.course_id,
            'assigned_to': self.assigned_to,
            'assigned_by': self.assigned_by,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'is_mandatory': self.is_mandatory,
            'completion_count': self.completion_count,
            'last_completed_at': self.last_completed_at.isoformat() if self.last_completed_at else None,
            'next_due_date': self.next_due_date.isoformat() if self.next_due_date else None,
            'progress_percent': self.progress_percent
        }


class CourseCompletion(db.Model):
    """A signed completion record for an assignment"""
    __tablename__ = 'course_completions'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    assignment_id = db.Column(db.String(36), db.ForeignKey('course_assignments.id'), nullable=False)
    completed_by = db.Column(db.String(36), db.ForeignKey('profiles.user_id'), nullable=False)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    score = db.Column(db.Float)
    notes = db.Column(db.Text)
    signature = db.Column(db.String(255), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'assignment_id': self.assignment_id,
            'completed_by': self.completed_by,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'score': self.score,
            'notes': self.notes,
            'signature': self.signature
        }
