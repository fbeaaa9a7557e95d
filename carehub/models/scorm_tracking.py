"""
SCORM Tracking Model

One row per (user, course) holding the last committed SCORM 1.2 CMI state.
"""

from datetime import datetime
from .database import db
from .utils import generate_id


class ScormTracking(db.Model):
    """Persisted CMI data for a learner's SCORM course attempt"""
    __tablename__ = 'scorm_tracking'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.user_id'), nullable=False)
    course_id = db.Column(db.String(36), db.ForeignKey('courses.id'), nullable=False)
    student_id = db.Column(db.String(255))
    student_name = db.Column(db.String(255))
    lesson_location = db.Column(db.String(255))
    lesson_status = db.Column(db.String(50))
    score_raw = db.Column(db.Float)
    score_max = db.Column(db.Float)
    score_min = db.Column(db.Float)
    total_time = db.Column(db.String(50))
    session_time = db.Column(db.String(50))
    suspend_data = db.Column(db.Text)
    launch_data = db.Column(db.Text)
    comments = db.Column(db.Text)
    interactions = db.Column(db.JSON)
    objectives = db.Column(db.JSON)
    cmi_data = db.Column(db.JSON)
    last_accessed = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'course_id', name='unique_user_scorm_course'),
    )

    @classmethod
    def get_or_create(cls, user_id, course_id):
        record = cls.query.filter_by(user_id=user_id, course_id=course_id).first()
        if record is None:
            record = cls(id=generate_id(), user_id=user_id, course_id=course_id)
            db.session.add(record)
        return record

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'scorm_course_id': self.course_id,
            'student_id': self.student_id,
            'student_name': self.student_name,
            'lesson_location': self.lesson_location,
            'lesson_status': self.lesson_status,
            'score_raw': self.score_raw,
            'score_max': self.score_max,
            'score_min': self.score_min,
            'total_time': self.total_time,
            'session_time': self.session_time,
            'suspend_data': self.suspend_data,
            'launch_data': self.launch_data,
            'comments': self.comments,
            'interactions': self.interactions or [],
            'objectives': self.objectives or [],
            'last_accessed': self.last_accessed.isoformat() if self.last_accessed else None
        }
