"""
Admin Models

FLOW OVERVIEW
- AdminPermission: per (tab, sub-tab) visibility switch managed by super-admins.
- TrainingNotification: record of each reminder email sent for an assignment.
"""

from datetime import datetime
from .database import db
from .utils import generate_id

# Tabs staff members always see
STAFF_TABS = ('policies', 'training')
ADMIN_ROLES = ('admin', 'super-admin')


class AdminPermission(db.Model):
    """Visibility of an admin dashboard sub-tab"""
    __tablename__ = 'admin_permissions'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    tab_id = db.Column(db.String(64), nullable=False)
    subtab_id = db.Column(db.String(64), nullable=False)
    is_enabled = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('tab_id', 'subtab_id', name='unique_tab_subtab'),)

    @classmethod
    def ordered(cls):
        return cls.query.order_by(cls.tab_id, cls.subtab_id).all()

    @staticmethod
    def role_can_see_tab(role, tab_id):
        return role in ADMIN_ROLES or tab_id in STAFF_TABS

    @classmethod
    def get_enabled_subtabs(cls, role, tab_id):
        """Enabled sub-tab ids of a tab, empty when the role cannot see the tab"""
        if not cls.role_can_see_tab(role, tab_id):
            return []
        rows = cls.query.filter_by(tab_id=tab_id, is_enabled=True).order_by(cls.subtab_id).all()
        return [row.subtab_id for row in rows]

    @classmethod
    def is_subtab_enabled(cls, role, tab_id, subtab_id):
        """Resolve visibility for a role; a sub-tab without a row defaults to enabled."""
        if not cls.role_can_see_tab(role, tab_id):
            return False
        permission = cls.query.filter_by(tab_id=tab_id, subtab_id=subtab_id).first()
        return permission.is_enabled if permission else True

    def toggle(self):
        self.is_enabled = not self.is_enabled
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'tab_id': self.tab_id,
            'subtab_id': self.subtab_id,
            'is_enabled': self.is_enabled
        }


class TrainingNotification(db.Model):
    """Reminder email sent for an assignment"""
    __tablename__ = 'training_notifications'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), nullable=False)
    assignment_id = db.Column(db.String(36), db.ForeignKey('course_assignments.id'), nullable=False)
    notification_type = db.Column(db.String(16), nullable=False)  # upcoming, overdue
    sent_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'assignment_id': self.assignment_id,
            'notification_type': self.notification_type,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
            'is_read': self.is_read
        }
