"""
User Invitation Model

FLOW OVERVIEW
- An admin invites an email address with a role; a token is generated and mailed.
- validate(): classify the invitation as usable, expired or already accepted.
- accept(): mark the invitation used once the invitee's profile exists.
- cleanup_expired(): delete unaccepted invitations past their expiry.
"""

from datetime import datetime, timedelta
from .database import db
from .utils import generate_id, generate_invitation_token


class UserInvitation(db.Model):
    """Invitation for a new staff member to join with a given role"""
    __tablename__ = 'user_invitations'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    email = db.Column(db.String(254), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='staff')
    invitation_token = db.Column(db.String(36), unique=True, nullable=False)
    invited_by = db.Column(db.String(36), db.ForeignKey('profiles.user_id'), nullable=False)
    is_accepted = db.Column(db.Boolean, default=False, nullable=False)
    accepted_at = db.Column(db.DateTime)
    invitation_expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, email, role, invited_by, expires_in_days=7):
        self.id = generate_id()
        self.email = email
        self.role = role
        self.invited_by = invited_by
        self.invitation_token = generate_invitation_token()
        self.is_accepted = False
        self.invitation_expires_at = datetime.utcnow() + timedelta(days=expires_in_days)

    def is_expired(self, now=None):
        return self.invitation_expires_at < (now or datetime.utcnow())

    def validation_error(self, now=None):
        """Return the user-facing reason this invitation cannot be used, or None"""
        if self.is_expired(now):
            return 'This invitation has expired'
        if self.is_accepted:
            return 'This invitation has already been accepted'
        return None

    def status(self, now=None):
        if self.is_accepted:
            return 'accepted'
        if self.is_expired(now):
            return 'expired'
        return 'pending'

    def accept(self):
        """Mark the invitation accepted"""
        self.is_accepted = True
        self.accepted_at = datetime.utcnow()

    @classmethod
    def cleanup_expired(cls, now=None):
        """Delete unaccepted invitations past their expiry; returns the count."""
        now = now or datetime.utcnow()
        expired = cls.query.filter(
            cls.is_accepted.is_(False),
            cls.invitation_expires_at < now
        ).all()
        for invitation in expired:
            db.session.delete(invitation)
        db.session.commit()
        return len(expired)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'invited_by': self.invited_by,
            'is_accepted': self.is_accepted,
            'status': self.status(),
            'accepted_at': self.accepted_at.isoformat() if self.accepted_at else None,
            'invitation_expires_at': self.invitation_expires_at.isoformat(),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
