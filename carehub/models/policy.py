"""
Policy Corpus Models

FLOW OVERVIEW
- PolicyEmbedding: one row per Notion page with its text and embedding vector.
- RagSystemStatus: audit trail of sync/search/generation operations.
- PolicyFeedback: staff suggestions against a policy document.
"""

from datetime import datetime
from .database import db
from .utils import generate_id


class PolicyEmbedding(db.Model):
    """Embedded Notion policy page"""
    __tablename__ = 'policy_embeddings'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    notion_page_id = db.Column(db.String(64), unique=True, nullable=False)
    title = db.Column(db.String(500), nullable=False)
    content = db.Column(db.Text, nullable=False)
    embedding = db.Column(db.JSON)  # list of floats
    # `metadata` is reserved on declarative models
    page_metadata = db.Column('metadata', db.JSON)
    last_updated = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'notion_page_id': self.notion_page_id,
            'title': self.title,
            'content': self.content,
            'metadata': self.page_metadata or {},
            'last_updated': self.last_updated,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class RagSystemStatus(db.Model):
    """Log row for a RAG operation (sync, search, generation)"""
    __tablename__ = 'rag_system_status'

    id = db.Column(db.Integer, primary_key=True)
    operation_type = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False)  # success, error
    message = db.Column(db.Text)
    status_metadata = db.Column('metadata', db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'operation_type': self.operation_type,
            'status': self.status,
            'message': self.message,
            'metadata': self.status_metadata or {},
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class PolicyFeedback(db.Model):
    """Feedback on a policy document, reviewed by the quality team"""
    __tablename__ = 'policy_feedback'

    id = db.Column(db.Integer, primary_key=True)
    policy_name = db.Column(db.String(255), nullable=False)
    feedback = db.Column(db.Text, nullable=False)
    submitted_by = db.Column(db.String(255))
    status = db.Column(db.String(20), default='pending', nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'policy_name': self.policy_name,
            'feedback': self.feedback,
            'submitted_by': self.submitted_by,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
