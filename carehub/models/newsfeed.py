"""
Newsfeed Models

This module contains Post, PostComment and PostLike.
"""

from datetime import datetime
from .database import db
from .utils import generate_id

SYSTEM_AUTHOR_ID = '00000000-0000-0000-0000-000000000001'


class Post(db.Model):
    """Newsfeed post written by staff or ingested from the webhook"""
    __tablename__ = 'posts'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    title = db.Column(db.String(255))
    content = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(64))
    priority = db.Column(db.String(16))
    author_id = db.Column(db.String(36), nullable=False)
    author_name = db.Column(db.String(255), nullable=False)
    author_role = db.Column(db.String(64), nullable=False)
    author_type = db.Column(db.String(16), nullable=False, default='user')  # user, system
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    comments = db.relationship('PostComment', backref='post', lazy=True,
                               cascade='all, delete-orphan', order_by='PostComment.created_at')
    likes = db.relationship('PostLike', backref='post', lazy=True, cascade='all, delete-orphan')

    def to_dict(self, include_comments=False):
        data = {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'category': self.category,
            'priority': self.priority,
            'author_id': self.author_id,
            'author_name': self.author_name,
            'author_role': self.author_role,
            'author_type': self.author_type,
            'like_count': len(self.likes),
            'comment_count': len(self.comments),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
        if include_comments:
            data['comments'] = [comment.to_dict() for comment in self.comments]
        return data


class PostComment(db.Model):
    __tablename__ = 'post_comments'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id'), nullable=False)
    author_id = db.Column(db.String(36), nullable=False)
    author_name = db.Column(db.String(255), nullable=False)
    author_role = db.Column(db.String(64), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'post_id': self.post_id,
            'author_id': self.author_id,
            'author_name': self.author_name,
            'author_role': self.author_role,
            'content': self.content,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class PostLike(db.Model):
    __tablename__ = 'post_likes'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id'), nullable=False)
    user_id = db.Column(db.String(36), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('post_id', 'user_id', name='unique_post_like'),)
