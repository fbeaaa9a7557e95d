"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Exposes: db, Profile, UserInvitation, Course*, ScormTracking, Policy*, Post*, Admin*.
"""

from .database import db
from .profile import Profile, EmployeeProfile, ROLES, ROLE_STAFF, ROLE_ADMIN, ROLE_SUPER_ADMIN
from .invitation import UserInvitation
from .course import Course, CourseFrequency, CourseAssignment, CourseCompletion
from .scorm_tracking import ScormTracking
from .policy import PolicyEmbedding, RagSystemStatus, PolicyFeedback
from .newsfeed import Post, PostComment, PostLike, SYSTEM_AUTHOR_ID
from .admin import AdminPermission, TrainingNotification

__all__ = [
    'db',
    'Profile',
    'EmployeeProfile',
    'ROLES',
    'ROLE_STAFF',
    'ROLE_ADMIN',
    'ROLE_SUPER_ADMIN',
    'UserInvitation',
    'Course',
    'CourseFrequency',
    'CourseAssignment',
    'CourseCompletion',
    'ScormTracking',
    'PolicyEmbedding',
    'RagSystemStatus',
    'PolicyFeedback',
    'Post',
    'PostComment',
    'PostLike',
    'SYSTEM_AUTHOR_ID',
    'AdminPermission',
    'TrainingNotification'
]
