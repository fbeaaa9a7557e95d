"""
Routes Package

This package contains all Flask route blueprints.
"""

from .auth import auth_bp
from .main import main_bp
from .api import api_bp
from .rag import rag_bp
from .scorm import scorm_bp
from .training import training_bp
from .team import team_bp
from .newsfeed import newsfeed_bp
from .feedback import feedback_bp
from .profile_chat import profile_chat_bp

__all__ = [
    'auth_bp',
    'main_bp',
    'api_bp',
    'rag_bp',
    'scorm_bp',
    'training_bp',
    'team_bp',
    'newsfeed_bp',
    'feedback_bp',
    'profile_chat_bp'
]
