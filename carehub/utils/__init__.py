"""
Utilities Package

This package contains utility functions and service modules.
"""

from . import auth_utils
from . import validators
from . import error_handlers

__all__ = [
    'auth_utils',
    'validators',
    'error_handlers'
]
