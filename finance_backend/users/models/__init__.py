# users/models/__init__.py

"""
USERS MODELS PACKAGE EXPORTS

Keep this file imports-only.
"""

from users.models.dummy_contact import DummyContact
from users.models.user import User, UserManager

__all__ = [
    "User",
    "UserManager",
    "DummyContact",
]
