from .directory import DummyContactListCreateView, UserSearchView
from .me import MeView

__all__ = [
    "MeView",
    "UserSearchView",
    "DummyContactListCreateView",
]
