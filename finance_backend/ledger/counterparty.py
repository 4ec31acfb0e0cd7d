# ledger/counterparty.py

"""
COUNTERPARTY VARIANT

The other side of an obligation is exactly one of:
- RegisteredUser(user_id)   a real account
- Guest(name)               a free-text name (group guests, personal lending contacts)
- DummyContact(contact_id)  an owner-scoped placeholder without login

Models persist it as a discriminator column plus one populated reference column
(see to_fields / from_fields). Everything above the model layer works with these
frozen dataclasses and dispatches with isinstance, so adding a variant means
touching every branch that matters.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Union


KIND_USER = "user"
KIND_GUEST = "guest"
KIND_DUMMY = "dummy"

KIND_CHOICES = [
    (KIND_USER, "Registered user"),
    (KIND_GUEST, "Guest"),
    (KIND_DUMMY, "Dummy contact"),
]


@dataclass(frozen=True)
class RegisteredUser:
    user_id: uuid.UUID

    def __post_init__(self):
        if not isinstance(self.user_id, uuid.UUID):
            object.__setattr__(self, "user_id", uuid.UUID(str(self.user_id)))


@dataclass(frozen=True)
class Guest:
    name: str

    def __post_init__(self):
        name = (self.name or "").strip()
        if not name:
            raise ValueError("Guest name is required")
        object.__setattr__(self, "name", name)


@dataclass(frozen=True)
class DummyContact:
    contact_id: int

    def __post_init__(self):
        object.__setattr__(self, "contact_id", int(self.contact_id))


Counterparty = Union[RegisteredUser, Guest, DummyContact]


def kind_of(cp: Counterparty) -> str:
    if isinstance(cp, RegisteredUser):
        return KIND_USER
    if isinstance(cp, Guest):
        return KIND_GUEST
    if isinstance(cp, DummyContact):
        return KIND_DUMMY
    raise TypeError(f"Unknown counterparty: {cp!r}")


def from_fields(*, kind: str | None, user_id=None, guest_name: str | None = None, contact_id=None):
    """Rebuild the variant from its persisted columns (None when kind is empty)."""
    if not kind:
        return None
    if kind == KIND_USER:
        return RegisteredUser(user_id)
    if kind == KIND_GUEST:
        return Guest(guest_name)
    if kind == KIND_DUMMY:
        return DummyContact(contact_id)
    raise ValueError(f"Unknown counterparty kind: {kind!r}")


def to_fields(cp: Counterparty | None, *, prefix: str, allow_dummy: bool = True) -> dict:
    """
    Column values for a counterparty stored under `prefix`.

    e.g. prefix="counterparty" -> counterparty_kind, counterparty_user_id,
    counterparty_guest_name, counterparty_contact_id

    Group rosters hold users and guests only; they pass allow_dummy=False and
    get no _contact_id column.
    """
    fields = {
        f"{prefix}_kind": "",
        f"{prefix}_user_id": None,
        f"{prefix}_guest_name": "",
    }
    if allow_dummy:
        fields[f"{prefix}_contact_id"] = None
    elif isinstance(cp, DummyContact):
        raise ValueError("Dummy contacts cannot take part in groups")

    if cp is None:
        return fields

    fields[f"{prefix}_kind"] = kind_of(cp)
    if isinstance(cp, RegisteredUser):
        fields[f"{prefix}_user_id"] = cp.user_id
    elif isinstance(cp, Guest):
        fields[f"{prefix}_guest_name"] = cp.name
    else:
        fields[f"{prefix}_contact_id"] = cp.contact_id
    return fields


def key_of(cp: Counterparty) -> str:
    """Stable string key, used for balance rows and group rosters."""
    if isinstance(cp, RegisteredUser):
        return f"user:{cp.user_id}"
    if isinstance(cp, Guest):
        return f"guest:{cp.name}"
    if isinstance(cp, DummyContact):
        return f"dummy:{cp.contact_id}"
    raise TypeError(f"Unknown counterparty: {cp!r}")


def parse(payload: dict) -> Counterparty:
    """
    Build a counterparty from an API payload:
    {"user_id": ...} | {"guest_name": ...} | {"contact_id": ...}
    Exactly one key must be present.
    """
    payload = payload or {}
    present = [k for k in ("user_id", "guest_name", "contact_id") if payload.get(k) not in (None, "")]
    if len(present) != 1:
        raise ValueError("Provide exactly one of user_id, guest_name or contact_id")

    key = present[0]
    if key == "user_id":
        return RegisteredUser(payload["user_id"])
    if key == "guest_name":
        return Guest(payload["guest_name"])
    return DummyContact(payload["contact_id"])
