"""Cart owner identities.

Every cart operation is addressed to exactly one owner: an authenticated
user or an anonymous guest session. The two are distinct types so callers
cannot confuse a user id with a session id.
"""

import re
import uuid
from dataclasses import dataclass
from typing import Union

SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@dataclass(frozen=True)
class UserOwner:
    """Durable cart owner; survives across devices once signed in."""

    user_id: int

    is_guest = False

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"

    def filter_kwargs(self) -> dict:
        return {"user_id": self.user_id, "session_id": None}


@dataclass(frozen=True)
class GuestOwner:
    """Ephemeral cart owner identified by the guest session cookie."""

    session_id: str

    is_guest = True

    @property
    def key(self) -> str:
        return f"guest:{self.session_id}"

    def filter_kwargs(self) -> dict:
        return {"user_id": None, "session_id": self.session_id}


CartOwner = Union[UserOwner, GuestOwner]


def is_valid_session_id(value) -> bool:
    return isinstance(value, str) and bool(SESSION_ID_RE.match(value))


def new_session_id() -> str:
    """Mint a random guest session id."""

    return uuid.uuid4().hex
