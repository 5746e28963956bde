"""User identities."""

from __future__ import annotations

import os
import pwd

from pydantic import BaseModel, ConfigDict, Field


class UserRecord(BaseModel):
    """A system user, either the running one or a configured substitute."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Login name, possibly empty")
    uid: int = Field(..., ge=0, description="Numeric user identifier")
    gid: int = Field(..., ge=0, description="Numeric primary group identifier")

    def is_root(self) -> bool:
        """Whether this user has superuser privileges."""
        return self.uid == 0


def current_user() -> UserRecord:
    """Return the identity of the running process."""
    uid = os.getuid()
    try:
        name = pwd.getpwuid(uid).pw_name
    except KeyError:
        name = ""
    return UserRecord(name=name, uid=uid, gid=os.getgid())


def find_user_by_name(name: str) -> UserRecord:
    """Look up a user in the system password database.

    Raises:
        KeyError: If no such user exists

    """
    entry = pwd.getpwnam(name)
    return UserRecord(name=entry.pw_name, uid=entry.pw_uid, gid=entry.pw_gid)
