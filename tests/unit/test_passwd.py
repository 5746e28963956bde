"""Tests for user identities."""

import os

import pytest
from pydantic import ValidationError

from testkit.engine.passwd import UserRecord, current_user, find_user_by_name


def test_user_record_root() -> None:
    """UserRecord.is_root is true only for uid 0."""
    assert UserRecord(name="root", uid=0, gid=0).is_root()
    assert not UserRecord(name="nobody", uid=65534, gid=65534).is_root()


def test_user_record_negative_uid() -> None:
    """UserRecord rejects negative identifiers."""
    with pytest.raises(ValidationError) as exc_info:
        UserRecord(name="foo", uid=-1, gid=0)
    assert "uid" in str(exc_info.value)


def test_current_user() -> None:
    """current_user reports the identity of the process."""
    user = current_user()
    assert user.uid == os.getuid()
    assert user.gid == os.getgid()


def test_find_user_by_name_root() -> None:
    """find_user_by_name finds root in the password database."""
    assert find_user_by_name("root").uid == 0


def test_find_user_by_name_missing() -> None:
    """find_user_by_name raises KeyError for unknown users."""
    with pytest.raises(KeyError):
        find_user_by_name("no-such-user-for-testkit")
