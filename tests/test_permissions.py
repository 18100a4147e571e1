"""Tests for the ownership rule."""

from types import SimpleNamespace
import uuid

import pytest

from app.core.errors import ForbiddenError
from app.core.permissions import Action, authorize, check_access
from app.models.user import UserRole


def _user(role: UserRole = UserRole.USER) -> SimpleNamespace:
    return SimpleNamespace(user_id=uuid.uuid4(), role=role)


def test_owner_allowed_for_every_action():
    owner = _user()
    entry = SimpleNamespace(user_id=owner.user_id)

    for action in Action:
        assert check_access(owner, entry, action).allowed


def test_stranger_denied():
    entry = SimpleNamespace(user_id=uuid.uuid4())

    decision = check_access(_user(), entry, Action.DELETE)

    assert not decision.allowed
    assert "delete" in decision.reason


def test_admin_override():
    entry = SimpleNamespace(user_id=uuid.uuid4())

    decision = check_access(_user(UserRole.ADMIN), entry, Action.WRITE)

    assert decision.allowed
    assert decision.reason == "admin override"


def test_therapist_has_no_override():
    entry = SimpleNamespace(user_id=uuid.uuid4())

    assert not check_access(_user(UserRole.THERAPIST), entry, Action.READ).allowed


def test_authorize_raises_forbidden():
    entry = SimpleNamespace(user_id=uuid.uuid4())

    with pytest.raises(ForbiddenError):
        authorize(_user(), entry, Action.READ)
