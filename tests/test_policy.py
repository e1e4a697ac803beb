"""Tests for the role-based authorization policy."""

import logging

import pytest

from todoo_mcp.auth.errors import ForbiddenError
from todoo_mcp.auth.policy import (
    Ability,
    Action,
    Actor,
    Rule,
    TaskSubject,
    UserSubject,
    authorize,
    can,
)
from todoo_mcp.store.models import Role

ADMIN = Actor(id="admin", role=Role.ADMIN)
USER = Actor(id="u1", role=Role.USER)


class TestAdminAbility:
    """ADMIN manages every task and every user."""

    @pytest.mark.parametrize("action", list(Action))
    def test_admin_can_everything_on_any_task(self, action: Action) -> None:
        assert can(ADMIN, action, TaskSubject(id="t9", owner_id="someone-else"))
        assert can(ADMIN, action, "Task")

    @pytest.mark.parametrize("action", list(Action))
    def test_admin_can_everything_on_any_user(self, action: Action) -> None:
        assert can(ADMIN, action, UserSubject(id="u2"))
        assert can(ADMIN, action, "User")


class TestUserAbility:
    """USER acts only on owned tasks and on their own account."""

    @pytest.mark.parametrize("action", [Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE])
    def test_user_can_act_on_owned_task(self, action: Action) -> None:
        assert can(USER, action, TaskSubject(id="t1", owner_id="u1"))

    @pytest.mark.parametrize("action", [Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE])
    def test_user_cannot_act_on_foreign_task(self, action: Action) -> None:
        assert not can(USER, action, TaskSubject(id="t3", owner_id="u3"))

    def test_user_cannot_manage_even_owned_task(self) -> None:
        assert not can(USER, Action.MANAGE, TaskSubject(id="t1", owner_id="u1"))

    @pytest.mark.parametrize("action", [Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE])
    def test_bare_task_type_passes_through_conditional_rules(self, action: Action) -> None:
        assert can(USER, action, "Task")

    def test_user_reads_and_updates_only_self(self) -> None:
        assert can(USER, Action.READ, UserSubject(id="u1"))
        assert can(USER, Action.UPDATE, UserSubject(id="u1"))
        assert not can(USER, Action.READ, UserSubject(id="u2"))
        assert not can(USER, Action.UPDATE, UserSubject(id="u2"))

    def test_user_cannot_create_or_delete_users(self) -> None:
        assert not can(USER, Action.CREATE, "User")
        assert not can(USER, Action.DELETE, UserSubject(id="u1"))
        assert not can(USER, Action.MANAGE, UserSubject(id="u1"))

    def test_task_rules_never_apply_to_user_subjects(self) -> None:
        # The owned-task condition never matches a user account
        assert not can(USER, Action.DELETE, UserSubject(id="u1"))


class TestAnonymous:
    @pytest.mark.parametrize("subject", ["Task", "User", TaskSubject(owner_id="u1")])
    def test_anonymous_holds_no_rules(self, subject: object) -> None:
        assert Ability.for_actor(None).rules == ()
        assert not can(None, Action.READ, subject)  # type: ignore[arg-type]


class TestRule:
    def test_manage_grants_every_action(self) -> None:
        rule = Rule(Action.MANAGE, "Task")
        assert all(rule.grants(action) for action in Action)

    def test_specific_action_grants_only_itself(self) -> None:
        rule = Rule(Action.READ, "Task")
        assert rule.grants(Action.READ)
        assert not rule.grants(Action.UPDATE)
        assert not rule.grants(Action.MANAGE)

    def test_condition_is_ignored_for_bare_types(self) -> None:
        rule = Rule(Action.READ, "Task", lambda _subject: False)
        assert rule.applies_to("Task")
        assert not rule.applies_to(TaskSubject(owner_id="u1"))


class TestTaskSubject:
    def test_with_owner_keeps_id_and_replaces_owner(self) -> None:
        subject = TaskSubject(id="t1", owner_id="u1")
        moved = subject.with_owner("u2")
        assert moved.id == "t1"
        assert moved.owner_id == "u2"
        assert subject.owner_id == "u1"


class TestAuthorize:
    def test_authorize_returns_actor_when_allowed(self) -> None:
        assert authorize(USER, Action.READ, "Task", "nope") is USER

    def test_authorize_raises_forbidden_with_message(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO), pytest.raises(ForbiddenError) as exc_info:
            authorize(USER, Action.DELETE, TaskSubject(id="t3", owner_id="u3"), "Proibido")

        assert exc_info.value.message == "Proibido"
        assert "Denied delete" in caplog.text

    def test_authorize_rejects_anonymous(self) -> None:
        with pytest.raises(ForbiddenError):
            authorize(None, Action.READ, "Task", "Proibido")
