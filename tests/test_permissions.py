"""Unit tests for the role policy.

Tests cover the static action table for the three roles (user, manager,
admin), visibility scoping, and the enforced/permissive policy modes.
"""

import logging
from uuid import uuid4

import pytest

from notevault.services.errors import PermissionDenied
from notevault.services.permission_service import (
    ALLOWED_ROLES,
    Action,
    Caller,
    PermissionService,
    PolicyMode,
    VisibilityScope,
    can_perform,
    get_permission_service,
    visibility_scope,
)


class TestActionTable:
    """Tests for can_perform."""

    @pytest.mark.parametrize(
        "action",
        [Action.CREATE_NOTE, Action.CREATE_FOLDER, Action.DELETE_NOTE, Action.DELETE_FOLDER],
    )
    def test_structural_changes_are_admin_only(self, action):
        """Only admins create or permanently delete notes and folders."""
        assert can_perform("admin", action)
        assert not can_perform("manager", action)
        assert not can_perform("user", action)

    @pytest.mark.parametrize(
        "action",
        [Action.UPDATE_NOTE, Action.UPDATE_FOLDER, Action.RESTORE_NOTE_REVISION],
    )
    def test_edits_need_manager_or_admin(self, action):
        """Editing content is open to managers and admins."""
        assert can_perform("admin", action)
        assert can_perform("manager", action)
        assert not can_perform("user", action)

    @pytest.mark.parametrize(
        "action",
        [
            Action.VIEW_CONTENT,
            Action.SEARCH_CONTENT,
            Action.VIEW_TRASH,
            Action.TRASH_CONTENT,
            Action.RECOVER_CONTENT,
            Action.EMPTY_TRASH,
            Action.VIEW_VERSIONS,
        ],
    )
    def test_everyday_actions_open_to_every_role(self, action):
        """Any role may view, search, trash and recover."""
        for role in ("user", "manager", "admin"):
            assert can_perform(role, action)

    def test_version_management(self):
        """Managers create versions and migrate; admins also update and delete."""
        assert can_perform("manager", Action.CREATE_VERSION)
        assert can_perform("manager", Action.MIGRATE_CONTENT)
        assert not can_perform("manager", Action.UPDATE_VERSION)
        assert not can_perform("manager", Action.DELETE_VERSION)
        assert not can_perform("user", Action.CREATE_VERSION)
        assert can_perform("admin", Action.DELETE_VERSION)

    def test_user_management(self):
        """Managers manage users; only admins delete them or review registrations."""
        assert can_perform("manager", Action.MANAGE_USERS)
        assert not can_perform("manager", Action.DELETE_USER)
        assert not can_perform("manager", Action.REVIEW_REGISTRATIONS)
        assert can_perform("admin", Action.REVIEW_REGISTRATIONS)
        assert not can_perform("user", Action.MANAGE_USERS)

    @pytest.mark.parametrize("role", [None, "", "owner", "ADMIN"])
    def test_unknown_roles_get_nothing(self, role):
        """Unknown or missing roles are denied everything."""
        assert not any(can_perform(role, action) for action in Action)

    def test_every_action_is_listed(self):
        """The table covers every action."""
        assert set(ALLOWED_ROLES) == set(Action)


class TestVisibilityScope:
    """Tests for visibility_scope and owner_filter."""

    def test_user_sees_own_rows(self):
        assert visibility_scope("user") == VisibilityScope.OWN

    @pytest.mark.parametrize("role", ["manager", "admin"])
    def test_manager_and_admin_see_all_rows(self, role):
        assert visibility_scope(role) == VisibilityScope.ALL

    def test_unknown_role_sees_own_rows(self):
        assert visibility_scope("guest") == VisibilityScope.OWN

    def test_owner_filter(self):
        """owner_filter is the caller's id for OWN scope and None for ALL."""
        service = PermissionService()
        user_id = uuid4()
        assert service.owner_filter(Caller(user_id=user_id, role="user")) == user_id
        assert service.owner_filter(Caller(user_id=user_id, role="manager")) is None


class TestPolicyModes:
    """Tests for PermissionService.require."""

    def test_enforced_mode_raises(self):
        """A denied check raises PermissionDenied naming the action and role."""
        service = PermissionService(PolicyMode.ENFORCED)
        with pytest.raises(PermissionDenied) as exc_info:
            service.require("user", Action.CREATE_NOTE)

        assert exc_info.value.status_code == 403
        assert exc_info.value.role == "user"
        assert "create note" in exc_info.value.message
        assert "admin" in exc_info.value.message

    def test_enforced_mode_allows_permitted_action(self):
        PermissionService(PolicyMode.ENFORCED).require("admin", Action.CREATE_NOTE)

    def test_permissive_mode_logs_and_allows(self, caplog):
        """A denied check in permissive mode is logged, not raised."""
        service = PermissionService(PolicyMode.PERMISSIVE)
        with caplog.at_level(logging.WARNING):
            service.require("user", Action.DELETE_VERSION)

        assert "Permissive policy" in caplog.text

    def test_factory_reads_settings(self, monkeypatch):
        """get_permission_service uses settings.policy_mode."""
        from notevault.config import settings

        monkeypatch.setattr(settings, "policy_mode", "permissive")
        assert get_permission_service().mode == PolicyMode.PERMISSIVE

        monkeypatch.setattr(settings, "policy_mode", "enforced")
        assert get_permission_service().mode == PolicyMode.ENFORCED
