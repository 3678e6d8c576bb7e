"""Unit tests for the content lifecycle engine (trash, cascade, recovery, purge)."""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notevault.services.content_service import ContentService
from notevault.services.errors import Conflict, InvalidState, NotFound, PermissionDenied
from notevault.services.lifecycle_service import ContentLifecycleService


@pytest.fixture
def lifecycle(db_session: AsyncSession, capabilities, permissions) -> ContentLifecycleService:
    return ContentLifecycleService(db_session, capabilities, permissions)


@pytest.mark.asyncio
class TestMoveNoteToTrash:
    """Tests for trashing a single note."""

    async def test_trash_note(self, lifecycle, seed, test_user, as_caller):
        """An active note becomes trashed with a deletion timestamp."""
        note = await seed.note(test_user, "Groceries")

        result = await lifecycle.move_note_to_trash(as_caller(test_user), note.id)

        assert result.message == "Note moved to trash"
        assert result.hard_deleted is False
        stored = await lifecycle.notes.find_by_id(note.id)
        assert stored.is_deleted is True
        assert stored.deleted_at is not None

    async def test_trash_twice_is_noop(self, lifecycle, seed, test_user, as_caller):
        """Trashing an already trashed note reports it and changes nothing."""
        note = await seed.note(test_user, "Groceries")
        caller = as_caller(test_user)
        await lifecycle.move_note_to_trash(caller, note.id)
        first = await lifecycle.notes.find_by_id(note.id)

        result = await lifecycle.move_note_to_trash(caller, note.id)

        assert result.already_in_trash is True
        second = await lifecycle.notes.find_by_id(note.id)
        assert second.deleted_at == first.deleted_at

    async def test_cannot_trash_another_users_note(self, lifecycle, seed, make_user, test_user, as_caller):
        """Users only see their own notes, so another user's note is not found."""
        other = await make_user("user")
        note = await seed.note(other, "Private")

        with pytest.raises(NotFound):
            await lifecycle.move_note_to_trash(as_caller(test_user), note.id)

    async def test_manager_can_trash_any_note(self, lifecycle, seed, test_user, test_manager, as_caller):
        note = await seed.note(test_user, "Shared")

        result = await lifecycle.move_note_to_trash(as_caller(test_manager), note.id)

        assert result.id == note.id
        assert (await lifecycle.notes.find_by_id(note.id)).is_deleted is True


@pytest.mark.asyncio
class TestDeleteFolder:
    """Tests for the folder cascade."""

    async def test_cascade_trashes_subtree(self, lifecycle, seed, test_admin, as_caller):
        """Trashing a root trashes its child folders and all notes in the subtree."""
        root = await seed.folder(test_admin, "Projects")
        child = await seed.folder(test_admin, "Alpha", parent=root)
        root_note = await seed.note(test_admin, "Overview", folder=root)
        child_note = await seed.note(test_admin, "Alpha plan", folder=child)
        loose = await seed.note(test_admin, "Unfiled")

        result = await lifecycle.delete_folder(as_caller(test_admin), root.id)

        assert result.cascaded_folders == 1
        assert result.cascaded_notes == 2
        for item in (root_note, child_note):
            assert (await lifecycle.notes.find_by_id(item.id)).is_deleted is True
        assert (await lifecycle.folders.find_by_id(child.id)).is_deleted is True
        assert (await lifecycle.notes.find_by_id(loose.id)).is_deleted is False

    async def test_cascade_shares_one_timestamp(self, lifecycle, seed, test_admin, as_caller):
        root = await seed.folder(test_admin, "Projects")
        note = await seed.note(test_admin, "Overview", folder=root)

        await lifecycle.delete_folder(as_caller(test_admin), root.id)

        folder = await lifecycle.folders.find_by_id(root.id)
        trashed_note = await lifecycle.notes.find_by_id(note.id)
        assert folder.deleted_at == trashed_note.deleted_at

    async def test_already_trashed_notes_keep_their_timestamp(self, lifecycle, seed, test_admin, as_caller):
        """Notes trashed before the cascade are not re-stamped or counted."""
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        earlier = await seed.note(test_admin, "Old", folder=root)
        await lifecycle.move_note_to_trash(caller, earlier.id)
        before = (await lifecycle.notes.find_by_id(earlier.id)).deleted_at

        result = await lifecycle.delete_folder(caller, root.id)

        assert result.cascaded_notes == 0
        assert (await lifecycle.notes.find_by_id(earlier.id)).deleted_at == before

    async def test_delete_folder_requires_admin(self, lifecycle, seed, test_admin, test_manager, as_caller):
        root = await seed.folder(test_admin, "Projects")

        with pytest.raises(PermissionDenied):
            await lifecycle.delete_folder(as_caller(test_manager), root.id)

    async def test_delete_trashed_folder_is_noop(self, lifecycle, seed, test_admin, as_caller):
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        await lifecycle.delete_folder(caller, root.id)

        result = await lifecycle.delete_folder(caller, root.id)

        assert result.already_in_trash is True


@pytest.mark.asyncio
class TestRecover:
    """Tests for single-item recovery."""

    async def test_recover_note(self, lifecycle, seed, test_user, as_caller):
        caller = as_caller(test_user)
        note = await seed.note(test_user, "Groceries")
        await lifecycle.move_note_to_trash(caller, note.id)

        recovered = await lifecycle.recover_note(caller, note.id)

        assert recovered.is_deleted is False
        assert recovered.deleted_at is None

    async def test_recover_active_note_is_invalid(self, lifecycle, seed, test_user, as_caller):
        note = await seed.note(test_user, "Groceries")

        with pytest.raises(InvalidState, match="not in trash"):
            await lifecycle.recover_note(as_caller(test_user), note.id)

    async def test_recover_note_under_trashed_folder(self, lifecycle, seed, test_admin, as_caller):
        """A note cannot come back while its folder is still trashed."""
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        note = await seed.note(test_admin, "Overview", folder=root)
        await lifecycle.delete_folder(caller, root.id)

        with pytest.raises(InvalidState, match="Recover the folder first"):
            await lifecycle.recover_note(caller, note.id)

    async def test_recover_folder_does_not_cascade(self, lifecycle, seed, test_admin, as_caller):
        """Recovering a folder leaves the content trashed with it in trash."""
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        child = await seed.folder(test_admin, "Alpha", parent=root)
        note = await seed.note(test_admin, "Overview", folder=root)
        await lifecycle.delete_folder(caller, root.id)

        recovered = await lifecycle.recover_folder(caller, root.id)

        assert recovered.is_deleted is False
        assert (await lifecycle.folders.find_by_id(child.id)).is_deleted is True
        assert (await lifecycle.notes.find_by_id(note.id)).is_deleted is True

        # Children can now be recovered one by one
        await lifecycle.recover_folder(caller, child.id)
        await lifecycle.recover_note(caller, note.id)
        assert (await lifecycle.notes.find_by_id(note.id)).is_deleted is False

    async def test_recover_child_before_parent(self, lifecycle, seed, test_admin, as_caller):
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        child = await seed.folder(test_admin, "Alpha", parent=root)
        await lifecycle.delete_folder(caller, root.id)

        with pytest.raises(InvalidState, match="parent folder"):
            await lifecycle.recover_folder(caller, child.id)

    async def test_trash_recover_round_trip(self, lifecycle, seed, test_user, as_caller):
        """Trash then recover restores the original active state."""
        caller = as_caller(test_user)
        note = await seed.note(test_user, "Groceries", content="milk")

        await lifecycle.move_note_to_trash(caller, note.id)
        recovered = await lifecycle.recover_note(caller, note.id)

        assert (recovered.title, recovered.content, recovered.is_deleted) == ("Groceries", "milk", False)

    async def test_lost_race_is_a_conflict(self, lifecycle, seed, test_user, as_caller, monkeypatch):
        """If the conditional update matches nothing, the caller gets Conflict."""
        caller = as_caller(test_user)
        note = await seed.note(test_user, "Groceries")
        await lifecycle.move_note_to_trash(caller, note.id)

        async def lost_race(*args, **kwargs):
            return False

        monkeypatch.setattr(lifecycle.notes, "recover", lost_race)
        with pytest.raises(Conflict):
            await lifecycle.recover_note(caller, note.id)


@pytest.mark.asyncio
class TestTrashListings:
    """Tests for trash listings."""

    async def test_trash_lists_newest_first(self, lifecycle, seed, test_user, as_caller):
        caller = as_caller(test_user)
        first = await seed.note(test_user, "First")
        second = await seed.note(test_user, "Second")
        await lifecycle.move_note_to_trash(caller, first.id)
        await lifecycle.move_note_to_trash(caller, second.id)

        trash = await lifecycle.get_trash_notes(caller)

        assert [n.id for n in trash] == [second.id, first.id]

    async def test_trash_is_scoped_to_owner(self, lifecycle, seed, make_user, test_user, test_manager, as_caller):
        other = await make_user("user")
        mine = await seed.note(test_user, "Mine")
        theirs = await seed.note(other, "Theirs")
        await lifecycle.move_note_to_trash(as_caller(test_user), mine.id)
        await lifecycle.move_note_to_trash(as_caller(other), theirs.id)

        assert [n.id for n in await lifecycle.get_trash_notes(as_caller(test_user))] == [mine.id]
        assert len(await lifecycle.get_trash_notes(as_caller(test_manager))) == 2

    async def test_trash_filtered_by_version(self, lifecycle, seed, test_user, as_caller):
        caller = as_caller(test_user)
        v1 = await seed.version("v1.0")
        v2 = await seed.version("v2.0")
        old = await seed.note(test_user, "Old", version=v1)
        new = await seed.note(test_user, "New", version=v2)
        await lifecycle.move_note_to_trash(caller, old.id)
        await lifecycle.move_note_to_trash(caller, new.id)

        trash = await lifecycle.get_trash_notes(caller, version_id=v2.id)

        assert [n.id for n in trash] == [new.id]


@pytest.mark.asyncio
class TestBulkOperations:
    """Tests for empty-trash and recover-all."""

    async def test_empty_trash(self, lifecycle, seed, test_admin, as_caller):
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        await seed.folder(test_admin, "Alpha", parent=root)
        await seed.note(test_admin, "Overview", folder=root)
        keep = await seed.note(test_admin, "Keep")
        await lifecycle.delete_folder(caller, root.id)

        result = await lifecycle.empty_trash(caller)

        assert result.failed == []
        assert result.notes == 1
        # the child may go by ON DELETE CASCADE before the statement reaches it
        assert result.folders >= 1
        assert await lifecycle.get_trash_notes(caller) == []
        assert await lifecycle.get_trash_folders(caller) == []
        assert await lifecycle.notes.find_by_id(keep.id) is not None

    async def test_empty_trash_only_touches_own_rows(self, lifecycle, seed, make_user, test_user, as_caller):
        other = await make_user("user")
        theirs = await seed.note(other, "Theirs")
        await lifecycle.move_note_to_trash(as_caller(other), theirs.id)

        result = await lifecycle.empty_trash(as_caller(test_user))

        assert result.notes == 0
        assert await lifecycle.notes.find_by_id(theirs.id) is not None

    async def test_recover_all(self, lifecycle, seed, test_admin, as_caller):
        caller = as_caller(test_admin)
        root = await seed.folder(test_admin, "Projects")
        child = await seed.folder(test_admin, "Alpha", parent=root)
        note = await seed.note(test_admin, "Overview", folder=child)
        await lifecycle.delete_folder(caller, root.id)

        result = await lifecycle.recover_all(caller)

        assert (result.notes, result.folders, result.failed) == (1, 2, [])
        assert (await lifecycle.notes.find_by_id(note.id)).is_deleted is False
        assert (await lifecycle.folders.find_by_id(child.id)).is_deleted is False

    async def test_recover_all_skips_children_of_a_parent_left_in_trash(
        self, lifecycle, seed, test_admin, as_caller
    ):
        """Recovering one version leaves items whose container belongs to another version in trash."""
        caller = as_caller(test_admin)
        v1 = await seed.version("v1.0")
        v2 = await seed.version("v2.0")
        parent = await seed.folder(test_admin, "Handbook", version=v1)
        child = await seed.folder(test_admin, "Onboarding", parent=parent, version=v2)
        filed = await seed.note(test_admin, "Checklist", folder=parent, version=v2)
        await lifecycle.delete_folder(caller, parent.id)

        result = await lifecycle.recover_all(caller, version_id=v2.id)

        assert (result.notes, result.folders, result.failed) == (0, 0, [])
        assert (await lifecycle.folders.find_by_id(child.id)).is_deleted is True
        assert (await lifecycle.notes.find_by_id(filed.id)).is_deleted is True

    async def test_recover_all_per_version_restores_the_whole_tree(
        self, lifecycle, seed, test_admin, as_caller
    ):
        """Recovering the parent's version first lets the child's version come back next."""
        caller = as_caller(test_admin)
        v1 = await seed.version("v1.0")
        v2 = await seed.version("v2.0")
        parent = await seed.folder(test_admin, "Handbook", version=v1)
        child = await seed.folder(test_admin, "Onboarding", parent=parent, version=v2)
        await lifecycle.delete_folder(caller, parent.id)
        await lifecycle.recover_all(caller, version_id=v2.id)

        first = await lifecycle.recover_all(caller, version_id=v1.id)
        second = await lifecycle.recover_all(caller, version_id=v2.id)

        assert (first.folders, second.folders) == (1, 1)
        assert (await lifecycle.folders.find_by_id(parent.id)).is_deleted is False
        assert (await lifecycle.folders.find_by_id(child.id)).is_deleted is False

    async def test_empty_trash_keeps_folder_holding_active_content(
        self, lifecycle, seed, test_admin, as_caller
    ):
        """A trashed folder with an active child folder or note is not purged."""
        caller = as_caller(test_admin)
        with_child = await seed.folder(test_admin, "Archive")
        active_child = await seed.folder(test_admin, "Current", parent=with_child)
        with_note = await seed.folder(test_admin, "Drafts")
        active_note = await seed.note(test_admin, "Still here", folder=with_note)
        empty = await seed.folder(test_admin, "Empty")
        now = datetime.utcnow()
        for folder in (with_child, with_note, empty):
            assert await lifecycle.folders.soft_delete(folder.id, now)

        result = await lifecycle.empty_trash(caller)

        assert result.folders == 1
        assert await lifecycle.folders.find_by_id(empty.id) is None
        assert (await lifecycle.folders.find_by_id(with_child.id)).is_deleted is True
        assert (await lifecycle.folders.find_by_id(active_child.id)).is_deleted is False
        assert (await lifecycle.folders.find_by_id(with_note.id)).is_deleted is True
        stored = await lifecycle.notes.find_by_id(active_note.id)
        assert stored.is_deleted is False
        assert stored.folder_id == with_note.id

    async def test_failed_category_is_reported(self, lifecycle, seed, test_user, as_caller, monkeypatch):
        """A failing category rolls back alone and is listed in `failed`."""
        from sqlalchemy.exc import OperationalError

        caller = as_caller(test_user)
        note = await seed.note(test_user, "Groceries")
        await lifecycle.move_note_to_trash(caller, note.id)

        async def broken(*args, **kwargs):
            raise OperationalError("DELETE FROM folders", {}, Exception("disk I/O error"))

        monkeypatch.setattr(lifecycle.folders, "purge_trashed", broken)
        result = await lifecycle.empty_trash(caller)

        assert result.failed == ["folders"]
        assert result.notes == 1
        assert "partially" in result.message


@pytest.mark.asyncio
class TestPermanentDelete:
    """Tests for the admin hard delete."""

    async def test_admin_deletes_note_permanently(self, lifecycle, seed, test_admin, as_caller):
        note = await seed.note(test_admin, "Doomed")

        result = await lifecycle.delete_note(as_caller(test_admin), note.id)

        assert result.hard_deleted is True
        assert await lifecycle.notes.find_by_id(note.id) is None

    async def test_manager_cannot_delete_note(self, lifecycle, seed, test_admin, test_manager, as_caller):
        note = await seed.note(test_admin, "Doomed")

        with pytest.raises(PermissionDenied):
            await lifecycle.delete_note(as_caller(test_manager), note.id)


@pytest.mark.asyncio
class TestVersionedTrashScenario:
    """Trash, recover and purge within one community version."""

    async def test_scenario(
        self, lifecycle, db_session, capabilities, permissions, seed, test_user, test_admin, as_caller
    ):
        content = ContentService(db_session, capabilities, permissions)
        v1 = await seed.version("v1.0")
        v2 = await seed.version("v2.0")
        f1 = await seed.folder(test_user, "F1", version=v1)
        n1 = await seed.note(test_user, "N1", folder=f1, version=v1)
        other = await seed.note(test_admin, "N2", version=v2)
        admin = as_caller(test_admin)

        # The user's unfiltered listing holds no V2 notes
        listed = await content.list_notes(as_caller(test_user))
        assert [n.id for n in listed] == [n1.id]
        assert [n.id for n in await content.list_notes(admin, version_id=v1.id)] == [n1.id]

        await lifecycle.delete_folder(admin, f1.id)
        assert (await lifecycle.notes.find_by_id(n1.id)).is_deleted is True

        await lifecycle.recover_folder(admin, f1.id)
        assert (await lifecycle.notes.find_by_id(n1.id)).is_deleted is True

        await lifecycle.delete_folder(admin, f1.id)
        await lifecycle.move_note_to_trash(admin, other.id)
        result = await lifecycle.empty_trash(admin, version_id=v1.id)

        assert (result.notes, result.folders) == (1, 1)
        assert await lifecycle.get_trash_notes(admin, v1.id) == []
        assert [n.id for n in await lifecycle.get_trash_notes(admin, v2.id)] == [other.id]
