# standard library
import datetime

# third parties
import pytest

# Graasp backends
from graasp.backends.tree import Limits, LocalStorage
from graasp.backends.tree.hierarchy import (
    get_item,
    purge_expired,
    purge_items,
    recycle_items,
    restore_items,
)
from graasp.backends.tree.models import AccountType, PermissionLevel, now

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import (
    ItemNotFound,
    ItemNotRecycled,
    MemberCannotAdminItem,
    TooManyDescendants,
)

# relative
from .helpers import add_account, add_item, add_tree, fetch, grant, memberships_of


@pytest.mark.asyncio
class TestRecycle:
    async def test_recycle_subtree(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        folder = await add_item(storage, owner, "folder", context, parent=root)
        nested = await add_item(storage, owner, "nested", context, parent=folder)

        async with storage.transaction() as session:
            [recycled] = await recycle_items(session, owner, [folder.id], Limits(), context)
            assert recycled.recycled
            assert (await session.get_item(nested.id)).recycled
            assert await session.get_children(root.path) == []
            [row] = await session.get_recycled()
            assert row.itemPath == folder.path
            with pytest.raises(ItemNotFound):
                await get_item(session, owner, folder.id, context)

            # already recycled: no-op
            [again] = await recycle_items(session, owner, [folder.id], Limits(), context)
            assert again.deletedAt == recycled.deletedAt
            assert len(await session.get_recycled()) == 1

    async def test_recycle_rejected(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        writer = await add_account(storage, "writer")
        chain = await add_tree(storage, owner, 3, context)
        await grant(storage, writer, chain[0], PermissionLevel.WRITE)

        async with storage.transaction() as session:
            with pytest.raises(MemberCannotAdminItem):
                await recycle_items(session, writer, [chain[1].id], Limits(), context)
            with pytest.raises(TooManyDescendants):
                await recycle_items(
                    session,
                    owner,
                    [chain[0].id],
                    Limits(max_descendants_for_delete=1),
                    context,
                )
        assert not (await fetch(storage, chain[0].id)).recycled


@pytest.mark.asyncio
class TestRestore:
    async def test_restore(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        folder = await add_item(storage, owner, "folder", context, parent=root)
        kept_in_bin = await add_item(storage, owner, "kept-in-bin", context, parent=folder)
        restored_child = await add_item(storage, owner, "child", context, parent=folder)

        async with storage.transaction() as session:
            await recycle_items(session, owner, [kept_in_bin.id], Limits(), context)
            await recycle_items(session, owner, [folder.id], Limits(), context)
            [restored] = await restore_items(session, owner, [folder.id], Limits(), context)
            rows = await session.get_recycled()

        assert not restored.recycled
        assert not (await fetch(storage, restored_child.id)).recycled
        # recycled on its own before its parent: stays in the bin
        assert (await fetch(storage, kept_in_bin.id)).recycled
        assert [row.itemPath for row in rows] == [kept_in_bin.path]

    async def test_not_recycled(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        chain = await add_tree(storage, owner, 2, context)

        async with storage.transaction() as session:
            with pytest.raises(ItemNotRecycled):
                await restore_items(session, owner, [chain[0].id], Limits(), context)
            await recycle_items(session, owner, [chain[0].id], Limits(), context)
            # recycled along with its parent: not the root of a recycled subtree
            with pytest.raises(ItemNotRecycled):
                await restore_items(session, owner, [chain[1].id], Limits(), context)

    async def test_restore_below_recycled_parent(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        parent = await add_item(storage, owner, "parent", context)
        child = await add_item(storage, owner, "child", context, parent=parent)

        async with storage.transaction() as session:
            await recycle_items(session, owner, [child.id], Limits(), context)
            await recycle_items(session, owner, [parent.id], Limits(), context)
            with pytest.raises(ItemNotFound):
                await restore_items(session, owner, [child.id], Limits(), context)
            assert (await session.get_item(child.id)).recycled
            with pytest.raises(ItemNotFound):
                await get_item(session, owner, child.id, context)

            await restore_items(session, owner, [parent.id], Limits(), context)
            [restored] = await restore_items(
                session, owner, [child.id], Limits(), context
            )
            assert not restored.recycled


@pytest.mark.asyncio
class TestPurge:
    async def test_purge(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        root = await add_item(storage, owner, "root", context)
        folder = await add_item(storage, owner, "folder", context, parent=root)
        nested = await add_item(storage, owner, "nested", context, parent=folder)
        await grant(storage, alice, nested, PermissionLevel.READ)

        async with storage.transaction() as session:
            with pytest.raises(ItemNotRecycled):
                await purge_items(session, owner, [folder.id], Limits(), context)
            await recycle_items(session, owner, [folder.id], Limits(), context)
            response = await purge_items(session, owner, [folder.id], Limits(), context)
            assert await session.get_recycled() == []

        assert response.itemsCount == 2
        assert sorted(response.items) == sorted([folder.id, nested.id])
        assert await fetch(storage, folder.id) is None
        assert await fetch(storage, nested.id) is None
        assert await fetch(storage, root.id) is not None
        assert await memberships_of(storage, alice) == []

    async def test_purge_deletes_scoped_guests(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        shared = await add_item(storage, owner, "shared", context, parent=root)
        guest = await add_account(
            storage, "guest", account_type=AccountType.GUEST, login_root=shared
        )
        await grant(storage, guest, shared, PermissionLevel.READ)
        outsider = await add_account(
            storage, "outsider", account_type=AccountType.GUEST, login_root=root
        )

        async with storage.transaction() as session:
            await recycle_items(session, owner, [shared.id], Limits(), context)
            await purge_items(session, owner, [shared.id], Limits(), context)
            assert await session.get_account(guest.id) is None
            assert await session.get_account(outsider.id) is not None

        assert await memberships_of(storage, guest) == []

    async def test_purge_requires_admin(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        writer = await add_account(storage, "writer")
        root = await add_item(storage, owner, "root", context)
        await grant(storage, writer, root, PermissionLevel.WRITE)

        async with storage.transaction() as session:
            await recycle_items(session, owner, [root.id], Limits(), context)
            with pytest.raises(MemberCannotAdminItem):
                await purge_items(session, writer, [root.id], Limits(), context)

    async def test_purge_expired(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        old = await add_item(storage, owner, "old", context)
        active = await add_item(storage, owner, "active", context)

        async with storage.transaction() as session:
            await recycle_items(session, owner, [old.id], Limits(), context)
            # within the grace period
            assert (await purge_expired(session, Limits(), context)).itemsCount == 0
            response = await purge_expired(
                session,
                Limits(),
                context,
                older_than=now() + datetime.timedelta(seconds=1),
            )

        assert response.items == [old.id]
        assert await fetch(storage, old.id) is None
        assert await fetch(storage, active.id) is not None
