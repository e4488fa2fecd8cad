# third parties
import pytest

# Graasp backends
from graasp.backends.tree import Limits, LocalStorage
from graasp.backends.tree.hierarchy import move_item, move_items, recycle_items
from graasp.backends.tree.models import AccountType, PermissionLevel
from graasp.backends.tree.permissions import get_permission

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import (
    HierarchyTooDeep,
    InvalidMoveTarget,
    MemberCannotAdminItem,
    TooManyChildren,
    TooManyDescendants,
)

# relative
from .helpers import add_account, add_item, add_tree, fetch, grant, memberships_of


@pytest.mark.asyncio
class TestMove:
    async def test_move_subtree(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        origin = await add_item(storage, owner, "origin", context)
        destination = await add_item(storage, owner, "destination", context)
        await add_item(storage, owner, "sibling", context, parent=destination)
        moved = await add_item(storage, owner, "moved", context, parent=origin)
        nested = await add_item(storage, owner, "nested", context, parent=moved)

        async with storage.transaction() as session:
            result = await move_item(
                session, owner, moved.id, destination.id, Limits(), context
            )

        assert result.parentId == destination.id
        # placed last among the new siblings
        assert result.order == 40
        nested = await fetch(storage, nested.id)
        assert nested.parentId == moved.id
        assert nested.path == f"{result.path}.{nested.path.split('.')[-1]}"
        async with storage.transaction() as session:
            assert await session.get_children(origin.path) == []

    async def test_move_to_root(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        origin = await add_item(storage, owner, "origin", context)
        moved = await add_item(storage, owner, "moved", context, parent=origin)
        await grant(storage, alice, origin, PermissionLevel.READ)

        async with storage.transaction() as session:
            result = await move_item(session, owner, moved.id, None, Limits(), context)

        assert result.parentId is None
        assert result.order is None
        assert result.depth == 1
        # accounts keep what they had from the former ancestors
        assert sorted(
            (m.itemPath, m.permission) for m in await memberships_of(storage, alice)
        ) == sorted([(origin.path, PermissionLevel.READ), (result.path, PermissionLevel.READ)])
        assert {
            m.itemPath: m.permission for m in await memberships_of(storage, owner)
        }[result.path] == PermissionLevel.ADMIN

    async def test_invalid_targets(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        chain = await add_tree(storage, owner, 3, context)

        async with storage.transaction() as session:
            with pytest.raises(InvalidMoveTarget):
                await move_item(session, owner, chain[0].id, chain[0].id, Limits(), context)
            with pytest.raises(InvalidMoveTarget):
                await move_item(session, owner, chain[0].id, chain[2].id, Limits(), context)
            with pytest.raises(InvalidMoveTarget):
                await move_item(session, owner, chain[2].id, chain[1].id, Limits(), context)
            with pytest.raises(InvalidMoveTarget):
                await move_item(session, owner, chain[0].id, None, Limits(), context)

    async def test_admin_required(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        writer = await add_account(storage, "writer")
        origin = await add_item(storage, owner, "origin", context)
        destination = await add_item(storage, owner, "destination", context)
        moved = await add_item(storage, owner, "moved", context, parent=origin)
        await grant(storage, writer, origin, PermissionLevel.WRITE)
        await grant(storage, writer, destination, PermissionLevel.WRITE)

        async with storage.transaction() as session:
            with pytest.raises(MemberCannotAdminItem):
                await move_item(
                    session, writer, moved.id, destination.id, Limits(), context
                )

    async def test_limits(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        chain = await add_tree(storage, owner, 3, context)
        destination = await add_tree(storage, owner, 2, context)

        async with storage.transaction() as session:
            # destination at depth 2, plus 3 levels > 4
            with pytest.raises(HierarchyTooDeep):
                await move_item(
                    session,
                    owner,
                    chain[0].id,
                    destination[1].id,
                    Limits(max_tree_levels=4),
                    context,
                )
            with pytest.raises(TooManyDescendants):
                await move_item(
                    session,
                    owner,
                    chain[0].id,
                    destination[1].id,
                    Limits(max_descendants_for_move=1),
                    context,
                )
            with pytest.raises(TooManyChildren):
                await move_item(
                    session,
                    owner,
                    chain[0].id,
                    destination[0].id,
                    Limits(max_number_of_children=1),
                    context,
                )
            moved = await move_item(
                session,
                owner,
                chain[0].id,
                destination[1].id,
                Limits(max_tree_levels=5),
                context,
            )
            assert moved.depth == 3

    async def test_rejected_move_leaves_tree_unchanged(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        first = await add_item(storage, owner, "first", context)
        second = await add_item(storage, owner, "second", context)
        destination = await add_item(storage, owner, "destination", context)
        before = await fetch(storage, first.id)

        with pytest.raises(InvalidMoveTarget):
            async with storage.transaction() as session:
                await move_items(
                    session,
                    owner,
                    [first.id, destination.id],
                    destination.id,
                    Limits(),
                    context,
                )
        assert await fetch(storage, first.id) == before
        assert (await fetch(storage, second.id)).path == second.path

    async def test_recycled_descendants_are_moved(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        origin = await add_item(storage, owner, "origin", context)
        destination = await add_item(storage, owner, "destination", context)
        moved = await add_item(storage, owner, "moved", context, parent=origin)
        trashed = await add_item(storage, owner, "trashed", context, parent=moved)
        async with storage.transaction() as session:
            await recycle_items(session, owner, [trashed.id], Limits(), context)
            result = await move_item(
                session, owner, moved.id, destination.id, Limits(), context
            )
            trashed = await session.get_item(trashed.id)
            [row] = await session.get_recycled()

        assert trashed.recycled
        assert trashed.parentId == result.id
        assert row.itemPath == trashed.path

    async def test_guests_follow_their_login_root(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        origin = await add_item(storage, owner, "origin", context)
        destination = await add_item(storage, owner, "destination", context)
        shared = await add_item(storage, owner, "shared", context, parent=origin)
        guest = await add_account(
            storage, "guest", account_type=AccountType.GUEST, login_root=shared
        )
        await grant(storage, guest, shared, PermissionLevel.READ)

        async with storage.transaction() as session:
            moved = await move_item(
                session, owner, shared.id, destination.id, Limits(), context
            )
            assert (
                await get_permission(session, guest.id, shared.id)
                == PermissionLevel.READ
            )
            assert (await session.get_account(guest.id)).itemLoginRootPath == moved.path

            # moving an ancestor of the login root
            await move_item(session, owner, destination.id, origin.id, Limits(), context)
            moved = await session.get_item(shared.id)
            assert (await session.get_account(guest.id)).itemLoginRootPath == moved.path
            assert (
                await get_permission(session, guest.id, shared.id)
                == PermissionLevel.READ
            )
