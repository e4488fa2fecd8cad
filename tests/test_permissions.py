# third parties
import pytest

# Graasp backends
from graasp.backends.tree import LocalStorage
from graasp.backends.tree.models import AccountType, PermissionLevel
from graasp.backends.tree.permissions import (
    get_authorized_item,
    get_inherited,
    get_permission,
    validate_permission,
    validate_permission_many,
)

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import (
    DataIntegrityViolation,
    Forbidden,
    ItemNotFound,
    MemberCannotAccess,
    MemberCannotAdminItem,
    MemberCannotWriteItem,
)

# relative
from .helpers import add_account, add_item, add_tree, grant


@pytest.mark.asyncio
class TestPermissionResolution:
    async def test_scenario_override_below(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        root = await add_item(storage, owner, "root", context)
        a = await add_item(storage, owner, "a", context, parent=root)
        b = await add_item(storage, owner, "b", context, parent=root)
        a_child = await add_item(storage, owner, "a-child", context, parent=a)
        await grant(storage, alice, root, PermissionLevel.WRITE)
        await grant(storage, alice, a, PermissionLevel.READ)

        async with storage.transaction() as session:
            assert await get_permission(session, alice.id, root.id) == PermissionLevel.WRITE
            assert await get_permission(session, alice.id, b.id) == PermissionLevel.WRITE
            assert await get_permission(session, alice.id, a.id) == PermissionLevel.READ
            assert await get_permission(session, alice.id, a_child.id) == PermissionLevel.READ

    async def test_monotonicity(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        chain = await add_tree(storage, owner, 6, context)
        await grant(storage, alice, chain[1], PermissionLevel.WRITE)

        async with storage.transaction() as session:
            assert await get_permission(session, alice.id, chain[0].id) is None
            for item in chain[1:]:
                permission = await get_permission(session, alice.id, item.id)
                assert permission.gte(PermissionLevel.WRITE)

    async def test_deepest_membership_wins(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        chain = await add_tree(storage, owner, 4, context)
        await grant(storage, alice, chain[0], PermissionLevel.READ)
        deep = await grant(storage, alice, chain[2], PermissionLevel.ADMIN)

        async with storage.transaction() as session:
            inherited = await get_inherited(session, alice.id, chain[3].path)
            assert inherited.id == deep.id
            above = await get_inherited(session, alice.id, chain[2].path, exclude_own=True)
            assert above.permission == PermissionLevel.READ

    async def test_no_access(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)

        async with storage.transaction() as session:
            assert await get_permission(session, "unknown-account", root.id) is None
            with pytest.raises(ItemNotFound):
                await get_permission(session, owner.id, "unknown-item")

    async def test_duplicated_membership(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        root = await add_item(storage, owner, "root", context)
        await grant(storage, alice, root, PermissionLevel.READ)
        await grant(storage, alice, root, PermissionLevel.WRITE)

        async with storage.transaction() as session:
            with pytest.raises(DataIntegrityViolation) as e:
                await get_permission(session, alice.id, root.id)
        assert e.value.status_code == 500

    async def test_guest_scoped_to_login_root(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        space = await add_item(storage, owner, "space", context, parent=root)
        other = await add_item(storage, owner, "other", context, parent=root)
        guest = await add_account(
            storage, "guest", account_type=AccountType.GUEST, login_root=space
        )
        # a membership outside of the login root does not give access
        await grant(storage, guest, root, PermissionLevel.READ)

        async with storage.transaction() as session:
            assert await get_permission(session, guest.id, space.id) == PermissionLevel.READ
            assert await get_permission(session, guest.id, other.id) is None
            assert await get_permission(session, guest.id, root.id) is None
            with pytest.raises(MemberCannotAccess):
                await validate_permission(
                    session, guest, other, PermissionLevel.READ, context
                )


@pytest.mark.asyncio
class TestValidatePermission:
    async def test_errors(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        reader = await add_account(storage, "reader")
        writer = await add_account(storage, "writer")
        stranger = await add_account(storage, "stranger")
        root = await add_item(storage, owner, "root", context)
        await grant(storage, reader, root, PermissionLevel.READ)
        await grant(storage, writer, root, PermissionLevel.WRITE)

        async with storage.transaction() as session:
            with pytest.raises(MemberCannotAccess):
                await validate_permission(
                    session, stranger, root, PermissionLevel.READ, context
                )
            with pytest.raises(MemberCannotWriteItem):
                await validate_permission(
                    session, reader, root, PermissionLevel.WRITE, context
                )
            with pytest.raises(MemberCannotAdminItem) as e:
                await validate_permission(
                    session, writer, root, PermissionLevel.ADMIN, context
                )
            assert isinstance(e.value, Forbidden)
            assert e.value.status_code == 403
            membership = await validate_permission(
                session, owner, root, PermissionLevel.ADMIN, context
            )
            assert membership.permission == PermissionLevel.ADMIN

    async def test_many_fails_on_first_error(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        alice = await add_account(storage, "alice")
        first = await add_item(storage, owner, "first", context)
        second = await add_item(storage, owner, "second", context)
        await grant(storage, alice, first, PermissionLevel.ADMIN)

        async with storage.transaction() as session:
            with pytest.raises(MemberCannotAccess) as e:
                await validate_permission_many(
                    session, alice, [first, second], PermissionLevel.READ, context
                )
            assert e.value.item_id == second.id

    async def test_recycled_items_are_not_found(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        async with storage.transaction() as session:
            await session.update_items(
                [root.copy(update={"deletedAt": root.createdAt})]
            )
            with pytest.raises(ItemNotFound):
                await get_authorized_item(
                    session, owner, root.id, PermissionLevel.READ, context
                )

    async def test_read_is_implied(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        async with storage.transaction() as session:
            for permission in PermissionLevel:
                item = await get_authorized_item(
                    session, owner, root.id, permission, context
                )
                assert item.id == root.id


class TestPermissionLevel:
    def test_order(self):
        assert PermissionLevel.ADMIN.gte(PermissionLevel.WRITE)
        assert PermissionLevel.WRITE.gte(PermissionLevel.READ)
        assert not PermissionLevel.READ.gte(PermissionLevel.WRITE)
        assert PermissionLevel.highest(None, PermissionLevel.READ, PermissionLevel.ADMIN) == (
            PermissionLevel.ADMIN
        )
        assert PermissionLevel.highest(None) is None

