"""
Resolution of the effective permission of an account on an item.

The effective permission is given by the membership of the account attached to the *deepest* ancestor-or-self
of the item: a deeper membership overrides the ones defined above it, whether it grants more or less.
"""

# typing
from typing import Optional

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import (
    DataIntegrityViolation,
    ItemNotFound,
    MemberCannotAccess,
    MemberCannotAdminItem,
    MemberCannotReadItem,
    MemberCannotWriteItem,
)

# relative
from . import item_path as paths
from .models import Account, Item, ItemMembership, PermissionLevel
from .storage import StorageSession

insufficient_permission_errors = {
    PermissionLevel.READ: MemberCannotReadItem,
    PermissionLevel.WRITE: MemberCannotWriteItem,
    PermissionLevel.ADMIN: MemberCannotAdminItem,
}


async def get_inherited(
    session: StorageSession,
    account_id: str,
    path: str,
    exclude_own: bool = False,
) -> Optional[ItemMembership]:
    """
    Return the membership defining the permission of an account at a given path.

    Parameters:
        session: storage session
        account_id: ID of the account
        path: path of the item
        exclude_own: if `True`, the membership defined exactly at `path` is ignored (permission inherited from the
            ancestors only)

    Return:
        The membership with the longest path among the account's memberships at `path` or above it,
        `None` if there is none.

    Raise:
        DataIntegrityViolation: two memberships of the account are defined at the same deepest path.
    """
    memberships = await session.get_memberships(
        account_id=account_id, ancestors_or_self_of=path
    )
    if exclude_own:
        memberships = [m for m in memberships if m.itemPath != path]
    if not memberships:
        return None

    deepest = max(paths.depth(m.itemPath) for m in memberships)
    candidates = [m for m in memberships if paths.depth(m.itemPath) == deepest]
    if len(candidates) > 1:
        raise DataIntegrityViolation(
            context=f"Account '{account_id}' has {len(candidates)} memberships at '{candidates[0].itemPath}'"
        )
    return candidates[0]


def in_guest_scope(actor: Account, path: str) -> bool:
    """
    Return `False` if the actor is a guest and the path is outside its login-root subtree.
    """
    if not actor.is_guest:
        return True
    return bool(actor.itemLoginRootPath) and paths.is_ancestor_or_self(
        actor.itemLoginRootPath, path
    )


async def get_permission(
    session: StorageSession, account_id: str, item_id: str
) -> Optional[PermissionLevel]:
    """
    Return the effective permission of an account on an item.

    Parameters:
        session: storage session
        account_id: ID of the account, an unknown account has no access
        item_id: ID of the item

    Return:
        The permission level, `None` for 'no access'.

    Raise:
        ItemNotFound: the item does not exist.
    """
    item = await session.get_item(item_id)
    if not item:
        raise ItemNotFound(item_id=item_id)
    account = await session.get_account(account_id)
    if not account or not in_guest_scope(account, item.path):
        return None
    membership = await get_inherited(session=session, account_id=account_id, path=item.path)
    return membership.permission if membership else None


async def validate_permission(
    session: StorageSession,
    actor: Account,
    item: Item,
    permission: PermissionLevel,
    context: Context,
) -> ItemMembership:
    """
    Ensure that the actor holds at least `permission` on the item.

    Parameters:
        session: storage session
        actor: the account requesting the operation
        item: the target item
        permission: minimum required permission
        context: current context

    Return:
        The membership granting the permission.

    Raise:
        MemberCannotAccess: the actor has no access at all.
        MemberCannotReadItem | MemberCannotWriteItem | MemberCannotAdminItem: the actor's permission is
            insufficient.
    """
    membership = (
        await get_inherited(session=session, account_id=actor.id, path=item.path)
        if in_guest_scope(actor, item.path)
        else None
    )
    if not membership:
        await context.info(
            "No access", data={"itemId": item.id, "accountId": actor.id}
        )
        raise MemberCannotAccess(item_id=item.id)

    if not membership.permission.gte(permission):
        await context.info(
            "Insufficient permission",
            data={
                "itemId": item.id,
                "accountId": actor.id,
                "required": permission.value,
                "actual": membership.permission.value,
            },
        )
        raise insufficient_permission_errors[permission](item_id=item.id)

    return membership


async def validate_permission_many(
    session: StorageSession,
    actor: Account,
    items: list[Item],
    permission: PermissionLevel,
    context: Context,
) -> list[ItemMembership]:
    """
    Validate the permission on all the items, the first failure is raised.
    """
    return [
        await validate_permission(
            session=session,
            actor=actor,
            item=item,
            permission=permission,
            context=context,
        )
        for item in items
    ]


async def get_item(session: StorageSession, item_id: str) -> Item:
    """
    Return an active (non recycled) item.

    Raise:
        ItemNotFound: the item does not exist or is recycled.
    """
    item = await session.get_item(item_id)
    if not item or item.recycled:
        raise ItemNotFound(item_id=item_id)
    return item


async def get_authorized_item(
    session: StorageSession,
    actor: Account,
    item_id: str,
    permission: PermissionLevel,
    context: Context,
) -> Item:
    """
    Fetch an active item and validate the actor's permission on it.
    """
    item = await get_item(session=session, item_id=item_id)
    await validate_permission(
        session=session,
        actor=actor,
        item=item,
        permission=permission,
        context=context,
    )
    return item
