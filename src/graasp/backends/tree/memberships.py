# standard library
import uuid

from dataclasses import dataclass, field

# typing
from typing import Optional

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import (
    CannotDeleteOnlyAdmin,
    CannotModifyGuestItemMembership,
    GuestMembershipOutsideScope,
    InvalidMembership,
    InvalidPermissionLevel,
    ItemMembershipNotFound,
    MemberNotFound,
    ModifyExistingMembership,
)

# relative
from . import item_path as paths
from .models import Account, Item, ItemMembership, PermissionLevel, now
from .permissions import get_authorized_item, get_inherited, in_guest_scope
from .storage import StorageSession


def new_membership(
    account_id: str, path: str, permission: PermissionLevel, creator_id: str
) -> ItemMembership:
    timestamp = now()
    return ItemMembership(
        id=str(uuid.uuid4()),
        accountId=account_id,
        itemPath=path,
        permission=permission,
        creatorId=creator_id,
        createdAt=timestamp,
        updatedAt=timestamp,
    )


async def get_account(session: StorageSession, account_id: str) -> Account:
    account = await session.get_account(account_id)
    if not account:
        raise MemberNotFound(account_id=account_id)
    return account


async def get_membership(session: StorageSession, membership_id: str) -> ItemMembership:
    membership = await session.get_membership(membership_id)
    if not membership:
        raise ItemMembershipNotFound(membership_id=membership_id)
    return membership


async def delete_redundant_below(
    session: StorageSession,
    account_id: str,
    path: str,
    permission: PermissionLevel,
    context: Context,
):
    """
    Delete the memberships of the account below `path` that do not improve on `permission`.
    """
    below = await session.get_memberships(account_id=account_id, descendants_of=path)
    redundant = [m for m in below if permission.gte(m.permission)]
    if redundant:
        await context.info(
            f"Delete {len(redundant)} redundant membership(s) below",
            data={"ids": [m.id for m in redundant]},
        )
        await session.delete_memberships(m.id for m in redundant)


async def create_membership(
    session: StorageSession,
    actor: Account,
    item_id: str,
    account_id: str,
    permission: PermissionLevel,
    context: Context,
) -> ItemMembership:
    """
    Grant a permission to an account on an item.

    Parameters:
        session: storage session
        actor: account granting the permission, it needs to be admin of the item
        item_id: target item
        account_id: account receiving the permission
        permission: permission granted
        context: current context

    Return:
        The new membership.

    Raise:
        ModifyExistingMembership: the account already has a membership on the item, it should be updated instead.
        InvalidMembership: the account already inherits this permission (or a better one).
        GuestMembershipOutsideScope: the account is a guest and the item is outside its login root.
    """
    async with context.start(
        action="create_membership",
        with_attributes={"itemId": item_id, "accountId": account_id},
    ) as ctx:
        item = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.ADMIN,
            context=ctx,
        )
        account = await get_account(session=session, account_id=account_id)
        if not in_guest_scope(account, item.path):
            raise GuestMembershipOutsideScope(item_id=item.id)

        existing = await session.get_memberships(
            account_id=account_id, item_path=item.path
        )
        if existing:
            raise ModifyExistingMembership(membership_id=existing[0].id)

        inherited = await get_inherited(
            session=session, account_id=account_id, path=item.path
        )
        if inherited and inherited.permission.gte(permission):
            raise InvalidMembership(
                item_id=item.id, account_id=account_id, permission=permission.value
            )

        await delete_redundant_below(
            session=session,
            account_id=account_id,
            path=item.path,
            permission=permission,
            context=ctx,
        )
        membership = new_membership(
            account_id=account_id,
            path=item.path,
            permission=permission,
            creator_id=actor.id,
        )
        await session.insert_memberships([membership])
        await ctx.info("Membership created", data=membership)
        return membership


async def update_membership(
    session: StorageSession,
    actor: Account,
    membership_id: str,
    permission: PermissionLevel,
    context: Context,
) -> Optional[ItemMembership]:
    """
    Change the permission of a membership.

    If the new permission equals the one inherited from the ancestors the membership is redundant: it is deleted
    and `None` is returned.

    Raise:
        InvalidPermissionLevel: the new permission is lower than the inherited one.
        CannotModifyGuestItemMembership: the membership belongs to a guest.
    """
    async with context.start(
        action="update_membership", with_attributes={"membershipId": membership_id}
    ) as ctx:
        membership = await get_membership(session=session, membership_id=membership_id)
        await get_authorized_item(
            session=session,
            actor=actor,
            item_id=paths.child_id(membership.itemPath),
            permission=PermissionLevel.ADMIN,
            context=ctx,
        )
        account = await get_account(session=session, account_id=membership.accountId)
        if account.is_guest:
            raise CannotModifyGuestItemMembership(membership_id=membership_id)

        inherited = await get_inherited(
            session=session,
            account_id=membership.accountId,
            path=membership.itemPath,
            exclude_own=True,
        )
        if inherited and inherited.permission == permission:
            await ctx.info("Permission equals the inherited one: delete membership")
            await session.delete_memberships([membership.id])
            return None

        if inherited and not permission.gte(inherited.permission):
            raise InvalidPermissionLevel(membership_id=membership_id)

        await delete_redundant_below(
            session=session,
            account_id=membership.accountId,
            path=membership.itemPath,
            permission=permission,
            context=ctx,
        )
        updated = membership.copy(update={"permission": permission, "updatedAt": now()})
        await session.update_memberships([updated])
        return updated


async def delete_membership(
    session: StorageSession,
    actor: Account,
    membership_id: str,
    context: Context,
    purge_below: bool = False,
) -> ItemMembership:
    """
    Delete a membership.

    Parameters:
        session: storage session
        actor: account requesting the deletion, it needs to be admin of the item
        membership_id: ID of the membership
        context: current context
        purge_below: if `True`, also delete the memberships of the same account below the item

    Return:
        The deleted membership.

    Raise:
        CannotDeleteOnlyAdmin: no other admin membership would remain on the item.
    """
    async with context.start(
        action="delete_membership",
        with_attributes={"membershipId": membership_id, "purgeBelow": purge_below},
    ) as ctx:
        membership = await get_membership(session=session, membership_id=membership_id)
        item = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=paths.child_id(membership.itemPath),
            permission=PermissionLevel.ADMIN,
            context=ctx,
        )
        memberships = await session.get_memberships(ancestors_or_self_of=item.path)
        other_admins = [
            m
            for m in memberships
            if m.id != membership.id and m.permission == PermissionLevel.ADMIN
        ]
        if not other_admins:
            raise CannotDeleteOnlyAdmin(item_id=item.id)

        to_delete = [membership.id]
        if purge_below:
            below = await session.get_memberships(
                account_id=membership.accountId, descendants_of=membership.itemPath
            )
            to_delete += [m.id for m in below]
        await session.delete_memberships(to_delete)
        await ctx.info(f"{len(to_delete)} membership(s) deleted")
        return membership


async def get_memberships_for_item(
    session: StorageSession, actor: Account, item_id: str, context: Context
) -> list[ItemMembership]:
    """
    Return the memberships defined on the item and its ancestors, read permission required.
    """
    async with context.start(
        action="get_memberships_for_item", with_attributes={"itemId": item_id}
    ) as ctx:
        item = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.READ,
            context=ctx,
        )
        memberships = await session.get_memberships(ancestors_or_self_of=item.path)
        return sorted(memberships, key=lambda m: (paths.depth(m.itemPath), m.createdAt))


@dataclass(frozen=True)
class MoveHousekeeping:
    """
    Membership changes to apply when moving an item.
    """

    inserts: list[ItemMembership] = field(default_factory=list)
    """
    Memberships to create, their path is expressed after the move.
    """
    deletes: list[str] = field(default_factory=list)
    """
    IDs of the memberships to delete, before the move.
    """


async def move_housekeeping(
    session: StorageSession,
    item: Item,
    actor: Account,
    new_parent: Optional[Item],
) -> MoveHousekeeping:
    """
    Compute the membership changes to apply when moving `item` below `new_parent` (`None` for the root):

    *  accounts that inherited a permission on the item from its current ancestors keep it, through a new
    membership at the moved item, when the destination grants them less;
    *  memberships within the moved subtree that do not improve on what the account inherits from above at
    the destination are deleted.

    It needs to be computed before the path rewrite of the subtree.
    """
    new_path = paths.rebase_path(
        item.path, item.path, new_parent.path if new_parent else None
    )
    in_tree = await session.get_memberships(descendants_of=item.path)
    own = await session.get_memberships(item_path=item.path)
    parent = paths.parent_path(item.path)
    above = await session.get_memberships(ancestors_or_self_of=parent) if parent else []
    account_ids = sorted({m.accountId for m in [*above, *own, *in_tree]})

    inserts: list[ItemMembership] = []
    deletes: list[str] = []
    for account_id in account_ids:
        at_destination = (
            await get_inherited(session=session, account_id=account_id, path=new_parent.path)
            if new_parent
            else None
        )
        effective = at_destination.permission if at_destination else None
        own_membership = next((m for m in own if m.accountId == account_id), None)
        if own_membership:
            if effective and effective.gte(own_membership.permission):
                deletes.append(own_membership.id)
            else:
                effective = own_membership.permission
        elif parent:
            at_origin = await get_inherited(
                session=session, account_id=account_id, path=parent
            )
            if at_origin and not (effective and effective.gte(at_origin.permission)):
                inserts.append(
                    new_membership(
                        account_id=account_id,
                        path=new_path,
                        permission=at_origin.permission,
                        creator_id=actor.id,
                    )
                )
                effective = at_origin.permission

        kept: dict[str, PermissionLevel] = {}
        descendants = sorted(
            (m for m in in_tree if m.accountId == account_id),
            key=lambda m: paths.depth(m.itemPath),
        )
        for membership in descendants:
            ancestors = [p for p in kept if paths.is_ancestor_of(p, membership.itemPath)]
            closest = max(ancestors, key=paths.depth) if ancestors else None
            inherited = kept[closest] if closest else effective
            if inherited and inherited.gte(membership.permission):
                deletes.append(membership.id)
            else:
                kept[membership.itemPath] = membership.permission

    return MoveHousekeeping(inserts=inserts, deletes=deletes)
