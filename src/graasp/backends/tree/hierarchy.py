"""
Mutations of the item tree: create, update, move, copy, recycle, restore, purge and reorder.

All the operations take an open storage session and run within the caller's transaction; they validate
permissions and limits for **every** target before the first write, so that a rejected request leaves the tree
unchanged.
"""

# standard library
import datetime
import re
import uuid

# typing
from typing import Optional

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import (
    CannotReorderRootItem,
    Forbidden,
    HierarchyTooDeep,
    ItemNotFolder,
    ItemNotFound,
    ItemNotRecycled,
    InvalidMoveTarget,
    TooManyChildren,
    TooManyDescendants,
)

# relative
from . import item_path as paths
from .configurations import Constants, Limits
from .memberships import move_housekeeping, new_membership
from .models import (
    Account,
    Item,
    ItemBody,
    PermissionLevel,
    PurgeResponse,
    RecycledItemData,
    UpdateItemBody,
    now,
)
from .ordering import fix_order_for_tree, first_order, last_order, next_order, rescale_order
from .permissions import get_authorized_item, get_inherited, validate_permission
from .storage import StorageSession

copy_suffix_regex = re.compile(r"\s\((\d+)\)$")


# Checks


def check_hierarchy_depth(depth: int, limits: Limits):
    """
    Raise `HierarchyTooDeep` if `depth` exceeds the maximum count of levels.
    """
    if depth > limits.max_tree_levels:
        raise HierarchyTooDeep(depth=depth, max_depth=limits.max_tree_levels)


async def check_number_of_children(
    session: StorageSession, parent: Item, added: int, limits: Limits
):
    children = await session.get_children(parent.path)
    count = len(children) + added
    if count > limits.max_number_of_children:
        raise TooManyChildren(
            parent_id=parent.id, count=count, max_count=limits.max_number_of_children
        )


async def check_number_of_descendants(
    session: StorageSession,
    item: Item,
    max_count: int,
    operation: str,
    recycled: Optional[bool] = False,
) -> list[Item]:
    """
    Raise `TooManyDescendants` if the item has more than `max_count` descendants.

    Return:
        The descendants.
    """
    descendants = await session.get_descendants(item.path, recycled=recycled)
    if len(descendants) > max_count:
        raise TooManyDescendants(
            operation=operation, count=len(descendants), max_count=max_count
        )
    return descendants


def check_is_folder(item: Item):
    if item.type != Constants.folder_type:
        raise ItemNotFolder(item_id=item.id)


def levels_of_subtree(item: Item, descendants: list[Item]) -> int:
    """
    Return the count of levels of the subtree of `item`, 1 if it has no descendants.
    """
    deepest = max((d.depth for d in descendants), default=item.depth)
    return deepest - item.depth + 1


async def get_destination(
    session: StorageSession,
    actor: Account,
    parent_id: Optional[str],
    context: Context,
) -> Optional[Item]:
    if parent_id is None:
        return None
    parent = await get_authorized_item(
        session=session,
        actor=actor,
        item_id=parent_id,
        permission=PermissionLevel.WRITE,
        context=context,
    )
    check_is_folder(parent)
    return parent


# Read


async def get_item(
    session: StorageSession, actor: Account, item_id: str, context: Context
) -> Item:
    async with context.start(action="get_item", with_attributes={"itemId": item_id}) as ctx:
        return await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.READ,
            context=ctx,
        )


async def get_items(
    session: StorageSession, actor: Account, item_ids: list[str], context: Context
) -> list[Item]:
    async with context.start(action="get_items") as ctx:
        return [
            await get_authorized_item(
                session=session,
                actor=actor,
                item_id=item_id,
                permission=PermissionLevel.READ,
                context=ctx,
            )
            for item_id in item_ids
        ]


async def get_children(
    session: StorageSession, actor: Account, item_id: str, context: Context
) -> list[Item]:
    """
    Return the active children of a folder, sorted by order.
    """
    async with context.start(
        action="get_children", with_attributes={"itemId": item_id}
    ) as ctx:
        parent = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.READ,
            context=ctx,
        )
        return await session.get_children(parent.path)


async def get_descendants(
    session: StorageSession, actor: Account, item_id: str, context: Context
) -> list[Item]:
    async with context.start(
        action="get_descendants", with_attributes={"itemId": item_id}
    ) as ctx:
        item = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.READ,
            context=ctx,
        )
        return await session.get_descendants(item.path)


# Create


async def create_items(
    session: StorageSession,
    actor: Account,
    bodies: list[ItemBody],
    limits: Limits,
    context: Context,
) -> list[Item]:
    """
    Create items.

    For an item with a parent: the actor needs write permission on the parent, which needs to be a folder;
    the depth and the count of children are checked. An item without parent is a new root: the actor
    becomes its admin (guests can not create root items).

    Parameters:
        session: storage session
        actor: account creating the items
        bodies: description of the items to create
        limits: limits of the tree
        context: current context

    Return:
        The created items, in the order of `bodies`.

    Raise:
        ItemNotFolder: a parent is not a folder.
        HierarchyTooDeep: a new item would be deeper than the maximum count of levels.
        TooManyChildren: a parent would have too many children.
    """
    async with context.start(
        action="create_items", with_attributes={"accountId": actor.id}
    ) as ctx:
        parent_ids = list(dict.fromkeys(b.parentId for b in bodies if b.parentId))
        parents: dict[str, Item] = {}
        for parent_id in parent_ids:
            parent = await get_destination(
                session=session, actor=actor, parent_id=parent_id, context=ctx
            )
            check_hierarchy_depth(depth=parent.depth + 1, limits=limits)
            await check_number_of_children(
                session=session,
                parent=parent,
                added=len([b for b in bodies if b.parentId == parent_id]),
                limits=limits,
            )
            parents[parent_id] = parent

        if actor.is_guest and any(b.parentId is None for b in bodies):
            await ctx.info("Guests can not create root items")
            raise Forbidden(item_id=None)

        created = []
        for body in bodies:
            parent = parents.get(body.parentId) if body.parentId else None
            item = await _insert_item(session=session, actor=actor, body=body, parent=parent)
            if parent:
                await rescale_order(session=session, parent=parent, context=ctx)
                item = await session.get_item(item.id)
            else:
                await session.insert_memberships(
                    [
                        new_membership(
                            account_id=actor.id,
                            path=item.path,
                            permission=PermissionLevel.ADMIN,
                            creator_id=actor.id,
                        )
                    ]
                )
            created.append(item)

        await ctx.info(
            f"{len(created)} item(s) created", data={"ids": [i.id for i in created]}
        )
        return created


async def create_item(
    session: StorageSession,
    actor: Account,
    body: ItemBody,
    limits: Limits,
    context: Context,
) -> Item:
    """
    Create an item, see [create_items](@yw-nav-func:graasp.backends.tree.hierarchy.create_items).
    """
    items = await create_items(
        session=session, actor=actor, bodies=[body], limits=limits, context=context
    )
    return items[0]


async def _insert_item(
    session: StorageSession, actor: Account, body: ItemBody, parent: Optional[Item]
) -> Item:
    item_id = str(uuid.uuid4())
    order = None
    if parent:
        siblings = await session.get_children(parent.path)
        order = (
            next_order(siblings, body.previousItemId)
            if body.previousItemId
            else first_order(siblings)
        )
    timestamp = now()
    item = Item(
        id=item_id,
        name=body.name,
        type=body.type,
        path=paths.child_path(parent.path if parent else None, item_id),
        order=order,
        creatorId=actor.id,
        description=body.description,
        settings=body.settings,
        lang=body.lang,
        createdAt=timestamp,
        updatedAt=timestamp,
    )
    await session.insert_items([item])
    return item


# Update


async def update_item(
    session: StorageSession,
    actor: Account,
    item_id: str,
    body: UpdateItemBody,
    limits: Limits,
    context: Context,
) -> Item:
    """
    Update the name, description, settings (merged with the existing ones) or language of an item.
    Write permission is required.

    If `body.propagate` is set, the language is also applied to the whole subtree, which is bounded by
    `limits.max_descendants_for_update`.
    """
    async with context.start(
        action="update_item", with_attributes={"itemId": item_id}
    ) as ctx:
        item = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.WRITE,
            context=ctx,
        )
        descendants = []
        if body.lang and body.propagate:
            descendants = await check_number_of_descendants(
                session=session,
                item=item,
                max_count=limits.max_descendants_for_update,
                operation="update",
            )

        timestamp = now()
        changes = {
            k: v
            for k, v in {
                "name": body.name,
                "description": body.description,
                "lang": body.lang,
            }.items()
            if v is not None
        }
        if body.settings is not None:
            changes["settings"] = {**item.settings, **body.settings}
        updated = item.copy(update={**changes, "updatedAt": timestamp})
        await session.update_items(
            [
                updated,
                *[
                    d.copy(update={"lang": body.lang, "updatedAt": timestamp})
                    for d in descendants
                ],
            ]
        )
        await ctx.info(
            "Item updated",
            data={"changes": list(changes.keys()), "propagatedTo": len(descendants)},
        )
        return updated


# Move


async def move_items(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    parent_id: Optional[str],
    limits: Limits,
    context: Context,
) -> list[Item]:
    """
    Move items (with their subtree) below a folder, or to the root if `parent_id` is `None`.

    Admin permission is required on the moved items, write permission on the destination.
    Paths of the subtrees and of their memberships are rewritten; memberships are adjusted so that the accounts
    keep the permissions they had on the moved items (see
    [move_housekeeping](@yw-nav-func:graasp.backends.tree.memberships.move_housekeeping)).
    Moved items are placed last among their new siblings.

    Raise:
        InvalidMoveTarget: the destination is a moved item, one of its descendants or its current parent.
        TooManyDescendants: a moved item has too many descendants.
        HierarchyTooDeep: a moved subtree would exceed the maximum count of levels.
        TooManyChildren: the destination would have too many children.
    """
    async with context.start(
        action="move_items",
        with_attributes={"accountId": actor.id, "parentId": parent_id or ""},
    ) as ctx:
        parent = await get_destination(
            session=session, actor=actor, parent_id=parent_id, context=ctx
        )
        items = [
            await get_authorized_item(
                session=session,
                actor=actor,
                item_id=item_id,
                permission=PermissionLevel.ADMIN,
                context=ctx,
            )
            for item_id in item_ids
        ]
        for item in items:
            if parent and paths.is_ancestor_or_self(item.path, parent.path):
                raise InvalidMoveTarget(item_id=item.id, target_id=parent.id)
            if item.parentId == (parent.id if parent else None):
                raise InvalidMoveTarget(
                    item_id=item.id, target_id=parent.id if parent else None
                )
            descendants = await check_number_of_descendants(
                session=session,
                item=item,
                max_count=limits.max_descendants_for_move,
                operation="move",
            )
            base_depth = parent.depth if parent else 0
            check_hierarchy_depth(
                depth=base_depth + levels_of_subtree(item, descendants), limits=limits
            )
        if parent:
            await check_number_of_children(
                session=session, parent=parent, added=len(items), limits=limits
            )

        moved = []
        for item_id in item_ids:
            # a previous move of an ancestor may have changed the path
            item = await session.get_item(item_id)
            moved.append(
                await _move_item(session=session, actor=actor, item=item, parent=parent)
            )
        if parent:
            await rescale_order(session=session, parent=parent, context=ctx)
            moved = await session.get_items([item.id for item in moved])

        await ctx.info(f"{len(moved)} item(s) moved", data={"ids": item_ids})
        return moved


async def move_item(
    session: StorageSession,
    actor: Account,
    item_id: str,
    parent_id: Optional[str],
    limits: Limits,
    context: Context,
) -> Item:
    items = await move_items(
        session=session,
        actor=actor,
        item_ids=[item_id],
        parent_id=parent_id,
        limits=limits,
        context=context,
    )
    return items[0]


async def _move_item(
    session: StorageSession, actor: Account, item: Item, parent: Optional[Item]
) -> Item:
    housekeeping = await move_housekeeping(
        session=session, item=item, actor=actor, new_parent=parent
    )
    await session.delete_memberships(housekeeping.deletes)

    new_parent_path = parent.path if parent else None
    order = last_order(await session.get_children(parent.path)) if parent else None
    timestamp = now()

    subtree = await session.get_descendants(item.path, include_self=True, recycled=None)
    await session.update_items(
        [
            node.copy(
                update={
                    "path": paths.rebase_path(node.path, item.path, new_parent_path),
                    **({"order": order, "updatedAt": timestamp} if node.id == item.id else {}),
                }
            )
            for node in subtree
        ]
    )

    memberships = [
        *await session.get_memberships(item_path=item.path),
        *await session.get_memberships(descendants_of=item.path),
    ]
    await session.update_memberships(
        m.copy(
            update={"itemPath": paths.rebase_path(m.itemPath, item.path, new_parent_path)}
        )
        for m in memberships
    )

    recycled = [
        r
        for r in await session.get_recycled()
        if paths.is_ancestor_or_self(item.path, r.itemPath)
    ]
    if recycled:
        await session.delete_recycled(r.itemPath for r in recycled)
        await session.insert_recycled(
            r.copy(
                update={"itemPath": paths.rebase_path(r.itemPath, item.path, new_parent_path)}
            )
            for r in recycled
        )

    # guests follow their login root
    guests = await session.get_guests(login_root_in=item.path)
    await session.update_accounts(
        guest.copy(
            update={
                "itemLoginRootPath": paths.rebase_path(
                    guest.itemLoginRootPath, item.path, new_parent_path
                )
            }
        )
        for guest in guests
    )

    await session.insert_memberships(housekeeping.inserts)
    return await session.get_item(item.id)


# Copy


def increment_copy_suffix(name: str) -> str:
    match = copy_suffix_regex.search(name)
    if match:
        result = f"{name[: match.start(1)]}{int(match.group(1)) + 1})"
    else:
        result = name + Constants.copy_suffix
    if len(result) > Constants.max_item_name_length:
        suffix_start = result.rindex(" (")
        suffix = result[suffix_start:]
        result = result[: Constants.max_item_name_length - len(suffix)] + suffix
    return result


def add_copy_suffix(name: str, siblings_names: list[str]) -> str:
    """
    Return `name`, suffixed by ` (2)`, ` (3)`, *etc.* as long as a sibling has the same name.
    """
    names = list(siblings_names)
    result = name
    while result in names:
        names.remove(result)
        result = increment_copy_suffix(result)
    return result


async def copy_items(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    parent_id: Optional[str],
    limits: Limits,
    context: Context,
) -> list[Item]:
    """
    Copy items (with their active subtree) below a folder, or to the root if `parent_id` is `None`.

    Read permission is required on the copied items, write permission on the destination.
    Every copied node gets a new ID, the relative structure and orders are preserved; copies are placed last
    among their new siblings, their name is suffixed if a sibling has the same name.
    Memberships are not copied: the actor becomes admin of the copies if it does not inherit this permission
    at the destination.

    Raise:
        TooManyDescendants: a copied item has too many descendants.
        HierarchyTooDeep: a copied subtree would exceed the maximum count of levels.
        TooManyChildren: the destination would have too many children.
    """
    async with context.start(
        action="copy_items",
        with_attributes={"accountId": actor.id, "parentId": parent_id or ""},
    ) as ctx:
        parent = await get_destination(
            session=session, actor=actor, parent_id=parent_id, context=ctx
        )
        items = [
            await get_authorized_item(
                session=session,
                actor=actor,
                item_id=item_id,
                permission=PermissionLevel.READ,
                context=ctx,
            )
            for item_id in item_ids
        ]
        for item in items:
            descendants = await check_number_of_descendants(
                session=session,
                item=item,
                max_count=limits.max_descendants_for_copy,
                operation="copy",
            )
            base_depth = parent.depth if parent else 0
            check_hierarchy_depth(
                depth=base_depth + levels_of_subtree(item, descendants), limits=limits
            )
        if parent:
            await check_number_of_children(
                session=session, parent=parent, added=len(items), limits=limits
            )

        copies = []
        for item in items:
            await fix_order_for_tree(session=session, root=item, context=ctx)
            copies.append(
                await _copy_item(session=session, actor=actor, item=item, parent=parent)
            )
        await ctx.info(
            f"{len(copies)} item(s) copied",
            data={"ids": item_ids, "copies": [c.id for c in copies]},
        )
        return copies


async def copy_item(
    session: StorageSession,
    actor: Account,
    item_id: str,
    parent_id: Optional[str],
    limits: Limits,
    context: Context,
) -> Item:
    items = await copy_items(
        session=session,
        actor=actor,
        item_ids=[item_id],
        parent_id=parent_id,
        limits=limits,
        context=context,
    )
    return items[0]


async def _copy_item(
    session: StorageSession, actor: Account, item: Item, parent: Optional[Item]
) -> Item:
    siblings = await session.get_children(parent.path) if parent else []
    subtree = await session.get_descendants(item.path, include_self=True)
    timestamp = now()
    new_paths: dict[str, str] = {}
    copies: list[Item] = []
    # sorted by path: parents are processed before their children
    for node in subtree:
        new_id = str(uuid.uuid4())
        if node.id == item.id:
            new_path = paths.child_path(parent.path if parent else None, new_id)
            changes = {
                "name": add_copy_suffix(node.name, [s.name for s in siblings]),
                "order": last_order(siblings) if parent else None,
            }
        else:
            new_path = paths.child_path(new_paths[node.parentId], new_id)
            changes = {}
        new_paths[node.id] = new_path
        copies.append(
            node.copy(
                update={
                    "id": new_id,
                    "path": new_path,
                    "creatorId": actor.id,
                    "createdAt": timestamp,
                    "updatedAt": timestamp,
                    **changes,
                }
            )
        )
    await session.insert_items(copies)

    root_copy = copies[0]
    inherited = (
        await get_inherited(session=session, account_id=actor.id, path=parent.path)
        if parent
        else None
    )
    if not inherited or not inherited.permission.gte(PermissionLevel.ADMIN):
        await session.insert_memberships(
            [
                new_membership(
                    account_id=actor.id,
                    path=root_copy.path,
                    permission=PermissionLevel.ADMIN,
                    creator_id=actor.id,
                )
            ]
        )
    return root_copy


# Recycle, restore & purge


async def _get_existing_item(session: StorageSession, item_id: str) -> Item:
    item = await session.get_item(item_id)
    if not item:
        raise ItemNotFound(item_id=item_id)
    return item


async def recycle_items(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
) -> list[Item]:
    """
    Move items (with their subtree) to the recycle bin, admin permission is required.

    Recycling an item already recycled is a no-op returning the item.

    Raise:
        TooManyDescendants: an item has more than `limits.max_descendants_for_delete` descendants.
    """
    async with context.start(
        action="recycle_items", with_attributes={"accountId": actor.id}
    ) as ctx:
        items = [await _get_existing_item(session, item_id) for item_id in item_ids]
        for item in items:
            await validate_permission(
                session=session,
                actor=actor,
                item=item,
                permission=PermissionLevel.ADMIN,
                context=ctx,
            )
            if not item.recycled:
                await check_number_of_descendants(
                    session=session,
                    item=item,
                    max_count=limits.max_descendants_for_delete,
                    operation="delete",
                )

        timestamp = now()
        recycled = []
        for item_id in item_ids:
            item = await session.get_item(item_id)
            if item.recycled:
                await ctx.info("Item already recycled", data={"itemId": item.id})
                recycled.append(item)
                continue
            subtree = await session.get_descendants(item.path, include_self=True)
            await session.update_items(
                node.copy(update={"deletedAt": timestamp}) for node in subtree
            )
            await session.insert_recycled(
                [
                    RecycledItemData(
                        id=str(uuid.uuid4()),
                        itemPath=item.path,
                        creatorId=actor.id,
                        createdAt=timestamp,
                    )
                ]
            )
            recycled.append(await session.get_item(item.id))

        await ctx.info(f"{len(recycled)} item(s) recycled", data={"ids": item_ids})
        return recycled


async def restore_items(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
) -> list[Item]:
    """
    Restore recycled items (with their subtree), admin permission is required.
    Parts of the subtree that were recycled on their own before stay in the recycle bin.

    Raise:
        ItemNotRecycled: an item is not the root of a recycled subtree.
        ItemNotFound: the parent of an item is itself in the recycle bin.
        TooManyChildren: a parent would have too many children.
    """
    async with context.start(
        action="restore_items", with_attributes={"accountId": actor.id}
    ) as ctx:
        items = [await _get_existing_item(session, item_id) for item_id in item_ids]
        for item in items:
            if not item.recycled or not await session.get_recycled(item_path=item.path):
                raise ItemNotRecycled(item_id=item.id)
            await validate_permission(
                session=session,
                actor=actor,
                item=item,
                permission=PermissionLevel.ADMIN,
                context=ctx,
            )
            parent = await session.get_item(item.parentId) if item.parentId else None
            if parent:
                if parent.recycled:
                    await ctx.info(
                        "The parent is in the recycle bin", data={"itemId": item.id}
                    )
                    raise ItemNotFound(item_id=parent.id)
                await check_number_of_children(
                    session=session, parent=parent, added=1, limits=limits
                )

        restored = []
        for item in items:
            nested = [
                r.itemPath
                for r in await session.get_recycled()
                if paths.is_ancestor_of(item.path, r.itemPath)
            ]
            subtree = await session.get_descendants(
                item.path, include_self=True, recycled=True
            )
            await session.update_items(
                node.copy(update={"deletedAt": None})
                for node in subtree
                if not any(paths.is_ancestor_or_self(p, node.path) for p in nested)
            )
            await session.delete_recycled([item.path])
            restored.append(await session.get_item(item.id))

        await ctx.info(f"{len(restored)} item(s) restored", data={"ids": item_ids})
        return restored


async def _purge_subtree(session: StorageSession, item: Item) -> list[str]:
    subtree = await session.get_descendants(item.path, include_self=True, recycled=None)
    memberships = [
        *await session.get_memberships(item_path=item.path),
        *await session.get_memberships(descendants_of=item.path),
    ]
    recycled = [
        r.itemPath
        for r in await session.get_recycled()
        if paths.is_ancestor_or_self(item.path, r.itemPath)
    ]
    guests = await session.get_guests(login_root_in=item.path)
    guests_memberships = [
        m for guest in guests for m in await session.get_memberships(account_id=guest.id)
    ]
    await session.delete_memberships(m.id for m in [*memberships, *guests_memberships])
    await session.delete_accounts(guest.id for guest in guests)
    await session.delete_recycled(recycled)
    await session.delete_items(node.id for node in subtree)
    return [node.id for node in subtree]


async def purge_items(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
) -> PurgeResponse:
    """
    Permanently delete recycled items with their subtree, memberships and recycle data. Guests whose login
    root is within a purged subtree are deleted as well. Admin permission is required.

    Raise:
        ItemNotRecycled: an item is not recycled.
        TooManyDescendants: an item has more than `limits.max_descendants_for_delete` descendants.
    """
    async with context.start(
        action="purge_items", with_attributes={"accountId": actor.id}
    ) as ctx:
        items = [await _get_existing_item(session, item_id) for item_id in item_ids]
        for item in items:
            if not item.recycled:
                raise ItemNotRecycled(item_id=item.id)
            await validate_permission(
                session=session,
                actor=actor,
                item=item,
                permission=PermissionLevel.ADMIN,
                context=ctx,
            )
            await check_number_of_descendants(
                session=session,
                item=item,
                max_count=limits.max_descendants_for_delete,
                operation="delete",
                recycled=None,
            )

        purged: list[str] = []
        for item_id in item_ids:
            # may have been purged with an ancestor
            item = await session.get_item(item_id)
            if item:
                purged += await _purge_subtree(session=session, item=item)

        await ctx.info(f"{len(purged)} item(s) purged", data={"ids": purged})
        return PurgeResponse(itemsCount=len(purged), items=purged)


async def purge_expired(
    session: StorageSession,
    limits: Limits,
    context: Context,
    older_than: Optional[datetime.datetime] = None,
) -> PurgeResponse:
    """
    Purge the subtrees recycled before `older_than`, by default before `limits.recycle_grace_days` days ago.
    It is a maintenance task: no permission is checked.
    """
    older_than = older_than or now() - datetime.timedelta(days=limits.recycle_grace_days)
    async with context.start(
        action="purge_expired", with_attributes={"olderThan": older_than.isoformat()}
    ) as ctx:
        purged: list[str] = []
        for row in await session.get_recycled(older_than=older_than):
            item = await session.get_item(paths.child_id(row.itemPath))
            if item:
                purged += await _purge_subtree(session=session, item=item)
            else:
                await session.delete_recycled([row.itemPath])
        await ctx.info(f"{len(purged)} expired item(s) purged", data={"ids": purged})
        return PurgeResponse(itemsCount=len(purged), items=purged)


# Reorder


async def reorder_item(
    session: StorageSession,
    actor: Account,
    item_id: str,
    previous_item_id: Optional[str],
    context: Context,
) -> Item:
    """
    Place an item right after its sibling `previous_item_id`, or first if `None`.
    Write permission on the parent is required.

    Raise:
        CannotReorderRootItem: the item is a root.
    """
    async with context.start(
        action="reorder_item",
        with_attributes={"itemId": item_id, "previousItemId": previous_item_id or ""},
    ) as ctx:
        item = await session.get_item(item_id)
        if not item or item.recycled:
            raise ItemNotFound(item_id=item_id)
        if not item.parentId:
            raise CannotReorderRootItem(item_id=item_id)
        parent = await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item.parentId,
            permission=PermissionLevel.WRITE,
            context=ctx,
        )
        siblings = [s for s in await session.get_children(parent.path) if s.id != item.id]
        order = (
            next_order(siblings, previous_item_id)
            if previous_item_id
            else first_order(siblings)
        )
        await session.update_items(
            [item.copy(update={"order": order, "updatedAt": now()})]
        )
        await rescale_order(session=session, parent=parent, context=ctx)
        return await session.get_item(item.id)
