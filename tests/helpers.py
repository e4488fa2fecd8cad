# standard library
import uuid

# typing
from typing import Optional

# Graasp backends
from graasp.backends.tree import Limits, StorageInterface
from graasp.backends.tree.hierarchy import create_item
from graasp.backends.tree.memberships import new_membership
from graasp.backends.tree.models import (
    Account,
    AccountType,
    Item,
    ItemBody,
    ItemMembership,
    PermissionLevel,
)

# Graasp utilities
from graasp.utils.context import Context


async def add_account(
    storage: StorageInterface,
    name: str,
    account_type: AccountType = AccountType.INDIVIDUAL,
    login_root: Optional[Item] = None,
) -> Account:
    account = Account(
        id=str(uuid.uuid4()),
        name=name,
        type=account_type,
        itemLoginRootPath=login_root.path if login_root else None,
    )
    async with storage.transaction() as session:
        await session.insert_account(account)
    return account


async def add_item(
    storage: StorageInterface,
    actor: Account,
    name: str,
    context: Context,
    parent: Optional[Item] = None,
    item_type: str = "folder",
    previous: Optional[Item] = None,
    limits: Optional[Limits] = None,
) -> Item:
    async with storage.transaction() as session:
        return await create_item(
            session=session,
            actor=actor,
            body=ItemBody(
                name=name,
                type=item_type,
                parentId=parent.id if parent else None,
                previousItemId=previous.id if previous else None,
            ),
            limits=limits or Limits(),
            context=context,
        )


async def add_tree(
    storage: StorageInterface,
    actor: Account,
    depth: int,
    context: Context,
    limits: Optional[Limits] = None,
) -> list[Item]:
    """
    Create a chain of folders `depth` levels deep, from the root to the deepest one.
    """
    items: list[Item] = []
    for level in range(depth):
        items.append(
            await add_item(
                storage=storage,
                actor=actor,
                name=f"level-{level + 1}",
                context=context,
                parent=items[-1] if items else None,
                limits=limits,
            )
        )
    return items


async def grant(
    storage: StorageInterface,
    account: Account,
    item: Item,
    permission: PermissionLevel,
) -> ItemMembership:
    """
    Insert a membership without any validation.
    """
    membership = new_membership(
        account_id=account.id,
        path=item.path,
        permission=permission,
        creator_id=account.id,
    )
    async with storage.transaction() as session:
        await session.insert_memberships([membership])
    return membership


async def fetch(storage: StorageInterface, item_id: str) -> Optional[Item]:
    async with storage.transaction() as session:
        return await session.get_item(item_id)


async def memberships_of(
    storage: StorageInterface, account: Account
) -> list[ItemMembership]:
    async with storage.transaction() as session:
        return await session.get_memberships(account_id=account.id)
