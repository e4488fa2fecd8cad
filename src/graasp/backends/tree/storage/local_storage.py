# standard library
import asyncio
import copy
import datetime
import json

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from pathlib import Path

# typing
from typing import Optional

# Graasp utilities
from graasp.utils.exceptions import ServerError
from graasp.utils.types import AnyDict
from graasp.utils.utils import to_json

# relative
from .. import item_path as paths
from ..models import Account, Item, ItemMembership, RecycledItemData
from .interfaces import StorageInterface, StorageSession

Tables = dict[str, dict[str, AnyDict]]

TABLES = ["items", "memberships", "accounts", "recycled"]


def empty_tables() -> Tables:
    return {name: {} for name in TABLES}


def sort_key_siblings(item: Item):
    # roots and corrupted rows (no order) go last
    return (item.order is None, item.order or 0, item.createdAt)


class LocalStorageSession(StorageSession):
    """
    Session over a working copy of the tables of a
    [LocalStorage](@yw-nav-class:graasp.backends.tree.storage.local_storage.LocalStorage).
    """

    def __init__(self, tables: Tables):
        self.tables = tables
        self.closed = False

    def _table(self, name: str) -> dict[str, AnyDict]:
        if self.closed:
            raise ServerError(detail="The storage session has been closed")
        return self.tables[name]

    def _items(self) -> list[Item]:
        return [Item(**doc) for doc in self._table("items").values()]

    @staticmethod
    def _filter_recycled(items: Iterable[Item], recycled: Optional[bool]):
        if recycled is None:
            return list(items)
        return [item for item in items if item.recycled == recycled]

    async def get_item(self, item_id: str) -> Optional[Item]:
        doc = self._table("items").get(item_id)
        return Item(**doc) if doc else None

    async def get_items(self, item_ids: Iterable[str]) -> list[Item]:
        table = self._table("items")
        return [Item(**table[item_id]) for item_id in item_ids if item_id in table]

    async def get_descendants(
        self, path: str, include_self: bool = False, recycled: Optional[bool] = False
    ) -> list[Item]:
        predicate = paths.is_ancestor_or_self if include_self else paths.is_ancestor_of
        items = [item for item in self._items() if predicate(path, item.path)]
        return sorted(
            self._filter_recycled(items, recycled), key=lambda item: item.path
        )

    async def get_children(
        self, path: str, recycled: Optional[bool] = False
    ) -> list[Item]:
        items = [item for item in self._items() if paths.is_direct_child(path, item.path)]
        return sorted(self._filter_recycled(items, recycled), key=sort_key_siblings)

    async def insert_items(self, items: Iterable[Item]) -> None:
        table = self._table("items")
        for item in items:
            if item.id in table:
                raise ServerError(detail=f"Item '{item.id}' already exists")
            table[item.id] = item.dict()

    async def update_items(self, items: Iterable[Item]) -> None:
        table = self._table("items")
        for item in items:
            if item.id not in table:
                raise ServerError(detail=f"Item '{item.id}' does not exist")
            table[item.id] = item.dict()

    async def delete_items(self, item_ids: Iterable[str]) -> None:
        table = self._table("items")
        for item_id in item_ids:
            table.pop(item_id, None)

    async def get_membership(self, membership_id: str) -> Optional[ItemMembership]:
        doc = self._table("memberships").get(membership_id)
        return ItemMembership(**doc) if doc else None

    async def get_memberships(
        self,
        account_id: Optional[str] = None,
        item_path: Optional[str] = None,
        ancestors_or_self_of: Optional[str] = None,
        descendants_of: Optional[str] = None,
    ) -> list[ItemMembership]:
        memberships = [
            ItemMembership(**doc) for doc in self._table("memberships").values()
        ]
        return [
            m
            for m in memberships
            if (account_id is None or m.accountId == account_id)
            and (item_path is None or m.itemPath == item_path)
            and (
                ancestors_or_self_of is None
                or paths.is_ancestor_or_self(m.itemPath, ancestors_or_self_of)
            )
            and (
                descendants_of is None
                or paths.is_ancestor_of(descendants_of, m.itemPath)
            )
        ]

    async def insert_memberships(self, memberships: Iterable[ItemMembership]) -> None:
        table = self._table("memberships")
        for membership in memberships:
            table[membership.id] = membership.dict()

    async def update_memberships(self, memberships: Iterable[ItemMembership]) -> None:
        table = self._table("memberships")
        for membership in memberships:
            if membership.id not in table:
                raise ServerError(
                    detail=f"Membership '{membership.id}' does not exist"
                )
            table[membership.id] = membership.dict()

    async def delete_memberships(self, membership_ids: Iterable[str]) -> None:
        table = self._table("memberships")
        for membership_id in membership_ids:
            table.pop(membership_id, None)

    async def get_account(self, account_id: str) -> Optional[Account]:
        doc = self._table("accounts").get(account_id)
        return Account(**doc) if doc else None

    async def insert_account(self, account: Account) -> None:
        self._table("accounts")[account.id] = account.dict()

    async def get_guests(self, login_root_in: str) -> list[Account]:
        accounts = [Account(**doc) for doc in self._table("accounts").values()]
        return [
            account
            for account in accounts
            if account.is_guest
            and account.itemLoginRootPath
            and paths.is_ancestor_or_self(login_root_in, account.itemLoginRootPath)
        ]

    async def update_accounts(self, accounts: Iterable[Account]) -> None:
        table = self._table("accounts")
        for account in accounts:
            if account.id not in table:
                raise ServerError(detail=f"Account '{account.id}' does not exist")
            table[account.id] = account.dict()

    async def delete_accounts(self, account_ids: Iterable[str]) -> None:
        table = self._table("accounts")
        for account_id in account_ids:
            table.pop(account_id, None)

    async def get_recycled(
        self,
        item_path: Optional[str] = None,
        older_than: Optional[datetime.datetime] = None,
    ) -> list[RecycledItemData]:
        rows = [RecycledItemData(**doc) for doc in self._table("recycled").values()]
        return [
            row
            for row in rows
            if (item_path is None or row.itemPath == item_path)
            and (older_than is None or row.createdAt < older_than)
        ]

    async def insert_recycled(self, data: Iterable[RecycledItemData]) -> None:
        table = self._table("recycled")
        for row in data:
            table[row.id] = row.dict()

    async def delete_recycled(self, item_paths: Iterable[str]) -> None:
        targets = set(item_paths)
        table = self._table("recycled")
        for key in [k for k, doc in table.items() if doc["itemPath"] in targets]:
            del table[key]


class LocalStorage(StorageInterface):
    """
    In memory implementation of [StorageInterface](@yw-nav-class:graasp.backends.tree.storage.interfaces.StorageInterface),
    optionally persisted in a single JSON file.

    Transactions are serialized using a lock: each one works on a copy of the tables that replaces the committed
    state when the transaction succeeds.
    """

    def __init__(self, database_path: Optional[Path] = None):
        self.database_path = database_path
        """
        If provided, path of the JSON file the tables are loaded from and saved into on each commit.
        """
        self.tables: Tables = self._load()
        self.__lock = asyncio.Lock()

    def _load(self) -> Tables:
        if not self.database_path or not self.database_path.exists():
            return empty_tables()
        data = json.loads(self.database_path.read_text())
        return {**empty_tables(), **data}

    def _save(self):
        if not self.database_path:
            return
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self.database_path.write_text(json.dumps(to_json(self.tables), indent=4))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[LocalStorageSession]:
        async with self.__lock:
            session = LocalStorageSession(tables=copy.deepcopy(self.tables))
            try:
                yield session
                self.tables = session.tables
                self._save()
            finally:
                session.closed = True
