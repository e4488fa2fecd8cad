# standard library
import datetime

from abc import ABC, abstractmethod
from collections.abc import Iterable

# typing
from typing import AsyncContextManager, Optional

# relative
from ..models import Account, Item, ItemMembership, RecycledItemData


class StorageSession(ABC):
    """
    Handle over an open transaction of a
    [StorageInterface](@yw-nav-class:graasp.backends.tree.storage.interfaces.StorageInterface).

    It exposes the row-level primitives composed by the operations of the item tree; it is passed explicitly
    to all of them. Reads see the writes previously achieved within the same session.
    """

    # Items

    @abstractmethod
    async def get_item(self, item_id: str) -> Optional[Item]:
        """
        Parameters:
            item_id: ID of the item.

        Return:
            The item (recycled or not), `None` if it does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_items(self, item_ids: Iterable[str]) -> list[Item]:
        """
        Return the existing items among `item_ids`, unknown IDs are skipped.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_descendants(
        self, path: str, include_self: bool = False, recycled: Optional[bool] = False
    ) -> list[Item]:
        """
        Parameters:
            path: path of the subtree's root.
            include_self: whether to include the item at `path`.
            recycled: `False` for active items only, `True` for recycled items only, `None` for both.

        Return:
            The items of the subtree, sorted by path.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_children(
        self, path: str, recycled: Optional[bool] = False
    ) -> list[Item]:
        """
        Return the direct children of the item at `path`, sorted by `(order, createdAt)`.
        """
        raise NotImplementedError

    @abstractmethod
    async def insert_items(self, items: Iterable[Item]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def update_items(self, items: Iterable[Item]) -> None:
        """
        Replace the stored version of the items (matched by ID).
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_items(self, item_ids: Iterable[str]) -> None:
        raise NotImplementedError

    # Memberships

    @abstractmethod
    async def get_membership(self, membership_id: str) -> Optional[ItemMembership]:
        raise NotImplementedError

    @abstractmethod
    async def get_memberships(
        self,
        account_id: Optional[str] = None,
        item_path: Optional[str] = None,
        ancestors_or_self_of: Optional[str] = None,
        descendants_of: Optional[str] = None,
    ) -> list[ItemMembership]:
        """
        Query the memberships, all the provided filters apply.

        Parameters:
            account_id: memberships of this account only.
            item_path: memberships defined exactly at this path.
            ancestors_or_self_of: memberships defined at this path or one of its ancestors.
            descendants_of: memberships defined strictly below this path.

        Return:
            The matching memberships.
        """
        raise NotImplementedError

    @abstractmethod
    async def insert_memberships(self, memberships: Iterable[ItemMembership]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def update_memberships(self, memberships: Iterable[ItemMembership]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_memberships(self, membership_ids: Iterable[str]) -> None:
        raise NotImplementedError

    # Accounts

    @abstractmethod
    async def get_account(self, account_id: str) -> Optional[Account]:
        raise NotImplementedError

    @abstractmethod
    async def insert_account(self, account: Account) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_guests(self, login_root_in: str) -> list[Account]:
        """
        Return the guests whose login root is at `login_root_in` or below it.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_accounts(self, accounts: Iterable[Account]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_accounts(self, account_ids: Iterable[str]) -> None:
        raise NotImplementedError

    # Recycled data

    @abstractmethod
    async def get_recycled(
        self,
        item_path: Optional[str] = None,
        older_than: Optional[datetime.datetime] = None,
    ) -> list[RecycledItemData]:
        raise NotImplementedError

    @abstractmethod
    async def insert_recycled(self, data: Iterable[RecycledItemData]) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_recycled(self, item_paths: Iterable[str]) -> None:
        raise NotImplementedError


class StorageInterface(ABC):
    """
    Abstract class defining a transactional storage for the item tree.
    """

    @abstractmethod
    def transaction(self) -> AsyncContextManager[StorageSession]:
        """
        Open a transaction, used as:

        ```python
        async with storage.transaction() as session:
            item = await session.get_item(item_id)
        ```

        The transaction is committed when the block exits normally, rolled back when it exits with an exception;
        it is released in both cases. Transactions are serializable.
        """
        raise NotImplementedError
