# standard library
import datetime

from enum import Enum

# typing
from typing import Any, Optional

# third parties
from pydantic import BaseModel

# relative
from . import item_path


class PermissionLevel(str, Enum):
    """
    Permission levels, totally ordered: `read < write < admin`.
    Holding a level implies holding all the levels below it.
    """

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def gte(self, other: "PermissionLevel") -> bool:
        """
        Return `True` if this level includes `other`.
        """
        return self.rank >= other.rank

    @staticmethod
    def highest(*levels: Optional["PermissionLevel"]) -> Optional["PermissionLevel"]:
        candidates = [level for level in levels if level is not None]
        if not candidates:
            return None
        return max(candidates, key=lambda level: level.rank)


_RANKS = {PermissionLevel.READ: 1, PermissionLevel.WRITE: 2, PermissionLevel.ADMIN: 3}


class AccountType(str, Enum):
    INDIVIDUAL = "individual"
    GUEST = "guest"


def now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


class Account(BaseModel):
    """
    An actor of the system: an individual member or a guest.
    """

    id: str
    name: str = ""
    type: AccountType = AccountType.INDIVIDUAL
    itemLoginRootPath: Optional[str] = None
    """
    For guests only: path of the root of the subtree the guest is scoped to.
    """

    @property
    def is_guest(self) -> bool:
        return self.type == AccountType.GUEST


class Item(BaseModel):
    """
    A node of the item tree.
    """

    id: str
    name: str
    type: str
    """
    Type of the item, only items of type `folder` accept children.
    """
    path: str
    """
    Materialized path of the item, see :mod:`item_path <graasp.backends.tree.item_path>`.
    """
    order: Optional[float] = None
    """
    Order key among the siblings, `None` for root items.
    """
    creatorId: Optional[str] = None
    description: str = ""
    settings: dict[str, Any] = {}
    lang: str = "en"
    createdAt: datetime.datetime
    updatedAt: datetime.datetime
    deletedAt: Optional[datetime.datetime] = None
    """
    Set when the item has been recycled.
    """

    @property
    def parentId(self) -> Optional[str]:
        return item_path.parent_id(self.path)

    @property
    def depth(self) -> int:
        return item_path.depth(self.path)

    @property
    def recycled(self) -> bool:
        return self.deletedAt is not None


class ItemMembership(BaseModel):
    """
    Grant of a permission to an account, on an item and (implicitly) all its descendants.
    """

    id: str
    accountId: str
    itemPath: str
    permission: PermissionLevel
    creatorId: Optional[str] = None
    createdAt: datetime.datetime
    updatedAt: datetime.datetime


class RecycledItemData(BaseModel):
    """
    Records the root of a recycled subtree.
    """

    id: str
    itemPath: str
    creatorId: Optional[str] = None
    createdAt: datetime.datetime


class ItemBody(BaseModel):
    name: str
    type: str = "folder"
    description: str = ""
    settings: dict[str, Any] = {}
    lang: str = "en"
    parentId: Optional[str] = None
    previousItemId: Optional[str] = None
    """
    If provided, the new item is placed after this sibling; otherwise it is placed first.
    """


class UpdateItemBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[dict[str, Any]] = None
    lang: Optional[str] = None
    propagate: bool = False
    """
    If `True`, `lang` is applied to all the descendants.
    """


class MoveBody(BaseModel):
    ids: list[str]
    parentId: Optional[str] = None
    """
    Destination, `None` to move the items to the root.
    """


class CopyBody(BaseModel):
    ids: list[str]
    parentId: Optional[str] = None


class IdsBody(BaseModel):
    ids: list[str]


class ReorderBody(BaseModel):
    previousItemId: Optional[str] = None


class MembershipBody(BaseModel):
    itemId: str
    accountId: str
    permission: PermissionLevel


class UpdateMembershipBody(BaseModel):
    permission: PermissionLevel


class ItemsResponse(BaseModel):
    items: list[Item]


class MembershipsResponse(BaseModel):
    memberships: list[ItemMembership]


class PermissionResponse(BaseModel):
    itemId: str
    accountId: str
    permission: Optional[PermissionLevel] = None


class PurgeResponse(BaseModel):
    """
    Response of a purge: the IDs of all the items removed (including descendants).
    """

    itemsCount: int = 0
    items: list[str] = []


class AcceptedResponse(BaseModel):
    """
    Acknowledgment of a bulk operation scheduled for asynchronous processing.
    """

    operation: str
    ids: list[str]
    contextId: str
    """
    ID of the context tracing the operation, the result is sent with this context ID.
    """


class OperationResult(BaseModel):
    """
    Out of band result of a bulk operation processed asynchronously.
    """

    operation: str
    ids: list[str]
    items: list[Item] = []
    purged: list[str] = []
    """
    IDs of the purged items, for a purge operation.
    """
    errorType: Optional[str] = None
    errorDetail: Any = None
