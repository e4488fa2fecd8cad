"""
Registry of the bulk operations over items, keyed by operation type.

The registry is built once when the module is imported; the
[BulkExecutor](@yw-nav-class:graasp.backends.tree.bulk.BulkExecutor) and the router resolve the handlers from it.
"""

# standard library
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

# typing
from typing import Optional, Union

# Graasp utilities
from graasp.utils.context import Context

# relative
from .configurations import Limits
from .hierarchy import (
    copy_items,
    get_items,
    move_items,
    purge_items,
    recycle_items,
    restore_items,
    update_item,
)
from .models import Account, Item, PermissionLevel, PurgeResponse, UpdateItemBody
from .permissions import get_authorized_item
from .storage import StorageSession

OperationOutput = Union[list[Item], PurgeResponse]

Handler = Callable[..., Awaitable[OperationOutput]]
"""
Signature of the handlers: `(session, actor, item_ids, limits, context, **params) -> OperationOutput`.
"""


class OperationType(str, Enum):
    GET = "get"
    UPDATE = "update"
    MOVE = "move"
    COPY = "copy"
    RECYCLE = "recycle"
    RESTORE = "restore"
    PURGE = "purge"


class RequestClass(str, Enum):
    """
    Class of a bulk request, it defines the maximum count of targets.
    """

    READ = "read"
    """
    Read only request, bounded by `Limits.max_targets_for_read_request`.
    """
    MODIFY = "modify"
    """
    Mutating request, bounded by `Limits.max_targets_for_modify_request`.
    """
    MODIFY_WITH_RESPONSE = "modify_with_response"
    """
    Mutating request returning the modified items, bounded by `Limits.max_targets_for_modify_request`.
    Above `Limits.max_targets_for_modify_request_w_response` targets it is processed asynchronously.
    """


@dataclass(frozen=True)
class OperationDefinition:
    operation: OperationType
    request_class: RequestClass
    handler: Handler
    action: str
    """
    Name of the action, used as title of the tracing context.
    """


async def _get(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
) -> list[Item]:
    return await get_items(session=session, actor=actor, item_ids=item_ids, context=context)


async def _update(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
    body: UpdateItemBody,
) -> list[Item]:
    for item_id in item_ids:
        await get_authorized_item(
            session=session,
            actor=actor,
            item_id=item_id,
            permission=PermissionLevel.WRITE,
            context=context,
        )
    return [
        await update_item(
            session=session,
            actor=actor,
            item_id=item_id,
            body=body,
            limits=limits,
            context=context,
        )
        for item_id in item_ids
    ]


async def _move(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
    parent_id: Optional[str] = None,
) -> list[Item]:
    return await move_items(
        session=session,
        actor=actor,
        item_ids=item_ids,
        parent_id=parent_id,
        limits=limits,
        context=context,
    )


async def _copy(
    session: StorageSession,
    actor: Account,
    item_ids: list[str],
    limits: Limits,
    context: Context,
    parent_id: Optional[str] = None,
) -> list[Item]:
    return await copy_items(
        session=session,
        actor=actor,
        item_ids=item_ids,
        parent_id=parent_id,
        limits=limits,
        context=context,
    )


def _definitions() -> dict[OperationType, OperationDefinition]:
    definitions = [
        OperationDefinition(OperationType.GET, RequestClass.READ, _get, "get_items"),
        OperationDefinition(
            OperationType.UPDATE,
            RequestClass.MODIFY_WITH_RESPONSE,
            _update,
            "update_items",
        ),
        OperationDefinition(
            OperationType.MOVE, RequestClass.MODIFY_WITH_RESPONSE, _move, "move_items"
        ),
        OperationDefinition(
            OperationType.COPY, RequestClass.MODIFY_WITH_RESPONSE, _copy, "copy_items"
        ),
        OperationDefinition(
            OperationType.RECYCLE,
            RequestClass.MODIFY_WITH_RESPONSE,
            recycle_items,
            "recycle_items",
        ),
        OperationDefinition(
            OperationType.RESTORE, RequestClass.MODIFY, restore_items, "restore_items"
        ),
        OperationDefinition(
            OperationType.PURGE, RequestClass.MODIFY, purge_items, "purge_items"
        ),
    ]
    return {d.operation: d for d in definitions}


OPERATIONS: dict[OperationType, OperationDefinition] = _definitions()
