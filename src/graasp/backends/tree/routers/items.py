# typing
from typing import Optional, Union

# third parties
from fastapi import APIRouter, Depends, Query
from starlette.requests import Request
from starlette.responses import JSONResponse

# Graasp utilities
from graasp.utils.context import Context

# relative
from .. import hierarchy
from ..configurations import Configuration, get_configuration
from ..memberships import get_account
from ..models import (
    AcceptedResponse,
    CopyBody,
    IdsBody,
    Item,
    ItemBody,
    ItemsResponse,
    MoveBody,
    PermissionResponse,
    PurgeResponse,
    ReorderBody,
    UpdateItemBody,
)
from ..permissions import get_permission
from ..registry import OperationType
from .utils import bulk_response, get_actor_id, get_executor

router = APIRouter(tags=["items"])

bulk_responses = {202: {"model": AcceptedResponse}}


@router.post("/items", summary="Create an item.", response_model=Item)
async def create_item(
    request: Request,
    body: ItemBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> Item:
    """
    Creates an item, at the root if `body.parentId` is not provided.

    Parameters:
        request: Incoming request.
        body: Item properties.
        actor_id: Injected ID of the authenticated account.
        configuration: Injected configuration of the service.

    Return:
        The new item.
    """
    async with Context.start_ep(
        request=request,
        action="create_item",
        body=body,
        with_attributes={"parentId": body.parentId or ""},
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await get_account(session=session, account_id=actor_id)
            return await hierarchy.create_item(
                session=session,
                actor=actor,
                body=body,
                limits=configuration.limits,
                context=ctx,
            )


@router.get("/items", summary="Get multiple items.", response_model=ItemsResponse)
async def get_items(
    request: Request,
    ids: list[str] = Query(alias="id"),
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
):
    async with Context.start_ep(request=request, action="get_items") as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.GET, actor_id=actor_id, item_ids=ids, context=ctx
        )
        return bulk_response(output)


@router.patch(
    "/items",
    summary="Update multiple items.",
    response_model=ItemsResponse,
    responses=bulk_responses,
)
async def update_items(
    request: Request,
    body: UpdateItemBody,
    ids: list[str] = Query(alias="id"),
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> Union[ItemsResponse, JSONResponse]:
    """
    Updates multiple items with the same properties.

    Note:
        Above `Limits.max_targets_for_modify_request_w_response` targets, the request is processed asynchronously:
        the response has the status 202 and the result is sent through the data reporters.
    """
    async with Context.start_ep(
        request=request, action="update_items", body=body
    ) as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.UPDATE,
            actor_id=actor_id,
            item_ids=ids,
            context=ctx,
            body=body,
        )
        return bulk_response(output)


@router.delete(
    "/items",
    summary="Permanently delete recycled items.",
    response_model=PurgeResponse,
)
async def purge_items(
    request: Request,
    ids: list[str] = Query(alias="id"),
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
):
    async with Context.start_ep(request=request, action="purge_items") as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.PURGE, actor_id=actor_id, item_ids=ids, context=ctx
        )
        return bulk_response(output)


@router.post(
    "/items/move",
    summary="Move items.",
    response_model=ItemsResponse,
    responses=bulk_responses,
)
async def move_items(
    request: Request,
    body: MoveBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
):
    """
    Moves items below a folder, or to the root if `body.parentId` is not provided.
    """
    async with Context.start_ep(request=request, action="move_items", body=body) as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.MOVE,
            actor_id=actor_id,
            item_ids=body.ids,
            context=ctx,
            parent_id=body.parentId,
        )
        return bulk_response(output)


@router.post(
    "/items/copy",
    summary="Copy items.",
    response_model=ItemsResponse,
    responses=bulk_responses,
)
async def copy_items(
    request: Request,
    body: CopyBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
):
    async with Context.start_ep(request=request, action="copy_items", body=body) as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.COPY,
            actor_id=actor_id,
            item_ids=body.ids,
            context=ctx,
            parent_id=body.parentId,
        )
        return bulk_response(output)


@router.post(
    "/items/recycle",
    summary="Move items to the recycle bin.",
    response_model=ItemsResponse,
    responses=bulk_responses,
)
async def recycle_items(
    request: Request,
    body: IdsBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
):
    async with Context.start_ep(
        request=request, action="recycle_items", body=body
    ) as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.RECYCLE,
            actor_id=actor_id,
            item_ids=body.ids,
            context=ctx,
        )
        return bulk_response(output)


@router.post(
    "/items/restore",
    summary="Restore items from the recycle bin.",
    response_model=ItemsResponse,
)
async def restore_items(
    request: Request,
    body: IdsBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
):
    async with Context.start_ep(
        request=request, action="restore_items", body=body
    ) as ctx:
        output = await get_executor(configuration).execute(
            operation=OperationType.RESTORE,
            actor_id=actor_id,
            item_ids=body.ids,
            context=ctx,
        )
        return bulk_response(output)


@router.get("/items/{item_id}", summary="Get an item.", response_model=Item)
async def get_item(
    request: Request,
    item_id: str,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> Item:
    async with Context.start_ep(
        request=request, action="get_item", with_attributes={"itemId": item_id}
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await get_account(session=session, account_id=actor_id)
            return await hierarchy.get_item(
                session=session, actor=actor, item_id=item_id, context=ctx
            )


@router.patch("/items/{item_id}", summary="Update an item.", response_model=Item)
async def update_item(
    request: Request,
    item_id: str,
    body: UpdateItemBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> Item:
    async with Context.start_ep(
        request=request,
        action="update_item",
        body=body,
        with_attributes={"itemId": item_id},
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await get_account(session=session, account_id=actor_id)
            return await hierarchy.update_item(
                session=session,
                actor=actor,
                item_id=item_id,
                body=body,
                limits=configuration.limits,
                context=ctx,
            )


@router.get(
    "/items/{item_id}/children",
    summary="Get the children of a folder.",
    response_model=ItemsResponse,
)
async def get_children(
    request: Request,
    item_id: str,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> ItemsResponse:
    async with Context.start_ep(
        request=request, action="get_children", with_attributes={"itemId": item_id}
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await get_account(session=session, account_id=actor_id)
            children = await hierarchy.get_children(
                session=session, actor=actor, item_id=item_id, context=ctx
            )
            return ItemsResponse(items=children)


@router.get(
    "/items/{item_id}/descendants",
    summary="Get the descendants of an item.",
    response_model=ItemsResponse,
)
async def get_descendants(
    request: Request,
    item_id: str,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> ItemsResponse:
    async with Context.start_ep(
        request=request, action="get_descendants", with_attributes={"itemId": item_id}
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await get_account(session=session, account_id=actor_id)
            descendants = await hierarchy.get_descendants(
                session=session, actor=actor, item_id=item_id, context=ctx
            )
            return ItemsResponse(items=descendants)


@router.get(
    "/items/{item_id}/permission",
    summary="Get the permission of the authenticated account on an item.",
    response_model=PermissionResponse,
)
async def get_item_permission(
    request: Request,
    item_id: str,
    account_id: Optional[str] = Query(alias="accountId", default=None),
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> PermissionResponse:
    """
    Returns the effective permission of an account on an item, `null` for no access.

    Parameters:
        request: Incoming request.
        item_id: ID of the item.
        account_id: ID of the account, the authenticated account if not provided.
        actor_id: Injected ID of the authenticated account.
        configuration: Injected configuration of the service.

    Return:
        The permission.
    """
    async with Context.start_ep(
        request=request,
        action="get_item_permission",
        with_attributes={"itemId": item_id},
    ) as ctx:
        async with configuration.storage.transaction() as session:
            target = account_id or actor_id
            if target != actor_id:
                # only readers of the item can inspect the permissions of others
                actor = await get_account(session=session, account_id=actor_id)
                await hierarchy.get_item(
                    session=session,
                    actor=actor,
                    item_id=item_id,
                    context=ctx,
                )
            permission = await get_permission(
                session=session, account_id=target, item_id=item_id
            )
            return PermissionResponse(
                itemId=item_id, accountId=target, permission=permission
            )


@router.patch(
    "/items/{item_id}/reorder",
    summary="Reorder an item among its siblings.",
    response_model=Item,
)
async def reorder_item(
    request: Request,
    item_id: str,
    body: ReorderBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> Item:
    """
    Places an item right after its sibling `body.previousItemId`, or first if not provided.
    """
    async with Context.start_ep(
        request=request,
        action="reorder_item",
        body=body,
        with_attributes={"itemId": item_id},
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await get_account(session=session, account_id=actor_id)
            return await hierarchy.reorder_item(
                session=session,
                actor=actor,
                item_id=item_id,
                previous_item_id=body.previousItemId,
                context=ctx,
            )
