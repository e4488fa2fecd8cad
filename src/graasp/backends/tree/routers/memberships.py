# typing
from typing import Optional

# third parties
from fastapi import APIRouter, Depends, Query
from starlette.requests import Request

# Graasp utilities
from graasp.utils.context import Context

# relative
from .. import memberships
from ..configurations import Configuration, get_configuration
from ..models import (
    ItemMembership,
    MembershipBody,
    MembershipsResponse,
    UpdateMembershipBody,
)
from .utils import get_actor_id

router = APIRouter(tags=["memberships"])


@router.get(
    "/items/{item_id}/memberships",
    summary="Get the memberships of an item and its ancestors.",
    response_model=MembershipsResponse,
)
async def get_memberships(
    request: Request,
    item_id: str,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> MembershipsResponse:
    async with Context.start_ep(
        request=request, action="get_memberships", with_attributes={"itemId": item_id}
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await memberships.get_account(session=session, account_id=actor_id)
            response = await memberships.get_memberships_for_item(
                session=session, actor=actor, item_id=item_id, context=ctx
            )
            return MembershipsResponse(memberships=response)


@router.post(
    "/memberships",
    summary="Grant a permission on an item.",
    response_model=ItemMembership,
)
async def create_membership(
    request: Request,
    body: MembershipBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> ItemMembership:
    """
    Grants a permission to an account on an item, admin permission on the item is required.

    Parameters:
        request: Incoming request.
        body: The item, the account and the permission.
        actor_id: Injected ID of the authenticated account.
        configuration: Injected configuration of the service.

    Return:
        The new membership.
    """
    async with Context.start_ep(
        request=request, action="create_membership", body=body
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await memberships.get_account(session=session, account_id=actor_id)
            return await memberships.create_membership(
                session=session,
                actor=actor,
                item_id=body.itemId,
                account_id=body.accountId,
                permission=body.permission,
                context=ctx,
            )


@router.patch(
    "/memberships/{membership_id}",
    summary="Update the permission of a membership.",
    response_model=Optional[ItemMembership],
)
async def update_membership(
    request: Request,
    membership_id: str,
    body: UpdateMembershipBody,
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> Optional[ItemMembership]:
    """
    Updates the permission of a membership. If the new permission is the one inherited from the ancestors,
    the membership is deleted and `null` is returned.
    """
    async with Context.start_ep(
        request=request,
        action="update_membership",
        body=body,
        with_attributes={"membershipId": membership_id},
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await memberships.get_account(session=session, account_id=actor_id)
            return await memberships.update_membership(
                session=session,
                actor=actor,
                membership_id=membership_id,
                permission=body.permission,
                context=ctx,
            )


@router.delete(
    "/memberships/{membership_id}",
    summary="Delete a membership.",
    response_model=ItemMembership,
)
async def delete_membership(
    request: Request,
    membership_id: str,
    purge_below: bool = Query(alias="purgeBelow", default=False),
    actor_id: str = Depends(get_actor_id),
    configuration: Configuration = Depends(get_configuration),
) -> ItemMembership:
    async with Context.start_ep(
        request=request,
        action="delete_membership",
        with_attributes={"membershipId": membership_id},
    ) as ctx:
        async with configuration.storage.transaction() as session:
            actor = await memberships.get_account(session=session, account_id=actor_id)
            return await memberships.delete_membership(
                session=session,
                actor=actor,
                membership_id=membership_id,
                context=ctx,
                purge_below=purge_below,
            )
