# standard library
import traceback

# typing
from typing import Any

# third parties
from fastapi import HTTPException, Request
from starlette.responses import JSONResponse, PlainTextResponse


class GraaspException(HTTPException):
    """
    Base class for handled exceptions within Graasp: they correspond to errors originated from wrong user inputs
    (e.g. requesting a non-existent item), insufficient permissions, or limits of the item tree being exceeded.

    They are raised by the operations of :mod:`graasp.backends.tree` and propagated unchanged to the caller.
    If not caught, they end up being converted into a JSON response by the function
    [graasp_exception_handler](@yw-nav-func:graasp.utils.exceptions.graasp_exception_handler).
    """

    exceptionType = "GraaspException"

    def __init__(self, status_code: int, detail: Any, **_):
        HTTPException.__init__(self, status_code=status_code, detail=detail)
        self.exceptionType = self.__class__.exceptionType

    def __str__(self):
        return f"""{self.status_code} : {self.detail}"""


class InvalidInput(GraaspException):
    exceptionType = "InvalidInput"

    def __init__(self, error: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"error": error}, **kwargs
        )
        self.error = error

    def __str__(self):
        return f"""Invalid input: {self.error}"""


class ServerError(GraaspException):
    exceptionType = "ServerError"

    def __init__(self, detail: Any, **kwargs):
        GraaspException.__init__(self, status_code=500, detail=detail, **kwargs)


class NotSignedIn(GraaspException):
    exceptionType = "NotSignedIn"

    def __init__(self, **kwargs):
        GraaspException.__init__(
            self, status_code=401, detail={"error": "No authenticated account"}, **kwargs
        )


# Not found


class ItemNotFound(GraaspException):
    exceptionType = "ItemNotFound"

    def __init__(self, item_id: str | None = None, **kwargs):
        GraaspException.__init__(
            self, status_code=404, detail={"itemId": item_id}, **kwargs
        )
        self.item_id = item_id

    def __str__(self):
        return f"""Item not found: {self.item_id}"""


class MemberNotFound(GraaspException):
    exceptionType = "MemberNotFound"

    def __init__(self, account_id: str | None = None, **kwargs):
        GraaspException.__init__(
            self, status_code=404, detail={"accountId": account_id}, **kwargs
        )
        self.account_id = account_id

    def __str__(self):
        return f"""Member not found: {self.account_id}"""


class ItemMembershipNotFound(GraaspException):
    exceptionType = "ItemMembershipNotFound"

    def __init__(self, membership_id: str | None = None, **kwargs):
        GraaspException.__init__(
            self, status_code=404, detail={"membershipId": membership_id}, **kwargs
        )
        self.membership_id = membership_id


# Forbidden


class Forbidden(GraaspException):
    """
    The actor does not have the permission required by the operation.
    """

    exceptionType = "Forbidden"

    def __init__(self, item_id: str | None = None, **kwargs):
        GraaspException.__init__(
            self, status_code=403, detail={"itemId": item_id}, **kwargs
        )
        self.item_id = item_id

    def __str__(self):
        return f"""{self.exceptionType}: {self.item_id}"""


class MemberCannotAccess(Forbidden):
    exceptionType = "MemberCannotAccess"


class MemberCannotReadItem(Forbidden):
    exceptionType = "MemberCannotReadItem"


class MemberCannotWriteItem(Forbidden):
    exceptionType = "MemberCannotWriteItem"


class MemberCannotAdminItem(Forbidden):
    exceptionType = "MemberCannotAdminItem"


class GuestMembershipOutsideScope(Forbidden):
    """
    A guest account can not hold memberships outside of its login root.
    """

    exceptionType = "GuestMembershipOutsideScope"


# Limits of the tree


class HierarchyTooDeep(GraaspException):
    exceptionType = "HierarchyTooDeep"

    def __init__(self, depth: int, max_depth: int, **kwargs):
        GraaspException.__init__(
            self,
            status_code=403,
            detail={"depth": depth, "maxDepth": max_depth},
            **kwargs,
        )
        self.depth = depth
        self.max_depth = max_depth

    def __str__(self):
        return f"""Hierarchy too deep: {self.depth} > {self.max_depth}"""


class TooManyChildren(GraaspException):
    exceptionType = "TooManyChildren"

    def __init__(self, parent_id: str, count: int, max_count: int, **kwargs):
        GraaspException.__init__(
            self,
            status_code=403,
            detail={"parentId": parent_id, "count": count, "maxCount": max_count},
            **kwargs,
        )
        self.parent_id = parent_id
        self.count = count
        self.max_count = max_count

    def __str__(self):
        return f"""Too many children under {self.parent_id}: {self.count} > {self.max_count}"""


class TooManyDescendants(GraaspException):
    exceptionType = "TooManyDescendants"

    def __init__(self, operation: str, count: int, max_count: int, **kwargs):
        GraaspException.__init__(
            self,
            status_code=403,
            detail={"operation": operation, "count": count, "maxCount": max_count},
            **kwargs,
        )
        self.operation = operation
        self.count = count
        self.max_count = max_count

    def __str__(self):
        return f"""Too many descendants for '{self.operation}': {self.count} > {self.max_count}"""


class TooManyTargets(GraaspException):
    exceptionType = "TooManyTargets"

    def __init__(self, request_class: str, count: int, max_count: int, **kwargs):
        GraaspException.__init__(
            self,
            status_code=400,
            detail={
                "requestClass": request_class,
                "count": count,
                "maxCount": max_count,
            },
            **kwargs,
        )
        self.request_class = request_class
        self.count = count
        self.max_count = max_count

    def __str__(self):
        return f"""Too many targets for a '{self.request_class}' request: {self.count} > {self.max_count}"""


class InvalidMoveTarget(GraaspException):
    """
    Moving an item into itself, one of its descendants, or its current parent.
    """

    exceptionType = "InvalidMoveTarget"

    def __init__(self, item_id: str, target_id: str | None = None, **kwargs):
        GraaspException.__init__(
            self,
            status_code=400,
            detail={"itemId": item_id, "targetId": target_id},
            **kwargs,
        )
        self.item_id = item_id
        self.target_id = target_id

    def __str__(self):
        return f"""Can not move {self.item_id} into {self.target_id}"""


class DataIntegrityViolation(GraaspException):
    exceptionType = "DataIntegrityViolation"

    def __init__(self, context: str, **kwargs):
        GraaspException.__init__(
            self, status_code=500, detail={"context": context}, **kwargs
        )
        self.context = context

    def __str__(self):
        return f"""Data integrity violation: {self.context}"""


# Items


class ItemNotFolder(GraaspException):
    exceptionType = "ItemNotFolder"

    def __init__(self, item_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"itemId": item_id}, **kwargs
        )
        self.item_id = item_id


class ItemNotRecycled(GraaspException):
    exceptionType = "ItemNotRecycled"

    def __init__(self, item_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"itemId": item_id}, **kwargs
        )
        self.item_id = item_id


class CannotReorderRootItem(GraaspException):
    exceptionType = "CannotReorderRootItem"

    def __init__(self, item_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"itemId": item_id}, **kwargs
        )
        self.item_id = item_id


# Memberships


class InvalidMembership(GraaspException):
    """
    Creation of a membership that would not improve on the inherited permission.
    """

    exceptionType = "InvalidMembership"

    def __init__(self, item_id: str, account_id: str, permission: str, **kwargs):
        GraaspException.__init__(
            self,
            status_code=400,
            detail={
                "itemId": item_id,
                "accountId": account_id,
                "permission": permission,
            },
            **kwargs,
        )


class ModifyExistingMembership(GraaspException):
    exceptionType = "ModifyExistingMembership"

    def __init__(self, membership_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"membershipId": membership_id}, **kwargs
        )
        self.membership_id = membership_id


class InvalidPermissionLevel(GraaspException):
    exceptionType = "InvalidPermissionLevel"

    def __init__(self, membership_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"membershipId": membership_id}, **kwargs
        )
        self.membership_id = membership_id


class CannotDeleteOnlyAdmin(GraaspException):
    exceptionType = "CannotDeleteOnlyAdmin"

    def __init__(self, item_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"itemId": item_id}, **kwargs
        )
        self.item_id = item_id


class CannotModifyGuestItemMembership(GraaspException):
    exceptionType = "CannotModifyGuestItemMembership"

    def __init__(self, membership_id: str, **kwargs):
        GraaspException.__init__(
            self, status_code=400, detail={"membershipId": membership_id}, **kwargs
        )
        self.membership_id = membership_id


async def graasp_exception_handler(
    request: Request, exc: GraaspException
) -> JSONResponse:
    """
    Handler for [GraaspException](@yw-nav-class:graasp.utils.exceptions.GraaspException).
    Those are 'expected' exceptions, due to for instance a wrong inputs when calling an HTTP endpoint.

    Parameters:
        request: Associated request from which the exception happened.
        exc: The exception generated.

    Return:
        JSON representation of the exception.
    """
    context = getattr(request.state, "context", None)
    if context:
        await context.info("Trigger graasp_exception_handler")
    content = {
        "url": request.url.path,
        "exceptionType": exc.exceptionType,
        "detail": exc.detail,
    }
    return JSONResponse(status_code=exc.status_code, content=content)


async def unexpected_exception_handler(request: Request, exc: Exception):
    """
    Handler for exceptions that are not [GraaspException](@yw-nav-class:graasp.utils.exceptions.GraaspException):
    a default in the code implementation.

    Parameters:
        request: Associated request from which the exception happened.
        exc: The exception generated.

    Return:
        Plain text representation of the exception.
    """
    context = getattr(request.state, "context", None)
    if context:
        await context.error("Trigger unexpected_exception_handler")
    print(traceback.format_exc())
    return PlainTextResponse(
        status_code=500,
        content=f"Exception in implementation caught: \n {exc}\n",
    )
