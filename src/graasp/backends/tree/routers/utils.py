# standard library
import functools

# typing
from typing import Union

# third parties
from starlette.requests import Request
from starlette.responses import JSONResponse

# Graasp utilities
from graasp.utils.exceptions import NotSignedIn
from graasp.utils.utils import GraaspHeaders

# relative
from ..bulk import BulkExecutor
from ..configurations import Configuration
from ..models import AcceptedResponse, ItemsResponse, PurgeResponse
from ..registry import OperationOutput


def get_actor_id(request: Request) -> str:
    """
    Return the ID of the authenticated account, set by the authentication layer in front of the service.
    """
    account_id = GraaspHeaders.get_account_id(request)
    if not account_id:
        raise NotSignedIn()
    return account_id


@functools.lru_cache
def get_executor(configuration: Configuration) -> BulkExecutor:
    # one executor per configuration: it holds the references of the pending tasks
    return BulkExecutor(storage=configuration.storage, limits=configuration.limits)


def bulk_response(
    output: Union[OperationOutput, AcceptedResponse]
) -> Union[ItemsResponse, PurgeResponse, JSONResponse]:
    if isinstance(output, AcceptedResponse):
        return JSONResponse(status_code=202, content=output.dict())
    if isinstance(output, PurgeResponse):
        return output
    return ItemsResponse(items=output)
