# standard library
import datetime

from collections.abc import Iterable
from enum import Enum
from pathlib import Path

# typing
from typing import Callable, Optional, Union

# third parties
from pydantic import BaseModel
from starlette.requests import Request

# Graasp utilities
from graasp.utils.types import JSON, AnyDict


class GraaspHeaders:
    """
    Gather headers and operations on headers related to Graasp.
    """

    #  About tracing & headers: https://www.w3.org/TR/trace-context/
    correlation_id: str = "x-correlation-id"
    """
    Correlation id (see [trace & context](https://www.w3.org/TR/trace-context/)).
    """
    trace_id: str = "x-trace-id"
    """
    Trace id (see [trace & context](https://www.w3.org/TR/trace-context/)).
    """
    account_id: str = "x-account-id"
    """
    ID of the authenticated account, set by the authentication layer in front of the service.
    """

    @staticmethod
    def get_correlation_id(request: Request) -> Optional[str]:
        """

        Parameters:
            request: incoming request
        Return:
            Correlation id of the request, if provided.
        """
        return request.headers.get(GraaspHeaders.correlation_id, None)

    @staticmethod
    def get_trace_id(request: Request) -> Optional[str]:
        """

        Parameters:
            request: incoming request
        Return:
            Trace id of the request, if provided.
        """
        return request.headers.get(GraaspHeaders.trace_id, None)

    @staticmethod
    def get_account_id(request: Request) -> Optional[str]:
        """

        Parameters:
            request: incoming request
        Return:
            ID of the authenticated account, if provided.
        """
        return request.headers.get(GraaspHeaders.account_id, None)


def to_serializable_json_leaf(v):
    if isinstance(v, Path):
        return str(v)
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, datetime.datetime):
        return v.isoformat()
    if isinstance(v, (int, float, str, bool)):
        return v
    if v is None:
        return None
    if isinstance(v, Callable):
        return {}
    if isinstance(v, Iterable):
        return [to_serializable_json_leaf(e) for e in v]
    # This is the case of a custom class not deriving from 'BaseModel' => no serialization
    return {}


def is_json_leaf(v):
    return (
        not isinstance(v, dict)
        and not isinstance(v, list)
        and not isinstance(v, BaseModel)
    )


def to_json_rec(_obj: Union[AnyDict, list, JSON]):
    def process_value(value):
        if is_json_leaf(value):
            return to_serializable_json_leaf(value)
        if isinstance(value, BaseModel):
            return to_json_rec(value.dict())
        return to_json_rec(value)

    if isinstance(_obj, dict):
        return {k: process_value(v) for k, v in _obj.items()}

    if isinstance(_obj, list):
        return [process_value(v) for v in _obj]

    return {}


def to_json(obj: Union[BaseModel, JSON]) -> JSON:
    base = obj.dict() if isinstance(obj, BaseModel) else obj
    if is_json_leaf(base):
        return to_serializable_json_leaf(base)
    return to_json_rec(base)
