# standard library
import builtins

from abc import ABC, abstractmethod
from enum import Enum

# typing
from typing import Any, NamedTuple, Union

# third parties
from pydantic import BaseModel

# relative
from ..types import JSON

JsonLike = Union[JSON, BaseModel]
"""
Represents data structures that can be serialized into a json representation
(can also be `JSON` referencing `BaseModel`).
"""


class LogLevel(str, Enum):
    """
    Available severities when logging.
    """

    INFO = "INFO"
    """
    See :meth:`info <graasp.utils.context.context.Context.info>`.
    """

    WARNING = "WARNING"
    """
    Used when a [future](@yw-nav-meth:graasp.utils.context.context.Context.future) is cancelled.
    """

    ERROR = "ERROR"
    """
    See :meth:`error <graasp.utils.context.context.Context.error>`.
    """

    DATA = "DATA"
    """
    See :meth:`send <graasp.utils.context.context.Context.send>`.
    """


class Label(Enum):
    STARTED = "STARTED"
    LOG_INFO = "LOG_INFO"
    LOG_ERROR = "LOG_ERROR"
    LOG_WARNING = "LOG_WARNING"
    DATA = "DATA"
    DONE = "DONE"
    EXCEPTION = "EXCEPTION"
    FAILED = "FAILED"
    FUTURE = "FUTURE"
    FUTURE_SUCCEEDED = "FUTURE_SUCCEEDED"
    FUTURE_FAILED = "FUTURE_FAILED"
    API_GATEWAY = "API_GATEWAY"
    END_POINT = "END_POINT"
    TRANSACTION = "TRANSACTION"
    BULK_OPERATION = "BULK_OPERATION"


TContextAttr = int | str | bool
"""
Allowed :class:`context <graasp.utils.context.context.Context>`'s attribute types.
"""


class LogEntry(NamedTuple):
    """
    LogEntry represents a log, they are created from the class
    :class:`Context <graasp.utils.context.context.Context>` when
    :meth:`starting function <graasp.utils.context.context.Context.start>` or
    :meth:`end-point <graasp.utils.context.context.Context.start_ep>` as well as
    when logging information (e.g. :meth:`info <graasp.utils.context.context.Context.info>`).

    Log entries are processed by the :class:`ContextReporter` of the context.
    """

    level: LogLevel
    """
    Level (e.g. info, warning, error, *etc.*).
    """

    text: str
    """
    Text.
    """

    data: JSON
    """
    Data associated to the log.
    """
    labels: list[str]
    """
    Labels associated to the log.
    """
    attributes: builtins.dict[str, TContextAttr]
    """
    Attributes associated to the log.
    """
    context_id: str
    """
    The context ID that was used to generated this entry.
    """
    parent_context_id: str | None
    """
    The parent context ID that was used to generated this entry.
    """

    trace_uid: str | None
    """
    Trace ID (*i.e.*  root context ID).
    """

    timestamp: float
    """
    Timestamp: time in micro-second since EPOC.
    """

    def dict(self):
        return {
            "level": self.level.name,
            "attributes": self.attributes,
            "labels": self.labels,
            "text": self.text,
            "data": self.data,
            "contextId": self.context_id,
            "parentContextId": self.parent_context_id,
            "timestamp": self.timestamp,
            "traceUid": self.trace_uid,
        }


class ContextReporter(ABC):
    """
    Abstract class that implements log strategy (e.g. within terminal, file, REST call, *etc.*).
    """

    @abstractmethod
    async def log(self, entry: LogEntry):
        """
        Parameters:
            entry: the log entry to process
        """
        return NotImplemented


StringLike = Any

