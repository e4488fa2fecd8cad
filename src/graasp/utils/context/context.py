# future
from __future__ import annotations

# standard library
import asyncio
import time
import traceback
import uuid

from dataclasses import dataclass, field
from types import TracebackType

# typing
from typing import cast

# third parties
from fastapi import HTTPException
from pydantic import BaseModel
from starlette.requests import Request

# relative
from ..utils import to_json
from .models import (
    ContextReporter,
    JsonLike,
    Label,
    LogEntry,
    LogLevel,
    StringLike,
    TContextAttr,
)


@dataclass(frozen=True)
class Context:
    """
    Context objects trace the execution flow of the item tree operations: they log information and propagate
    contextual attributes (item IDs, account ID, *etc.*) to their children.

    Every operation of :mod:`graasp.backends.tree` receives a context and opens a child scope using
    [start](@yw-nav-meth:Context.start).
    """

    logs_reporters: list[ContextReporter] = field(default_factory=list)
    """
    Reporters of the logs, they are not meant to vehicle logic.
    """

    data_reporters: list[ContextReporter] = field(default_factory=list)
    """
    Reporters of the data emitted with [send](@yw-nav-meth:Context.send), *e.g.* the results of the bulk
    operations processed asynchronously.
    """

    request: Request | None = None
    """
    The incoming request, for contexts created by the
    [RootMiddleware](@yw-nav-class:graasp.utils.middlewares.root_middleware.RootMiddleware).
    """

    uid: str = "root"

    parent_uid: str | None = None

    trace_uid: str | None = None
    """
    ID shared by all the contexts of a trace, the `trace_uid` of the request if applicable.
    """

    with_attributes: dict[str, TContextAttr] = field(default_factory=dict)
    """
    Attributes attached to the logs of the context and of its children.
    """

    with_labels: list[str] = field(default_factory=list)
    """
    Labels attached to the logs of the context and of its children.
    """

    def start(
        self,
        action: str,
        with_labels: list[StringLike] | None = None,
        with_attributes: dict[str, TContextAttr] | None = None,
        body: BaseModel | None = None,
    ) -> ScopedContext:
        """
        Start a child context bound to an execution scope.

        Parameters:
            action: title of the context
            with_labels: labels added to the context and its children
            with_attributes: attributes added to the context and its children
            body: if provided, logged when entering the scope

        Return:
            The child context, to use with `async with`.

        **Example:**

        ```python
        async def recycle_items(session, actor, item_ids, limits, context: Context):
            async with context.start(
                action="recycle_items",
                with_attributes={"accountId": actor.id},
            ) as ctx:
                await ctx.info("Items recycled", data={"ids": item_ids})
        ```
        """
        return ScopedContext(
            action=action,
            body=body,
            logs_reporters=self.logs_reporters,
            data_reporters=self.data_reporters,
            request=self.request,
            uid=str(uuid.uuid4()),
            parent_uid=self.uid,
            trace_uid=self.trace_uid,
            with_labels=[*self.with_labels, *(with_labels or [])],
            with_attributes={**self.with_attributes, **(with_attributes or {})},
        )

    @staticmethod
    def start_ep(
        request: Request,
        action: str | None = None,
        with_labels: list[StringLike] | None = None,
        with_attributes: dict[str, TContextAttr] | None = None,
        body: BaseModel | None = None,
    ) -> ScopedContext:
        """
        Start a context when reaching an end point, child of the context of the request.

        Parameters:
            request: incoming request
            action: title of the context, by default the method and path of the request
            with_labels: labels added to the context and its children
            with_attributes: attributes added to the context and its children
            body: body of the request, logged when entering the scope

        Return:
            The scoped context.
        """
        context = cast(Context, request.state.context)
        return context.start(
            action=action or f"{request.method}: {request.scope['path']}",
            with_labels=[Label.END_POINT, *(with_labels or [])],
            with_attributes={"method": request.method, **(with_attributes or {})},
            body=body,
        )

    async def log(
        self,
        level: LogLevel,
        text: str,
        labels: list[StringLike] | None = None,
        attributes: dict[str, TContextAttr] | None = None,
        data: JsonLike | None = None,
    ):
        if not self.data_reporters and not self.logs_reporters:
            return

        label_level = {
            LogLevel.DATA: Label.DATA,
            LogLevel.WARNING: Label.LOG_WARNING,
            LogLevel.INFO: Label.LOG_INFO,
            LogLevel.ERROR: Label.LOG_ERROR,
        }[level]
        entry = LogEntry(
            level=level,
            text=text,
            data=to_json(data) if data else {},
            labels=[
                str(label)
                for label in [*self.with_labels, label_level, *(labels or [])]
            ],
            attributes={**self.with_attributes, **(attributes or {})},
            context_id=self.uid,
            parent_context_id=self.parent_uid,
            trace_uid=self.trace_uid,
            timestamp=time.time() * 1e6,
        )
        if level == LogLevel.DATA:
            await asyncio.gather(*[reporter.log(entry) for reporter in self.data_reporters])

        await asyncio.gather(*[reporter.log(entry) for reporter in self.logs_reporters])

    async def send(
        self,
        data: BaseModel,
        labels: list[StringLike] | None = None,
        attributes: dict[str, TContextAttr] | None = None,
    ):
        """
        Send data through the data reporters, the name of the data's class is added to the labels.
        """
        await self.log(
            level=LogLevel.DATA,
            text=f"Send data '{data.__class__.__name__}'",
            labels=[data.__class__.__name__, *(labels or [])],
            attributes=attributes,
            data=data,
        )

    async def info(
        self,
        text: str,
        labels: list[StringLike] | None = None,
        data: JsonLike | None = None,
        attributes: dict[str, TContextAttr] | None = None,
    ):
        await self.log(
            level=LogLevel.INFO,
            text=text,
            labels=labels,
            attributes=attributes,
            data=data,
        )

    async def error(
        self,
        text: str,
        labels: list[StringLike] | None = None,
        data: JsonLike | None = None,
        attributes: dict[str, TContextAttr] | None = None,
    ):
        await self.log(
            level=LogLevel.ERROR,
            text=text,
            labels=labels,
            attributes=attributes,
            data=data,
        )

    async def failed(
        self,
        text: str,
        labels: list[StringLike] | None = None,
        data: JsonLike | None = None,
        attributes: dict[str, TContextAttr] | None = None,
    ):
        """
        Log an error tagged `FAILED`: the scope failed even though no exception has been raised
        (*e.g.* a request resolved to an error status).
        """
        await self.log(
            level=LogLevel.ERROR,
            text=text,
            labels=[Label.FAILED, *(labels or [])],
            attributes=attributes,
            data=data,
        )

    async def future(
        self,
        text: str,
        future: asyncio.Future | None = None,
        labels: list[StringLike] | None = None,
        data: JsonLike | None = None,
    ):
        """
        Log that an asynchronous task has been scheduled without being awaited.

        Parameters:
            text: text of the log
            future: if provided, its completion (or cancellation) is logged as well
            labels: additional labels
            data: associated data
        """
        labels = labels or []
        await self.log(
            level=LogLevel.INFO, text=text, labels=[Label.FUTURE, *labels], data=data
        )
        if future is None:
            return

        def done_callback(task: asyncio.Future):
            if task.cancelled():
                level, suffix, label = LogLevel.WARNING, "cancelled", None
            elif task.exception() is not None:
                level, suffix = LogLevel.ERROR, "resolved with exception"
                label = Label.FUTURE_FAILED
            else:
                level, suffix = LogLevel.INFO, "resolved successfully"
                label = Label.FUTURE_SUCCEEDED
            asyncio.ensure_future(
                self.log(
                    level=level,
                    text=f"Future '{text}' {suffix}",
                    labels=[label, *labels] if label else labels,
                    data=data,
                )
            )

        future.add_done_callback(done_callback)


@dataclass(frozen=True)
class ScopedContext(Context):
    """
    A context bound to an execution scope, used as async context manager: it logs the start of the scope,
    its duration on exit, or the exception that ended it (the exception is never swallowed).

    Scoped contexts are created using [start](@yw-nav-meth:Context.start) and
    [start_ep](@yw-nav-meth:Context.start_ep).
    """

    action: str = ""
    body: BaseModel | None = None

    @property
    def start_time(self) -> float:
        return self._start_time[0]

    _start_time: list[float] = field(default_factory=lambda: [time.time()])

    async def __aenter__(self):
        # the context is attached to the request for the end points
        if self.request and self.request.state:
            self.request.state.context = self

        self._start_time[0] = time.time()
        await self.info(text=self.action, labels=[Label.STARTED])
        if self.body:
            await self.info("Body", data=self.body)
        return self

    async def __aexit__(
        self,
        exc_type: type[Exception] | None,
        exc: Exception | None,
        tb: TracebackType | None,
    ):
        if exc:
            await self.error(
                text=f"Exception: {str(exc)}",
                data={
                    "detail": (
                        exc.detail
                        if isinstance(exc, HTTPException)
                        else "No detail available"
                    ),
                    "traceback": traceback.format_exc().split("\n"),
                },
                labels=[Label.EXCEPTION, Label.FAILED],
            )
            return False

        await self.info(
            text=f"{self.action} in {int(1000 * (time.time() - self.start_time))} ms",
            labels=[Label.DONE],
        )
        return False

