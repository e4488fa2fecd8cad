# standard library
import uuid

# typing
from typing import Optional

# third parties
from starlette.middleware.base import (
    BaseHTTPMiddleware,
    DispatchFunction,
    RequestResponseEndpoint,
)
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

# Graasp utilities
from graasp.utils.context import Context, ContextReporter, Label
from graasp.utils.utils import GraaspHeaders


class RootMiddleware(BaseHTTPMiddleware):
    """
    The first Middleware intercepting the request.

    Its purpose is mostly to set up the initial [context](@yw-nav-class:graasp.utils.context.Context),
    from the method [get_context](@yw-nav-meth:graasp.utils.middlewares.root_middleware.RootMiddleware.get_context)

    The context created here is then propagated through the middlewares stack up to the end-point destination.
    """

    black_list = ["authorization", "cookie"]

    def __init__(
        self,
        app: ASGIApp,
        logs_reporter: ContextReporter,
        data_reporter: Optional[ContextReporter],
        dispatch: Optional[DispatchFunction] = None,
        **_,
    ) -> None:
        """
        Parameters:
            app: The FastAPI application
            logs_reporter: The initial logs reporter of the context created at incoming request.
            data_reporter: The initial data reporter of the context created at incoming request.
            dispatch: Optional, forwarded to the parent starlette's `BaseHTTPMiddleware`.
        """
        super().__init__(app, dispatch)
        self.logs_reporters = [logs_reporter]
        self.data_reporters = [data_reporter] if data_reporter else []

    def get_context(self, request: Request):
        """
        Set up the initial context: eventual `trace_id` and `correlation_id` from the incoming request's
        headers define the `trace_uid` and `parent_uid` of the context.

        Parameters:
            request: incoming request
        """
        root_id = GraaspHeaders.get_correlation_id(request)
        trace_id = GraaspHeaders.get_trace_id(request)
        return Context(
            request=request,
            logs_reporters=self.logs_reporters,
            data_reporters=self.data_reporters,
            parent_uid=root_id,
            trace_uid=trace_id if trace_id else str(uuid.uuid4()),
            uid=root_id if root_id else "root",
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = self.get_context(request=request)

        async with context.start(
            action=f"{request.method}: {request.url.path}",
            with_attributes={"traceId": context.trace_uid},
            with_labels=[Label.API_GATEWAY],
        ) as ctx:
            await ctx.info(
                text="Root middleware => incoming request",
                data={
                    "url": request.url.path,
                    "method": request.method,
                    "headers": {
                        k: v if k.lower() not in self.black_list else "**black-listed**"
                        for k, v in request.headers.items()
                    },
                },
            )
            response = await call_next(request)

            await ctx.info(f"{request.method} {request.url.path}: {response.status_code}")
            # Only 4xx (client error) and 5xx (server error) are considered failure
            if response.status_code >= 400:
                await ctx.failed(f"Request resolved to error {response.status_code}")

            if response.status_code == 202:
                await ctx.future("202 : Request accepted, status not resolved yet")

            response.headers[GraaspHeaders.trace_id] = ctx.trace_uid
            return response
