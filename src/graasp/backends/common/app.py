# typing
from typing import Optional

# third parties
from fastapi import FastAPI
from starlette.requests import Request
from starlette.types import Lifespan

# Graasp backends
from graasp.backends.tree import Configuration, get_router

# Graasp utilities
from graasp.utils import (
    ContextReporter,
    DeployedContextReporter,
    GraaspException,
    graasp_exception_handler,
    unexpected_exception_handler,
)
from graasp.utils.middlewares.root_middleware import RootMiddleware


def get_fastapi_app(
    configuration: Configuration,
    prefix: str = "/api/items",
    logs_reporter: Optional[ContextReporter] = None,
    data_reporter: Optional[ContextReporter] = None,
    lifespan: Optional[Lifespan] = None,
) -> FastAPI:
    """
    Create the application serving the item tree.

    Parameters:
        configuration: configuration of the item tree.
        prefix: prefix of the end-points.
        logs_reporter: reporter of the logs, by default a
            [DeployedContextReporter](@yw-nav-class:graasp.utils.context.reporter.DeployedContextReporter).
        data_reporter: reporter of the data (e.g. results of asynchronous bulk operations), by default the
            `logs_reporter`.
        lifespan: optional lifespan of the application, e.g. to run maintenance tasks.

    Return:
        The application.
    """
    app = FastAPI(lifespan=lifespan)

    @app.exception_handler(GraaspException)
    async def expected_exception(request: Request, exc: GraaspException):
        return await graasp_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unexpected_exception(request: Request, exc: Exception):
        return await unexpected_exception_handler(request, exc)

    logs_reporter = logs_reporter or DeployedContextReporter()
    app.add_middleware(
        RootMiddleware,
        logs_reporter=logs_reporter,
        data_reporter=data_reporter or logs_reporter,
    )

    app.include_router(prefix=prefix, router=get_router(configuration))

    return app
