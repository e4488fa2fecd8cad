# standard library
import asyncio
import traceback

from contextlib import asynccontextmanager

# third parties
import uvicorn

from fastapi import FastAPI

# Graasp backends
from graasp.backends.common import get_fastapi_app
from graasp.backends.tree import Configuration, LocalStorage
from graasp.backends.tree.maintenance import recycle_bin_cleaner

# Graasp utilities
from graasp.utils.context import (
    ConsoleContextReporter,
    Context,
    HttpContextReporter,
)

# relative
from .main_args import MainArguments, get_main_arguments


def create_app(arguments: MainArguments) -> FastAPI:
    reporter = ConsoleContextReporter()
    configuration = Configuration(storage=LocalStorage(arguments.database_path))

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        cleaner = asyncio.create_task(
            recycle_bin_cleaner(
                configuration=configuration,
                context=Context(logs_reporters=[reporter]),
                period=arguments.purge_period,
            )
        )
        yield
        cleaner.cancel()

    return get_fastapi_app(
        configuration=configuration,
        logs_reporter=reporter,
        data_reporter=(
            HttpContextReporter(url=arguments.notify_url)
            if arguments.notify_url
            else None
        ),
        lifespan=lifespan,
    )


def main():
    arguments = get_main_arguments()
    print(f"Serving the item tree on http://{arguments.host}:{arguments.port}")
    if arguments.database_path:
        print(f"Tree persisted in {arguments.database_path}")
    try:
        # noinspection PyTypeChecker
        uvicorn.run(
            create_app(arguments),
            host=arguments.host,
            port=arguments.port,
            log_level="info" if arguments.verbose else "critical",
        )
    except BaseException as e:
        print("".join(traceback.format_exception(type(e), value=e, tb=e.__traceback__)))
        raise e


if __name__ == "__main__":
    main()
