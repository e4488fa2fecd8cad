# standard library
import argparse

from pathlib import Path

# typing
from typing import NamedTuple, Optional

parser = argparse.ArgumentParser()

parser.add_argument("--port", help="Specify the port")
parser.add_argument("--host", help="Specify the host")
parser.add_argument("--database", help="Path of the JSON file storing the tree")
parser.add_argument(
    "--notify-url",
    help="URL to which the results of the asynchronous bulk operations are POSTed",
)
parser.add_argument(
    "--purge-period",
    help="Period (in seconds) between two purges of the expired recycled items",
)
parser.add_argument(
    "--verbose", help='Configure uvicorn logging to "info"', action="store_true"
)


class MainArguments(NamedTuple):
    """
    Optional arguments that can be set when starting the service.

    Inline help for arguments description can be displayed using:
    ```shell
    graasp --help
    ```
    """

    port: int
    """
    Specify the port, exposed as **--port**.

    **Example**
    ```shell
    graasp --port=3000
    ```
    """
    host: str = "localhost"
    database_path: Optional[Path] = None
    """
    Path of the JSON file the tree is persisted in, exposed as **--database**.
    If not provided, the tree only lives in memory.
    """
    purge_period: int = 3600
    notify_url: Optional[str] = None
    """
    If provided, the data emitted by the service (*e.g.* results of asynchronous bulk operations) are POSTed
    to this URL, exposed as **--notify-url**.
    """
    verbose: bool = False
    """
    Configure uvicorn logging to "info", exposed as **--verbose**.
    """


def get_main_arguments(argv: Optional[list[str]] = None) -> MainArguments:
    args = parser.parse_args(argv)
    return MainArguments(
        port=int(args.port) if args.port else 3000,
        host=args.host if args.host else "localhost",
        database_path=Path(args.database) if args.database else None,
        purge_period=int(args.purge_period) if args.purge_period else 3600,
        notify_url=args.notify_url if args.notify_url else None,
        verbose=args.verbose if args.verbose else False,
    )
