# standard library
import json

# typing
from typing import Any

# third parties
import aiohttp

# relative
from .models import ContextReporter, Label, LogEntry


class DeployedContextReporter(ContextReporter):
    """
    This [ContextReporter](@yw-nav-class:ContextReporter) logs into the standard
    output using a format understood by most cloud providers (*e.g.* using spanId, traceId).
    """

    async def log(self, entry: LogEntry):
        prefix = ""
        if str(Label.STARTED) in entry.labels:
            prefix = "<START>"

        if str(Label.DONE) in entry.labels:
            prefix = "<DONE>"
        base = {
            "message": f"{prefix} {entry.text}",
            "level": entry.level.name,
            "spanId": entry.context_id,
            "labels": [str(label) for label in entry.labels],
            "traceId": entry.trace_uid,
        }

        try:
            print(json.dumps({**base, "data": entry.data}))
        except TypeError:
            print(
                json.dumps(
                    {
                        **base,
                        "message": f"{base['message']} (FAILED PARSING DATA IN JSON)",
                    }
                )
            )


class ConsoleContextReporter(ContextReporter):
    """
    This [ContextReporter](@yw-nav-class:ContextReporter) logs into the standard
    output.
    """

    async def log(self, entry: LogEntry):
        base = {
            "message": entry.text,
            "level": entry.level.name,
            "spanId": entry.context_id,
            "labels": [str(label) for label in entry.labels],
            "traceId": entry.trace_uid,
        }
        print(json.dumps(base))


class HttpContextReporter(ContextReporter):
    """
    This [ContextReporter](@yw-nav-class:ContextReporter) POSTs the entries to an HTTP end-point,
    *e.g.* a notification service forwarding the results of asynchronous bulk operations to the clients.

    The body of the request is `{"entries": [entry.dict()]}`.
    """

    url: str
    """
    URL of the end-point.
    """
    headers: dict[str, str]
    """
    Headers associated to the POST request.
    """

    def __init__(self, url: str, headers: dict[str, str] | None = None):
        super().__init__()
        self.url = url
        self.headers = headers or {}

    async def log(self, entry: LogEntry):
        body = {"entries": [entry.dict()]}
        async with aiohttp.ClientSession(headers=self.headers) as session:
            async with await session.post(url=self.url, json=body):
                # nothing to do
                pass


class InMemoryReporter(ContextReporter):
    """
    Stores logs generated from [context](graasp.utils.context.Context) in memory.
    """

    max_count = 10000
    """
    Maximum count of logs kept in memory.
    """

    def __init__(self):
        self.node_logs: list[LogEntry] = []
        """
        Logs opening a scope (created with `Context.start`).
        """
        self.leaf_logs: list[LogEntry] = []
        """
        All the other logs (e.g. `Context.info`).
        """
        self.errors: set[str] = set()
        """
        `context_id` associated to errors.
        """
        self.futures: dict[str, Label] = {}
        """
        Status of the futures by `context_id`: `FUTURE` while pending, then `FUTURE_SUCCEEDED` or `FUTURE_FAILED`.
        """

    def resize_if_needed(self, items: list[Any]):
        if len(items) > 2 * self.max_count:
            return items[len(items) - self.max_count :]
        return items

    async def log(self, entry: LogEntry):
        if str(Label.STARTED) in entry.labels:
            self.node_logs.append(entry)
        else:
            self.leaf_logs.append(entry)

        if str(Label.FAILED) in entry.labels:
            self.errors.add(entry.context_id)

        for label in [Label.FUTURE, Label.FUTURE_SUCCEEDED, Label.FUTURE_FAILED]:
            if str(label) in entry.labels:
                self.futures[entry.context_id] = label

        self.node_logs = self.resize_if_needed(self.node_logs)
        self.leaf_logs = self.resize_if_needed(self.leaf_logs)
