"""
Guard and execution of the requests targeting multiple items.

Requests are validated against the limits of their
[RequestClass](@yw-nav-class:graasp.backends.tree.registry.RequestClass) before anything is executed.
Mutating requests with many targets are processed asynchronously: the caller gets an
[AcceptedResponse](@yw-nav-class:graasp.backends.tree.models.AcceptedResponse) and the outcome is sent as
[OperationResult](@yw-nav-class:graasp.backends.tree.models.OperationResult) through the data reporters of the
context (*e.g.* an [HttpContextReporter](@yw-nav-class:graasp.utils.context.reporter.HttpContextReporter)).
"""

# standard library
import asyncio

# typing
from typing import Union

# Graasp utilities
from graasp.utils.context import Context, Label
from graasp.utils.exceptions import (
    GraaspException,
    InvalidInput,
    ServerError,
    TooManyTargets,
)

# relative
from .configurations import Limits
from .memberships import get_account
from .models import AcceptedResponse, OperationResult, PurgeResponse
from .registry import (
    OPERATIONS,
    OperationDefinition,
    OperationOutput,
    OperationType,
    RequestClass,
)
from .storage import StorageInterface


def max_targets(request_class: RequestClass, limits: Limits) -> int:
    if request_class == RequestClass.READ:
        return limits.max_targets_for_read_request
    return limits.max_targets_for_modify_request


def guard_targets(item_ids: list[str], request_class: RequestClass, limits: Limits):
    """
    Validate the targets of a request.

    Raise:
        InvalidInput: no target, or duplicated targets.
        TooManyTargets: more targets than allowed for the request class.
    """
    if not item_ids:
        raise InvalidInput(error="No target item provided")
    if len(set(item_ids)) != len(item_ids):
        raise InvalidInput(error="Duplicated target items")
    max_count = max_targets(request_class, limits)
    if len(item_ids) > max_count:
        raise TooManyTargets(
            request_class=request_class.value, count=len(item_ids), max_count=max_count
        )


def requires_async(item_ids: list[str], request_class: RequestClass, limits: Limits) -> bool:
    """
    Return `True` if the request has to be processed asynchronously.
    """
    return (
        request_class == RequestClass.MODIFY_WITH_RESPONSE
        and len(item_ids) > limits.max_targets_for_modify_request_w_response
    )


def to_result(
    operation: OperationType, item_ids: list[str], output: OperationOutput
) -> OperationResult:
    if isinstance(output, PurgeResponse):
        return OperationResult(operation=operation.value, ids=item_ids, purged=output.items)
    return OperationResult(operation=operation.value, ids=item_ids, items=output)


class BulkExecutor:
    """
    Executes the operations of the [registry](@yw-nav-mod:graasp.backends.tree.registry) on multiple targets,
    each execution within one transaction of the storage.
    """

    def __init__(self, storage: StorageInterface, limits: Limits):
        self.storage = storage
        self.limits = limits
        self.tasks: set[asyncio.Task] = set()
        """
        Pending asynchronous executions.
        """

    async def execute(
        self,
        operation: OperationType,
        actor_id: str,
        item_ids: list[str],
        context: Context,
        **params,
    ) -> Union[OperationOutput, AcceptedResponse]:
        """
        Execute an operation.

        Parameters:
            operation: type of the operation
            actor_id: ID of the account requesting the operation, resolved within the transaction
            item_ids: targets
            context: current context
            params: additional parameters forwarded to the handler (e.g. `parent_id` for move)

        Return:
            The output of the handler, or an `AcceptedResponse` if the request is processed asynchronously.

        Raise:
            InvalidInput | TooManyTargets: the targets are rejected, nothing has been executed.
        """
        definition = OPERATIONS[operation]
        guard_targets(item_ids, definition.request_class, self.limits)

        async with context.start(
            action=f"bulk {definition.action}",
            with_labels=[Label.BULK_OPERATION],
            with_attributes={
                "operation": operation.value,
                "accountId": actor_id,
                "targetsCount": len(item_ids),
            },
        ) as ctx:
            if not requires_async(item_ids, definition.request_class, self.limits):
                return await self._run(definition, actor_id, item_ids, ctx, **params)

            task = asyncio.create_task(
                self._run_and_notify(definition, actor_id, item_ids, ctx, **params)
            )
            self.tasks.add(task)
            task.add_done_callback(self.tasks.discard)
            await ctx.future(
                f"Asynchronous {definition.action}",
                future=task,
                data={"ids": item_ids},
            )
            return AcceptedResponse(
                operation=operation.value, ids=item_ids, contextId=ctx.uid
            )

    async def _run(
        self,
        definition: OperationDefinition,
        actor_id: str,
        item_ids: list[str],
        context: Context,
        **params,
    ) -> OperationOutput:
        async with context.start(
            action=definition.action, with_labels=[Label.TRANSACTION]
        ) as ctx:
            async with self.storage.transaction() as session:
                actor = await get_account(session=session, account_id=actor_id)
                return await definition.handler(
                    session=session,
                    actor=actor,
                    item_ids=item_ids,
                    limits=self.limits,
                    context=ctx,
                    **params,
                )

    async def _run_and_notify(
        self,
        definition: OperationDefinition,
        actor_id: str,
        item_ids: list[str],
        context: Context,
        **params,
    ) -> OperationOutput:
        try:
            output = await self._run(definition, actor_id, item_ids, context, **params)
        except GraaspException as e:
            await context.send(
                OperationResult(
                    operation=definition.operation.value,
                    ids=item_ids,
                    errorType=e.exceptionType,
                    errorDetail=e.detail,
                )
            )
            raise
        except Exception as e:
            await context.send(
                OperationResult(
                    operation=definition.operation.value,
                    ids=item_ids,
                    errorType=ServerError.exceptionType,
                    errorDetail=str(e),
                )
            )
            raise
        await context.send(to_result(definition.operation, item_ids, output))
        return output
