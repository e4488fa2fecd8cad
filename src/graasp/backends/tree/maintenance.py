"""
Periodic maintenance of the item tree.
"""

# standard library
import asyncio

# Graasp utilities
from graasp.utils.context import Context, Label

# relative
from .configurations import Configuration
from .hierarchy import purge_expired
from .models import PurgeResponse


async def purge_recycle_bin(
    configuration: Configuration, context: Context
) -> PurgeResponse:
    """
    Purge, within one transaction, the items recycled for more than `Limits.recycle_grace_days` days.
    """
    async with context.start(
        action="purge_recycle_bin", with_labels=[Label.TRANSACTION]
    ) as ctx:
        async with configuration.storage.transaction() as session:
            return await purge_expired(
                session=session, limits=configuration.limits, context=ctx
            )


async def recycle_bin_cleaner(
    configuration: Configuration, context: Context, period: float
):
    """
    Purge the expired recycled items every `period` seconds, until cancelled.
    A failing purge is reported and retried at the next period.
    """
    while True:
        try:
            await purge_recycle_bin(configuration=configuration, context=context)
        except Exception as e:
            await context.error(f"Purge of the recycle bin failed: {e}")
        await asyncio.sleep(period)
