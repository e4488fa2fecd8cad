"""
Order keys of the siblings of a folder.

Children of a folder are sorted by `(order, createdAt)`, root items have no order. New keys are computed in between
existing ones so that a single row is written per insertion; when keys get too close to each other the siblings are
rescaled to multiples of :attr:`Constants.default_order <graasp.backends.tree.configurations.Constants.default_order>`.
"""

# typing
from typing import Optional

# Graasp utilities
from graasp.utils.context import Context

# relative
from .configurations import Constants
from .models import Item
from .storage import StorageSession


def _orders(siblings: list[Item]) -> list[float]:
    return sorted(item.order for item in siblings if item.order is not None)


def first_order(siblings: list[Item]) -> float:
    """
    Return an order key placing an item before all the `siblings`.
    """
    orders = _orders(siblings)
    if orders and orders[0] > 0:
        return orders[0] / 2
    return Constants.default_order


def last_order(siblings: list[Item]) -> float:
    """
    Return an order key placing an item after all the `siblings`.
    """
    orders = _orders(siblings)
    return orders[-1] + Constants.default_order if orders else Constants.default_order


def next_order(siblings: list[Item], previous_item_id: Optional[str]) -> float:
    """
    Return an order key placing an item right after the sibling `previous_item_id`: the midpoint between this sibling
    and its successor. If `previous_item_id` is not a sibling (or has no order) the item is placed last.

    Parameters:
        siblings: the other children of the parent
        previous_item_id: ID of the sibling to follow

    Return:
        The order key.
    """
    previous = next((item for item in siblings if item.id == previous_item_id), None)
    if not previous or previous.order is None:
        return last_order(siblings)
    following = [order for order in _orders(siblings) if order > previous.order]
    if not following:
        return previous.order + Constants.default_order
    return (previous.order + following[0]) / 2


def needs_rescale(children: list[Item], check_interval: bool = True) -> bool:
    """
    Return `True` if some orders are missing or duplicated, or (if `check_interval`) if two consecutive orders are
    closer than :attr:`Constants.rescale_order_threshold <graasp.backends.tree.configurations.Constants.rescale_order_threshold>`.
    """
    if len(children) < 2:
        return False
    orders = [item.order for item in children]
    if any(order is None for order in orders):
        return True
    if len(set(orders)) != len(orders):
        return True
    if not check_interval:
        return False
    ordered = sorted(orders)
    min_interval = min(b - a for a, b in zip(ordered, ordered[1:]))
    return min_interval < Constants.rescale_order_threshold


async def rescale_children(session: StorageSession, parent_path: str) -> list[Item]:
    # children come sorted by (order, createdAt): the relative order is kept
    children = await session.get_children(parent_path)
    rescaled = [
        child.copy(update={"order": Constants.default_order * (index + 1)})
        for index, child in enumerate(children)
    ]
    await session.update_items(rescaled)
    return rescaled


async def rescale_order(
    session: StorageSession, parent: Item, context: Context
) -> bool:
    """
    Rescale the orders of the children of `parent` if needed, see
    [needs_rescale](@yw-nav-func:graasp.backends.tree.ordering.needs_rescale).

    Return:
        `True` if the children have been rescaled.
    """
    children = await session.get_children(parent.path)
    if not needs_rescale(children):
        return False
    await rescale_children(session=session, parent_path=parent.path)
    await context.info(
        "Children orders rescaled",
        data={"parentId": parent.id, "count": len(children)},
    )
    return True


async def fix_order_for_tree(
    session: StorageSession, root: Item, context: Context
) -> int:
    """
    Rescale the children of every folder of the subtree of `root` (included) having missing or duplicated orders.

    Return:
        The count of folders rescaled.
    """
    items = await session.get_descendants(root.path, include_self=True)
    count = 0
    for folder in [item for item in items if item.type == Constants.folder_type]:
        children = await session.get_children(folder.path)
        if needs_rescale(children, check_interval=False):
            await rescale_children(session=session, parent_path=folder.path)
            count += 1
    if count:
        await context.info(f"Orders fixed for {count} folder(s)", data={"rootId": root.id})
    return count
