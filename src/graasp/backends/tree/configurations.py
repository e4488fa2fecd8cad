# standard library
from collections.abc import Awaitable
from dataclasses import dataclass, field

# typing
from typing import Callable, Union

# relative
from .storage import StorageInterface


@dataclass(frozen=True)
class Constants:
    """
    Configuration's constants for the service.
    """

    default_order: float = 20
    """
    Gap between two consecutive siblings after a rescale, also the order of the first child of a folder.
    """
    rescale_order_threshold: float = 0.1
    """
    Siblings are rescaled when two consecutive orders are closer than this value.
    """
    folder_type: str = "folder"
    """
    The only item type accepting children.
    """
    copy_suffix: str = " (2)"
    """
    Suffix appended to the name of a copy when a sibling already has this name.
    """
    max_item_name_length: int = 500


@dataclass(frozen=True)
class Limits:
    """
    Limits enforced on the item tree, all of them are inclusive: reaching the value is allowed, exceeding it is not.
    """

    max_tree_levels: int = 15
    """
    Maximum depth of an item: a root is at depth 1.
    """
    max_number_of_children: int = 100
    """
    Maximum count of direct (non recycled) children of a folder.
    """
    max_descendants_for_delete: int = 5000
    max_descendants_for_update: int = 500
    max_descendants_for_move: int = 15000
    max_descendants_for_copy: int = 300
    max_targets_for_read_request: int = 100
    """
    Maximum count of target items for a bulk 'read' request.
    """
    max_targets_for_modify_request: int = 20
    """
    Maximum count of target items for a bulk 'modify' request.
    """
    max_targets_for_modify_request_w_response: int = 5
    """
    Above this count of target items, bulk 'modify' requests are processed asynchronously: the caller gets
    an acknowledgment and the results are delivered through the data reporters of the context.
    """
    recycle_grace_days: int = 90
    """
    Recycled items older than this count of days are purged by
    :func:`purge_expired <graasp.backends.tree.hierarchy.purge_expired>`.
    """


@dataclass(frozen=True)
class Configuration:
    """
    Configuration of the service.
    """

    storage: StorageInterface
    """
    Transactional storage of items, memberships, accounts and recycled data.
    """

    limits: Limits = field(default_factory=Limits)
    """
    Limits of the tree.
    """


class Dependencies:
    get_configuration: Callable[[], Union[Configuration, Awaitable[Configuration]]]


async def get_configuration():
    conf = Dependencies.get_configuration()
    if isinstance(conf, Configuration):
        return conf
    return await conf
