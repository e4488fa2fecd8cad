"""
This module gathers the item tree of Graasp: the hierarchy of items and the permissions of the accounts on them.

Responsibilities:
    *  store items as materialized paths (see :mod:`item_path <graasp.backends.tree.item_path>`).
    *  resolve the permission of an account on an item from the memberships defined on the item and its ancestors
    (see :mod:`permissions <graasp.backends.tree.permissions>`).
    *  grant and revoke memberships (see :mod:`memberships <graasp.backends.tree.memberships>`).
    *  create, update, move, copy, recycle, restore, purge and reorder items while enforcing the limits of the tree
    (see :mod:`hierarchy <graasp.backends.tree.hierarchy>`).
    *  bound and dispatch the requests targeting multiple items (see :mod:`bulk <graasp.backends.tree.bulk>`).

Accessibility:
    *  The operations can be called directly, given a session of a
    :class:`StorageInterface <graasp.backends.tree.storage.interfaces.StorageInterface>`.
    *  They are also served by the router returned by
    :func:`get_router <graasp.backends.tree.router.get_router>`; the authenticated account is provided by the
    header `x-account-id`.

Dependencies:
    *  Dependencies are gathered in the
    :class:`Configuration <graasp.backends.tree.configurations.Configuration>` class.
"""

# relative
from .bulk import BulkExecutor, guard_targets, requires_async
from .configurations import Configuration, Constants, Dependencies, Limits
from .registry import OPERATIONS, OperationType, RequestClass
from .router import get_router
from .storage import LocalStorage, StorageInterface, StorageSession
