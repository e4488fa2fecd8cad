"""
Materialized paths of the item tree.

A path is the dot separated list of the IDs of an item's ancestors followed by the item's own ID, each ID having
its `-` replaced by `_` (e.g. `3f5c_1e2d.9a7b_44c0`). The first segment is the root of the tree, the last one
the item itself.

All functions are pure and run in O(path length).
"""

# typing
from typing import Optional

# Graasp utilities
from graasp.utils.exceptions import InvalidInput

SEPARATOR = "."


def _segment(item_id: str) -> str:
    if not item_id:
        raise InvalidInput(error="Empty item ID")
    segment = item_id.replace("-", "_")
    if SEPARATOR in segment:
        raise InvalidInput(error=f"Invalid item ID '{item_id}'")
    return segment


def _segments(path: str) -> list[str]:
    if not path:
        raise InvalidInput(error="Empty path")
    segments = path.split(SEPARATOR)
    if any(not segment for segment in segments):
        raise InvalidInput(error=f"Invalid path '{path}'")
    return segments


def build_path(*ids: str) -> str:
    """
    Parameters:
        ids: IDs from the root to the item.

    Return:
        The path.
    """
    if not ids:
        raise InvalidInput(error="Can not build a path without IDs")
    return SEPARATOR.join(_segment(item_id) for item_id in ids)


def child_path(parent: Optional[str], item_id: str) -> str:
    """
    Return the path of an item with ID `item_id` located below `parent` (`None` for a root item).
    """
    if parent is None:
        return _segment(item_id)
    return SEPARATOR.join([*_segments(parent), _segment(item_id)])


def ids_from_path(path: str) -> list[str]:
    return [segment.replace("_", "-") for segment in _segments(path)]


def child_id(path: str) -> str:
    """
    Return the ID of the item a path points to (its last segment).
    """
    return _segments(path)[-1].replace("_", "-")


def depth(path: str) -> int:
    """
    Return the number of segments of the path, a root item is at depth 1.
    """
    return len(_segments(path))


def parent_path(path: str) -> Optional[str]:
    segments = _segments(path)
    if len(segments) == 1:
        return None
    return SEPARATOR.join(segments[:-1])


def parent_id(path: str) -> Optional[str]:
    segments = _segments(path)
    if len(segments) == 1:
        return None
    return segments[-2].replace("_", "-")


def is_ancestor_of(ancestor: str, path: str) -> bool:
    """
    Return `True` if `ancestor` is a strict (segment-wise) prefix of `path`.
    `a.b` is not an ancestor of `a.bc`, and a path is not its own ancestor.
    """
    ancestor_segments = _segments(ancestor)
    segments = _segments(path)
    return (
        len(ancestor_segments) < len(segments)
        and segments[: len(ancestor_segments)] == ancestor_segments
    )


def is_ancestor_or_self(ancestor: str, path: str) -> bool:
    return ancestor == path or is_ancestor_of(ancestor, path)


def is_descendant_of(path: str, ancestor: str) -> bool:
    return is_ancestor_of(ancestor, path)


def is_direct_child(parent: str, path: str) -> bool:
    return is_ancestor_of(parent, path) and depth(path) == depth(parent) + 1


def rebase_path(path: str, old_prefix: str, new_prefix: Optional[str]) -> str:
    """
    Rewrite the path of an item located in the subtree of `old_prefix` when this subtree is moved
    below `new_prefix`.

    Parameters:
        path: path to rewrite, `old_prefix` or one of its descendants
        old_prefix: current path of the moved item
        new_prefix: path of the destination, `None` when moving to the root

    Return:
        The new path.
    """
    if not is_ancestor_or_self(old_prefix, path):
        raise InvalidInput(error=f"'{path}' is not located below '{old_prefix}'")
    moved_segment = _segments(old_prefix)[-1]
    tail = _segments(path)[depth(old_prefix) :]
    head = [moved_segment] if new_prefix is None else [*_segments(new_prefix), moved_segment]
    return SEPARATOR.join([*head, *tail])
