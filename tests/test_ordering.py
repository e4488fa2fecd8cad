# standard library
import datetime
import uuid

# typing
from typing import Optional

# third parties
import pytest

# Graasp backends
from graasp.backends.tree import Limits, LocalStorage
from graasp.backends.tree.hierarchy import create_item, reorder_item
from graasp.backends.tree.item_path import build_path
from graasp.backends.tree.models import Item, ItemBody, PermissionLevel
from graasp.backends.tree.ordering import (
    first_order,
    fix_order_for_tree,
    last_order,
    needs_rescale,
    next_order,
)

# Graasp utilities
from graasp.utils.context import Context
from graasp.utils.exceptions import CannotReorderRootItem, MemberCannotWriteItem

# relative
from .helpers import add_account, add_item, grant

epoch = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)


def make_child(order: Optional[float], index: int = 0, name: str = "") -> Item:
    item_id = uuid.uuid4().hex
    timestamp = epoch + datetime.timedelta(seconds=index)
    return Item(
        id=item_id,
        name=name or item_id,
        type="folder",
        path=build_path("parent", item_id),
        order=order,
        createdAt=timestamp,
        updatedAt=timestamp,
    )


def sort_siblings(children: list[Item]) -> list[Item]:
    return sorted(children, key=lambda item: (item.order, item.createdAt))


class TestOrderKeys:
    def test_first(self):
        assert first_order([]) == 20
        assert first_order([make_child(20), make_child(40)]) == 10
        assert first_order([make_child(0)]) == 20

    def test_last(self):
        assert last_order([]) == 20
        assert last_order([make_child(20), make_child(None), make_child(60)]) == 80

    def test_next(self):
        a, b = make_child(20), make_child(40)
        assert next_order([a, b], a.id) == 30
        assert next_order([a, b], b.id) == 60
        # unknown previous sibling: placed last
        assert next_order([a, b], "unknown") == 60

    def test_needs_rescale(self):
        assert not needs_rescale([])
        assert not needs_rescale([make_child(None)])
        assert not needs_rescale([make_child(20), make_child(40)])
        assert needs_rescale([make_child(20), make_child(None)])
        assert needs_rescale([make_child(20), make_child(20)])
        assert needs_rescale([make_child(20), make_child(20.05)])
        assert not needs_rescale([make_child(20), make_child(20.05)], check_interval=False)

    def test_repeated_insertions_after_same_sibling(self):
        anchor = make_child(first_order([]), index=0, name="anchor")
        children = [anchor]
        rescales = 0
        for index in range(1, 1001):
            order = next_order(children, anchor.id)
            children.append(make_child(order, index=index, name=f"item-{index}"))
            if needs_rescale(children):
                rescales += 1
                children = [
                    child.copy(update={"order": 20 * (rank + 1)})
                    for rank, child in enumerate(sort_siblings(children))
                ]
            anchor = next(child for child in children if child.name == "anchor")

        ordered = sort_siblings(children)
        assert rescales > 0
        assert [child.name for child in ordered] == [
            "anchor",
            *[f"item-{index}" for index in range(1000, 0, -1)],
        ]
        orders = [child.order for child in ordered]
        assert len(set(orders)) == len(orders)
        assert min(b - a for a, b in zip(orders, orders[1:])) >= 0.1


@pytest.mark.asyncio
class TestOrderInStorage:
    async def test_insertions_trigger_rescale(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        anchor = await add_item(storage, owner, "anchor", context, parent=root)
        for index in range(1, 31):
            await add_item(
                storage, owner, f"item-{index}", context, parent=root, previous=anchor
            )

        async with storage.transaction() as session:
            children = await session.get_children(root.path)

        assert [child.name for child in children] == [
            "anchor",
            *[f"item-{index}" for index in range(30, 0, -1)],
        ]
        orders = [child.order for child in children]
        assert not needs_rescale(children)
        assert len(set(orders)) == len(orders)

    async def test_insertions_between_siblings(
        self, storage: LocalStorage, context: Context
    ):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        before = await add_item(storage, owner, "before", context, parent=root)
        anchor = await add_item(
            storage, owner, "anchor", context, parent=root, previous=before
        )
        after = await add_item(
            storage, owner, "after", context, parent=root, previous=anchor
        )
        limits = Limits(max_number_of_children=2000)

        async with storage.transaction() as session:
            created = [
                await create_item(
                    session=session,
                    actor=owner,
                    body=ItemBody(
                        name=f"item-{index}", parentId=root.id, previousItemId=anchor.id
                    ),
                    limits=limits,
                    context=context,
                )
                for index in range(1, 1001)
            ]
            children = await session.get_children(root.path)
            assert [child.name for child in children] == [
                "before",
                "anchor",
                *[f"item-{index}" for index in range(1000, 0, -1)],
                "after",
            ]
            assert not needs_rescale(children)

            await reorder_item(session, owner, created[0].id, before.id, context)
            children = await session.get_children(root.path)

        assert [child.name for child in children] == [
            "before",
            "item-1",
            "anchor",
            *[f"item-{index}" for index in range(1000, 1, -1)],
            "after",
        ]
        assert children[0].id == before.id
        assert children[-1].id == after.id

    async def test_fix_order_for_tree(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        a = await add_item(storage, owner, "a", context, parent=root)
        b = await add_item(storage, owner, "b", context, parent=root)

        async with storage.transaction() as session:
            await session.update_items(
                [a.copy(update={"order": None}), b.copy(update={"order": 5})]
            )
            assert await fix_order_for_tree(session, root, context) == 1
            assert await fix_order_for_tree(session, root, context) == 0
            children = await session.get_children(root.path)

        assert [(child.name, child.order) for child in children] == [("b", 20), ("a", 40)]

    async def test_reorder(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        root = await add_item(storage, owner, "root", context)
        a = await add_item(storage, owner, "a", context, parent=root)
        b = await add_item(storage, owner, "b", context, parent=root, previous=a)
        c = await add_item(storage, owner, "c", context, parent=root, previous=b)

        async with storage.transaction() as session:
            await reorder_item(session, owner, c.id, None, context)
            assert [x.name for x in await session.get_children(root.path)] == ["c", "a", "b"]
            await reorder_item(session, owner, c.id, a.id, context)
            assert [x.name for x in await session.get_children(root.path)] == ["a", "c", "b"]
            await reorder_item(session, owner, a.id, b.id, context)
            assert [x.name for x in await session.get_children(root.path)] == ["c", "b", "a"]

    async def test_reorder_rejected(self, storage: LocalStorage, context: Context):
        owner = await add_account(storage, "owner")
        reader = await add_account(storage, "reader")
        root = await add_item(storage, owner, "root", context)
        child = await add_item(storage, owner, "child", context, parent=root)
        await grant(storage, reader, root, PermissionLevel.READ)

        async with storage.transaction() as session:
            with pytest.raises(CannotReorderRootItem):
                await reorder_item(session, owner, root.id, None, context)
            with pytest.raises(MemberCannotWriteItem):
                await reorder_item(session, reader, child.id, None, context)
