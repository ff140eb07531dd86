"""Tests for the MaterializedPathTree high-level API."""

import logging

import pytest

from mpathtree import TreeNode, TreeConfig, OnDelete, ParentNotFound
from mpathtree.aio import (
    MaterializedPathTree,
    InMemoryNodeStore,
    CachingNodeStore,
    LoggingObserver,
)
from mpathtree.testing import RecordingObserver, build_store


async def make_tree(nodes, config=None, observer=None, **data):
    """Build a tree over a seeded in-memory store."""
    store = await build_store(nodes, **data)
    return MaterializedPathTree(store, config=config, observer=observer), store


def ids(nodes):
    return [n.id for n in nodes]


class TestWorkedExample:
    """Move then delete with REPARENT, end to end."""

    @pytest.mark.asyncio
    async def test_move_and_reparent(self):
        tree = MaterializedPathTree(InMemoryNodeStore())

        r1 = await tree.save(TreeNode(id="r1"))
        r2 = await tree.save(TreeNode(id="r2"))
        c = await tree.save(TreeNode(id="c1", parent_id="r1"))
        gc = await tree.save(TreeNode(id="gc1", parent_id="c1"))

        assert (r1.path, r2.path, c.path, gc.path) == ("r1", "r2", "r1#c1", "r1#c1#gc1")

        await tree.move(c, "r2")
        assert c.path == "r2#c1"
        gc = await tree.store.find_one({"_id": "gc1"})
        assert gc.path == "r2#c1#gc1"

        await tree.remove(c)
        gc = await tree.store.find_one({"_id": "gc1"})
        assert gc.parent_id == "r2"
        assert gc.path == "r2#gc1"
        assert await tree.store.find_one({"_id": "c1"}) is None


class TestSave:

    @pytest.mark.asyncio
    async def test_unchanged_parent_skips_maintenance(self):
        tree, store = await make_tree([("r1", None), ("c1", "r1")])
        c1 = await store.find_one({"_id": "c1"})
        c1.data["name"] = "renamed"

        await tree.save(c1)

        assert store.calls['find_one'] == 1
        assert store.document("c1")["name"] == "renamed"

    @pytest.mark.asyncio
    async def test_save_with_missing_parent_writes_nothing(self):
        tree = MaterializedPathTree(InMemoryNodeStore())

        with pytest.raises(ParentNotFound):
            await tree.save(TreeNode(id="c1", parent_id="ghost"))

        assert len(tree.store) == 0

    @pytest.mark.asyncio
    async def test_move_back_and_forth(self):
        tree, store = await make_tree([("r1", None), ("r2", None), ("c1", "r1"), ("gc1", "c1")])
        c1 = await store.find_one({"_id": "c1"})

        await tree.move(c1, "r2")
        await tree.move(c1, "r1")

        assert store.document("gc1")["path"] == "r1#c1#gc1"

    @pytest.mark.asyncio
    async def test_delete_mode_from_options(self):
        config = TreeConfig.from_options({"onDelete": "DELETE"})
        tree, store = await make_tree([("r1", None), ("c1", "r1"), ("gc1", "c1"), ("c2", "r1")],
                                      config=config)
        assert await tree.remove(await store.find_one({"_id": "c1"})) == 1
        assert sorted(store.document(i)["_id"] for i in ("r1", "c2")) == ["c2", "r1"]
        assert "gc1" not in store

    @pytest.mark.asyncio
    async def test_lifecycle_calls_delegate(self):
        tree, store = await make_tree([("r1", None)])
        node = TreeNode(id="c1", parent_id="r1")

        assert await tree.on_create(node) == "r1#c1"
        await store.save(node)

        node.parent_id = None
        assert await tree.on_parent_change(node) == "c1"
        assert tree.config.on_delete is OnDelete.REPARENT
        assert await tree.on_delete(TreeNode(id="unsaved")) == 0

    @pytest.mark.asyncio
    async def test_default_observer_logs(self, caplog):
        tree, store = await make_tree([("r1", None), ("r2", None), ("c1", "r1"), ("gc1", "c1")])
        assert isinstance(tree.observer, LoggingObserver)

        with caplog.at_level(logging.DEBUG, logger="mpathtree"):
            await tree.move(await store.find_one({"_id": "c1"}), "r2")

        assert any("finished" in record.getMessage() for record in caplog.records)


class TestReadQueries:

    TREE = [("r1", None), ("c1", "r1"), ("gc1", "c1"), ("c2", "r1"), ("r2", None)]

    @pytest.mark.asyncio
    async def test_immediate_children(self):
        tree, store = await make_tree(self.TREE, c1={"kind": "a"}, c2={"kind": "b"})
        r1 = await store.find_one({"_id": "r1"})

        assert ids(await tree.get_immediate_children(r1)) == ["c1", "c2"]
        assert ids(await tree.get_immediate_children(r1, {"kind": "b"})) == ["c2"]
        assert ids(await tree.get_immediate_children(r1, {"$query": {"kind": "a"}})) == ["c1"]

    @pytest.mark.asyncio
    async def test_all_children(self):
        tree, store = await make_tree(self.TREE)
        r1 = await store.find_one({"_id": "r1"})

        found = await tree.get_all_children(r1, sort={"path": 1})
        assert ids(found) == ["c1", "gc1", "c2"]

    @pytest.mark.asyncio
    async def test_all_children_keeps_caller_path_constraint(self):
        tree, store = await make_tree(self.TREE)
        r1 = await store.find_one({"_id": "r1"})

        found = await tree.get_all_children(r1, {"path": {"$regex": "c1"}})
        assert sorted(ids(found)) == ["c1", "gc1"]

    @pytest.mark.asyncio
    async def test_parent(self):
        tree, store = await make_tree(self.TREE)
        gc1 = await store.find_one({"_id": "gc1"})
        r1 = await store.find_one({"_id": "r1"})

        assert (await tree.get_parent(gc1)).id == "c1"
        assert await tree.get_parent(r1) is None

    @pytest.mark.asyncio
    async def test_parent_projection(self):
        tree, store = await make_tree(self.TREE, c1={"name": "C", "secret": 1})
        gc1 = await store.find_one({"_id": "gc1"})

        parent = await tree.get_parent(gc1, fields={"secret": 0})

        assert parent.id == "c1"
        assert parent.data == {"name": "C"}
        assert (await tree.get_parent(gc1, fields="name")).data == {"name": "C"}

    @pytest.mark.asyncio
    async def test_ancestors_with_integer_ids(self):
        tree, store = await make_tree([(1, None), (2, 1), (3, 2), (4, None)])
        node = await store.find_one({"_id": 3})

        assert ids(await tree.get_ancestors(node)) == [1, 2]
        assert (await tree.get_parent(node)).id == 2

    @pytest.mark.asyncio
    async def test_ancestors_root_first(self):
        tree, store = await make_tree(self.TREE)
        gc1 = await store.find_one({"_id": "gc1"})

        assert ids(await tree.get_ancestors(gc1)) == ["r1", "c1"]
        assert ids(await tree.get_ancestors(gc1, sort={"_id": -1})) == ["r1", "c1"]
        assert await tree.get_ancestors(await store.find_one({"_id": "r1"})) == []

    @pytest.mark.asyncio
    async def test_level(self):
        tree, store = await make_tree(self.TREE)
        assert tree.level(await store.find_one({"_id": "gc1"})) == 3


class TestChildrenTree:

    TREE = [("r1", None), ("c1", "r1"), ("gc1", "c1"), ("c2", "r1"), ("r2", None)]
    DATA = {
        "r1": {"name": "b", "secret": 1},
        "c1": {"name": "z"},
        "gc1": {"name": "g"},
        "c2": {"name": "a"},
        "r2": {"name": "a"},
    }

    @pytest.mark.asyncio
    async def test_full_tree(self):
        tree, _ = await make_tree(self.TREE, **self.DATA)
        roots = await tree.get_children_tree()

        assert ids(roots) == ["r1", "r2"]
        assert ids(roots[0].children) == ["c1", "c2"]
        assert ids(roots[0].children[0].children) == ["gc1"]

    @pytest.mark.asyncio
    async def test_input_order_does_not_matter(self):
        """The query sorts by path, so storage order is irrelevant."""
        store = InMemoryNodeStore()
        for node_id, parent_id, path in [("gc1", "c1", "r1#c1#gc1"), ("c1", "r1", "r1#c1"),
                                         ("r1", None, "r1")]:
            await store.save(TreeNode(id=node_id, parent_id=parent_id, path=path))
        roots = await MaterializedPathTree(store).get_children_tree()

        assert ids(roots) == ["r1"]
        assert ids(roots[0].children[0].children) == ["gc1"]

    @pytest.mark.asyncio
    async def test_post_fetch_sort(self):
        tree, _ = await make_tree(self.TREE, **self.DATA)
        roots = await tree.get_children_tree(sort={"name": 1})

        assert ids(roots) == ["r2", "r1"]
        assert ids(roots[1].children) == ["c2", "c1"]

    @pytest.mark.asyncio
    async def test_scoped_to_root(self):
        tree, store = await make_tree(self.TREE, **self.DATA)
        r1 = await store.find_one({"_id": "r1"})

        roots = await tree.get_node_children_tree(r1)
        assert ids(roots) == ["c1", "c2"]
        assert ids(roots[0].children) == ["gc1"]

    @pytest.mark.asyncio
    async def test_level_window(self):
        """Only second-level nodes, each without children."""
        tree, _ = await make_tree(self.TREE, **self.DATA)
        roots = await tree.get_children_tree(min_level=2, max_level=2)

        assert ids(roots) == ["c1", "c2"]
        assert all(root.children == [] for root in roots)

    @pytest.mark.asyncio
    async def test_filters_and_projection(self):
        tree, _ = await make_tree(self.TREE, **self.DATA)
        roots = await tree.get_children_tree(filters={"name": {"$in": ["b", "z"]}}, fields="name")

        assert ids(roots) == ["r1"]
        assert ids(roots[0].children) == ["c1"]
        assert roots[0].data == {"name": "b"}
        assert roots[0].path == "r1"

    @pytest.mark.asyncio
    async def test_exclusion_projection(self):
        tree, _ = await make_tree(self.TREE, **self.DATA)
        roots = await tree.get_children_tree(fields={"secret": 0})

        assert roots[0].data == {"name": "b"}
        assert roots[0].children[0].data == {"name": "z"}
        assert ids(roots[0].children[0].children) == ["gc1"]

    @pytest.mark.asyncio
    async def test_caller_filter_not_mutated(self):
        tree, store = await make_tree(self.TREE, **self.DATA)
        filters = {"name": "z"}
        await tree.get_children_tree(root=await store.find_one({"_id": "r1"}), filters=filters)
        assert filters == {"name": "z"}

    @pytest.mark.asyncio
    async def test_query_arguments_reach_store(self):
        tree, store = await make_tree(self.TREE, **self.DATA)
        store.populators["name"] = str.upper

        roots = await tree.get_children_tree(fields={"name": 1}, populate="name")

        assert roots[0].data["name"] == "B"


class TestCachedLookups:

    @pytest.mark.asyncio
    async def test_cache_enabled_by_config(self):
        store = await build_store([("r1", None), ("c1", "r1")] + [(f"g{i}", "c1") for i in range(5)])
        tree = MaterializedPathTree(store, TreeConfig(cache_lookups=True, cache_ttl=30))

        assert isinstance(tree.store, CachingNodeStore)
        assert tree.store.base_store is store

        await tree.remove(await tree.store.find_one({"_id": "c1"}))

        stats = tree.store.get_cache_stats()
        assert stats['cache_hits'] >= 4
        for i in range(5):
            assert store.document(f"g{i}")["path"] == f"r1#g{i}"

    @pytest.mark.asyncio
    async def test_observer_injection(self):
        observer = RecordingObserver()
        tree, store = await make_tree([("r1", None), ("r2", None), ("c1", "r1")], observer=observer)

        await tree.move(await store.find_one({"_id": "c1"}), "r2")

        assert observer.kinds() == ['cascade_started', 'cascade_finished']
