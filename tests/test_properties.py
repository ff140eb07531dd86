"""Invariant checks over sequences of structural changes.

After any mix of creates, moves and removals every stored node must satisfy:
its path ends with its id, and its path is the parent's path plus the
separator plus its id (or just its id for roots).
"""

import random

import pytest

from mpathtree import TreeConfig, OnDelete, TreeNode, ancestor_ids
from mpathtree.aio import MaterializedPathTree, InMemoryNodeStore


async def assert_consistent(store, separator="#"):
    nodes = {node.id: node for node in await store.find({})}
    for node in nodes.values():
        assert node.path.split(separator)[-1] == node.key
        if node.parent_id is None:
            assert node.path == node.key
        else:
            parent = nodes[node.parent_id]
            assert node.path == parent.path + separator + node.key


def descendants_of(nodes, node_id):
    """Ids below ``node_id``, following parent links."""
    found = set()
    frontier = [node_id]
    while frontier:
        current = frontier.pop()
        for node in nodes:
            if node.parent_id == current and node.id not in found:
                found.add(node.id)
                frontier.append(node.id)
    return found


async def random_forest(tree, rng, size):
    ids = []
    for i in range(size):
        parent = rng.choice(ids + [None] * 2) if ids else None
        node_id = f"n{i}"
        await tree.save(TreeNode(id=node_id, parent_id=parent))
        ids.append(node_id)
    return ids


class TestInvariants:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("separator", ["#", "/", "."])
    async def test_random_moves_keep_paths_consistent(self, separator):
        rng = random.Random(1234)
        store = InMemoryNodeStore()
        tree = MaterializedPathTree(store, TreeConfig(path_separator=separator))
        ids = await random_forest(tree, rng, 40)

        for _ in range(60):
            nodes = await store.find({})
            node = rng.choice(nodes)
            blocked = descendants_of(nodes, node.id) | {node.id}
            targets = [n.id for n in nodes if n.id not in blocked] + [None]

            before = {n.id: n.path for n in nodes}
            old_path = node.path
            await tree.move(node, rng.choice(targets))

            # Descendants keep their suffix under the new prefix
            after = {n.id: n.path for n in await store.find({})}
            for descendant in descendants_of(nodes, node.id):
                assert after[descendant] == node.path + before[descendant][len(old_path):]

        await assert_consistent(store, separator)
        assert len(store) == len(ids)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [OnDelete.REPARENT, OnDelete.DELETE])
    async def test_random_removals_keep_paths_consistent(self, mode):
        rng = random.Random(99)
        store = InMemoryNodeStore()
        tree = MaterializedPathTree(store, TreeConfig(on_delete=mode))
        await random_forest(tree, rng, 40)

        for _ in range(15):
            nodes = await store.find({})
            if not nodes:
                break
            victim = rng.choice(nodes)
            doomed = descendants_of(nodes, victim.id)

            await tree.remove(victim)

            remaining = {n.id for n in await store.find({})}
            assert victim.id not in remaining
            if mode is OnDelete.DELETE:
                assert not doomed & remaining
            else:
                assert doomed <= remaining

            await assert_consistent(store)

    @pytest.mark.asyncio
    async def test_levels_match_ancestor_count(self):
        rng = random.Random(7)
        store = InMemoryNodeStore()
        tree = MaterializedPathTree(store)
        await random_forest(tree, rng, 30)

        for node in await store.find({}):
            assert tree.level(node) == len(ancestor_ids(node.path, "#")) + 1

    @pytest.mark.asyncio
    async def test_reconstruction_covers_every_node_once(self):
        rng = random.Random(3)
        store = InMemoryNodeStore()
        tree = MaterializedPathTree(store)
        ids = await random_forest(tree, rng, 50)

        seen = []
        stack = list(await tree.get_children_tree(sort={"_id": 1}))
        while stack:
            node = stack.pop()
            seen.append(node.id)
            for child in node.children:
                assert child.parent_id == node.id
            stack.extend(node.children)

        assert sorted(seen) == sorted(ids)
