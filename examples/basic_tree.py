#!/usr/bin/env python3
"""
Basic materialized-path example using the in-memory store.

This example demonstrates:
- Saving nodes and letting paths be assigned
- Moving a subtree under a new parent
- Removing a node with its children reparented
- Rebuilding the nested tree from a flat query
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from mpathtree import TreeNode, TreeConfig
from mpathtree.aio import MaterializedPathTree, InMemoryNodeStore


def show(nodes, indent=0):
    for node in nodes:
        print(f"{'  ' * indent}{node.data.get('name', node.id)}  [{node.path}]")
        show(node.children, indent + 1)


async def main():
    """Build a small catalog, reshape it and print it."""
    tree = MaterializedPathTree(InMemoryNodeStore(), TreeConfig(cache_lookups=True))

    await tree.save(TreeNode(id="books", data={"name": "Books"}))
    await tree.save(TreeNode(id="music", data={"name": "Music"}))
    fiction = await tree.save(TreeNode(id="fiction", parent_id="books", data={"name": "Fiction"}))
    await tree.save(TreeNode(id="scifi", parent_id="fiction", data={"name": "Sci-Fi"}))
    await tree.save(TreeNode(id="fantasy", parent_id="fiction", data={"name": "Fantasy"}))

    print("Initial tree:")
    show(await tree.get_children_tree(sort={"name": 1}))

    # Everything below "fiction" follows it
    await tree.move(fiction, "music")
    print("\nAfter moving Fiction under Music:")
    show(await tree.get_children_tree(sort={"name": 1}))

    # Sci-Fi and Fantasy move up to Music
    await tree.remove(fiction)
    print("\nAfter removing Fiction:")
    show(await tree.get_children_tree(sort={"name": 1}))

    print(f"\nCache: {tree.store.get_cache_stats()}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("mpathtree - Basic Example")
    print("=" * 50)
    asyncio.run(main())
