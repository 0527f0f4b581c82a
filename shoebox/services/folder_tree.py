"""Folder selection tree.

Nodes live in a flat list and refer to each other by index; index 0 is the
scan root. Walks are iterative, so deep trees never hit the recursion limit.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from ..core.media_types import is_supported
from .scanner import is_hidden, is_package


logger = logging.getLogger(__name__)

ROOT = 0


@dataclass(slots=True)
class FolderNode:
    path: Path
    name: str
    depth: int
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    direct_file_count: int = 0
    recursive_file_count: int = 0
    selected: bool = True
    expanded: bool = True

    @property
    def has_children(self) -> bool:
        return bool(self.children)


class FolderTree:
    """Directory hierarchy with per-folder media counts and selection state."""

    def __init__(self, nodes: list[FolderNode]):
        if not nodes:
            raise ValueError("A folder tree needs at least a root node")
        self.nodes = nodes

    @classmethod
    def build(cls, root: Path, skip_hidden: bool = True, skip_packages: bool = True) -> "FolderTree":
        """Walk ``root`` and count supported media files in every directory.

        Unreadable directories are kept as empty leaves.
        """
        nodes = [FolderNode(path=root, name=root.name or str(root), depth=0)]
        stack = [ROOT]
        while stack:
            index = stack.pop()
            node = nodes[index]
            try:
                entries = sorted(node.path.iterdir())
            except OSError as exc:
                logger.debug("Cannot read %s: %s", node.path, exc)
                continue

            for entry in entries:
                if skip_hidden and is_hidden(entry):
                    continue
                if entry.is_symlink():
                    continue
                if entry.is_dir():
                    if skip_packages and is_package(entry):
                        continue
                    nodes.append(FolderNode(path=entry, name=entry.name, depth=node.depth + 1, parent=index))
                    node.children.append(len(nodes) - 1)
                elif is_supported(entry.suffix) and entry.is_file():
                    node.direct_file_count += 1

            # children are pushed reversed so they pop in name order
            stack.extend(reversed(node.children))

        tree = cls(nodes)
        tree._compute_recursive_counts()
        return tree

    def _compute_recursive_counts(self) -> None:
        # a child always has a higher index than its parent
        for node in self.nodes:
            node.recursive_file_count = node.direct_file_count
        for index in range(len(self.nodes) - 1, 0, -1):
            node = self.nodes[index]
            self.nodes[node.parent].recursive_file_count += node.recursive_file_count

    @property
    def root(self) -> FolderNode:
        return self.nodes[ROOT]

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> FolderNode:
        return self.nodes[index]

    def index_of(self, path: Path) -> Optional[int]:
        for index, node in enumerate(self.nodes):
            if node.path == path:
                return index
        return None

    def descendants(self, index: int, include_self: bool = True) -> Iterator[int]:
        """Pre-order walk below ``index``."""
        stack = [index]
        while stack:
            current = stack.pop()
            if current != index or include_self:
                yield current
            stack.extend(reversed(self.nodes[current].children))

    def set_selected(self, index: int, selected: bool) -> None:
        """Select or deselect a folder and everything beneath it."""
        for current in self.descendants(index):
            self.nodes[current].selected = selected

    def set_expanded(self, index: int, expanded: bool, recursive: bool = False) -> None:
        targets = self.descendants(index) if recursive else (index,)
        for current in targets:
            self.nodes[current].expanded = expanded

    def flatten_all(self) -> list[int]:
        """Every node below the root in display order."""
        return list(self.descendants(ROOT, include_self=False))

    def flatten_visible(self) -> list[int]:
        """Nodes below the root whose ancestors are all expanded."""
        visible = []
        stack = list(reversed(self.root.children))
        while stack:
            current = stack.pop()
            visible.append(current)
            node = self.nodes[current]
            if node.expanded:
                stack.extend(reversed(node.children))
        return visible

    def selected_paths(self) -> set[Path]:
        """Selected folders that directly contain media files."""
        return {
            node.path
            for node in self.nodes
            if node.selected and node.direct_file_count > 0
        }

    def count_selected_files(self) -> int:
        return sum(node.direct_file_count for node in self.nodes if node.selected)

    @property
    def all_selected(self) -> bool:
        return all(node.selected for node in self.nodes)
