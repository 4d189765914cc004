"""Folder hierarchy reconstruction from flat paths, ASCII rendering and filtering."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from .categories import normalize_path
from .models import FILE, FOLDER, TreeNode, UnifiedFile

_BRANCH = "├── "
_LAST_BRANCH = "└── "
_PIPE = "│   "
_SPACE = "    "


def build_tree(
    files: Iterable[UnifiedFile],
    folders: Iterable[str] = (),
    risk_levels: Optional[Mapping[str, str]] = None,
) -> List[TreeNode]:
    """Return the sorted root nodes for the given files and explicit folder paths.

    Folder nodes are created on first reference to a path prefix and looked
    up through an index afterwards, so each path maps to exactly one node.
    """
    roots: List[TreeNode] = []
    index: Dict[str, TreeNode] = {}
    risk_levels = risk_levels or {}

    def _folder(path: str) -> List[TreeNode]:
        """Return the children list for ``path``, creating folders along the way."""
        if not path:
            return roots
        existing = index.get(path)
        if existing is not None:
            if existing.children is None:
                # A file already claimed this path; a folder needs it now.
                existing.kind = FOLDER
                existing.children = []
                existing.file_data = None
                existing.risk_level = "none"
            return existing.children
        parent_path, _, name = path.rpartition("/")
        siblings = _folder(parent_path)
        node = TreeNode(name=name, path=path, kind=FOLDER, children=[])
        siblings.append(node)
        index[path] = node
        return node.children  # type: ignore[return-value]

    for folder in folders:
        normalised = normalize_path(folder)
        if normalised:
            _folder(normalised)

    for file in files:
        path = normalize_path(file.path)
        if not path:
            continue
        parent_path, _, name = path.rpartition("/")
        siblings = _folder(parent_path)
        if path in index:
            # Folder wins over a file with the same path; duplicates keep the first node.
            continue
        node = TreeNode(
            name=name,
            path=path,
            kind=FILE,
            file_data=file,
            risk_level=risk_levels.get(file.path, "none"),
        )
        siblings.append(node)
        index[path] = node

    sort_tree(roots)
    return roots


def sort_tree(nodes: List[TreeNode]) -> None:
    """Sort in place: folders first, then code-point order of names."""
    nodes.sort(key=_sort_key)
    for node in nodes:
        if node.children:
            sort_tree(node.children)


def _sort_key(node: TreeNode) -> tuple[int, str]:
    return (0 if node.kind == FOLDER else 1, node.name)


def render_ascii(nodes: Sequence[TreeNode], prefix: str = "") -> str:
    """Render the tree with box-drawing connectors, one line per node."""
    lines: List[str] = []
    _render(nodes, prefix, lines)
    return "".join(lines)


def _render(nodes: Sequence[TreeNode], prefix: str, lines: List[str]) -> None:
    last_index = len(nodes) - 1
    for position, node in enumerate(nodes):
        is_last = position == last_index
        lines.append(f"{prefix}{_LAST_BRANCH if is_last else _BRANCH}{node.name}\n")
        if node.children:
            _render(node.children, prefix + (_SPACE if is_last else _PIPE), lines)


def filter_tree(nodes: List[TreeNode], term: str) -> List[TreeNode]:
    """Return a pruned copy keeping nodes whose names contain ``term``.

    An empty term returns ``nodes`` itself. A matching folder keeps its full
    subtree; a non-matching folder survives only with its matching
    descendants. Matching is case-insensitive.
    """
    if not term:
        return nodes
    needle = term.lower()
    return _filter(nodes, needle)


def _filter(nodes: Sequence[TreeNode], needle: str) -> List[TreeNode]:
    kept: List[TreeNode] = []
    for node in nodes:
        matches = needle in node.name.lower()
        if node.children is None:
            if matches:
                kept.append(replace(node))
            continue
        if matches:
            kept.append(_copy(node))
            continue
        children = _filter(node.children, needle)
        if children:
            kept.append(replace(node, children=children))
    return kept


def _copy(node: TreeNode) -> TreeNode:
    if node.children is None:
        return replace(node)
    return replace(node, children=[_copy(child) for child in node.children])


def iter_nodes(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node in pre-order."""
    for node in nodes:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def count_folders(nodes: Iterable[TreeNode]) -> int:
    return sum(1 for node in iter_nodes(nodes) if node.is_folder)


def find_node(nodes: Iterable[TreeNode], path: str) -> Optional[TreeNode]:
    for node in iter_nodes(nodes):
        if node.path == path:
            return node
    return None


__all__ = [
    "build_tree",
    "count_folders",
    "filter_tree",
    "find_node",
    "iter_nodes",
    "render_ascii",
    "sort_tree",
]
