"""Reducer-style operations on the saved-request tree.

Every mutation takes the current root :class:`~reqtree.models.TreeNode` and
returns a **new** root; the input is never modified, so each operation is
atomic and a failed lookup leaves no partial state behind. Operations
addressed by an out-of-range :data:`~reqtree.models.Path` silently return
an unchanged copy.

The :class:`TreeAction` dataclasses and :func:`reduce` mirror a UI reducer:
one action in, one new snapshot out.

Paths are single-operation-scoped. After :func:`remove_node` or
:func:`move_node` the indices of later siblings shift, so callers must
re-derive any path they captured before the mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from reqtree.models import Path, TreeNode


def _as_path(path: Sequence[int]) -> Path:
    return tuple(path)


def node_at(root: TreeNode, path: Sequence[int]) -> Optional[TreeNode]:
    """Return the node at *path*, or ``None`` when any index is out of range.

    The empty path addresses *root* itself.
    """
    current = root
    for index in path:
        if index < 0 or index >= len(current.children):
            return None
        current = current.children[index]
    return current


def _copy(root: TreeNode) -> TreeNode:
    return root.model_copy(deep=True)


def set_expanded(root: TreeNode, path: Sequence[int], open: bool) -> TreeNode:
    """Open or close the node at *path*."""
    new_root = _copy(root)
    node = node_at(new_root, path)
    if node is not None:
        node.expanded = open
    return new_root


def rename(root: TreeNode, path: Sequence[int], label: str) -> TreeNode:
    """Change the label of the node at *path*."""
    new_root = _copy(root)
    node = node_at(new_root, path)
    if node is not None:
        node.label = label
    return new_root


def replace_node(root: TreeNode, path: Sequence[int], node: TreeNode) -> TreeNode:
    """Replace the subtree at *path* with a copy of *node*. The root is not replaceable."""
    new_root = _copy(root)
    path = _as_path(path)
    if not path:
        return new_root
    parent = node_at(new_root, path[:-1])
    if parent is None or path[-1] < 0 or path[-1] >= len(parent.children):
        return new_root
    parent.children[path[-1]] = node.model_copy(deep=True)
    return new_root


def add_child(root: TreeNode, path: Sequence[int], node: TreeNode) -> TreeNode:
    """Append a copy of *node* under the node at *path* and expand that parent."""
    new_root = _copy(root)
    parent = node_at(new_root, path)
    if parent is not None:
        parent.children.append(node.model_copy(deep=True))
        parent.expanded = True
    return new_root


def remove_node(root: TreeNode, path: Sequence[int]) -> TreeNode:
    """Detach and discard the subtree at *path*. The empty path is a no-op."""
    new_root = _copy(root)
    path = _as_path(path)
    if not path:
        return new_root
    parent = node_at(new_root, path[:-1])
    if parent is not None and 0 <= path[-1] < len(parent.children):
        del parent.children[path[-1]]
    return new_root


def is_descendant_or_self(candidate: Sequence[int], ancestor: Sequence[int]) -> bool:
    """True when *candidate* equals *ancestor* or lies inside its subtree."""
    candidate = _as_path(candidate)
    ancestor = _as_path(ancestor)
    return candidate[: len(ancestor)] == ancestor


def move_node(
    root: TreeNode, src: Sequence[int], dst: Sequence[int]
) -> tuple[TreeNode, Optional[Path]]:
    """Move the subtree at *src* to the end of the children of *dst*.

    *dst* is interpreted against the tree before the move; when detaching
    *src* shifts the destination's indices the destination is re-derived.
    The destination is expanded.

    Returns:
        ``(new_root, new_path)`` where *new_path* addresses the moved node.
        When the move is refused -- *src* is the root, *dst* equals *src* or
        lies inside it, or either path is out of range -- an unchanged copy
        and ``None`` are returned.
    """
    src = _as_path(src)
    dst = _as_path(dst)
    if not src or is_descendant_or_self(dst, src):
        return _copy(root), None
    if node_at(root, src) is None or node_at(root, dst) is None:
        return _copy(root), None

    new_root = _copy(root)
    parent = node_at(new_root, src[:-1])
    assert parent is not None
    moved = parent.children.pop(src[-1])

    # Removing src shifts later siblings of src (and their subtrees) left by one.
    depth = len(src) - 1
    if len(dst) > depth and dst[:depth] == src[:depth] and dst[depth] > src[-1]:
        dst = dst[:depth] + (dst[depth] - 1,) + dst[depth + 1 :]

    target = node_at(new_root, dst)
    assert target is not None
    target.children.append(moved)
    target.expanded = True
    return new_root, dst + (len(target.children) - 1,)


# --- Lookups used by the save workflow ---


def find_folder_index(root: TreeNode, label: str) -> tuple[int, bool]:
    """Locate a top-level folder by exact label.

    Returns:
        ``(index, True)`` when found, otherwise ``(len(root.children), False)``
        -- the index the folder will have once appended.
    """
    for index, child in enumerate(root.children):
        if child.is_folder and child.label == label:
            return index, True
    return len(root.children), False


def find_request_path(root: TreeNode, label: str) -> Optional[Path]:
    """Find a leaf with *label* at the top level or directly inside a top-level folder."""
    for index, child in enumerate(root.children):
        if child.is_leaf:
            if child.label == label:
                return (index,)
            continue
        for child_index, grand in enumerate(child.children):
            if grand.is_leaf and grand.label == label:
                return (index, child_index)
    return None


def infer_tag(root: TreeNode, selected: Optional[Sequence[int]]) -> Optional[str]:
    """Return the folder label implied by the current selection.

    A selected folder yields its own label; a selected leaf yields the label
    of its parent folder (``None`` for top-level leaves).
    """
    if selected is None:
        return None
    selected = _as_path(selected)
    node = node_at(root, selected)
    if node is None or not selected:
        return None
    if node.is_folder:
        return node.label
    parent_path = selected[:-1]
    if not parent_path:
        return None
    parent = node_at(root, parent_path)
    if parent is not None and parent.is_folder:
        return parent.label
    return None


def iter_leaves(root: TreeNode, prefix: Path = ()):
    """Yield ``(path, node)`` for every leaf under *root*, depth first."""
    for index, child in enumerate(root.children):
        path = prefix + (index,)
        if child.is_leaf:
            yield path, child
        yield from iter_leaves(child, path)


# --- Reducer ---


@dataclass(frozen=True)
class SetExpanded:
    path: Path
    open: bool


@dataclass(frozen=True)
class Rename:
    path: Path
    label: str


@dataclass(frozen=True)
class ReplaceNode:
    path: Path
    node: TreeNode


@dataclass(frozen=True)
class AddChild:
    path: Path
    node: TreeNode


@dataclass(frozen=True)
class RemoveNode:
    path: Path


@dataclass(frozen=True)
class MoveNode:
    src: Path
    dst: Path


TreeAction = Union[SetExpanded, Rename, ReplaceNode, AddChild, RemoveNode, MoveNode]


def reduce(root: TreeNode, action: TreeAction) -> tuple[TreeNode, Optional[Path]]:
    """Apply *action* to *root*.

    Returns:
        The new root and, for :class:`MoveNode`, the moved node's new path
        (``None`` when refused). Other actions return ``None`` as the path.
    """
    if isinstance(action, SetExpanded):
        return set_expanded(root, action.path, action.open), None
    if isinstance(action, Rename):
        return rename(root, action.path, action.label), None
    if isinstance(action, ReplaceNode):
        return replace_node(root, action.path, action.node), None
    if isinstance(action, AddChild):
        return add_child(root, action.path, action.node), None
    if isinstance(action, RemoveNode):
        return remove_node(root, action.path), None
    if isinstance(action, MoveNode):
        return move_node(root, action.src, action.dst)
    raise TypeError(f"Unknown tree action: {action!r}")
