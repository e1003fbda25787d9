from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Literal

Access = Literal["read", "write", "deny", ""]

ROOT_PATH = "/"


@dataclass(frozen=True)
class PathSegment:
    name: str
    path: str
    depth: int
    is_leaf: bool


@dataclass
class TreeNode:
    name: str
    path: str
    depth: int
    is_leaf: bool
    children: list[TreeNode] = field(default_factory=list)
    access: Access = ""

    @classmethod
    def from_segment(cls, segment: PathSegment, access: Access = "") -> TreeNode:
        return cls(
            name=segment.name,
            path=segment.path,
            depth=segment.depth,
            is_leaf=segment.is_leaf,
            access=access,
        )


def _check_delimiter(delimiter: str) -> None:
    if not isinstance(delimiter, str) or len(delimiter) != 1:
        raise ValueError(f"delimiter must be a single character, got {delimiter!r}")


def segment_key(key: str, delimiter: str = "/") -> list[PathSegment]:
    """Split ``key`` into one segment per path component.

    Every delimiter closes a non-leaf segment whose path includes the
    delimiter. Text after the last delimiter becomes a final leaf segment.
    """
    _check_delimiter(delimiter)
    segments: list[PathSegment] = []
    last_sep = -1
    depth = 1
    for idx, char in enumerate(key):
        if char != delimiter:
            continue
        segments.append(
            PathSegment(
                name=key[last_sep + 1 : idx],
                path=key[: idx + 1],
                depth=depth,
                is_leaf=False,
            )
        )
        last_sep = idx
        depth += 1

    if key and key[-1] != delimiter:
        segments.append(
            PathSegment(name=key[last_sep + 1 :], path=key, depth=depth, is_leaf=True)
        )
    return segments


def _merge_key(
    tree: list[TreeNode],
    key: str,
    delimiter: str,
    rule_map: Mapping[str, Access] | None,
) -> None:
    current = tree
    for segment in segment_key(key, delimiter):
        target = next((node for node in current if node.path == segment.path), None)
        if target is None:
            access = rule_map.get(segment.path, "") if rule_map else ""
            target = TreeNode.from_segment(segment, access=access or "")
            current.append(target)
        current = target.children


def root_node(access: Access = "") -> TreeNode:
    return TreeNode(name=ROOT_PATH, path=ROOT_PATH, depth=0, is_leaf=False, access=access)


def build_tree(
    keys: Iterable[str],
    rule_map: Mapping[str, Access] | None = None,
    with_root: bool = False,
    delimiter: str = "/",
) -> list[TreeNode]:
    """Build an ordered forest from ``keys``, merging shared prefixes.

    Nodes created here take their ``access`` from ``rule_map`` keyed by
    node path. With ``with_root`` the forest is wrapped in a single root
    node whose access comes from the empty-path rule.
    """
    _check_delimiter(delimiter)
    if with_root:
        root = root_node(access=(rule_map.get("", "") if rule_map else "") or "")
        tree = [root]
        level = root.children
    else:
        tree = []
        level = tree

    for key in keys:
        _merge_key(level, key, delimiter, rule_map)
    return tree


def insert_key(tree: list[TreeNode], key: str, delimiter: str = "/") -> None:
    # Works on the level it is given; pass root.children for a rooted tree.
    _check_delimiter(delimiter)
    if not key:
        return
    _merge_key(tree, key, delimiter, None)


def iter_nodes(tree: list[TreeNode]) -> Iterable[TreeNode]:
    for node in tree:
        yield node
        yield from iter_nodes(node.children)


def render_tree_text(tree: list[TreeNode]) -> str:
    lines = ["."]

    def _label(node: TreeNode, parent_path: str) -> str:
        # the part of the path this node adds below its parent
        label = node.name if node.depth == 0 else node.path[len(parent_path) :]
        if node.access:
            label = f"{label} [{node.access}]"
        return label

    def _walk(nodes: list[TreeNode], prefix: str, parent_path: str) -> None:
        for idx, node in enumerate(nodes):
            is_last = idx == len(nodes) - 1
            branch = "`-- " if is_last else "|-- "
            lines.append(f"{prefix}{branch}{_label(node, parent_path)}")
            child_prefix = f"{prefix}{'    ' if is_last else '|   '}"
            _walk(node.children, child_prefix, "" if node.depth == 0 else node.path)

    _walk(tree, "", "")
    return "\n".join(lines)
