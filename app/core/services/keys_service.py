from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from app.core.consul_client import ConsulClient, ConsulError, map_consul_error
from app.core.errors import APIError
from app.core.rules import KeyRule, collect_paths, resolve_rule_map
from app.key_tree import TreeNode, build_tree, insert_key, iter_nodes, render_tree_text, segment_key
from app.models import (
    KeyListResponse,
    KeyRuleModel,
    KeyTreeNode,
    KeyTreeResponse,
    PathSegmentModel,
    RuleMapResponse,
    SegmentResponse,
)

logger = logging.getLogger(__name__)

_INTERNAL_PREFIX_DEFAULT = ".kvconsole-internal/"


def configured_internal_prefix() -> str:
    return os.getenv("KVCONSOLE_INTERNAL_PREFIX") or _INTERNAL_PREFIX_DEFAULT


def filter_internal_keys(keys: Iterable[str], prefix: str) -> list[str]:
    if not prefix:
        return list(keys)
    return [key for key in keys if not key.startswith(prefix)]


def to_model(node: TreeNode) -> KeyTreeNode:
    return KeyTreeNode(
        name=node.name,
        path=node.path,
        depth=node.depth,
        isLeaf=node.is_leaf,
        children=[to_model(child) for child in node.children],
        access=node.access,
    )


def from_model(model: KeyTreeNode) -> TreeNode:
    return TreeNode(
        name=model.name,
        path=model.path,
        depth=model.depth,
        is_leaf=model.is_leaf,
        children=[from_model(child) for child in model.children],
        access=model.access,
    )


def to_rules(models: Iterable[KeyRuleModel]) -> list[KeyRule]:
    return [KeyRule(match=m.match, param=m.param, access=m.access) for m in models]


async def list_visible_keys(token: str | None = None) -> KeyListResponse:
    try:
        client = ConsulClient.from_env()
        keys = await client.list_keys(token=token)
    except ConsulError as e:
        upstream = map_consul_error(e)
        logger.error("listing keys failed: %s", upstream.message)
        raise APIError.from_upstream(upstream)
    visible = filter_internal_keys(keys, configured_internal_prefix())
    return KeyListResponse(count=len(visible), keys=visible)


def _tree_response(tree: list[TreeNode], key_count: int | None) -> KeyTreeResponse:
    node_count = sum(1 for _ in iter_nodes(tree))
    logger.debug("built key tree: %s keys, %d nodes", key_count, node_count)
    return KeyTreeResponse(
        tree=[to_model(node) for node in tree],
        key_count=key_count,
        node_count=node_count,
    )


def build_key_tree(
    keys: list[str],
    rules: Iterable[KeyRuleModel] = (),
    with_root: bool = False,
) -> KeyTreeResponse:
    key_rules = to_rules(rules)
    rule_map = resolve_rule_map(key_rules, collect_paths(keys)) if key_rules else None
    tree = build_tree(keys, rule_map=rule_map, with_root=with_root)
    return _tree_response(tree, len(keys))


async def key_tree(
    keys: list[str] | None = None,
    rules: Iterable[KeyRuleModel] = (),
    with_root: bool = False,
    token: str | None = None,
) -> KeyTreeResponse:
    if keys is None:
        keys = (await list_visible_keys(token=token)).keys
    return build_key_tree(keys, rules=rules, with_root=with_root)


async def key_tree_text(with_root: bool = False, token: str | None = None) -> str:
    keys = (await list_visible_keys(token=token)).keys
    return render_tree_text(build_tree(keys, with_root=with_root))


def insert_into_tree(tree: list[KeyTreeNode], key: str) -> KeyTreeResponse:
    nodes = [from_model(model) for model in tree]
    # a rooted tree keeps its keys under the synthetic root
    if len(nodes) == 1 and nodes[0].depth == 0:
        insert_key(nodes[0].children, key)
    else:
        insert_key(nodes, key)
    return _tree_response(nodes, None)


def segments(key: str, delimiter: str = "/") -> SegmentResponse:
    try:
        parts = segment_key(key, delimiter)
    except ValueError as e:
        raise APIError.bad_request(str(e), delimiter=delimiter)
    return SegmentResponse(
        key=key,
        delimiter=delimiter,
        segments=[
            PathSegmentModel(name=p.name, path=p.path, depth=p.depth, isLeaf=p.is_leaf)
            for p in parts
        ],
    )


def rule_map_for(keys: list[str], rules: Iterable[KeyRuleModel]) -> RuleMapResponse:
    return RuleMapResponse(rule_map=resolve_rule_map(to_rules(rules), collect_paths(keys)))
