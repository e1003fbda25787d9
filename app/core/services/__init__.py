from app.core.services.keys_service import (
    build_key_tree,
    insert_into_tree,
    key_tree,
    key_tree_text,
    list_visible_keys,
    rule_map_for,
    segments,
)

__all__ = [
    "build_key_tree",
    "insert_into_tree",
    "key_tree",
    "key_tree_text",
    "list_visible_keys",
    "rule_map_for",
    "segments",
]
