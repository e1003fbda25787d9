from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from app.key_tree import Access, segment_key

RuleMatch = Literal["exact", "prefix", "all"]
RuleAccess = Literal["read", "write", "deny"]

_ACCESS_RANK = {"read": 0, "write": 1, "deny": 2}


@dataclass(frozen=True)
class KeyRule:
    match: RuleMatch
    param: str
    access: RuleAccess

    @property
    def prefix(self) -> str:
        return "" if self.match == "all" else self.param


def collect_paths(keys: Iterable[str], delimiter: str = "/") -> list[str]:
    seen: set[str] = set()
    paths: list[str] = []
    for key in keys:
        for segment in segment_key(key, delimiter):
            if segment.path not in seen:
                seen.add(segment.path)
                paths.append(segment.path)
    return paths


def _stronger(current: RuleAccess | None, candidate: RuleAccess) -> RuleAccess:
    if current is None or _ACCESS_RANK[candidate] > _ACCESS_RANK[current]:
        return candidate
    return current


def resolve_access(rules: Iterable[KeyRule], path: str) -> Access:
    """Pick the access a set of key rules grants on ``path``.

    An exact rule for the path wins outright. Otherwise the longest
    matching prefix wins; rules of equal specificity resolve to the most
    restrictive access (deny, then write, then read).
    """
    exact: RuleAccess | None = None
    best_len = -1
    best: RuleAccess | None = None
    for rule in rules:
        if rule.match == "exact":
            if rule.param == path:
                exact = _stronger(exact, rule.access)
            continue
        prefix = rule.prefix
        if not path.startswith(prefix):
            continue
        if len(prefix) > best_len:
            best_len = len(prefix)
            best = rule.access
        elif len(prefix) == best_len:
            best = _stronger(best, rule.access)

    if exact is not None:
        return exact
    return best or ""


def resolve_rule_map(rules: Iterable[KeyRule], paths: Iterable[str]) -> dict[str, Access]:
    rules = list(rules)
    rule_map: dict[str, Access] = {}
    if not rules:
        return rule_map
    for path in ["", *paths]:
        if path in rule_map:
            continue
        access = resolve_access(rules, path)
        if access:
            rule_map[path] = access
    return rule_map
