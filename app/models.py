from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AccessLevel = Literal["read", "write", "deny", ""]


class KeyTreeNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    depth: int
    is_leaf: bool = Field(..., alias="isLeaf")
    children: list[KeyTreeNode] = Field(default_factory=list)
    access: AccessLevel = ""


class PathSegmentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    depth: int
    is_leaf: bool = Field(..., alias="isLeaf")


class KeyRuleModel(BaseModel):
    match: Literal["exact", "prefix", "all"] = "prefix"
    param: str = Field(default="", description="Key or key prefix the rule applies to")
    access: Literal["read", "write", "deny"]


class BuildTreeRequest(BaseModel):
    keys: Optional[list[str]] = Field(
        default=None, description="Keys to build from; omitted means list them from the KV store"
    )
    rules: list[KeyRuleModel] = Field(default_factory=list)
    with_root: bool = False


class InsertKeyRequest(BaseModel):
    tree: list[KeyTreeNode] = Field(default_factory=list)
    key: str


class KeyTreeResponse(BaseModel):
    tree: list[KeyTreeNode]
    key_count: int | None = None
    node_count: int


class KeyListResponse(BaseModel):
    count: int
    keys: list[str]


class SegmentResponse(BaseModel):
    key: str
    delimiter: str
    segments: list[PathSegmentModel]


class RuleMapRequest(BaseModel):
    keys: list[str] = Field(default_factory=list)
    rules: list[KeyRuleModel] = Field(default_factory=list)


class RuleMapResponse(BaseModel):
    rule_map: dict[str, AccessLevel]


class HealthResponse(BaseModel):
    ok: bool


class ReadyResponse(BaseModel):
    ready: bool
    reason: str | None = None


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None
