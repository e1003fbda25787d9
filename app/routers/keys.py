from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import PlainTextResponse

from app.core.auth import require_api_key
from app.core.services.keys_service import (
    build_key_tree,
    insert_into_tree,
    key_tree,
    key_tree_text,
    list_visible_keys,
    rule_map_for,
    segments,
)
from app.models import (
    BuildTreeRequest,
    ErrorResponse,
    InsertKeyRequest,
    KeyListResponse,
    KeyTreeResponse,
    RuleMapRequest,
    RuleMapResponse,
    SegmentResponse,
)

router = APIRouter(
    prefix="/kv",
    tags=["kv"],
    dependencies=[Depends(require_api_key)],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}

KVToken = Annotated[str | None, Header(alias="X-KV-Token")]


@router.get("/keys", response_model=KeyListResponse, responses=ERROR_RESPONSES)
async def list_keys_endpoint(x_kv_token: KVToken = None) -> KeyListResponse:
    return await list_visible_keys(token=x_kv_token)


@router.get("/tree", response_model=KeyTreeResponse, responses=ERROR_RESPONSES)
async def get_tree_endpoint(with_root: bool = False, x_kv_token: KVToken = None) -> KeyTreeResponse:
    return await key_tree(with_root=with_root, token=x_kv_token)


@router.get("/tree/text", response_class=PlainTextResponse, responses=ERROR_RESPONSES)
async def get_tree_text_endpoint(with_root: bool = False, x_kv_token: KVToken = None):
    return PlainTextResponse(await key_tree_text(with_root=with_root, token=x_kv_token))


@router.post("/tree", response_model=KeyTreeResponse, responses=ERROR_RESPONSES)
async def build_tree_endpoint(payload: BuildTreeRequest, x_kv_token: KVToken = None) -> KeyTreeResponse:
    if payload.keys is not None:
        return build_key_tree(payload.keys, rules=payload.rules, with_root=payload.with_root)
    return await key_tree(rules=payload.rules, with_root=payload.with_root, token=x_kv_token)


@router.post("/tree/insert", response_model=KeyTreeResponse, responses=ERROR_RESPONSES)
def insert_key_endpoint(payload: InsertKeyRequest) -> KeyTreeResponse:
    return insert_into_tree(payload.tree, payload.key)


@router.get("/segments", response_model=SegmentResponse, responses=ERROR_RESPONSES)
def segments_endpoint(
    key: str = Query(..., description="Delimited key to split"),
    delimiter: str = Query(default="/", description="Single delimiter character"),
) -> SegmentResponse:
    return segments(key, delimiter)


@router.post("/rules/resolve", response_model=RuleMapResponse, responses=ERROR_RESPONSES)
def resolve_rules_endpoint(payload: RuleMapRequest) -> RuleMapResponse:
    return rule_map_for(payload.keys, payload.rules)
