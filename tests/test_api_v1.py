import pytest
from fastapi.testclient import TestClient

from app.consul_client import ConsulClient, ConsulError
from app.main import app


client = TestClient(app)

FAKE_KEYS = [
    "app/db/host",
    "app/db/port",
    "app/",
    ".kvconsole-internal/value-type/YXBw",
    "readme",
]


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    monkeypatch.setenv("CONSUL_HTTP_ADDR", "http://consul.local:8500")
    monkeypatch.delenv("KVCONSOLE_API_KEY", raising=False)
    monkeypatch.delenv("KVCONSOLE_INTERNAL_PREFIX", raising=False)


@pytest.fixture
def fake_keys(monkeypatch):
    seen = {}

    async def fake_list_keys(self, prefix="", token=None):
        seen["token"] = token
        return list(FAKE_KEYS)

    monkeypatch.setattr(ConsulClient, "list_keys", fake_list_keys)
    return seen


def test_ready_returns_503_with_reason_when_env_missing(monkeypatch):
    monkeypatch.delenv("CONSUL_HTTP_ADDR", raising=False)

    r = client.get("/api/v1/ready")
    assert r.status_code == 503
    assert r.json() == {"ready": False, "reason": "CONSUL_HTTP_ADDR missing"}


def test_health_and_request_id():
    r = client.get("/api/v1/health", headers={"X-Request-Id": "req-1"})
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert r.headers["X-Request-Id"] == "req-1"


def test_auth_enforced_when_key_set(monkeypatch, fake_keys):
    monkeypatch.setenv("KVCONSOLE_API_KEY", "secret")

    r = client.get("/api/v1/kv/keys")
    assert r.status_code == 401
    body = r.json()
    assert body["code"] == "unauthorized"
    assert body["message"] == "Invalid API key"

    r = client.get("/api/v1/kv/keys", headers={"X-API-Key": "secret"})
    assert r.status_code == 200


def test_auth_accepts_any_listed_key(monkeypatch, fake_keys):
    monkeypatch.setenv("KVCONSOLE_API_KEY", "old, new")

    assert client.get("/api/v1/kv/keys", headers={"X-API-Key": "new"}).status_code == 200
    assert client.get("/api/v1/kv/keys", headers={"X-API-Key": "old"}).status_code == 200
    assert client.get("/api/v1/kv/keys", headers={"X-API-Key": "other"}).status_code == 401


def test_list_keys_hides_internal_prefix(fake_keys):
    r = client.get("/api/v1/kv/keys", headers={"X-KV-Token": "user-token"})

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 4
    assert ".kvconsole-internal/value-type/YXBw" not in body["keys"]
    assert fake_keys["token"] == "user-token"


def test_get_tree_from_store(fake_keys):
    r = client.get("/api/v1/kv/tree", params={"with_root": "true"})

    assert r.status_code == 200
    body = r.json()
    assert body["key_count"] == 4
    root = body["tree"][0]
    assert root["path"] == "/"
    assert root["isLeaf"] is False
    assert [node["path"] for node in root["children"]] == ["app/", "readme"]
    app_node = root["children"][0]
    assert [node["path"] for node in app_node["children"]] == ["app/db/"]
    assert [node["name"] for node in app_node["children"][0]["children"]] == ["host", "port"]


def test_get_tree_text(fake_keys):
    r = client.get("/api/v1/kv/tree/text")

    assert r.status_code == 200
    assert r.text.splitlines()[:2] == [".", "|-- app/"]


def test_build_tree_from_payload_with_rules():
    r = client.post(
        "/api/v1/kv/tree",
        json={
            "keys": ["a/b", "a/c"],
            "rules": [{"match": "exact", "param": "a/b", "access": "read"}],
        },
    )

    assert r.status_code == 200
    body = r.json()
    assert body["node_count"] == 3
    folder = body["tree"][0]
    assert folder["path"] == "a/"
    assert folder["access"] == ""
    assert [(n["path"], n["access"]) for n in folder["children"]] == [("a/b", "read"), ("a/c", "")]


def test_build_tree_without_keys_lists_store(fake_keys):
    r = client.post("/api/v1/kv/tree", json={"rules": [{"match": "all", "access": "deny"}]})

    assert r.status_code == 200
    assert all(node["access"] == "deny" for node in r.json()["tree"])


def test_insert_key_into_rooted_tree():
    tree = client.post("/api/v1/kv/tree", json={"keys": ["a/b"], "with_root": True}).json()["tree"]

    r = client.post("/api/v1/kv/tree/insert", json={"tree": tree, "key": "a/c/d"})
    assert r.status_code == 200
    root = r.json()["tree"][0]
    assert [n["path"] for n in root["children"][0]["children"]] == ["a/b", "a/c/"]

    again = client.post("/api/v1/kv/tree/insert", json={"tree": r.json()["tree"], "key": "a/c/d"})
    assert again.json() == r.json()


def test_segments_endpoint():
    r = client.get("/api/v1/kv/segments", params={"key": "a/b/c"})

    assert r.status_code == 200
    assert r.json()["segments"] == [
        {"name": "a", "path": "a/", "depth": 1, "isLeaf": False},
        {"name": "b", "path": "a/b/", "depth": 2, "isLeaf": False},
        {"name": "c", "path": "a/b/c", "depth": 3, "isLeaf": True},
    ]


def test_segments_endpoint_rejects_bad_delimiter():
    r = client.get("/api/v1/kv/segments", params={"key": "a/b", "delimiter": "::"})

    assert r.status_code == 400
    assert r.json()["code"] == "bad_request"


def test_resolve_rules_endpoint():
    r = client.post(
        "/api/v1/kv/rules/resolve",
        json={
            "keys": ["app/db", "other"],
            "rules": [
                {"match": "prefix", "param": "", "access": "read"},
                {"match": "prefix", "param": "app/", "access": "write"},
            ],
        },
    )

    assert r.status_code == 200
    assert r.json()["rule_map"] == {"": "read", "app/": "write", "app/db": "write", "other": "read"}


@pytest.mark.parametrize(
    "status,code",
    [(403, "forbidden"), (504, "upstream_timeout"), (500, "upstream_error")],
)
def test_upstream_errors_are_mapped(monkeypatch, status, code):
    async def boom(self, prefix="", token=None):
        raise ConsulError(status, "consul said no")

    monkeypatch.setattr(ConsulClient, "list_keys", boom)

    r = client.get("/api/v1/kv/tree")
    assert r.status_code == {500: 502}.get(status, status)
    assert r.json()["code"] == code
    assert r.json()["message"] == "consul said no"


def test_missing_consul_env_is_503(monkeypatch):
    monkeypatch.delenv("CONSUL_HTTP_ADDR", raising=False)

    r = client.get("/api/v1/kv/keys")
    assert r.status_code == 503
    assert r.json()["code"] == "not_configured"


def test_ready_rejects_address_without_scheme(monkeypatch):
    monkeypatch.setenv("CONSUL_HTTP_ADDR", "consul.local:8500")

    r = client.get("/api/v1/ready")
    assert r.status_code == 503
    assert "http://" in r.json()["reason"]

    monkeypatch.setenv("CONSUL_HTTP_ADDR", "https://consul.local")
    assert client.get("/api/v1/ready").json() == {"ready": True, "reason": None}


def test_list_visible_keys_returns_count_and_keys(fake_keys):
    import asyncio

    from app.core.services.keys_service import list_visible_keys
    from app.models import KeyListResponse

    result = asyncio.run(list_visible_keys())

    assert isinstance(result, KeyListResponse)
    assert result.count == len(result.keys) == 4
    assert result.keys[0] == "app/db/host"
