"""
数据隐私规则API测试
"""
import asyncio
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from privacy_rules.database import Database
from privacy_rules.routes import data_privacy_rules_router
from privacy_rules.services.dto import Rule
from privacy_rules.services.rule_editor_service import RuleSessionRegistry, get_rule_session_registry
from privacy_rules.services.rule_repository import RuleRepository
from privacy_rules.services.rule_types import ActionType, DataType

BASE_URL = "/api/projects/demo/data-privacy-rules"


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'rules.db'}")
    db.create_tables()
    yield db
    db.engine.dispose()


@pytest.fixture
def registry(database):
    return RuleSessionRegistry(database)


@pytest.fixture
def client(registry, database):
    """使用临时数据库的测试客户端，预置两条规则"""
    asyncio.run(RuleRepository(database, "demo").persist_rules([
        Rule(id=1, action=ActionType.MASK, data=DataType.BANK_ACCOUNTS, source="api_key && !$object"),
        Rule(id=2, action=ActionType.REMOVE, data=DataType.IP_ADDRESSES, source="xxx && xxx"),
    ]))

    app = FastAPI()
    app.include_router(data_privacy_rules_router)
    app.dependency_overrides[get_rule_session_registry] = lambda: registry
    return TestClient(app)


def test_get_rules_loads_on_first_access(client):
    response = client.get(BASE_URL)

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "clean"
    assert body["error"] is None
    assert [rule["id"] for rule in body["rules"]] == [1, 2]
    assert body["rules"][0]["from"] == "api_key && !$object"
    assert body["rules"][1]["action"] == "remove"


def test_get_options(client):
    response = client.get(f"{BASE_URL}/options")

    assert response.status_code == 200
    body = response.json()
    assert {"value": "mask", "label": "Mask"} in body["actions"]
    assert {"value": "bank_accounts", "label": "Bank accounts"} in body["data"]


def test_add_then_save_fails(client):
    response = client.post(f"{BASE_URL}/rules")
    assert response.status_code == 201
    assert response.json() == {
        "id": 3,
        "action": "mask",
        "data": "bank_accounts",
        "from": "",
        "errors": {},
    }

    response = client.post(f"{BASE_URL}/save")
    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "An error occurred while saving Data Privacy Rules"
    assert detail["invalid_fields"] == {"3": ["from"]}

    body = client.get(BASE_URL).json()
    assert body["state"] == "dirty"
    assert body["rules"][2]["errors"] == {"from": "Field Required"}


def test_update_and_save(client, registry):
    client.post(f"{BASE_URL}/rules")

    response = client.put(
        f"{BASE_URL}/rules/3",
        json={"action": "mask", "data": "bank_accounts", "from": "custom"},
    )
    assert response.status_code == 200
    assert response.json()["from"] == "custom"

    response = client.post(f"{BASE_URL}/save")
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert len(registry.get_session("demo").store.saved) == 3


def test_update_unknown_rule(client):
    response = client.put(f"{BASE_URL}/rules/99", json={"from": "x"})
    assert response.status_code == 404


def test_update_rejects_unknown_action(client):
    response = client.put(f"{BASE_URL}/rules/1", json={"action": "shred", "from": "x"})
    assert response.status_code == 422


def test_validate_field(client):
    client.post(f"{BASE_URL}/rules")

    response = client.post(f"{BASE_URL}/rules/3/validate", params={"field": "from"})
    assert response.status_code == 200
    assert response.json() == {"rule_id": 3, "field": "from", "error": "Field Required"}

    response = client.post(f"{BASE_URL}/rules/1/validate", params={"field": "from"})
    assert response.json()["error"] is None


def test_validate_field_unknown_rule(client):
    response = client.post(f"{BASE_URL}/rules/42/validate", params={"field": "from"})
    assert response.status_code == 404


def test_delete_and_cancel(client):
    response = client.delete(f"{BASE_URL}/rules/1")
    assert response.status_code == 204

    assert [rule["id"] for rule in client.get(BASE_URL).json()["rules"]] == [2]

    response = client.post(f"{BASE_URL}/cancel")
    assert response.status_code == 200
    body = response.json()
    assert [rule["id"] for rule in body["rules"]] == [1, 2]
    assert body["state"] == "clean"


def test_delete_unknown_rule(client):
    response = client.delete(f"{BASE_URL}/rules/42")
    assert response.status_code == 404


def test_unexpected_error_returns_500(client, registry, monkeypatch):
    """内部异常转换为500并带有错误说明"""
    monkeypatch.setattr(registry, "get_loaded_session", AsyncMock(side_effect=RuntimeError("boom")))

    response = client.get(BASE_URL)

    assert response.status_code == 500
    assert response.json()["detail"] == "获取数据隐私规则失败: boom"


def test_unexpected_save_error_returns_500(client, registry, monkeypatch):
    client.get(BASE_URL)
    session = registry.get_session("demo")
    monkeypatch.setattr(session, "save", AsyncMock(side_effect=RuntimeError("boom")))

    response = client.post(f"{BASE_URL}/save")

    assert response.status_code == 500
    assert response.json()["detail"] == "保存数据隐私规则失败: boom"
    assert len(session.store.saved) == 2


def test_load_failure_returns_500(client, registry, monkeypatch):
    session = registry.get_session("demo")
    monkeypatch.setattr(session.loader, "fetch_rules", AsyncMock(side_effect=ConnectionError("down")))

    response = client.get(BASE_URL)

    assert response.status_code == 500
    assert session.store.is_loading
