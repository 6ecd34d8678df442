"""
规则编辑会话测试
"""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from privacy_rules.services.dto import Rule, StoreState
from privacy_rules.services.errors import RuleLoadError
from privacy_rules.services.rule_collection_store import SAVE_ERROR_MESSAGE
from privacy_rules.services.rule_editor_service import RuleEditorSession
from privacy_rules.services.rule_types import ActionType, DataType
from privacy_rules.services.rule_validator import FIELD_REQUIRED


def get_sample_rules():
    """创建示例规则"""
    return [
        Rule(id=1, action=ActionType.MASK, data=DataType.BANK_ACCOUNTS, source="api_key && !$object"),
        Rule(id=2, action=ActionType.REMOVE, data=DataType.IP_ADDRESSES, source="xxx && xxx"),
    ]


@pytest.fixture
def loader():
    mock_loader = Mock()
    mock_loader.fetch_rules = AsyncMock(return_value=get_sample_rules())
    return mock_loader


@pytest.fixture
def persistence():
    mock_persistence = Mock()
    mock_persistence.persist_rules = AsyncMock(return_value=True)
    return mock_persistence


@pytest.fixture
def session(loader, persistence):
    return RuleEditorSession(loader=loader, persistence=persistence)


@pytest.mark.asyncio
async def test_load_populates_store(session, loader):
    assert session.store.state == StoreState.LOADING

    await session.load()

    loader.fetch_rules.assert_awaited_once()
    assert session.store.working == get_sample_rules()
    assert session.store.saved == get_sample_rules()
    assert session.store.state == StoreState.CLEAN


@pytest.mark.asyncio
async def test_load_failure_keeps_loading(session, loader):
    """加载失败时保持加载中状态，可重试"""
    loader.fetch_rules.side_effect = ConnectionError("timeout")

    with pytest.raises(RuleLoadError):
        await session.load()
    assert session.store.state == StoreState.LOADING

    loader.fetch_rules.side_effect = None
    await session.load()
    assert session.store.state == StoreState.CLEAN


@pytest.mark.asyncio
async def test_save_invalid_does_not_persist(session, persistence):
    await session.load()
    session.add()

    result = await session.save()

    assert result.success is False
    assert result.error == SAVE_ERROR_MESSAGE
    assert result.invalid_fields == {3: ["from"]}
    persistence.persist_rules.assert_not_awaited()
    assert len(session.store.saved) == 2
    assert session.snapshot().rules[-1].errors == {"from": FIELD_REQUIRED}


@pytest.mark.asyncio
async def test_save_valid_persists_then_promotes(session, persistence):
    await session.load()
    rule = session.add()
    session.update(Rule(id=rule.id, action=ActionType.MASK, data=DataType.BANK_ACCOUNTS, source="custom"))

    result = await session.save()

    assert result.success is True
    persistence.persist_rules.assert_awaited_once()
    persisted = persistence.persist_rules.await_args.args[0]
    assert [r.id for r in persisted] == [1, 2, 3]
    assert len(session.store.saved) == 3
    assert session.store.error is None
    assert session.store.state == StoreState.CLEAN


@pytest.mark.asyncio
async def test_save_persistence_failure_keeps_working(session, persistence):
    """持久化失败时不提升saved，保留working"""
    await session.load()
    session.delete(1)
    persistence.persist_rules.return_value = False

    result = await session.save()

    assert result.success is False
    assert result.error == SAVE_ERROR_MESSAGE
    assert [r.id for r in session.store.working] == [2]
    assert session.store.saved == get_sample_rules()
    assert session.store.state == StoreState.DIRTY


@pytest.mark.asyncio
async def test_save_persistence_exception_is_failure(session, persistence):
    await session.load()
    persistence.persist_rules.side_effect = RuntimeError("disk full")

    result = await session.save()

    assert result.success is False
    assert session.store.saved == get_sample_rules()


@pytest.mark.asyncio
async def test_error_cleared_after_successful_save(session, persistence):
    await session.load()
    rule = session.add()
    await session.save()
    assert session.store.error == SAVE_ERROR_MESSAGE

    session.update(Rule(id=rule.id, source="custom"))
    result = await session.save()

    assert result.success is True
    assert session.store.error is None


@pytest.mark.asyncio
async def test_cancel_restores_saved(session):
    await session.load()
    session.delete(1)
    session.add()

    session.cancel()

    assert session.store.working == get_sample_rules()
    assert session.store.errors == {}


@pytest.mark.asyncio
async def test_snapshot(session):
    await session.load()
    rule = session.add()
    session.validate_field(rule.id, "from")

    view = session.snapshot()

    assert view.state == StoreState.DIRTY
    assert view.is_dirty is True
    assert [r.id for r in view.rules] == [1, 2, 3]
    assert view.rules[0].source == "api_key && !$object"
    assert view.rules[0].errors == {}
    assert view.rules[2].errors == {"from": FIELD_REQUIRED}
    assert view.error is None

    dumped = view.model_dump(by_alias=True)
    assert dumped["rules"][0]["from"] == "api_key && !$object"


@pytest.mark.asyncio
async def test_save_promotes_persisted_snapshot_when_edited_during_persist(session, persistence):
    """持久化等待期间的修改不影响本次提交结果"""
    await session.load()
    session.delete(2)

    async def persist_and_edit(rules):
        session.add()
        return True

    persistence.persist_rules.side_effect = persist_and_edit

    result = await session.save()

    assert result.success is True
    assert session.store.error is None
    assert [r.id for r in session.store.saved] == [1]
    assert [r.id for r in session.store.working] == [1, 3]
    assert session.store.state == StoreState.DIRTY


@pytest.mark.asyncio
async def test_concurrent_first_access_loads_once(session, loader):
    """并发的首次访问只加载一次，不覆盖已有修改"""
    async def slow_fetch():
        await asyncio.sleep(0)
        return get_sample_rules()

    loader.fetch_rules.side_effect = slow_fetch

    await asyncio.gather(session.ensure_loaded(), session.ensure_loaded())
    assert loader.fetch_rules.await_count == 1

    session.add()
    await session.ensure_loaded()
    assert loader.fetch_rules.await_count == 1
    assert len(session.store.working) == 3
