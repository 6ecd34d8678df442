"""
规则编辑会话
将加载器、持久化组件与规则集合存储组合在一起
"""
import asyncio
from typing import Dict, List, Optional, Protocol, Sequence

from ..database import Database, get_database
from ..utils.logger import get_logger
from .dto import Rule, RuleCollectionView, RuleView, SaveResult
from .errors import RuleLoadError
from .rule_collection_store import RuleCollectionStore, SAVE_ERROR_MESSAGE
from .rule_repository import RuleRepository

logger = get_logger(__name__)


class RuleLoader(Protocol):
    """规则加载器"""

    async def fetch_rules(self) -> List[Rule]:
        ...


class RulePersistence(Protocol):
    """规则持久化组件"""

    async def persist_rules(self, rules: Sequence[Rule]) -> bool:
        ...


class RuleEditorSession:
    """
    一个项目的规则编辑会话

    增删改操作只作用于 working；保存时先校验，
    持久化成功后才把 working 提升为 saved。
    """

    def __init__(self, loader: RuleLoader, persistence: RulePersistence):
        """
        初始化编辑会话

        Args:
            loader: 规则加载器
            persistence: 规则持久化组件
        """
        self.loader = loader
        self.persistence = persistence
        self.store = RuleCollectionStore()
        self._load_lock = asyncio.Lock()

    async def load(self):
        """
        加载规则

        失败时异常向上抛出，存储保持加载中状态，可再次调用重试。
        """
        try:
            rules = await self.loader.fetch_rules()
        except Exception as e:
            logger.error(f"加载数据隐私规则失败: {str(e)}", exc_info=True)
            if isinstance(e, RuleLoadError):
                raise
            raise RuleLoadError(str(e)) from e

        self.store.load(rules)

    async def ensure_loaded(self):
        """
        首次访问时加载规则

        并发的首次访问只加载一次，已加载后不再重新加载。
        """
        async with self._load_lock:
            if self.store.is_loading:
                await self.load()

    def add(self) -> Rule:
        return self.store.add()

    def update(self, rule: Rule) -> bool:
        return self.store.update(rule)

    def delete(self, rule_id: int) -> bool:
        return self.store.delete(rule_id)

    def validate_field(self, rule_id: int, field: str) -> Optional[str]:
        return self.store.validate_field(rule_id, field)

    async def save(self) -> SaveResult:
        """
        校验并保存

        Returns:
            保存结果；校验失败或持久化失败时 success 为False，
            working 与 saved 均保持不变
        """
        invalid = self.store.check_commit()
        if invalid:
            return SaveResult(success=False, error=self.store.error, invalid_fields=invalid)

        rules = self.store.working
        try:
            persisted = await self.persistence.persist_rules(rules)
        except Exception as e:
            logger.error(f"持久化数据隐私规则异常: {str(e)}", exc_info=True)
            persisted = False

        if not persisted:
            self.store.mark_commit_failed(SAVE_ERROR_MESSAGE)
            logger.warning(f"数据隐私规则保存失败，保留未提交的修改: count={len(rules)}")
            return SaveResult(success=False, error=self.store.error)

        # 只提升已持久化的快照，等待期间 working 上的修改保留为未保存状态
        self.store.promote(rules)
        if self.store.working != rules:
            logger.info("持久化期间规则有新的修改，保留为未保存状态")
        return SaveResult(success=True)

    def cancel(self):
        self.store.rollback()

    def snapshot(self) -> RuleCollectionView:
        """生成展示用快照"""
        errors = self.store.errors
        return RuleCollectionView(
            state=self.store.state,
            rules=[
                RuleView(
                    id=rule.id,
                    action=rule.action,
                    data=rule.data,
                    source=rule.source,
                    errors=errors.get(rule.id, {}),
                )
                for rule in self.store.working
            ],
            error=self.store.error,
            is_dirty=self.store.is_dirty,
        )


class RuleSessionRegistry:
    """按项目保存编辑会话（进程内）"""

    def __init__(self, database: Database):
        """
        初始化会话注册表

        Args:
            database: 数据库实例
        """
        self.database = database
        self.sessions: Dict[str, RuleEditorSession] = {}

    def get_session(self, project_id: str) -> RuleEditorSession:
        """获取项目的编辑会话，不存在时创建"""
        session = self.sessions.get(project_id)
        if session is None:
            repository = RuleRepository(self.database, project_id)
            session = RuleEditorSession(loader=repository, persistence=repository)
            self.sessions[project_id] = session
            logger.info(f"创建规则编辑会话: project_id={project_id}")
        return session

    async def get_loaded_session(self, project_id: str) -> RuleEditorSession:
        """获取已加载的编辑会话，首次访问时加载规则"""
        session = self.get_session(project_id)
        await session.ensure_loaded()
        return session


# 全局会话注册表
_session_registry = None


def get_rule_session_registry() -> RuleSessionRegistry:
    """获取全局会话注册表"""
    global _session_registry
    if _session_registry is None:
        _session_registry = RuleSessionRegistry(get_database())
    return _session_registry
