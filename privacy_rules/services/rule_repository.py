"""
规则仓储
基于SQLAlchemy的规则加载与持久化
"""
from typing import List, Sequence

from ..database import Database
from ..models.data_privacy_rule import DataPrivacyRule as DataPrivacyRuleModel
from ..utils.logger import get_logger, log_error_with_context
from .dto import Rule
from .errors import RuleLoadError
from .rule_types import ActionType, DataType

logger = get_logger(__name__)


class RuleRepository:
    """单个项目的规则仓储"""

    def __init__(self, database: Database, project_id: str):
        """
        初始化规则仓储

        Args:
            database: 数据库实例
            project_id: 项目ID
        """
        self.database = database
        self.project_id = project_id

    async def fetch_rules(self) -> List[Rule]:
        """
        读取项目的全部规则（按位置排序）

        Returns:
            规则列表

        Raises:
            RuleLoadError: 读取或解析失败
        """
        try:
            with self.database.get_session() as session:
                rows = (
                    session.query(DataPrivacyRuleModel)
                    .filter(DataPrivacyRuleModel.project_id == self.project_id)
                    .order_by(DataPrivacyRuleModel.position)
                    .all()
                )
                rules = [
                    Rule(
                        id=row.rule_id,
                        action=ActionType(row.action),
                        data=DataType(row.data),
                        source=row.source,
                    )
                    for row in rows
                ]
        except Exception as e:
            log_error_with_context(
                logger, "读取数据隐私规则失败", e, {"project_id": self.project_id}
            )
            raise RuleLoadError(f"读取数据隐私规则失败: {e}") from e

        logger.info(f"读取数据隐私规则: project_id={self.project_id}, count={len(rules)}")
        return rules

    async def persist_rules(self, rules: Sequence[Rule]) -> bool:
        """
        整体替换项目的规则

        在同一个事务中删除旧规则并写入新规则。

        Args:
            rules: 已通过校验的规则

        Returns:
            成功返回True，失败返回False
        """
        try:
            with self.database.get_session() as session:
                session.query(DataPrivacyRuleModel).filter(
                    DataPrivacyRuleModel.project_id == self.project_id
                ).delete(synchronize_session=False)

                for position, rule in enumerate(rules):
                    session.add(DataPrivacyRuleModel(
                        project_id=self.project_id,
                        rule_id=rule.id,
                        position=position,
                        action=ActionType(rule.action).value,
                        data=DataType(rule.data).value,
                        source=rule.source,
                    ))
        except Exception as e:
            log_error_with_context(
                logger,
                "保存数据隐私规则失败",
                e,
                {"project_id": self.project_id, "rule_count": len(rules)}
            )
            return False

        logger.info(f"保存数据隐私规则成功: project_id={self.project_id}, count={len(rules)}")
        return True
