"""
规则集合存储
维护编辑中的规则（working）与最近一次提交的规则（saved），
并提供增删改、提交与回滚
"""
from typing import Dict, List, Optional, Sequence

from .dto import Rule, StoreState
from .rule_types import ActionType, DataType
from .rule_validator import (
    FieldErrors,
    apply_field_validation,
    clear_resolved_errors,
    validate_rule,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)

SAVE_ERROR_MESSAGE = "An error occurred while saving Data Privacy Rules"


class RuleCollectionStore:
    """规则集合存储，每个编辑会话持有一个实例"""

    def __init__(self):
        self._working: List[Rule] = []
        self._saved: List[Rule] = []
        self._errors: Dict[int, FieldErrors] = {}
        self._error: Optional[str] = None
        self._last_issued_id = 0
        self._loaded = False

    # ============ 只读属性 ============

    @property
    def working(self) -> List[Rule]:
        return list(self._working)

    @property
    def saved(self) -> List[Rule]:
        return list(self._saved)

    @property
    def errors(self) -> Dict[int, FieldErrors]:
        """规则ID -> 字段错误（副本）"""
        return {rule_id: dict(fields) for rule_id, fields in self._errors.items()}

    @property
    def error(self) -> Optional[str]:
        """汇总错误信息"""
        return self._error

    @property
    def is_loading(self) -> bool:
        return not self._loaded

    @property
    def is_dirty(self) -> bool:
        return self._working != self._saved or bool(self._errors) or bool(self._error)

    @property
    def is_valid(self) -> bool:
        return all(not validate_rule(rule) for rule in self._working)

    @property
    def state(self) -> StoreState:
        if not self._loaded:
            return StoreState.LOADING
        return StoreState.DIRTY if self.is_dirty else StoreState.CLEAN

    def field_error(self, rule_id: int, field: str) -> Optional[str]:
        return self._errors.get(rule_id, {}).get(field)

    def get_rule(self, rule_id: int) -> Optional[Rule]:
        return next((rule for rule in self._working if rule.id == rule_id), None)

    # ============ 操作 ============

    def load(self, rules: Sequence[Rule]):
        """
        初始化 working 与 saved

        再次调用会重置全部状态（不合并）。

        Args:
            rules: 加载到的规则
        """
        self._working = list(rules)
        self._saved = list(rules)
        self._errors = {}
        self._error = None
        self._last_issued_id = max((rule.id for rule in self._working), default=0)
        self._loaded = True

        logger.info(f"规则加载完成: count={len(self._working)}")

    def add(self) -> Rule:
        """
        追加一条默认规则

        新规则的 from 为空，此时不做校验。

        Returns:
            新增的规则
        """
        rule = Rule(
            id=self._next_id(),
            action=ActionType.MASK,
            data=DataType.BANK_ACCOUNTS,
            source="",
        )
        self._working.append(rule)

        logger.debug(f"新增规则: id={rule.id}")
        return rule

    def update(self, rule: Rule) -> bool:
        """
        按ID替换规则

        只清除已填写字段的旧错误，不产生新错误。

        Returns:
            找到并替换时返回True，否则返回False
        """
        for index, current in enumerate(self._working):
            if current.id == rule.id:
                self._working[index] = rule
                break
        else:
            logger.debug(f"更新规则被忽略，规则不存在: id={rule.id}")
            return False

        if rule.id in self._errors:
            clear_resolved_errors(self._errors[rule.id], rule)
            if not self._errors[rule.id]:
                del self._errors[rule.id]

        logger.debug(f"更新规则: id={rule.id}")
        return True

    def delete(self, rule_id: int) -> bool:
        """从 working 中删除规则，saved 在下次提交前不受影响"""
        remaining = [rule for rule in self._working if rule.id != rule_id]
        if len(remaining) == len(self._working):
            logger.debug(f"删除规则被忽略，规则不存在: id={rule_id}")
            return False

        self._working = remaining
        self._errors.pop(rule_id, None)

        logger.debug(f"删除规则: id={rule_id}")
        return True

    def validate_field(self, rule_id: int, field: str) -> Optional[str]:
        """
        字段失焦校验

        Args:
            rule_id: 规则ID
            field: 字段名

        Returns:
            该字段当前的错误信息，规则不存在或字段有效时返回None
        """
        rule = self.get_rule(rule_id)
        if rule is None:
            return None

        self._apply_validation(rule, [field])
        return self.field_error(rule_id, field)

    def check_commit(self) -> Dict[int, List[str]]:
        """
        校验全部 working 规则

        无效字段写入错误表；存在无效规则时设置汇总错误。
        不修改 working 与 saved。

        Returns:
            规则ID -> 为空的字段（按字段顺序），全部有效时为空字典
        """
        invalid: Dict[int, List[str]] = {}
        for rule in self._working:
            empty_fields = validate_rule(rule)
            self._apply_validation(rule, empty_fields)
            if empty_fields:
                invalid[rule.id] = sorted(empty_fields)

        if invalid:
            self._error = SAVE_ERROR_MESSAGE
            logger.warning(f"规则校验失败: invalid_rule_ids={list(invalid)}")

        return invalid

    def commit(self) -> bool:
        """
        校验并提交：全部有效时用 working 替换 saved

        Returns:
            提交成功返回True；任一规则无效时返回False，且不做部分提交
        """
        if self.check_commit():
            return False

        self.promote(self._working)
        return True

    def promote(self, rules: Sequence[Rule]):
        """
        用给定的规则整体替换 saved 并清除汇总错误

        调用方需保证 rules 已通过校验（如已持久化的快照）。
        working 不受影响。
        """
        self._saved = list(rules)
        self._error = None

        logger.info(f"规则提交成功: count={len(self._saved)}")

    def mark_commit_failed(self, message: str = SAVE_ERROR_MESSAGE):
        """记录提交失败（如持久化失败），不修改 working 与 saved"""
        self._error = message

    def rollback(self):
        """丢弃未保存的修改，从 saved 恢复 working 并清除所有错误"""
        self._working = list(self._saved)
        self._errors = {}
        self._error = None

        logger.info(f"规则已回滚: count={len(self._working)}")

    # ============ 内部方法 ============

    def _next_id(self) -> int:
        # 删除后的ID在本会话内不复用
        current_max = max((rule.id for rule in self._working), default=0)
        self._last_issued_id = max(current_max, self._last_issued_id) + 1
        return self._last_issued_id

    def _apply_validation(self, rule: Rule, fields):
        errors = self._errors.setdefault(rule.id, {})
        for field in fields:
            apply_field_validation(errors, rule, field)
        if not errors:
            del self._errors[rule.id]
