"""
规则校验
纯函数：字段级、规则级与集合级校验，以及错误表的更新策略
"""
from typing import Dict, Iterable, Optional, Set

from .dto import Rule, RULE_FIELDS

FIELD_REQUIRED = "Field Required"

# 单条规则的字段错误：字段名 -> 错误信息
FieldErrors = Dict[str, str]


def validate_field(rule: Rule, field: str) -> Optional[str]:
    """
    校验单个字段

    Args:
        rule: 规则
        field: 字段名（action / data / from）

    Returns:
        字段为空时返回 "Field Required"，否则返回None
    """
    if not rule.get_field(field):
        return FIELD_REQUIRED
    return None


def validate_rule(rule: Rule) -> Set[str]:
    """
    校验整条规则

    Returns:
        为空的字段集合，空集合表示规则有效
    """
    return {field for field in RULE_FIELDS if validate_field(rule, field) is not None}


def validate_collection(rules: Iterable[Rule]) -> bool:
    """所有规则均有效时返回True"""
    return all(not validate_rule(rule) for rule in rules)


def apply_field_validation(errors: FieldErrors, rule: Rule, field: str) -> FieldErrors:
    """
    按更新策略刷新单个字段的错误

    - 字段为空且无错误：新增
    - 字段为空且已有错误：保持不变
    - 字段非空且有错误：移除
    - 字段非空且无错误：不处理

    只处理给定字段，不影响其他字段的错误。

    Args:
        errors: 该规则当前的字段错误（原地修改）
        rule: 规则
        field: 字段名

    Returns:
        同一个 errors 字典
    """
    error = validate_field(rule, field)

    if error is not None:
        if field not in errors:
            errors[field] = error
    elif field in errors:
        del errors[field]

    return errors


def clear_resolved_errors(errors: FieldErrors, rule: Rule) -> FieldErrors:
    """移除已填写字段的错误，不新增错误"""
    for field in list(errors):
        if field in RULE_FIELDS and validate_field(rule, field) is None:
            del errors[field]
    return errors
