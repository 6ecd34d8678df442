"""
数据传输对象 (Data Transfer Objects)
"""
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict

from .rule_types import ActionType, DataType


# 参与校验的字段（对外名称），id 不可编辑，不参与校验
RULE_FIELDS = ("action", "data", "from")


class Rule(BaseModel):
    """数据隐私规则"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    action: Optional[ActionType] = ActionType.MASK
    data: Optional[DataType] = DataType.BANK_ACCOUNTS
    source: str = Field(default="", alias="from")  # 来源选择表达式

    def get_field(self, field: str):
        """按对外字段名取值（"from" 对应 source）"""
        if field not in RULE_FIELDS:
            raise KeyError(field)
        return self.source if field == "from" else getattr(self, field)


class StoreState(str, Enum):
    """规则集合状态"""
    LOADING = "loading"
    CLEAN = "clean"
    DIRTY = "dirty"


class RuleView(BaseModel):
    """单条规则的展示数据（含字段错误）"""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    action: Optional[ActionType] = None
    data: Optional[DataType] = None
    source: str = Field(default="", alias="from")
    errors: Dict[str, str] = Field(default_factory=dict)


class RuleCollectionView(BaseModel):
    """规则集合快照"""
    state: StoreState
    rules: List[RuleView] = Field(default_factory=list)
    error: Optional[str] = None  # 汇总错误信息
    is_dirty: bool = False


class SaveResult(BaseModel):
    """保存结果"""
    success: bool
    error: Optional[str] = None
    invalid_fields: Dict[int, List[str]] = Field(default_factory=dict)  # 规则ID -> 空字段
