"""
服务层包
"""
from .dto import Rule, RuleView, RuleCollectionView, SaveResult, StoreState
from .errors import RuleStoreError, RuleLoadError
from .rule_types import ActionType, DataType, get_action_type_label, get_data_type_label
from .rule_validator import validate_field, validate_rule, validate_collection
from .rule_collection_store import RuleCollectionStore
from .rule_repository import RuleRepository
from .rule_editor_service import (
    RuleEditorSession,
    RuleSessionRegistry,
    get_rule_session_registry,
)

__all__ = [
    "Rule",
    "RuleView",
    "RuleCollectionView",
    "SaveResult",
    "StoreState",
    "RuleStoreError",
    "RuleLoadError",
    "ActionType",
    "DataType",
    "get_action_type_label",
    "get_data_type_label",
    "validate_field",
    "validate_rule",
    "validate_collection",
    "RuleCollectionStore",
    "RuleRepository",
    "RuleEditorSession",
    "RuleSessionRegistry",
    "get_rule_session_registry",
]
