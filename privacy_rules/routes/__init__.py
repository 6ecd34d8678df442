"""
API路由模块
"""
from .data_privacy_rules import router as data_privacy_rules_router

__all__ = [
    "data_privacy_rules_router",
]
