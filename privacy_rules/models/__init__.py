"""
数据库模型包
"""
from .base import Base
from .data_privacy_rule import DataPrivacyRule

__all__ = [
    "Base",
    "DataPrivacyRule",
]
