"""
规则服务异常定义
"""


class RuleStoreError(RuntimeError):
    """规则服务基础异常"""


class RuleLoadError(RuleStoreError):
    """加载规则失败"""
