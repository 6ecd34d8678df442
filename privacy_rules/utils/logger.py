"""
日志配置模块
为数据隐私规则服务提供统一的日志记录
"""
import logging
import os
import sys
import traceback
from datetime import datetime
from typing import Optional, Dict, Any
from pathlib import Path


DEFAULT_LOGGER_NAME = "privacy_rules"


class DetailedFormatter(logging.Formatter):
    """带上下文信息的日志格式化器"""

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if hasattr(record, 'extra_context'):
            formatted += f"\n上下文信息: {record.extra_context}"

        return formatted


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    设置日志记录器

    Args:
        name: 日志记录器名称
        log_level: 日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        log_file: 日志文件路径，为空字符串时不写文件，为None时从环境变量读取
        console_output: 是否输出到控制台

    Returns:
        配置好的日志记录器
    """
    if log_level is None:
        log_level = os.getenv("LOG_LEVEL", "INFO")

    if log_file is None:
        log_file = os.getenv("LOG_FILE", "./logs/privacy_rules.log")

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper()))

    # 清除已有的处理器（避免重复添加）
    logger.handlers.clear()

    log_format = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(DetailedFormatter(log_format, date_format))
        logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(DetailedFormatter(log_format, date_format))
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    获取日志记录器

    包内模块（privacy_rules.*）的记录器不单独挂处理器，
    而是向上传播到根记录器 privacy_rules。

    Args:
        name: 日志记录器名称

    Returns:
        日志记录器实例
    """
    if name != DEFAULT_LOGGER_NAME and name.startswith(f"{DEFAULT_LOGGER_NAME}."):
        root = logging.getLogger(DEFAULT_LOGGER_NAME)
        if not root.handlers:
            setup_logger(DEFAULT_LOGGER_NAME)
        return logging.getLogger(name)

    logger = logging.getLogger(name)

    if not logger.handlers:
        setup_logger(name)

    return logger


def log_error_with_context(
    logger: logging.Logger,
    message: str,
    error: Exception,
    context: Optional[Dict[str, Any]] = None
):
    """
    记录带有详细上下文的错误日志

    Args:
        logger: 日志记录器
        message: 错误消息
        error: 异常对象
        context: 额外的上下文信息（如项目ID、规则数量等）
    """
    error_details = {
        "message": message,
        "error_type": type(error).__name__,
        "error_message": str(error),
        "timestamp": datetime.utcnow().isoformat(),
    }

    if context:
        error_details["context"] = context

    error_details["traceback"] = traceback.format_exc()

    logger.error(
        f"{message}\n详细信息: {error_details}",
        exc_info=True,
        extra={"extra_context": context}
    )
