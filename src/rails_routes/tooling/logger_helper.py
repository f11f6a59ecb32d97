"""
工具模块日志辅助函数（Tool Logger Helper）

为所有工具模块提供统一的日志初始化功能。

使用方式：
    from rails_routes.tooling.logger_helper import get_tool_logger

    _logger = get_tool_logger(__name__)
    _logger.info("工具执行开始")
"""
from __future__ import annotations

import logging
from typing import Any

from rails_routes.observability.logger import get_logger
from rails_routes.config.config import LoggingConfig


# 全局 logger 缓存（模块名 -> Logger）
_logger_cache: dict[str, logging.Logger] = {}


def _configure(module_name: str, log_to_file: bool, cfg: Any | None) -> logging.Logger:
    if cfg is not None and hasattr(cfg, "logging"):
        logging_cfg = cfg.logging
    else:
        logging_cfg = LoggingConfig()

    log_file = None
    if log_to_file and logging_cfg.file_path:
        log_file = logging_cfg.file_path

    return get_logger(
        module_name,
        level=logging_cfg.level,
        log_file=log_file,
        log_to_console=logging_cfg.log_to_console,
        max_bytes=logging_cfg.max_bytes,
        backup_count=logging_cfg.backup_count,
        log_format=logging_cfg.log_format,
        date_format=logging_cfg.date_format,
    )


def get_tool_logger(
    module_name: str,
    log_to_file: bool = True,
    cfg: Any | None = None,
) -> logging.Logger:
    """
    获取工具模块的 logger（延迟初始化，统一配置）。

    Args:
        module_name: 模块名（通常是 __name__）
        log_to_file: 是否写入文件（还需 logging.file_path 非空）
        cfg: RoutesConfig 对象（可选，用于获取日志配置）

    Returns:
        已配置的 Logger 实例
    """
    if module_name in _logger_cache:
        return _logger_cache[module_name]

    logger = _configure(module_name, log_to_file, cfg)
    _logger_cache[module_name] = logger
    return logger


def apply_logging_config(cfg: Any) -> None:
    """
    启动时用已解析的配置重新配置所有已创建的工具 logger。

    模块级 logger 在导入时按默认配置创建，这里补上级别与文件输出。
    """
    log_to_file = bool(getattr(getattr(cfg, "command", None), "log_to_file", True))
    for module_name in list(_logger_cache):
        _logger_cache[module_name] = _configure(module_name, log_to_file, cfg)
