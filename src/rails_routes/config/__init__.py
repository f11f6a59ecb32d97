"""
配置模块统一管理

- config.py: 主配置类（RoutesConfig）与子配置

统一导入接口：
    from rails_routes.config import RoutesConfig, load_config
"""

from .config import (
    DEFAULT_APP_PATH,
    RailsConfig,
    CommandToolConfig,
    LoggingConfig,
    RoutesConfig,
    load_config,
)

__all__ = [
    "DEFAULT_APP_PATH",
    "RailsConfig",
    "CommandToolConfig",
    "LoggingConfig",
    "RoutesConfig",
    "load_config",
]
