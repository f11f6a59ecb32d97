from __future__ import annotations

import shlex

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_APP_PATH = "/path/to/your/rails/app"


class RailsConfig(BaseSettings):
    """
    目标 Rails 应用配置。

    兼容旧部署方式：直接读取 RAILS_APP_PATH / RAILS_COMMAND 环境变量。
    """

    model_config = SettingsConfigDict(env_prefix="RAILS_", extra="ignore")

    app_path: str = Field(
        default=DEFAULT_APP_PATH,
        description="Rails 应用根目录（命令在此目录下执行）。环境变量 RAILS_APP_PATH。",
    )
    command: str = Field(
        default="",
        description="rails 可执行文件路径，留空则使用 <app_path>/bin/rails。环境变量 RAILS_COMMAND。",
    )
    execution_env: str = Field(
        default="development",
        description="执行时注入的 RAILS_ENV。",
    )
    shell: str = Field(
        default="/bin/bash",
        description="执行命令使用的 shell（管道/过滤依赖 shell）。",
    )
    env_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="额外覆盖的环境变量（在内置覆盖之后生效）。",
    )

    @property
    def rails_command(self) -> str:
        if self.command:
            return self.command
        return f"{self.app_path.rstrip('/')}/bin/rails"

    @property
    def rails_argv(self) -> list[str]:
        """command 按 shell 词法切分（允许 `bundle exec rails`）；默认路径整体作为一个参数。"""
        if self.command:
            return shlex.split(self.command)
        return [self.rails_command]


class CommandToolConfig(BaseModel):
    """外部命令执行配置（process runner）"""
    timeout_s: int | None = Field(
        default=None,
        ge=1,
        le=3600,
        description="命令执行超时时间（秒），None 表示不限制。",
    )
    max_concurrent: int = Field(
        default=4,
        ge=1,
        le=64,
        description="同时在途的外部进程数上限。",
    )
    log_to_file: bool = Field(
        default=True,
        description="是否将命令执行日志写入文件（需同时配置 logging.file_path）。",
    )


class LoggingConfig(BaseModel):
    """日志系统配置。"""
    log_to_console: bool = Field(
        default=True,
        description="是否将日志输出到控制台（stderr，stdout 留给传输层）。"
    )
    level: str = Field(
        default="INFO",
        description="日志级别：DEBUG, INFO, WARNING, ERROR, CRITICAL。"
    )
    file_path: str = Field(
        default="",
        description="日志文件存储路径，留空则不写文件。"
    )
    max_bytes: int = Field(
        default=10_485_760,  # 10MB
        ge=1024,
        description="单个日志文件的最大字节数，超过后自动滚动。"
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        description="保留的历史日志文件数量。"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="日志文件消息格式。"
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="日志时间格式。"
    )


class RoutesConfig(BaseSettings):
    """
    Config priority (high -> low):
    - environment variables (prefix RAILS_ROUTES_, nested delimiter __)
    - keyword arguments
    - defaults

    RAILS_APP_PATH / RAILS_COMMAND are read by RailsConfig itself.
    """

    model_config = SettingsConfigDict(
        env_prefix="RAILS_ROUTES_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    rails: RailsConfig = Field(default_factory=RailsConfig)
    command: CommandToolConfig = CommandToolConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(**overrides) -> RoutesConfig:
    """启动时解析一次配置，之后显式传递给 builder / runner。"""
    return RoutesConfig(**overrides)
