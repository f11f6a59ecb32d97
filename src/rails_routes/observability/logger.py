"""
统一日志系统模块。

控制台输出走 stderr（stdout 只承载工具结果，供传输层使用），
可选写入滚动日志文件，格式：`[文件名:行号] 级别 - 消息内容`。
支持 Rich markup（颜色、样式等）。
"""
import logging
import os
from pathlib import Path
from typing import Optional, Union
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.errors import MarkupError
from rich.logging import RichHandler
from rich.text import Text


def _stamp_caller(record: logging.LogRecord) -> None:
    record.filename = Path(record.pathname).name
    record.lineno_caller = record.lineno


def _plain_record(record: logging.LogRecord) -> logging.LogRecord:
    # 复制 record，控制台处理器仍看到原始 markup
    try:
        plain = Text.from_markup(record.getMessage()).plain
    except MarkupError:
        return record
    clone = logging.makeLogRecord(record.__dict__)
    clone.msg = plain
    clone.args = None
    return clone


class FileLineRichHandler(RichHandler):
    """Rich 控制台处理器，记录调用方文件名和行号。"""

    def emit(self, record: logging.LogRecord) -> None:
        _stamp_caller(record)
        super().emit(record)


class FileLineFileHandler(RotatingFileHandler):
    """
    文件输出处理器，支持自动滚动。

    默认格式：级别 [文件名:行号] 级别 - 消息内容（log_format 可覆盖）
    消息中的 Rich markup（颜色标签与转义）写入文件前还原为纯文本。
    """

    def __init__(
        self,
        filename: str,
        mode: str = "a",
        encoding: str = "utf-8",
        delay: bool = False,
        maxBytes: int = 10_485_760,  # 10MB
        backupCount: int = 5,
        log_format: Optional[str] = None,
        date_format: Optional[str] = None
    ):
        super().__init__(filename, mode, maxBytes, backupCount, encoding, delay)
        fmt = log_format or "%(levelname)-8s [%(filename)s:%(lineno_caller)s] %(levelname)s - %(message)s"
        datefmt = date_format or ""
        self.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))

    def emit(self, record: logging.LogRecord) -> None:
        _stamp_caller(record)
        super().emit(_plain_record(record))


def get_logger(
    name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    max_bytes: int = 10_485_760,
    backup_count: int = 5,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
) -> logging.Logger:
    """
    获取配置好的日志记录器。

    参数:
        name: 日志记录器名称（通常是模块名，如 __name__）
        level: 日志级别（int 如 logging.INFO，或字符串如 'DEBUG'）
        log_file: 可选的文件路径，提供则同时输出到文件
        log_to_console: 是否输出到控制台（stderr）
        max_bytes: 日志文件最大字节数
        backup_count: 保留的日志备份数量
        log_format: 文件日志格式
        date_format: 文件日志日期格式
    """
    logger = logging.getLogger(name)

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    has_console_handler = any(isinstance(h, FileLineRichHandler) for h in logger.handlers)
    has_file_handler = any(isinstance(h, FileLineFileHandler) for h in logger.handlers)

    if log_to_console:
        if not has_console_handler:
            console = Console(stderr=True)
            console_handler = FileLineRichHandler(
                console=console,
                show_time=False,
                show_path=False,
                rich_tracebacks=True,
                markup=True,
            )
            console_handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt=""))
            logger.addHandler(console_handler)
        # 已有自己的控制台处理器，避免父 logger 重复输出
        logger.propagate = False
    else:
        for h in [h for h in logger.handlers if isinstance(h, FileLineRichHandler)]:
            logger.removeHandler(h)

    effective_log_file = log_file or None
    if effective_log_file:
        try:
            os.makedirs(os.path.dirname(effective_log_file) or ".", exist_ok=True)
        except OSError:
            # 目录创建失败不阻塞控制台日志
            effective_log_file = None

    if effective_log_file and not has_file_handler:
        file_handler = FileLineFileHandler(
            effective_log_file,
            encoding="utf-8",
            maxBytes=max_bytes,
            backupCount=backup_count,
            log_format=log_format,
            date_format=date_format,
        )
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger

