from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ToolError(RuntimeError):
    """工具层通用异常（在 dispatch 边界统一转换为 ToolResult 错误）。"""

    code = "E_TOOL"


class InvalidArgsError(ToolError):
    """必需参数缺失/为空，或 enum 取值非法。此时不会启动任何外部进程。"""

    code = "E_INVALID_ARGS"


class UnknownToolError(ToolError):
    """工具名不在固定的三个工具之内。"""

    code = "E_NO_TOOL"


@dataclass(frozen=True)
class ToolResult:
    """
    统一的工具返回结构：text（成功）与 error（失败）二者恰有其一。

    code 仅在失败时携带（E_INVALID_ARGS / E_NO_TOOL / E_EXEC / E_TOOL）。
    """

    text: str | None = None
    error: str | None = None
    code: str | None = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.error is None):
            raise ValueError("ToolResult requires exactly one of text/error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        return cls(text=text)

    @classmethod
    def failure(cls, message: str, code: str = "E_TOOL") -> "ToolResult":
        return cls(error=message, code=code)

    def to_payload(self) -> dict[str, Any]:
        if self.ok:
            return {"text": self.text}
        return {"error": self.error}


@dataclass(frozen=True)
class RouteLine:
    """`rails routes` 输出中的一行：prefix / verb / pattern / action，缺失列为空串。"""

    prefix: str = ""
    verb: str = ""
    pattern: str = ""
    action: str = ""

    @property
    def method_name(self) -> str:
        # "users#index" -> "index"
        _, sep, name = self.action.partition("#")
        return name if sep else ""


@dataclass(frozen=True)
class RouteCommand:
    """
    待执行的命令行。

    filtered=True 表示管道中含行过滤阶段（grep），其退出码 1 代表"无匹配行"。
    piped=True 表示第一段是路由报告命令，后接过滤/投影阶段；
    执行时需单独检查第一段的退出码。
    """

    text: str
    filtered: bool = False
    piped: bool = False


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    NO_MATCH = "no_match"
    EXEC_ERROR = "exec_error"


@dataclass(frozen=True)
class ExecutionOutcome:
    """Process Runner 的执行结果（内部值，不直接返回给调用方）。"""

    kind: OutcomeKind
    stdout: str = ""
    message: str = ""
    exit_code: int | None = None
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @classmethod
    def success(cls, stdout: str, *, stderr: str = "") -> "ExecutionOutcome":
        return cls(OutcomeKind.SUCCESS, stdout=stdout, exit_code=0, stderr=stderr)

    @classmethod
    def no_match(cls, *, exit_code: int = 1, stderr: str = "") -> "ExecutionOutcome":
        return cls(OutcomeKind.NO_MATCH, message="no matching lines", exit_code=exit_code, stderr=stderr)

    @classmethod
    def exec_error(cls, message: str, *, exit_code: int | None = None, stderr: str = "") -> "ExecutionOutcome":
        return cls(OutcomeKind.EXEC_ERROR, message=message, exit_code=exit_code, stderr=stderr)
