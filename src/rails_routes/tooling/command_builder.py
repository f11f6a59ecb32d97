"""
命令构造（Command Builder）

tool 名 + 已校验参数 -> RouteCommand，纯函数，无副作用。

安全处理：调用方传入的 pattern / controller 以及 rails 命令的每个词都经过
shlex.quote，过滤词用 `grep -e` 传入，以 `-` 开头的值不会被当作 grep 选项。
pattern 仍按 grep 基本正则、大小写不敏感匹配。
"""
from __future__ import annotations

import shlex
from typing import Any, Mapping

from rails_routes.config.config import RoutesConfig
from .types import InvalidArgsError, RouteCommand, UnknownToolError

LIST_FORMATS = ("full", "simple")

# 只保留前三列：prefix / verb / pattern
_SIMPLE_PROJECTION = "awk '{print $1, $2, $3}'"


def _required(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgsError(f"missing required argument: {key}")
    return value


def _optional(arguments: Mapping[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise InvalidArgsError(f"argument '{key}' must be a string")
    return value


def _grep(term: str, *, ignore_case: bool) -> str:
    flags = "-i -e" if ignore_case else "-e"
    return f"grep {flags} {shlex.quote(term)}"


def routes_report_command(config: RoutesConfig) -> str:
    """完整路由报告命令：`<rails> routes`。"""
    return shlex.join([*config.rails.rails_argv, "routes"])


def version_command(config: RoutesConfig) -> str:
    return shlex.join([*config.rails.rails_argv, "--version"])


def build_list_all_routes(arguments: Mapping[str, Any], config: RoutesConfig) -> RouteCommand:
    fmt = arguments.get("format") or "full"
    if fmt not in LIST_FORMATS:
        raise InvalidArgsError(f"argument 'format' must be one of {list(LIST_FORMATS)}")
    cmd = routes_report_command(config)
    if fmt == "simple":
        cmd = f"{cmd} | {_SIMPLE_PROJECTION}"
    return RouteCommand(cmd, filtered=False, piped=fmt == "simple")


def build_search_routes(arguments: Mapping[str, Any], config: RoutesConfig) -> RouteCommand:
    pattern = _required(arguments, "pattern")
    controller = _optional(arguments, "controller")
    cmd = f"{routes_report_command(config)} | {_grep(pattern, ignore_case=True)}"
    if controller:
        # 锚定 action 列的 "controller#action" 约定
        cmd += f" | {_grep(controller + '#', ignore_case=True)}"
    return RouteCommand(cmd, filtered=True, piped=True)


def build_get_route_details(arguments: Mapping[str, Any], config: RoutesConfig) -> RouteCommand:
    controller = _required(arguments, "controller")
    cmd = f"{routes_report_command(config)} | {_grep(controller + '#', ignore_case=False)}"
    return RouteCommand(cmd, filtered=True, piped=True)


_BUILDERS = {
    "list_all_routes": build_list_all_routes,
    "search_routes": build_search_routes,
    "get_route_details": build_get_route_details,
}


def build_command(tool_name: str, arguments: Mapping[str, Any] | None, config: RoutesConfig) -> RouteCommand:
    """
    根据工具名构造外部命令。

    Raises:
        UnknownToolError: 工具名不在固定集合内
        InvalidArgsError: 必需参数缺失/为空或取值非法
    """
    builder = _BUILDERS.get(tool_name)
    if builder is None:
        raise UnknownToolError(f"Unknown tool: {tool_name}")
    return builder(arguments or {}, config)
