"""
结果整形（Result Shaper）

ExecutionOutcome -> ToolResult：
- list_all_routes / search_routes: stdout 原样返回
- get_route_details: 解析 RouteLine，汇总路由数与 action 列表，并附完整路由
- 无匹配（grep 退出码 1）按成功返回提示文本，而非错误
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from .types import ExecutionOutcome, OutcomeKind, RouteLine, ToolResult, UnknownToolError

_FIELDS = ("prefix", "verb", "pattern", "action")


def parse_route_line(line: str) -> RouteLine:
    """按空白切分，依次赋值 prefix / verb / pattern / action，缺失列为空串。"""
    parts = line.split()
    return RouteLine(**{name: parts[i] if i < len(parts) else "" for i, name in enumerate(_FIELDS)})


def parse_route_lines(text: str) -> list[RouteLine]:
    return [parse_route_line(line) for line in text.splitlines() if line.strip()]


def distinct_actions(routes: Iterable[RouteLine]) -> list[str]:
    """action 中 `#` 之后的方法名，去重并保持首次出现顺序。"""
    seen: dict[str, None] = {}
    for route in routes:
        name = route.method_name
        if name:
            seen.setdefault(name, None)
    return list(seen)


def no_routes_message(tool_name: str, arguments: Mapping[str, Any]) -> str:
    if tool_name == "search_routes":
        return f"No routes found matching pattern: {arguments.get('pattern', '')}"
    if tool_name == "get_route_details":
        return f"No routes found for controller: {arguments.get('controller', '')}"
    return "No routes found"


def format_controller_summary(controller: str, stdout: str) -> str:
    routes = parse_route_lines(stdout)
    return (
        f"Controller: {controller}\n"
        f"Total routes: {len(routes)}\n"
        f"Actions: {', '.join(distinct_actions(routes))}\n"
        f"\n"
        f"Full routes:\n"
        f"{stdout}"
    )


def shape_result(tool_name: str, arguments: Mapping[str, Any] | None, outcome: ExecutionOutcome) -> ToolResult:
    arguments = arguments or {}

    if outcome.kind is OutcomeKind.EXEC_ERROR:
        return ToolResult.failure(f"Error executing rails routes: {outcome.message}", code="E_EXEC")

    if outcome.kind is OutcomeKind.NO_MATCH or not outcome.stdout.strip():
        return ToolResult.success(no_routes_message(tool_name, arguments))

    if tool_name in ("list_all_routes", "search_routes"):
        return ToolResult.success(outcome.stdout)
    if tool_name == "get_route_details":
        return ToolResult.success(format_controller_summary(str(arguments.get("controller", "")), outcome.stdout))
    raise UnknownToolError(f"Unknown tool: {tool_name}")
