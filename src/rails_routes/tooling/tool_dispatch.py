from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from pydantic import ConfigDict, ValidationError, create_model
from rich.markup import escape

from rails_routes.config.config import RoutesConfig
from .command_builder import build_command
from .logger_helper import get_tool_logger
from .process_runner import ProcessRunner
from .result_shaper import shape_result
from .types import InvalidArgsError, OutcomeKind, ToolError, ToolResult, UnknownToolError

_logger = get_tool_logger(__name__)


def _obj_schema(*, properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required or [],
        "additionalProperties": False,
    }


@dataclass(frozen=True)
class ToolContext:
    """单次调用所需的依赖：已解析的配置 + 进程执行器。"""

    config: RoutesConfig
    runner: ProcessRunner

    @classmethod
    def from_config(cls, config: RoutesConfig) -> "ToolContext":
        return cls(config=config, runner=ProcessRunner(config))


ToolHandler = Callable[[ToolContext, str, dict[str, Any]], ToolResult]


@dataclass(frozen=True)
class ToolSpec:
    """
    工具规范：同一份"工具事实"驱动 dispatch、参数校验与工具发现。
    """

    name: str
    description: str
    args_schema: dict[str, Any]
    example_args: dict[str, Any]
    external_bins_required: set[str]
    handler: ToolHandler

    def example_call(self) -> str:
        """CLI 调用示例：`call <name> -a key=value ...`。"""
        parts = [f"call {self.name}"]
        parts += [f"-a {k}={v}" for k, v in self.example_args.items()]
        return " ".join(parts)

    def descriptor(self) -> dict[str, Any]:
        """传输层用于声明能力的工具描述（name / description / inputSchema）。"""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.args_schema,
        }

    def validate_args(self, args: dict[str, Any]) -> tuple[bool, dict[str, Any] | str]:
        """
        使用 Pydantic 运行时强校验参数是否符合 args_schema。
        返回: (是否通过, 转换后的参数或错误消息)
        """
        props = self.args_schema.get("properties", {})
        required = self.args_schema.get("required", [])

        type_mapping = {"string": str}

        field_definitions: dict[str, Any] = {}
        for field_name, field_info in props.items():
            py_type: Any = type_mapping.get(field_info.get("type"), Any)
            if field_name in required:
                field_definitions[field_name] = (py_type, ...)
            else:
                # 非 required：缺省时用 schema default（否则 None）
                field_definitions[field_name] = (py_type | None, field_info.get("default"))

        try:
            # 禁止额外参数，避免调用方乱传参被静默忽略
            DynamicModel = create_model(
                f"Args_{self.name}",
                __config__=ConfigDict(extra="forbid"),
                **field_definitions,
            )
            out = DynamicModel(**args).model_dump(exclude_none=False)
        except ValidationError as e:
            errors = []
            for err in e.errors():
                loc = ".".join(str(x) for x in err["loc"])
                errors.append(f"'{loc}': {err['msg']}")
            return False, "; ".join(errors)

        # enum / minLength 约束（轻量实现）
        for field_name, field_info in props.items():
            val = out.get(field_name)
            if val is None:
                continue
            enums = field_info.get("enum")
            if enums and val not in enums:
                return False, f"'{field_name}': must be one of {enums}"
            min_len = field_info.get("minLength")
            if min_len and isinstance(val, str) and len(val.strip()) < min_len:
                return False, f"'{field_name}': must be a non-empty string"

        return True, out


def _h_routes(ctx: ToolContext, name: str, args: dict[str, Any]) -> ToolResult:
    """处理器：build -> run -> shape（三个路由工具共用）。"""
    command = build_command(name, args, ctx.config)
    outcome = ctx.runner.run(command)
    if outcome.kind is OutcomeKind.EXEC_ERROR:
        _logger.error(f"[red]✗ 工具 {name} 执行失败: {escape(outcome.message)}[/red]")
    return shape_result(name, args, outcome)


def _spec_list_all_routes() -> ToolSpec:
    return ToolSpec(
        name="list_all_routes",
        description="List all routes in the Rails application",
        args_schema=_obj_schema(
            properties={
                "format": {
                    "type": "string",
                    "enum": ["full", "simple"],
                    "description": "Output format - full includes HTTP verbs and controller actions",
                    "default": "full",
                },
            },
        ),
        example_args={"format": "simple"},
        external_bins_required={"awk"},
        handler=_h_routes,
    )


def _spec_search_routes() -> ToolSpec:
    return ToolSpec(
        name="search_routes",
        description="Search routes by pattern",
        args_schema=_obj_schema(
            properties={
                "pattern": {
                    "type": "string",
                    "minLength": 1,
                    "description": 'Pattern to search for (e.g., "user", "api/v2")',
                },
                "controller": {
                    "type": "string",
                    "description": "Filter by controller name",
                },
            },
            required=["pattern"],
        ),
        example_args={"pattern": "user", "controller": "users"},
        external_bins_required={"grep"},
        handler=_h_routes,
    )


def _spec_get_route_details() -> ToolSpec:
    return ToolSpec(
        name="get_route_details",
        description="Get detailed information about routes for a specific controller",
        args_schema=_obj_schema(
            properties={
                "controller": {
                    "type": "string",
                    "minLength": 1,
                    "description": 'Controller name (e.g., "users", "api/v2/orders")',
                },
            },
            required=["controller"],
        ),
        example_args={"controller": "users"},
        external_bins_required={"grep"},
        handler=_h_routes,
    )


def iter_tool_specs() -> Iterable[ToolSpec]:
    """返回所有工具规范（保持稳定顺序）。"""
    yield _spec_list_all_routes()
    yield _spec_search_routes()
    yield _spec_get_route_details()


# 注册表驱动：同一份注册表 = tool dispatch + 工具发现的来源
TOOL_REGISTRY: dict[str, ToolSpec] = {s.name: s for s in iter_tool_specs()}


def list_tools() -> list[dict[str, Any]]:
    """工具发现：返回三个工具的描述与参数 schema。"""
    return [spec.descriptor() for spec in iter_tool_specs()]


def dispatch_tool(ctx: ToolContext, name: str, args: dict[str, Any] | None = None) -> ToolResult:
    """
    工具分发（注册表驱动 + Pydantic 运行时强校验）。

    所有异常在这里转换为 ToolResult 错误，单次调用的失败不会外泄。
    参数校验失败时不启动任何外部进程。
    """
    try:
        spec = TOOL_REGISTRY.get(name)
        if spec is None:
            raise UnknownToolError(f"Unknown tool: {name}")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise InvalidArgsError("arguments must be an object")

        ok, validated_or_msg = spec.validate_args(args)
        if not ok:
            _logger.warning(f"[yellow]⚠ 工具 {name} 参数校验失败: {escape(str(validated_or_msg))}[/yellow]")
            return ToolResult.failure(f"Invalid arguments: {validated_or_msg}", code=InvalidArgsError.code)

        return spec.handler(ctx, name, validated_or_msg)  # type: ignore[arg-type]

    except ToolError as e:
        _logger.warning(f"[yellow]⚠ 工具 {escape(name)} 调用被拒绝: {escape(str(e))}[/yellow]")
        if isinstance(e, InvalidArgsError):
            return ToolResult.failure(f"Invalid arguments: {e}", code=e.code)
        return ToolResult.failure(str(e), code=e.code)
    except Exception as e:
        _logger.error(f"[red]✗ 工具执行异常: {escape(str(e))}[/red]", exc_info=True)
        return ToolResult.failure(f"Error executing rails routes: {e}", code="E_TOOL")


async def adispatch_tool(ctx: ToolContext, name: str, args: dict[str, Any] | None = None) -> ToolResult:
    """异步入口：外部进程在线程中阻塞执行，不阻塞事件循环。"""
    return await asyncio.to_thread(dispatch_tool, ctx, name, args)
