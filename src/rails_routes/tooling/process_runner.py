from __future__ import annotations

import os
import subprocess
import threading
from typing import Sequence

from rich.markup import escape

from rails_routes.config.config import RoutesConfig
from .command_builder import version_command
from .types import ExecutionOutcome, RouteCommand
from .logger_helper import get_tool_logger

# 工具模块 logger（延迟初始化）
_logger = get_tool_logger(__name__)

# grep 约定：退出码 1 = 没有匹配行（不是错误）
NO_MATCH_EXIT_CODES = frozenset({1})

# 屏蔽版本管理器（asdf / rbenv / rvm）的噪音输出
_QUIET_ENV = {
    "ASDF_SKIP_RESHIM": "1",
    "RBENV_SILENT": "1",
    "RVM_SILENCE": "1",
}

# 管道命令执行后，把各阶段退出码（PIPESTATUS）以标记行写到 stderr，
# 脚本本身仍以最后一段的退出码结束。仅适用于 bash。
_PIPESTATUS_MARK = "__RAILS_ROUTES_PIPESTATUS__"
_PIPESTATUS_TRAILER = (
    '; __rr_st=("${PIPESTATUS[@]}")'
    "; printf '" + _PIPESTATUS_MARK + " %s\\n' \"${__rr_st[*]}\" >&2"
    '; exit "${__rr_st[${#__rr_st[@]}-1]}"'
)


def build_env(config: RoutesConfig) -> dict[str, str]:
    """继承当前进程环境，覆盖 RAILS_ENV 与静默变量，最后叠加自定义覆盖。"""
    env = dict(os.environ)
    env["RAILS_ENV"] = config.rails.execution_env
    env.update(_QUIET_ENV)
    env.update(config.rails.env_overrides)
    return env


def classify_exit(
    command: RouteCommand,
    exit_code: int,
    stdout: str,
    stderr: str,
    stage_codes: Sequence[int] | None = None,
) -> ExecutionOutcome:
    """
    退出码分类。

    - 管道第一段（路由报告命令）非零: 执行错误，不论后续阶段的退出码
    - 0: 成功
    - 1 且命令含过滤阶段: 无匹配行（空结果）
    - 其他非零: 执行错误，携带 stderr
    """
    if stage_codes and stage_codes[0] != 0:
        exit_code = stage_codes[0]
        message = stderr.strip() or f"Command failed with exit code {exit_code}: {command.text}"
        return ExecutionOutcome.exec_error(message, exit_code=exit_code, stderr=stderr)
    if exit_code == 0:
        return ExecutionOutcome.success(stdout, stderr=stderr)
    if command.filtered and exit_code in NO_MATCH_EXIT_CODES:
        return ExecutionOutcome.no_match(exit_code=exit_code, stderr=stderr)
    message = stderr.strip() or f"Command failed with exit code {exit_code}: {command.text}"
    return ExecutionOutcome.exec_error(message, exit_code=exit_code, stderr=stderr)


def split_pipestatus(stderr: str) -> tuple[str, list[int] | None]:
    """从 stderr 中取出 PIPESTATUS 标记行，返回 (去掉标记后的 stderr, 各阶段退出码)。"""
    kept: list[str] = []
    codes: list[int] | None = None
    for line in stderr.splitlines(keepends=True):
        if line.startswith(_PIPESTATUS_MARK):
            codes = [int(c) for c in line[len(_PIPESTATUS_MARK):].split() if c.isdigit()]
            continue
        kept.append(line)
    return "".join(kept), codes


class ProcessRunner:
    """
    在 Rails 应用根目录下通过 shell 执行命令。

    - stdout 为结果；stderr 只写日志，不混入结果
    - 单次调用只执行一次，不重试
    - 同一 runner 上的并发进程数受 command.max_concurrent 限制
    """

    def __init__(self, config: RoutesConfig) -> None:
        self.config = config
        self._sem = threading.BoundedSemaphore(config.command.max_concurrent)

    def run(self, command: RouteCommand | str) -> ExecutionOutcome:
        if isinstance(command, str):
            command = RouteCommand(command)

        cfg = self.config
        timeout = cfg.command.timeout_s
        _logger.info(f"Executing command: {escape(command.text)}")
        _logger.debug(f"[RunCmd] cwd={cfg.rails.app_path}, shell={cfg.rails.shell}, timeout_s={timeout}")
        script = command.text + _PIPESTATUS_TRAILER if command.piped else command.text

        try:
            with self._sem:
                cp = subprocess.run(
                    script,
                    cwd=cfg.rails.app_path,
                    shell=True,
                    executable=cfg.rails.shell,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    env=build_env(cfg),
                    timeout=timeout,
                )
        except subprocess.TimeoutExpired:
            _logger.warning(f"[RunCmd] 命令超时: {escape(command.text)} (timeout_s={timeout})")
            return ExecutionOutcome.exec_error(f"Command timed out after {timeout}s: {command.text}")
        except FileNotFoundError as e:
            _logger.warning(f"[RunCmd] 命令或目录不存在: {escape(command.text)}, 错误: {escape(str(e))}")
            return ExecutionOutcome.exec_error(f"Command not found: {e}")
        except OSError as e:
            _logger.error(f"[RunCmd] 命令执行失败: {escape(command.text)}, 错误: {escape(str(e))}", exc_info=True)
            return ExecutionOutcome.exec_error(str(e))

        stdout = cp.stdout or ""
        stderr, stage_codes = split_pipestatus(cp.stderr or "")
        _logger.info(f"[RunCmd] 命令执行完成, 返回码: {cp.returncode}, 各阶段: {stage_codes}, 输出大小: {len(stdout)} bytes")
        if stderr:
            _logger.warning(f"Command stderr: {escape(stderr.rstrip())}")

        outcome = classify_exit(command, cp.returncode, stdout, stderr, stage_codes)
        if not outcome.ok:
            _logger.debug(f"[RunCmd] 结果分类: {outcome.kind.value}, exit_code={outcome.exit_code}")
        return outcome

    def verify(self) -> ExecutionOutcome:
        """`<rails> --version`，启动/doctor 时检查 rails 命令是否可用。"""
        return self.run(RouteCommand(version_command(self.config)))
