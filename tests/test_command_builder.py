"""
Command Builder 单元测试

验证场景：
1. list_all_routes：full / simple 两种格式
2. search_routes：pattern 过滤、controller 二次过滤
3. get_route_details：controller# 过滤（区分大小写）
4. 参数缺失 / 非法：抛出 InvalidArgsError / UnknownToolError
5. 调用方输入全部经过 shell 转义

运行方式：
    python -m pytest tests/test_command_builder.py -v
"""
import shlex

import pytest

from rails_routes.config import RailsConfig, RoutesConfig
from rails_routes.tooling.command_builder import build_command, routes_report_command
from rails_routes.tooling.types import InvalidArgsError, UnknownToolError


@pytest.fixture
def cfg():
    return RoutesConfig(rails=RailsConfig(app_path="/srv/app"))


class TestListAllRoutes:

    def test_full_is_default(self, cfg):
        cmd = build_command("list_all_routes", {}, cfg)
        assert cmd.text == "/srv/app/bin/rails routes"
        assert cmd.filtered is False
        assert cmd.piped is False

    def test_full_explicit(self, cfg):
        assert build_command("list_all_routes", {"format": "full"}, cfg).text == "/srv/app/bin/rails routes"

    def test_simple_projects_three_columns(self, cfg):
        cmd = build_command("list_all_routes", {"format": "simple"}, cfg)
        assert cmd.text == "/srv/app/bin/rails routes | awk '{print $1, $2, $3}'"
        assert cmd.filtered is False
        assert cmd.piped is True

    def test_unknown_format_rejected(self, cfg):
        with pytest.raises(InvalidArgsError):
            build_command("list_all_routes", {"format": "json"}, cfg)

    def test_none_arguments(self, cfg):
        assert build_command("list_all_routes", None, cfg).text == "/srv/app/bin/rails routes"


class TestSearchRoutes:

    def test_pattern_only(self, cfg):
        cmd = build_command("search_routes", {"pattern": "user"}, cfg)
        assert cmd.text == "/srv/app/bin/rails routes | grep -i -e user"
        assert cmd.filtered is True
        assert cmd.piped is True

    def test_pattern_and_controller(self, cfg):
        cmd = build_command("search_routes", {"pattern": "api/v2", "controller": "orders"}, cfg)
        assert cmd.text == "/srv/app/bin/rails routes | grep -i -e api/v2 | grep -i -e 'orders#'"

    def test_empty_controller_ignored(self, cfg):
        cmd = build_command("search_routes", {"pattern": "user", "controller": ""}, cfg)
        assert cmd.text.count("grep") == 1

    @pytest.mark.parametrize("args", [{}, {"pattern": ""}, {"pattern": "   "}, {"pattern": None}])
    def test_missing_pattern(self, cfg, args):
        with pytest.raises(InvalidArgsError, match="pattern"):
            build_command("search_routes", args, cfg)


class TestGetRouteDetails:

    def test_controller_filter_is_case_sensitive(self, cfg):
        cmd = build_command("get_route_details", {"controller": "api/v2/orders"}, cfg)
        assert cmd.text == "/srv/app/bin/rails routes | grep -e 'api/v2/orders#'"
        assert "-i" not in cmd.text
        assert cmd.filtered is True
        assert cmd.piped is True

    def test_missing_controller(self, cfg):
        with pytest.raises(InvalidArgsError, match="controller"):
            build_command("get_route_details", {}, cfg)


class TestQuoting:
    """调用方输入不能逃逸出 grep 参数。"""

    def test_shell_metacharacters_are_quoted(self, cfg):
        evil = 'x"; rm -rf / #'
        cmd = build_command("search_routes", {"pattern": evil}, cfg)
        assert cmd.text.endswith(f"grep -i -e {shlex.quote(evil)}")
        # shlex 解析后 pattern 仍是单个参数
        tokens = shlex.split(cmd.text)
        assert tokens[-1] == evil

    def test_dash_prefixed_pattern_is_not_an_option(self, cfg):
        cmd = build_command("search_routes", {"pattern": "-v"}, cfg)
        assert "grep -i -e -v" in cmd.text

    def test_rails_command_with_spaces(self):
        cfg = RoutesConfig(rails=RailsConfig(app_path="/srv/my app"))
        assert routes_report_command(cfg) == "'/srv/my app/bin/rails' routes"

    def test_configured_command_keeps_its_words(self):
        cfg = RoutesConfig(rails=RailsConfig(app_path="/srv/app", command="bundle exec rails"))
        assert build_command("get_route_details", {"controller": "users"}, cfg).text == (
            "bundle exec rails routes | grep -e 'users#'"
        )


def test_unknown_tool(cfg):
    with pytest.raises(UnknownToolError):
        build_command("drop_routes", {}, cfg)
