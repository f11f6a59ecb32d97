"""
CLI 测试（typer CliRunner）：version / tools / call / doctor。
"""
import json

from typer.testing import CliRunner

from rails_routes import __version__
from rails_routes.cli.main import app

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_tools_json():
    result = runner.invoke(app, ["tools", "--json"])
    assert result.exit_code == 0
    names = [t["name"] for t in json.loads(result.output)]
    assert names == ["list_all_routes", "search_routes", "get_route_details"]


def test_tools_table():
    result = runner.invoke(app, ["tools"])
    assert result.exit_code == 0
    assert "search_routes" in result.output


def test_call_route_details(rails_app, monkeypatch):
    monkeypatch.setenv("RAILS_APP_PATH", str(rails_app))
    result = runner.invoke(app, ["call", "get_route_details", "--arg", "controller=users"])
    assert result.exit_code == 0
    assert "Total routes: 5" in result.output
    assert "Actions: index, create, show, update" in result.output


def test_call_no_match_is_success(rails_app, monkeypatch):
    monkeypatch.setenv("RAILS_APP_PATH", str(rails_app))
    result = runner.invoke(app, ["call", "search_routes", "-a", "pattern=zzz-no-match"])
    assert result.exit_code == 0
    assert "No routes found matching pattern: zzz-no-match" in result.output


def test_call_missing_argument_fails(rails_app, monkeypatch):
    monkeypatch.setenv("RAILS_APP_PATH", str(rails_app))
    result = runner.invoke(app, ["call", "get_route_details"])
    assert result.exit_code == 1
    assert "Invalid arguments" in result.output


def test_call_bad_arg_syntax():
    result = runner.invoke(app, ["call", "search_routes", "--arg", "pattern"])
    assert result.exit_code != 0


def test_doctor(rails_app, monkeypatch):
    monkeypatch.setenv("RAILS_APP_PATH", str(rails_app))
    result = runner.invoke(app, ["doctor"])
    assert "Rails 7.1.3" in result.output
    assert result.exit_code == 0


def test_doctor_broken_rails(tmp_path, monkeypatch):
    monkeypatch.setenv("RAILS_APP_PATH", str(tmp_path))
    result = runner.invoke(app, ["doctor"])
    assert result.exit_code == 2
