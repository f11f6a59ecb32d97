"""
测试公共夹具：在 tmp_path 下伪造一个 Rails 应用（bin/rails + 固定的路由报告）。

伪造的 bin/rails 行为：
- `rails --version` -> 输出版本号
- `rails routes`    -> 输出 routes.txt，并向 stderr 写一行噪音
- `rails env`       -> 输出执行环境中的关键变量
- 其他子命令         -> 退出码 3
"""
import stat

import pytest

from rails_routes.config import RailsConfig, RoutesConfig


ROUTES_REPORT = """\
       Prefix Verb   URI Pattern                  Controller#Action
        users GET    /users(.:format)             users#index
        users POST   /users(.:format)             users#create
         user GET    /users/:id(.:format)         users#show
         user PATCH  /users/:id(.:format)         users#update
         user PUT    /users/:id(.:format)         users#update
api_v2_orders GET    /api/v2/orders(.:format)     api/v2/orders#index
"""

FAKE_RAILS = """\
#!/bin/bash
case "$1" in
  --version)
    echo "Rails 7.1.3"
    ;;
  routes)
    cat "$(dirname "$0")/../routes.txt"
    echo "warning: fake deprecation notice" >&2
    ;;
  env)
    echo "$RAILS_ENV $ASDF_SKIP_RESHIM $RBENV_SILENT $RVM_SILENCE"
    ;;
  *)
    echo "unknown command: $1" >&2
    exit 3
    ;;
esac
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """避免宿主环境中的 RAILS_* 变量影响配置解析。"""
    for key in ("RAILS_APP_PATH", "RAILS_COMMAND", "RAILS_EXECUTION_ENV", "RAILS_SHELL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def rails_app(tmp_path):
    """伪造的 Rails 应用根目录。"""
    (tmp_path / "routes.txt").write_text(ROUTES_REPORT, encoding="utf-8")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    rails = bin_dir / "rails"
    rails.write_text(FAKE_RAILS, encoding="utf-8")
    rails.chmod(rails.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return tmp_path


@pytest.fixture
def routes_config(rails_app):
    return RoutesConfig(rails=RailsConfig(app_path=str(rails_app)))
