"""rails-routes：Rails 路由表内省工具（list / search / details）。"""

__version__ = "1.0.0"

SERVER_NAME = "rails-routes"
SERVER_DESCRIPTION = "MCP server for Rails route inspection"
