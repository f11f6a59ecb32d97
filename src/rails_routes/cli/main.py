import json
import shutil

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rails_routes import SERVER_DESCRIPTION, SERVER_NAME, __version__
from rails_routes.config import RoutesConfig, load_config
from rails_routes.tooling.logger_helper import apply_logging_config
from rails_routes.tooling.tool_dispatch import ToolContext, dispatch_tool, iter_tool_specs, list_tools

app = typer.Typer(help="rails-routes: inspect a Rails application's routing table (list / search / details).")
console = Console()


def _load() -> RoutesConfig:
    cfg = load_config()
    apply_logging_config(cfg)
    return cfg


def _parse_args(pairs: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got: {item}")
        out[key] = value
    return out


@app.command()
def version() -> None:
    """Print version."""
    typer.echo(__version__)


@app.command()
def tools(
    as_json: bool = typer.Option(False, "--json", help="以 JSON 输出工具描述（name/description/inputSchema）"),
) -> None:
    """List the available tools and their argument schemas."""
    if as_json:
        typer.echo(json.dumps(list_tools(), ensure_ascii=False, indent=2))
        return

    table = Table(title=f"{SERVER_NAME} tools")
    table.add_column("Tool", style="bold cyan")
    table.add_column("Required")
    table.add_column("Optional")
    table.add_column("Description")
    table.add_column("Example")
    for spec in iter_tool_specs():
        props = spec.args_schema.get("properties", {})
        required = spec.args_schema.get("required", [])
        optional = [k for k in props if k not in required]
        table.add_row(spec.name, ", ".join(required) or "-", ", ".join(optional) or "-", spec.description, spec.example_call())
    console.print(table)


@app.command()
def call(
    tool: str = typer.Argument(..., help="工具名：list_all_routes | search_routes | get_route_details"),
    arg: list[str] = typer.Option([], "--arg", "-a", help="工具参数 key=value，可重复"),
    as_json: bool = typer.Option(False, "--json", help="以 JSON 输出 {text} / {error}"),
) -> None:
    """Invoke one tool and print its result."""
    ctx = ToolContext.from_config(_load())
    result = dispatch_tool(ctx, tool, _parse_args(arg))

    if as_json:
        typer.echo(json.dumps(result.to_payload(), ensure_ascii=False))
    elif result.ok:
        typer.echo(result.text, nl=not (result.text or "").endswith("\n"))
    else:
        typer.echo(result.error, err=True)

    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def doctor() -> None:
    """Check configuration, required binaries and the rails command."""
    cfg = _load()
    ctx = ToolContext.from_config(cfg)

    console.print(f"[bold]{SERVER_NAME} doctor[/bold] ({SERVER_DESCRIPTION}, v{__version__})")
    console.print(f"- app_path: {cfg.rails.app_path}")
    console.print(f"- rails command: {cfg.rails.rails_command}")
    console.print(f"- shell: {cfg.rails.shell}")
    console.print(f"- timeout_s: {cfg.command.timeout_s}")

    required_bins: dict[str, set[str]] = {}
    for s in iter_tool_specs():
        for b in s.external_bins_required:
            required_bins.setdefault(b, set()).add(s.name)

    missing = False
    console.print("\n[bold]外部依赖（必需）[/bold]")
    for b, owners in sorted(required_bins.items()):
        found = shutil.which(b)
        missing = missing or not found
        console.print(f"- {b}: {found or '[red]NOT FOUND[/red]'}  影响: {', '.join(sorted(owners))}")

    outcome = ctx.runner.verify()
    if outcome.ok:
        console.print(f"\n[green]rails command verified[/green]: {escape(outcome.stdout.strip())}")
    else:
        console.print(f"\n[red]could not verify rails command[/red]: {escape(outcome.message)}")

    if missing or not outcome.ok:
        raise typer.Exit(code=2)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
