from __future__ import annotations

import sys

import click
import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from .cli_shared import (
    ECS_MGR_CLUSTER,
    ECS_MGR_REGION,
    EcsMgrError,
    MgrOpts,
    UsageError,
    VALID_REGIONS,
    _bootstrap_env,
    _debug,
    _env_or_none,
    _normalize_region,
    _require_str,
)
from .commands import SUBCOMMANDS, dispatch

PROG_NAME = "ecs-mgr"
HELP_FLAGS = ("-h", "--help")

_ERROR_CONSOLE = Console(stderr=True)


def _click_error_types() -> tuple[type[Exception], ...]:
    # Newer typer releases vendor click; their parse errors do not subclass
    # the top-level click.ClickException.
    found: list[type[Exception]] = [click.ClickException]
    for cls in typer.BadParameter.__mro__:
        if cls.__name__ == "ClickException" and cls not in found:
            found.append(cls)
    return tuple(found)


CLICK_ERRORS = _click_error_types()


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", soft_wrap=True)


def usage_text(prog_name: str = PROG_NAME) -> str:
    regions = " | ".join(VALID_REGIONS)
    lines = [
        f"{prog_name}:",
        f"-r|--region  <region>        one of: [{regions}] (default: {VALID_REGIONS[0]})",
        "-c|--cluster <cluster>",
        "-s|--service <service>",
        "-d|--debug                   enable debug mode",
        "-e|--execute <subcommand>",
        "-p|--profile <profile>       AWS named profile (default: boto3 credential chain)",
        "--version                    show version and exit",
        "",
        "  subcommands:",
    ]
    for sub in SUBCOMMANDS.values():
        lines.append(f"    {sub.name:<24} {sub.help}")
    lines.append("")
    return "\n".join(lines)


def _print_usage() -> None:
    sys.stdout.write(usage_text() + "\n")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit(code=0)


def _resolve_opts(
    *,
    region: str | None,
    cluster: str | None,
    service: str | None,
    debug: bool,
    execute: str | None,
    profile: str | None,
) -> MgrOpts:
    return MgrOpts(
        region=_normalize_region(region or _env_or_none(ECS_MGR_REGION)),
        cluster=_require_str(
            cluster or _env_or_none(ECS_MGR_CLUSTER),
            "cluster",
            hint=f"pass -c|--cluster or set {ECS_MGR_CLUSTER}",
        ),
        execute=_require_str(execute, "subcommand", hint="pass -e|--execute <subcommand>"),
        service=(service or "").strip(),
        debug=bool(debug),
        profile=(profile or "").strip(),
    )


def _echo_config(g: MgrOpts) -> None:
    _debug(g, "[DEBUG] Arguments:")
    _debug(g, f"region  : {g.region}")
    _debug(g, f"cluster : {g.cluster}")
    _debug(g, f"service : {g.service}")
    _debug(g, f"execute : {g.execute}")


app = typer.Typer(
    name=PROG_NAME,
    help="Inspect and control ECS cluster services.",
    add_completion=False,
)


@app.command(
    epilog="Subcommands: " + ", ".join(SUBCOMMANDS),
    context_settings={"help_option_names": list(HELP_FLAGS)},
)
def run(
    region: str | None = typer.Option(
        None,
        "-r",
        "--region",
        help=f"One of {', '.join(VALID_REGIONS)} (env fallback: {ECS_MGR_REGION})",
    ),
    cluster: str | None = typer.Option(
        None,
        "-c",
        "--cluster",
        help=f"ECS cluster name (env fallback: {ECS_MGR_CLUSTER})",
    ),
    service: str | None = typer.Option(None, "-s", "--service", help="ECS service name"),
    debug: bool = typer.Option(False, "-d", "--debug", help="Enable debug mode"),
    execute: str | None = typer.Option(None, "-e", "--execute", help="Subcommand to run"),
    profile: str | None = typer.Option(None, "-p", "--profile", help="AWS named profile"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> int:
    del version
    g = _resolve_opts(
        region=region,
        cluster=cluster,
        service=service,
        debug=debug,
        execute=execute,
        profile=profile,
    )
    _echo_config(g)
    return dispatch(g)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        _bootstrap_env()
    except EcsMgrError as e:
        _rich_error(str(e))
        return e.exit_code
    if not argv:
        _print_usage()
        return 1
    if any(a in HELP_FLAGS for a in argv):
        _print_usage()
        return 0
    try:
        result = app(args=argv, prog_name=PROG_NAME, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except CLICK_ERRORS as e:
        _rich_error(e.format_message())
        _print_usage()
        return 1
    except UsageError as e:
        _rich_error(str(e))
        _print_usage()
        return e.exit_code
    except EcsMgrError as e:
        _rich_error(str(e))
        return e.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
