"""Main CLI entry point for ims-cli."""

from __future__ import annotations

from pathlib import Path

import click

from imscli import __version__
from imscli.cli.auth import login_cmd, logout_cmd, token_cmd, unlock_cmd
from imscli.cli.context import context_group
from imscli.models.context import HttpMethod
from imscli.ui.console import configure_logging
from imscli.ui.echo import OUTPUT_FORMATS
from imscli.utils.state import CONTEXT_ENVVAR, DEFAULT_ROOT, ROOT_ENVVAR


@click.group()
@click.version_option(version=__version__, prog_name="ims")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging on stderr")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    envvar=ROOT_ENVVAR,
    show_default=str(DEFAULT_ROOT),
    help=f"State directory holding the context store (same as {ROOT_ENVVAR})",
)
@click.option(
    "--ctx",
    "context_name",
    default=None,
    envvar=CONTEXT_ENVVAR,
    help=f"IMS context to use instead of the current one (same as {CONTEXT_ENVVAR})",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS),
    default="json",
    show_default=True,
    help="Output format for printed objects",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    root: Path | None,
    context_name: str | None,
    fmt: str,
) -> None:
    """Call Adobe IMS APIs with tokens from named authentication contexts."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root
    ctx.obj["ctx"] = context_name
    ctx.obj["format"] = fmt


def _call_command(method: HttpMethod) -> click.Command:
    verb = method.value.lower()
    help_text = (
        f"Raw IMS API call using HTTP {method.value}.\n\n"
        "API is the IMS API path, for example /ims/profile/v1. The result is "
        "printed as an object if successful; on failure the reason is printed "
        "and the command exits with status 1."
    )

    @click.command(verb, help=help_text)
    @click.argument("api")
    @click.option(
        "-d",
        "--data",
        multiple=True,
        metavar="NAME=VALUE",
        help="Request parameter in the form of name=value. Repeat for multiple parameters",
    )
    @click.option(
        "--strict-params",
        is_flag=True,
        help="Fail on duplicate parameter names instead of keeping the last value",
    )
    @click.pass_context
    def call_cmd(
        ctx: click.Context,
        api: str,
        data: tuple[str, ...],
        strict_params: bool,
    ) -> None:
        from imscli.cli.call import run_call
        from imscli.cli.runtime import runtime_from_context

        run_call(
            runtime_from_context(ctx),
            context_name=ctx.obj.get("ctx"),
            api=api,
            data=data,
            method=method,
            fmt=ctx.obj.get("format", "json"),
            strict_params=strict_params,
        )

    return call_cmd


cli.add_command(_call_command(HttpMethod.GET))
cli.add_command(_call_command(HttpMethod.POST))
cli.add_command(context_group)
cli.add_command(token_cmd)
cli.add_command(login_cmd)
cli.add_command(logout_cmd)
cli.add_command(unlock_cmd)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
