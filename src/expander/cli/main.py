import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Tuple

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config import EnvironmentSubstitutionError, ExpanderSettings, load_job
from ..templates import (
    BatchRenderer,
    ExpansionError,
    TemplateExpander,
    TemplateValidator,
    ValidationLevel,
)

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _parse_param(raw: str) -> Any:
    """Parse a command line parameter as JSON, keeping invalid JSON as text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group()
@click.version_option(__version__, prog_name="expander")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: WARNING, or the job settings for render)",
)
@click.pass_context
def expander(ctx: click.Context, log_level: Optional[str]) -> None:
    """Expander - fill brace-token templates from ordered parameters."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = log_level
    logging.basicConfig(
        level=(log_level or "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )


@expander.command("expand")
@click.argument("template")
@click.argument("params", nargs=-1)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Parse each parameter as JSON (values that are not JSON stay text)",
)
@click.option("--timezone", default=None, help="Default zone for date operators")
@click.option("--locale", default="en_US", help="Locale for date patterns")
def expand_template(
    template: str,
    params: Tuple[str, ...],
    as_json: bool,
    timezone: Optional[str],
    locale: str,
) -> None:
    """Expand TEMPLATE with positional parameters.

    Examples:
      expander expand 'a{}b{}c' 0 1
      expander expand '{[4:4],upper}' hamburger
      expander expand --json '{%10.3e}' 3.14159
    """
    values = [_parse_param(p) for p in params] if as_json else list(params)

    try:
        settings = ExpanderSettings(locale=locale, default_timezone=timezone)
        result = TemplateExpander(settings).expand(template, values)
    except (ExpansionError, ValueError) as e:
        console.print(f"❌ [red]Expansion failed:[/red] {escape(str(e))}")
        raise click.Abort()

    click.echo(result)


@expander.command("render")
@click.argument("job_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output", "-o", type=click.Path(path_type=Path), help="Output file for results"
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json", "jsonl"]),
    default="text",
    help="Output format",
)
@click.pass_context
def render_job(
    ctx: click.Context, job_path: Path, output: Optional[Path], output_format: str
) -> None:
    """Expand a job file's template once per parameter set."""
    try:
        job = load_job(job_path)
    except (ValueError, yaml.YAMLError, EnvironmentSubstitutionError) as e:
        console.print(f"❌ [red]Error loading job:[/red] {escape(str(e))}")
        raise click.Abort()

    if not ctx.obj.get("log_level"):
        logging.getLogger().setLevel(job.settings.log_level)

    renderer = BatchRenderer(TemplateExpander(job.settings))
    with console.status("Expanding template..."):
        result = renderer.render(job.template, job.parameters)

    if output_format == "json":
        text = json.dumps(
            {
                "job_path": str(job_path),
                "results": [
                    {"parameters": params, "output": out}
                    for params, out in zip(job.parameters, result.outputs)
                ],
                "errors": [{"index": i, "error": msg} for i, msg in result.errors],
                "statistics": {
                    "total": len(result.outputs),
                    "success_rate": result.success_rate,
                    "render_time": result.render_time,
                },
            },
            indent=2,
            default=str,
        )
    elif output_format == "jsonl":
        text = "\n".join(
            json.dumps({"id": i, "output": out}, default=str)
            for i, out in enumerate(result.outputs)
        )
    else:
        text = "\n".join(out if out is not None else "" for out in result.outputs)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        console.print(f"📄 Output saved to {output}")
    else:
        click.echo(text)

    stats_table = Table(title="Expansion Statistics")
    stats_table.add_column("Metric", style="cyan")
    stats_table.add_column("Value", style="green")
    stats_table.add_row("Parameter Sets", str(len(result.outputs)))
    stats_table.add_row("Success Rate", f"{result.success_rate:.1f}%")
    stats_table.add_row("Render Time", f"{result.render_time:.3f}s")
    console.print(stats_table, style="dim")

    if result.errors:
        console.print("\n[yellow]Expansion errors:[/yellow]")
        for idx, error in result.errors[:5]:
            console.print(f"  • Set {idx + 1}: {error}", markup=False)
        sys.exit(1)


@expander.command("validate")
@click.argument("template")
@click.option(
    "--level",
    type=click.Choice(["permissive", "standard", "strict"]),
    default="standard",
    help="Validation strictness level",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
def validate_template(template: str, level: str, output_format: str) -> None:
    """Check how TEMPLATE is tokenized and what may fail when expanding it."""
    result = TemplateValidator(level=ValidationLevel(level)).validate(template)

    if output_format == "json":
        output = {
            "is_valid": result.is_valid,
            "errors": result.errors,
            "warnings": result.warnings,
            "tokens": result.tokens,
            "metadata": result.metadata,
        }
        console.print_json(json.dumps(output))
    else:
        if result.is_valid:
            console.print("✅ [green]Template is valid[/green]")
        else:
            console.print("❌ [red]Template validation failed[/red]")

        if result.errors:
            console.print("\n[red]Errors:[/red]")
            for error in result.errors:
                console.print(f"  • {error}", markup=False)

        if result.warnings:
            console.print("\n[yellow]Warnings:[/yellow]")
            for warning in result.warnings:
                console.print(f"  • {warning}", markup=False)

        console.print(
            f"\n[dim]Tokens:[/dim] {len(result.tokens)}  "
            f"[dim]Sequential references:[/dim] "
            f"{result.metadata['sequential_references']}  "
            f"[dim]Highest fixed index:[/dim] {result.metadata['max_index']}"
        )

    if not result.is_valid:
        sys.exit(1)


@expander.command("operators")
def list_operators() -> None:
    """List the options available inside a replacement token."""
    console.print("🔧 [bold]Available Token Options[/bold]")
    console.print()

    table = Table()
    table.add_column("Option", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    options_info = [
        ("n", "Use parameter n (1-based) as the value", "{2} → second parameter"),
        ("trim", "Strip leading and trailing whitespace", "{trim}"),
        ("lower, tolower", "Convert to lower case", "{lower}"),
        ("upper, toupper", "Convert to upper case", "{upper}"),
        ("urlencode", "Percent-encode (space becomes +)", "{urlencode}"),
        ("urldecode", "Decode percent-encoding", "{urldecode}"),
        ("b64encode, base64encode", "Base64-encode UTF-8 text", "{b64encode}"),
        (
            "b64decode, base64decode",
            "Base64-decode; invalid input is kept as-is",
            "{b64decode}",
        ),
        ("[start]", "Substring from start to the end", "{[4]} hamburger → urger"),
        ("[start,end]", "Substring, negative end counts back", "{[4,-2]} → urge"),
        ("[start:length]", "Substring of a given length", "{[4:4]} → urge"),
        ("[/pattern/group]", "Regex search, whole match or group", "{[/(.)l/1]}"),
        ("%spec", "printf-style conversion", "{%-6s}, {%10.3e}"),
        ("date(format)[zone]", "Format a date parameter", "{date(yyyy-MM-dd)[UTC]}"),
        ("now(format)[zone]", "Format the current time", "{now(HH:mm)}"),
    ]

    for name, desc, example in options_info:
        table.add_row(escape(name), desc, escape(example))

    console.print(table)

    console.print("\n[dim]Markers:[/dim]")
    console.print("  • {?} opens a block kept only if a token in it is non-empty")
    console.print("  • {.} closes the block")
    console.print("  • \\{...} is copied literally, \\\\{...} is prefixed with \\")

    example = "?q={urlencode}{?}&page={}{?}&since={date(yyyy-MM-dd)[UTC]}"
    console.print(Panel(escape(example), title="Example Template", expand=False))


if __name__ == "__main__":
    expander()
