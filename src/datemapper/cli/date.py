"""Date field CLI commands.

Inspect how a date field resolves values and builds range predicates.

Commands:
    datemapper date parse "2015-01-01" --format dateOptionalTime
    datemapper date resolve "now-1d/d" --now 1420070400000 --upper-inclusive
    datemapper date range --gte 2015-01-01 --lte 2015-01-31 --precision-step 8 --json
"""

import json
import logging
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from datemapper.config import MapperSettings
from datemapper.mapper.builder import build_config
from datemapper.mapper.coercion import ValueCoercer
from datemapper.mapper.date_math import DateMathParser
from datemapper.mapper.exceptions import DateMapperError
from datemapper.mapper.formatter import DEFAULT_FORMAT
from datemapper.mapper.predicates import DatePredicateBuilder, NumericRangePredicate, current_millis
from datemapper.mapper.types import DEFAULT_PRECISION_STEP, FieldConfig

logger = logging.getLogger(__name__)

console = Console()

date_app = typer.Typer(help="Inspect date field parsing and range predicates")

CLI_FIELD_NAME = "date"


def _build(
    date_format: str,
    numeric_resolution: str,
    precision_step: int = DEFAULT_PRECISION_STEP,
    parse_upper_inclusive: bool = True,
) -> FieldConfig:
    node: Dict[str, Any] = {
        "format": date_format,
        "numeric_resolution": numeric_resolution,
        "precision_step": precision_step,
    }
    settings = MapperSettings(parse_upper_inclusive=parse_upper_inclusive)
    return build_config(CLI_FIELD_NAME, node, settings)


def _fail(error: Exception) -> None:
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)


def _render(config: FieldConfig, millis: Optional[int]) -> Optional[str]:
    if millis is None:
        return None
    try:
        return config.formatter.print(millis)
    except DateMapperError:
        return None


@date_app.command("parse")
def parse_value(
    value: str = typer.Argument(..., help="Date string or raw timestamp"),
    date_format: str = typer.Option(DEFAULT_FORMAT, "--format", "-f", help="Date format pattern"),
    numeric_resolution: str = typer.Option(
        "milliseconds", "--numeric-resolution", "-r", help="Unit of raw numeric timestamps"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Coerce a document value to epoch milliseconds."""
    try:
        config = _build(date_format, numeric_resolution)
        millis = ValueCoercer.from_config(config).coerce(value)
    except DateMapperError as e:
        _fail(e)
        return

    response = {"input": value, "millis": millis, "formatted": _render(config, millis)}
    if output_json:
        typer.echo(json.dumps(response))
    else:
        typer.echo(f"{value} -> {millis} ({response['formatted']})")


@date_app.command("resolve")
def resolve_expression(
    expression: str = typer.Argument(..., help="Date or date-math expression, e.g. now-1d/d"),
    now: Optional[int] = typer.Option(None, "--now", help="Epoch millis for 'now' (default: clock)"),
    upper_inclusive: bool = typer.Option(
        False, "--upper-inclusive", "-u", help="Round to the end of the period"
    ),
    date_format: str = typer.Option(DEFAULT_FORMAT, "--format", "-f", help="Date format pattern"),
    numeric_resolution: str = typer.Option(
        "milliseconds", "--numeric-resolution", "-r", help="Unit of raw numeric timestamps"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Resolve a date-math expression against a fixed 'now'."""
    now = current_millis() if now is None else now
    try:
        config = _build(date_format, numeric_resolution)
        millis = DateMathParser.from_config(config).parse(
            expression, now, round_up=upper_inclusive
        )
    except DateMapperError as e:
        _fail(e)
        return

    response = {
        "expression": expression,
        "now": now,
        "upper_inclusive": upper_inclusive,
        "millis": millis,
        "formatted": _render(config, millis),
    }
    if output_json:
        typer.echo(json.dumps(response))
    else:
        typer.echo(f"{expression} -> {millis} ({response['formatted']})")


@date_app.command("range")
def range_predicate(
    gte: Optional[str] = typer.Option(None, "--gte", help="Inclusive lower bound"),
    gt: Optional[str] = typer.Option(None, "--gt", help="Exclusive lower bound"),
    lte: Optional[str] = typer.Option(None, "--lte", help="Inclusive upper bound"),
    lt: Optional[str] = typer.Option(None, "--lt", help="Exclusive upper bound"),
    now: Optional[int] = typer.Option(None, "--now", help="Epoch millis for 'now' (default: clock)"),
    precision_step: int = typer.Option(
        DEFAULT_PRECISION_STEP, "--precision-step", "-p", help="Bits per precision level"
    ),
    parse_upper_inclusive: bool = typer.Option(
        True,
        "--parse-upper-inclusive/--no-parse-upper-inclusive",
        help="Round inclusive upper bounds to the end of their period",
    ),
    date_format: str = typer.Option(DEFAULT_FORMAT, "--format", "-f", help="Date format pattern"),
    numeric_resolution: str = typer.Option(
        "milliseconds", "--numeric-resolution", "-r", help="Unit of raw numeric timestamps"
    ),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Resolve range bounds and list the term ranges the index visits."""
    if gte is not None and gt is not None:
        _fail(ValueError("use only one of --gte and --gt"))
    if lte is not None and lt is not None:
        _fail(ValueError("use only one of --lte and --lt"))

    try:
        config = _build(date_format, numeric_resolution, precision_step, parse_upper_inclusive)
        builder = DatePredicateBuilder(config)
        predicate: NumericRangePredicate = builder.range_query(
            lower=gte if gte is not None else gt,
            upper=lte if lte is not None else lt,
            include_lower=gt is None,
            include_upper=lt is None,
            now=now,
        )
    except DateMapperError as e:
        _fail(e)
        return

    term_ranges = predicate.term_ranges()
    logger.debug(f"Range {predicate.to_dict()} expands to {len(term_ranges)} term ranges")

    if output_json:
        response = predicate.to_dict()
        response["term_ranges"] = [
            {
                "shift": r.shift,
                "min": r.min_value,
                "max": r.max_value,
                "lower_term": r.lower_term.hex(),
                "upper_term": r.upper_term.hex(),
            }
            for r in term_ranges
        ]
        typer.echo(json.dumps(response))
        return

    lower_mark = "[" if predicate.include_lower else "("
    upper_mark = "]" if predicate.include_upper else ")"
    console.print(
        f"Range {lower_mark}{_render(config, predicate.lower) or '*'} .. "
        f"{_render(config, predicate.upper) or '*'}{upper_mark}"
    )
    if not term_ranges:
        console.print("[yellow]Range is empty[/yellow]")
        return

    table = Table(title=f"Term Ranges ({len(term_ranges)} total)")
    table.add_column("Shift", justify="right", style="cyan")
    table.add_column("Min", style="green")
    table.add_column("Max", style="green")
    table.add_column("Lower Term", style="magenta")
    table.add_column("Upper Term", style="magenta")
    for r in term_ranges:
        table.add_row(
            str(r.shift),
            str(r.min_value),
            str(r.max_value),
            r.lower_term.hex(),
            r.upper_term.hex(),
        )
    console.print(table)
