# Copyright (c) 2026 Beijing Volcano Engine Technology Co., Ltd.
# SPDX-License-Identifier: Apache-2.0
"""CLI for compiling queries and inspecting their output."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ftquery import __version__
from ftquery.errors import FTQueryException, MissingValueError, OutOfRangeError, VectorDimensionError
from ftquery.query.base import BaseQuery
from ftquery.query.hybrid import HybridQuery
from ftquery.query.text import TextQuery
from ftquery.query.vector import VectorQuery, VectorRangeQuery
from ftquery.utils import configure_logging
from ftquery.utils.codec import array_to_buffer, buffer_to_array

app = typer.Typer(
    name="ftquery",
    help="Compile RediSearch filter, vector, text and hybrid queries",
    no_args_is_help=True,
)

console = Console()


@contextmanager
def _reporting_errors() -> Iterator[None]:
    try:
        yield
    except FTQueryException as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _parse_vector(value: str) -> List[float]:
    parts = [p.strip() for p in value.split(",")] if value else []
    if not parts or not any(parts):
        raise VectorDimensionError("Vector is required, e.g. 0.1,0.2,0.3")
    try:
        return [float(p) for p in parts]
    except ValueError as e:
        raise VectorDimensionError(f"Invalid vector {value!r}: {e}") from e


def _parse_field_weights(fields: List[str]) -> Dict[str, float]:
    if not fields:
        raise MissingValueError("At least one --field is required")
    weights: Dict[str, float] = {}
    for item in fields:
        name, sep, weight = item.partition("=")
        if not sep:
            weights[name] = 1.0
            continue
        try:
            weights[name] = float(weight)
        except ValueError as e:
            raise OutOfRangeError(f"Invalid weight for field '{name}': {weight!r}") from e
    return weights


def _format_value(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


def _print_params(params: Dict[str, Any]) -> None:
    if not params:
        return
    table = Table(title="Params")
    table.add_column("Name", style="cyan")
    table.add_column("Value", overflow="fold")
    for key, value in params.items():
        table.add_row(Text(key), Text(_format_value(value)))
    console.print(table)


def _print_query(query: BaseQuery) -> None:
    console.print(Text(query.query_string()), soft_wrap=True)
    _print_params(query.params())
    compiled = query.compile()
    console.print(f"[dim]dialect={compiled.dialect} limit={compiled.num_results}[/dim]")


def _version_callback(value: bool):
    if value:
        console.print(f"ftquery v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """ftquery - RediSearch query compiler."""
    if verbose:
        configure_logging("DEBUG")


@app.command()
def knn(
    field: str = typer.Argument(..., help="Vector field name"),
    vector: str = typer.Argument(..., help="Comma-separated floats"),
    k: int = typer.Option(10, "--k", "-k", help="Number of neighbours"),
    filter_expression: Optional[str] = typer.Option(None, "--filter", "-f", help="Pre-filter"),
    no_distance: bool = typer.Option(False, "--no-distance", help="Do not return the distance"),
    ef_runtime: Optional[int] = typer.Option(None, "--ef-runtime", help="HNSW EF_RUNTIME"),
    dtype: str = typer.Option("float32", "--dtype", help="Vector data type"),
):
    """Compile a KNN vector query."""
    with _reporting_errors():
        query = VectorQuery(
            vector=_parse_vector(vector),
            field=field,
            num_results=k,
            filter_expression=filter_expression,
            return_distance=not no_distance,
            ef_runtime=ef_runtime,
            dtype=dtype,
        )
        _print_query(query)


@app.command("range")
def range_(
    field: str = typer.Argument(..., help="Vector field name"),
    vector: str = typer.Argument(..., help="Comma-separated floats"),
    threshold: float = typer.Option(
        VectorRangeQuery.DEFAULT_DISTANCE_THRESHOLD, "--threshold", "-t", help="Distance threshold"
    ),
    filter_expression: Optional[str] = typer.Option(None, "--filter", "-f", help="Filter"),
    epsilon: Optional[float] = typer.Option(None, "--epsilon", help="Range search epsilon"),
    dtype: str = typer.Option("float32", "--dtype", help="Vector data type"),
):
    """Compile a vector range query."""
    with _reporting_errors():
        query = VectorRangeQuery(
            vector=_parse_vector(vector),
            field=field,
            distance_threshold=threshold,
            filter_expression=filter_expression,
            epsilon=epsilon,
            dtype=dtype,
        )
        _print_query(query)


@app.command()
def text(
    text: str = typer.Argument(..., help="Query text"),
    field: List[str] = typer.Option([], "--field", help="Text field, optionally NAME=WEIGHT"),
    filter_expression: Optional[str] = typer.Option(None, "--filter", "-f", help="Filter"),
    scorer: Optional[str] = typer.Option(None, "--scorer", help="Text scorer"),
    stopwords: Optional[str] = typer.Option(None, "--stopwords", help="Stopword language"),
):
    """Compile a full-text query."""
    with _reporting_errors():
        query = TextQuery(
            text=text,
            text_field_name=_parse_field_weights(field),
            text_scorer=scorer,
            filter_expression=filter_expression,
            stopwords=stopwords,
        )
        _print_query(query)


@app.command()
def hybrid(
    text: str = typer.Argument(..., help="Query text"),
    vector: str = typer.Argument(..., help="Comma-separated floats"),
    text_field: str = typer.Option(..., "--text-field", help="Text field name"),
    vector_field: str = typer.Option(..., "--vector-field", help="Vector field name"),
    alpha: Optional[float] = typer.Option(None, "--alpha", help="Vector similarity weight"),
    k: Optional[int] = typer.Option(None, "--k", "-k", help="Number of results"),
    filter_expression: Optional[str] = typer.Option(None, "--filter", "-f", help="Filter"),
):
    """Compile a hybrid text + vector aggregation."""
    with _reporting_errors():
        query = HybridQuery(
            text=text,
            text_field_name=text_field,
            vector=_parse_vector(vector),
            vector_field_name=vector_field,
            alpha=alpha,
            num_results=k,
            filter_expression=filter_expression,
        )
        console.print(Text(query.query_string()), soft_wrap=True)
        table = Table(title="Score calculations")
        table.add_column("Name", style="cyan")
        table.add_column("Expression")
        for name, expression in query.score_calculations().items():
            table.add_row(Text(name), Text(expression))
        console.print(table)
        _print_params(query.params())


@app.command()
def encode(
    vector: str = typer.Argument(..., help="Comma-separated numbers"),
    dtype: str = typer.Option("float32", "--dtype", help="Vector data type"),
):
    """Encode a vector and print the buffer as hex."""
    with _reporting_errors():
        console.print(array_to_buffer(_parse_vector(vector), dtype).hex(), soft_wrap=True)


@app.command()
def decode(
    hex_buffer: str = typer.Argument(..., help="Hex-encoded buffer"),
    dtype: str = typer.Option("float32", "--dtype", help="Vector data type"),
):
    """Decode a hex buffer and print its values."""
    with _reporting_errors():
        try:
            buffer = bytes.fromhex(hex_buffer)
        except ValueError as e:
            raise VectorDimensionError(f"Invalid hex buffer: {e}") from e
        values = buffer_to_array(buffer, dtype)
        console.print(",".join(str(v) for v in values), soft_wrap=True)


if __name__ == "__main__":
    app()
