"""CLI for the neuroscore scoring engine."""

import json
import logging
import shutil
from pathlib import Path
from typing import Annotated

import jsonschema
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from neuroscore import __version__
from neuroscore.config import (
    get_installed_reference_path,
    get_neuroscore_home,
    get_reference_path,
    load_global_config,
    save_global_config,
)
from neuroscore.diagnostics import DiagnosticsCollector, ProcessingStatus
from neuroscore.ingestion import RowValidationError
from neuroscore.interpretation import RangeClassifier
from neuroscore.io import read_rows, write_jsonl
from neuroscore.pipeline import DomainNotFoundError, Pipeline, PipelineConfig
from neuroscore.registry import (
    DEFAULT_REFERENCE_PATH,
    DEFAULT_SCHEMA_PATH,
    ReferenceNotFoundError,
    ReferenceRegistry,
    ReferenceValidationError,
    load_reference,
)
from neuroscore.registry.reference import REFERENCE_FILES
from neuroscore.scoring import (
    AgeOutOfRange,
    InvalidScore,
    MissingScore,
    NormEngine,
    NormNotFoundError,
    UnsupportedScaleType,
    to_z,
    z_to_percentile,
)

app = typer.Typer(
    name="neuroscore",
    help="Score normalization and domain aggregation for neuropsychological reports.",
    no_args_is_help=True,
)
console = Console()

# Failures that abort a batch; anything else is a bug and should surface
BATCH_ERRORS = (
    RowValidationError,
    UnsupportedScaleType,
    InvalidScore,
    AgeOutOfRange,
    DomainNotFoundError,
    ReferenceNotFoundError,
    ReferenceValidationError,
    ValueError,
)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"neuroscore version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show debug logging"),
    ] = False,
) -> None:
    """neuroscore: Score normalization and domain aggregation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def run(
    input_path: Annotated[
        Path,
        typer.Option("--in", "-i", help="Input rows (JSONL, CSV or Parquet)"),
    ],
    output_path: Annotated[
        Path,
        typer.Option("--out", "-o", help="Output JSONL path for score records"),
    ],
    aggregates: Annotated[
        Path | None,
        typer.Option("--aggregates", "-a", help="Output JSONL path for aggregate summaries"),
    ] = None,
    diagnostics: Annotated[
        Path | None,
        typer.Option("--diagnostics", "-d", help="Diagnostics output JSONL path"),
    ] = None,
    domain: Annotated[
        list[str] | None,
        typer.Option("--domain", help="Keep only these domains (repeatable)"),
    ] = None,
    scale: Annotated[
        list[str] | None,
        typer.Option("--scale", help="Keep only these scales (repeatable)"),
    ] = None,
    pheno: Annotated[
        str | None,
        typer.Option("--pheno", "-p", help="Report section key (e.g., 'memory')"),
    ] = None,
    age: Annotated[
        float | None,
        typer.Option("--age", help="Patient age for demographic norms"),
    ] = None,
    reference: Annotated[
        Path | None,
        typer.Option(
            "--reference",
            "-r",
            envvar="NEUROSCORE_REFERENCE",
            help="Reference data directory",
        ),
    ] = None,
    flags: Annotated[
        bool,
        typer.Option("--flags/--no-flags", help="Also aggregate PASS, verbal and timed axes"),
    ] = True,
) -> None:
    """Score a batch of rows and emit records, aggregates and diagnostics."""
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(1)

    reference_path = get_reference_path(reference)
    if age is None:
        age = load_global_config().default_age

    console.print(f"[bold]neuroscore[/bold] v{__version__}")
    console.print(f"  Input: {input_path}")
    console.print(f"  Output: {output_path}")
    console.print(f"  Reference: {reference_path}")
    if pheno:
        console.print(f"  Section: {pheno}")
    if diagnostics:
        console.print(f"  Diagnostics: {diagnostics}")

    collector = DiagnosticsCollector(batch_id=input_path.name)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Loading rows...", total=None)
            rows = read_rows(input_path)

            progress.update(task, description=f"Scoring {len(rows)} rows...")
            config = PipelineConfig(
                reference_path=reference_path,
                domains=domain or [],
                scales=scale or [],
                pheno=pheno,
                age=age,
                include_flags=flags,
                batch_id=input_path.name,
            )
            pipeline = Pipeline(config)
            collector.reference_version = pipeline.reference.version
            dataset = pipeline.run(rows, collector)
    except BATCH_ERRORS as e:
        if not collector.errors:
            stage = "conversion" if isinstance(e, AgeOutOfRange) else "ingestion"
            collector.add_error(stage=stage, code=type(e).__name__, message=str(e))
        if diagnostics:
            write_jsonl(diagnostics, [collector.finalize().model_dump(mode="json")])
        console.print(f"\n[red]Error:[/red] {e}")
        raise typer.Exit(1)

    records_written = write_jsonl(output_path, (r.to_row() for r in dataset.records))
    aggregates_written = 0
    if aggregates:
        aggregates_written = write_jsonl(aggregates, dataset.aggregate_rows())
    if diagnostics:
        write_jsonl(diagnostics, [dataset.diagnostics.model_dump(mode="json")])

    status = dataset.diagnostics.status
    color = "green" if status == ProcessingStatus.SUCCESS else "yellow"

    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Status: [{color}]{status.value}[/{color}]")
    console.print(f"  Records written: {records_written}")
    if aggregates:
        console.print(f"  Aggregates written: {aggregates_written}")
    for warning in dataset.diagnostics.warnings:
        console.print(f"  [yellow]Warning:[/yellow] {warning.message}")

    if dataset.domain_summaries:
        table = Table(title="Domain summaries")
        table.add_column("Domain")
        table.add_column("n", justify="right")
        table.add_column("Mean z", justify="right")
        table.add_column("%ile", justify="right")
        table.add_column("Range")
        for summary in dataset.domain_summaries:
            table.add_row(
                summary.key,
                str(summary.count),
                f"{summary.mean_z:.2f}",
                f"{summary.mean_percentile:.0f}",
                summary.range.value,
            )
        console.print(table)


@app.command()
def convert(
    value: Annotated[float, typer.Argument(help="Score on its native scale")],
    scale_type: Annotated[
        str,
        typer.Option("--type", "-t", help="Native scale type (e.g., standard_score)"),
    ],
) -> None:
    """Convert one score to z, percentile and range label."""
    try:
        z = to_z(value, scale_type)
        label = RangeClassifier().classify(value, scale_type)
    except (UnsupportedScaleType, InvalidScore, MissingScore) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"  z: {z:.4f}")
    console.print(f"  Percentile: {z_to_percentile(z):.1f}")
    console.print(f"  Range: {label.value}")


@app.command()
def norm(
    norm_id: Annotated[str, typer.Argument(help="Norm table ID (e.g., tmt_a)")],
    age: Annotated[float, typer.Option("--age", help="Patient age in years")],
    raw: Annotated[float, typer.Option("--raw", help="Raw test score")],
    reference: Annotated[
        Path | None,
        typer.Option("--reference", "-r", envvar="NEUROSCORE_REFERENCE", help="Reference data directory"),
    ] = None,
) -> None:
    """Score a raw test result against demographic norms."""
    try:
        engine = NormEngine(load_reference(get_reference_path(reference)))
        result = engine.score(norm_id, age, raw)
    except (
        NormNotFoundError,
        AgeOutOfRange,
        MissingScore,
        ReferenceNotFoundError,
        ReferenceValidationError,
    ) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold]{engine.get(norm_id).name}[/bold] (age {age:g}, raw {raw:g})")
    console.print(f"  Predicted mean: {result.predicted_mean:.2f}")
    console.print(f"  Predicted SD: {result.predicted_sd:.2f}")
    console.print(f"  z: {result.z:.4f}")
    console.print(f"  T score: {result.t_score:.1f}")
    console.print(f"  Percentile: {result.percentile:.1f}")


@app.command()
def validate(
    kind: Annotated[
        str,
        typer.Argument(help="Type of reference file: scales, domains, norms"),
    ],
    path: Annotated[
        Path,
        typer.Argument(help="Path to the reference file"),
    ],
    schema_path: Annotated[
        Path | None,
        typer.Option("--schema", "-s", help="Path to the schema file"),
    ] = None,
) -> None:
    """Validate a reference file against its schema."""
    if not path.exists():
        console.print(f"[red]Error:[/red] Reference file not found: {path}")
        raise typer.Exit(1)

    if schema_path is None:
        if kind not in REFERENCE_FILES:
            console.print(f"[red]Error:[/red] Unknown reference type: {kind}")
            raise typer.Exit(1)
        schema_path = DEFAULT_SCHEMA_PATH / REFERENCE_FILES[kind][1]

    if not schema_path.exists():
        console.print(f"[red]Error:[/red] Schema file not found: {schema_path}")
        raise typer.Exit(1)

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            console.print(f"[red]Invalid:[/red] {e}")
            raise typer.Exit(1)

    with open(schema_path) as f:
        schema = json.load(f)

    try:
        jsonschema.validate(data, schema)
        console.print(f"[green]Valid:[/green] {path}")
    except jsonschema.ValidationError as e:
        console.print(f"[red]Invalid:[/red] {e.message}")
        raise typer.Exit(1)


@app.command()
def init(
    source: Annotated[
        Path | None,
        typer.Option(
            "--from",
            "-f",
            help="Directory containing scales.json, domains.json and norms.json",
        ),
    ] = None,
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing reference data",
    ),
) -> None:
    """Initialize neuroscore global configuration and install reference data.

    Creates:
      ~/.config/neuroscore/config.yaml
      ~/.config/neuroscore/reference/

    If --from is provided, copies reference data from that directory.
    Otherwise, installs the packaged reference data.
    """
    home = get_neuroscore_home()
    dest = get_installed_reference_path()
    if source is None:
        source = DEFAULT_REFERENCE_PATH

    try:
        data = ReferenceRegistry(source).load()
    except (ReferenceNotFoundError, ReferenceValidationError) as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("Use --from to specify source directory")
        raise typer.Exit(1)

    if dest.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] Reference data already exists at {dest}")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    console.print(f"[bold]Initializing neuroscore at {home}[/bold]")
    if dest.exists():
        shutil.rmtree(dest)
    dest.mkdir(parents=True)
    for data_filename, _ in REFERENCE_FILES.values():
        shutil.copy2(source / data_filename, dest / data_filename)
    console.print(
        f"  [green]✓[/green] Reference {data.version}: {len(data.scales)} scales, "
        f"{len(data.domains)} domains, {len(data.norms)} norms"
    )

    config = load_global_config().model_copy(update={"reference_path": dest})
    config_path = save_global_config(config)
    console.print(f"  [green]✓[/green] Created config at {config_path}")

    console.print("\n[green]✓ Initialized neuroscore[/green]")


if __name__ == "__main__":
    app()
