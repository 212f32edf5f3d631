"""Command-line interface for the crimereg analysis."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="crimereg",
    help="Violent crime regression with outlier capping and feature pruning.",
    no_args_is_help=True,
)

console = Console()


ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]

DataOption = Annotated[
    Path | None,
    typer.Option(
        "--data",
        "-d",
        help="Path to the dataset. Defaults to data.root/data.path from the config.",
    ),
]


@app.command()
def run(
    config: ConfigOption,
    data: DataOption = None,
    no_mlflow: Annotated[
        bool,
        typer.Option(
            "--no-mlflow",
            help="Skip MLflow logging even if enabled in the config.",
        ),
    ] = False,
    no_plots: Annotated[
        bool,
        typer.Option(
            "--no-plots",
            help="Skip rendering the observed-vs-predicted scatterplots.",
        ),
    ] = False,
) -> None:
    """
    Run the full analysis.

    Loads the dataset, caps outliers, prunes features by VIF and by GLM
    p-value, then reports RMSE, R² and Adjusted R² for train and test.
    """
    import pandera.errors

    from crimereg.config.loader import load_config
    from crimereg.errors import CrimeRegError
    from crimereg.evaluation.report import print_report, save_outputs
    from crimereg.pipeline import run_analysis
    from crimereg.utils.logging import configure_logging

    console.print(f"[blue]Loading configuration from {config}[/blue]")
    try:
        analysis_config = load_config(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1) from e

    configure_logging(
        analysis_config.logging.level,
        json_output=analysis_config.logging.json_output,
    )

    dataset = data if data is not None else analysis_config.data.resolve()
    console.print(f"[blue]Running analysis for {analysis_config.project}[/blue]")
    console.print(f"[dim]Dataset: {dataset}[/dim]")
    console.print(
        f"[dim]Split: {analysis_config.training.train_ratio:.0%} train, "
        f"seed {analysis_config.training.random_state}[/dim]"
    )

    try:
        result = run_analysis(analysis_config, data_path=dataset)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    except (pandera.errors.SchemaError, pandera.errors.SchemaErrors) as e:
        console.print(f"[red]Dataset failed schema validation: {e}[/red]")
        raise typer.Exit(code=1) from e
    except CrimeRegError as e:
        console.print(f"[red]Analysis failed: {e}[/red]")
        raise typer.Exit(code=1) from e
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    console.print()
    print_report(result, console)

    outputs = save_outputs(
        result,
        analysis_config,
        save_plots=analysis_config.output.save_plots and not no_plots,
    )
    console.print()
    for name, path in outputs.plots.items():
        console.print(f"[green]Saved {name} scatterplot: {path}[/green]")
    console.print(f"[green]Saved predictions: {outputs.predictions[0].parent}[/green]")
    console.print(f"[green]Saved model: {outputs.model}[/green]")

    if analysis_config.mlflow.enabled and not no_mlflow:
        from crimereg.evaluation.experiment import AnalysisExperiment

        try:
            run_id = AnalysisExperiment(analysis_config).log_analysis(
                result, artifacts=outputs.all_paths()
            )
            console.print(f"[dim]MLflow run: {run_id}[/dim]")
        except Exception as e:
            console.print(f"[red]MLflow logging failed: {e}[/red]")
            raise typer.Exit(code=1) from e


@app.command()
def validate(
    config: ConfigOption,
    data: DataOption = None,
) -> None:
    """Load the dataset and check it against the schema without modeling."""
    import pandera.errors

    from crimereg.config.loader import load_config
    from crimereg.errors import CrimeRegError
    from crimereg.ingestion.dataset import CrimeDatasetLoader, describe_target
    from crimereg.utils.logging import configure_logging

    try:
        analysis_config = load_config(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1) from e

    configure_logging(
        analysis_config.logging.level,
        json_output=analysis_config.logging.json_output,
    )

    try:
        df = CrimeDatasetLoader(analysis_config).load(data)
    except FileNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    except (pandera.errors.SchemaError, pandera.errors.SchemaErrors) as e:
        console.print(f"[red]✗ Schema validation failed: {e}[/red]")
        raise typer.Exit(code=1) from e
    except CrimeRegError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    except ValueError as e:
        console.print(f"[red]✗ Could not read dataset: {e}[/red]")
        raise typer.Exit(code=1) from e

    missing = [
        c for c in analysis_config.cleaning.outlier_columns if c not in df.columns
    ]

    table = Table(title="Dataset Validation")
    table.add_column("Check", style="cyan")
    table.add_column("Result", style="green")
    table.add_row("Rows", str(len(df)))
    table.add_row("Predictor columns", str(len(df.columns) - 1))
    table.add_row("Target", analysis_config.target)
    stats = describe_target(df, analysis_config.target)
    table.add_row("Target mean", f"{stats['mean']:.4f}")
    table.add_row(
        "Outlier columns present",
        "Yes ✓" if not missing else f"[red]missing: {', '.join(missing)}[/red]",
    )
    console.print(table)

    if missing:
        raise typer.Exit(code=1)
    console.print("[green]✓ Dataset is valid[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from crimereg import __version__

    console.print(f"crimereg version {__version__}")


if __name__ == "__main__":
    app()
