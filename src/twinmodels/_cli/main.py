import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from twinmodels._client import ModelStoreClient
from twinmodels._directory import ModelDirectory
from twinmodels._download import DOWNLOAD_EXTENSIONS, normalize_extension
from twinmodels._exceptions import ConfigurationError, CycleDetectedError, InvalidDirectoryError, TwinModelsError
from twinmodels._export import export_plan_to_toml
from twinmodels._ops import clear_models, download_models, list_models, plan_directory, upload_models
from twinmodels._settings import TwinSettings, load_batch_settings, load_settings

app = typer.Typer(
    help=(
        "Work with the models of an Azure Digital Twin instance,"
        " uploading and deleting them in dependency order."
    ),
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

EndpointOption = Annotated[
    str | None,
    typer.Option(
        "--endpoint",
        help="Endpoint of the Azure digital twin instance (e.g. https://my-twin.api.weu.digitaltwins.azure.net)",
    ),
]
UseCliOption = Annotated[
    bool,
    typer.Option("--use-cli", help="Use the credentials of the Azure CLI"),
]
TenantOption = Annotated[
    str | None,
    typer.Option("--tenant", help="ID of the tenant to authenticate the client credentials against"),
]
ClientIdOption = Annotated[
    str | None,
    typer.Option("--client-id", help="ID (app id) of the app registration being used for authentication"),
]
ClientSecretOption = Annotated[
    str | None,
    typer.Option("--client-secret", help="Secret for the app registration being used for authentication"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Digital twin model CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
        force=True,
    )


@contextmanager
def _report_errors() -> Iterator[None]:
    """Turn library errors into a message and a non-zero exit code."""
    try:
        yield
    except (ConfigurationError, InvalidDirectoryError) as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(2) from e
    except CycleDetectedError as e:
        err_console.print(f"[red]✗ Unable to order models, {escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    except TwinModelsError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _load_settings(
    endpoint: str | None,
    use_cli: bool,
    tenant: str | None,
    client_id: str | None,
    client_secret: str | None,
) -> TwinSettings:
    return load_settings(
        endpoint=endpoint,
        # Leave the flag unset so TWINMODELS_USE_CLI still applies
        use_cli=True if use_cli else None,
        tenant_id=tenant,
        client_id=client_id,
        client_secret=client_secret,
    )


def _check_extension(value: str) -> str:
    try:
        return normalize_extension(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@app.command("list")
def list_command(
    *,
    endpoint: EndpointOption = None,
    use_cli: UseCliOption = False,
    tenant: TenantOption = None,
    client_id: ClientIdOption = None,
    client_secret: ClientSecretOption = None,
) -> None:
    """List the model ids currently deployed to the instance."""
    with _report_errors():
        settings = _load_settings(endpoint, use_cli, tenant, client_id, client_secret)
        with ModelStoreClient.from_settings(settings) as client:
            models = list_models(client)

    for model in models:
        out_console.print(model.id, highlight=False)


@app.command("clear")
def clear_command(
    *,
    endpoint: EndpointOption = None,
    use_cli: UseCliOption = False,
    tenant: TenantOption = None,
    client_id: ClientIdOption = None,
    client_secret: ClientSecretOption = None,
) -> None:
    """Remove all models from the instance, dependents first."""
    with _report_errors():
        settings = _load_settings(endpoint, use_cli, tenant, client_id, client_secret)
        with ModelStoreClient.from_settings(settings) as client:
            removed = clear_models(client)

    if not removed:
        err_console.print("No models to remove")
        return
    err_console.print(f"[green]✓ Removed {len(removed)} model(s) from the digital twin instance[/green]")


@app.command("upload")
def upload_command(
    *,
    source: Annotated[
        Path,
        typer.Option("--source", help="Directory containing the model files to upload"),
    ],
    endpoint: EndpointOption = None,
    use_cli: UseCliOption = False,
    tenant: TenantOption = None,
    client_id: ClientIdOption = None,
    client_secret: ClientSecretOption = None,
) -> None:
    """Upload the models under a directory in dependency order."""
    with _report_errors():
        settings = _load_settings(endpoint, use_cli, tenant, client_id, client_secret)
        directory = ModelDirectory.from_path(source)
        err_console.print(f"[cyan]Loading models from:[/cyan] {directory}")
        with ModelStoreClient.from_settings(settings) as client:
            plan = upload_models(
                client,
                directory,
                api_limit=settings.api_limit,
                batch_size=settings.batch_size,
            )

    err_console.print(f"[green]✓ Uploaded {len(plan)} model(s) from {source}[/green]")


@app.command("download")
def download_command(
    *,
    output: Annotated[
        Path,
        typer.Option("--output", help="Directory to write models to, its content is replaced"),
    ],
    ext: Annotated[
        str,
        typer.Option(
            "--ext",
            help=f"File extension to use for downloaded files ({' or '.join(DOWNLOAD_EXTENSIONS)})",
            callback=_check_extension,
        ),
    ] = "dtdl",
    endpoint: EndpointOption = None,
    use_cli: UseCliOption = False,
    tenant: TenantOption = None,
    client_id: ClientIdOption = None,
    client_secret: ClientSecretOption = None,
) -> None:
    """Download all models, laid out in directories following their ids."""
    with _report_errors():
        settings = _load_settings(endpoint, use_cli, tenant, client_id, client_secret)
        with ModelStoreClient.from_settings(settings) as client:
            written = download_models(client, output, ext)

    err_console.print(f"[green]✓ Wrote {len(written)} model(s) to {output}[/green]")


@app.command("plan")
def plan_command(
    *,
    source: Annotated[
        Path,
        typer.Option("--source", help="Directory containing the model files"),
    ],
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ] = None,
) -> None:
    """Show the upload order and batches for a directory without contacting the instance."""
    err_console.print()
    with _report_errors():
        directory = ModelDirectory.from_path(source)
        err_console.print(f"[cyan]Loading models from:[/cyan] {directory}")
        limits = load_batch_settings()
        plan = plan_directory(directory, api_limit=limits.api_limit, batch_size=limits.batch_size)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Batch", justify="right", style="yellow")
    table.add_column("Model")

    position = 1
    for batch_index, batch in enumerate(plan.batches, start=1):
        for doc in batch:
            table.add_row(str(position), str(batch_index), doc.id)
            position += 1

    out_console.print(
        Panel(
            table,
            title="[bold]Upload plan[/bold]",
            subtitle=f"[dim]{len(plan)} models, {len(plan.batches)} batches[/dim]",
            border_style="cyan",
        ),
    )

    if output is not None:
        err_console.print(f"[cyan]Exporting plan to:[/cyan] {output}")
        export_plan_to_toml(plan, output)


def main() -> None:
    app()
