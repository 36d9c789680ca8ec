"""Command line interface for Schema Architect."""

import sys
from json import JSONDecodeError, loads
from pathlib import Path
from sys import stdout

from codegen import Target
from codegen.registry import TARGET_FAMILIES
from cyclopts import App
from model.types import DatabaseFamily
from remote import ApiBridge, TransportError
from rich.console import Console
from rich.table import Table
from workspace import (
    JsonFileStorage,
    ProjectStore,
    Settings,
    create_history,
    create_storage,
    is_project_payload,
    load_settings,
)

app = App(help="Schema Architect CLI tool")

console = Console()
err_console = Console(stderr=True)

PROJECT_EXTENSIONS = {".json"}


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {message}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {message}")


def validate_project_location(project_location: Path) -> None:
    """Validate project file location and extension."""
    if not project_location.is_file():
        print_error(f"Project file does not exist: {project_location}")
        sys.exit(1)
    if project_location.suffix.lower() not in PROJECT_EXTENSIONS:
        print_error(
            f"Project file has invalid extension: {', '.join(PROJECT_EXTENSIONS)}",
        )
        sys.exit(1)


def load_project(
    project_location: Path,
    family: DatabaseFamily | None = None,
) -> ProjectStore:
    """Read an exported project into a store that is never saved back."""
    validate_project_location(project_location)
    try:
        payload = loads(project_location.read_text(encoding="utf-8"))
    except (OSError, JSONDecodeError) as e:
        print_error(f"Cannot read project file: {project_location} ({e})")
        sys.exit(1)

    if not is_project_payload(payload):
        print_error("Invalid project file structure.")
        sys.exit(1)

    history = create_history(load_settings())
    return ProjectStore(payload, family=family, history=history)


def connect_backend(settings: Settings) -> ApiBridge:
    """Create a client for the configured backend."""
    if not settings.api_url:
        print_error("No backend configured, set SCHEMA_ARCHITECT_API_URL")
        sys.exit(1)
    print_info(f"Backend: {settings.api_url}")
    return ApiBridge(settings.api_url)


def format_targets_table(family: DatabaseFamily | None = None) -> None:
    """Format the available targets as a rich table."""
    table = Table(title="Code Generation Targets")
    table.add_column("Target", style="bold cyan")
    table.add_column("Families")

    for target in Target:
        families = TARGET_FAMILIES[target]
        if family is None or family in families:
            table.add_row(target.value, ", ".join(families))

    console.print(table)


def format_project_table(store: ProjectStore) -> None:
    """Format the databases of a project as a rich table."""
    table = Table(title="Project Databases")
    table.add_column("ID", style="bold cyan")
    table.add_column("Name")
    table.add_column("Family", style="bold blue")
    table.add_column("Entities", style="bold yellow")
    table.add_column("Edges", style="bold yellow")

    for database in store.databases:
        database_id = database["id"]
        marker = " *" if database_id == store.active_database_id else ""
        table.add_row(
            f"{database_id}{marker}",
            database["name"],
            store.family_of(database_id).value,
            str(len(store.database_collections(database_id))),
            str(sum(edge["databaseId"] == database_id for edge in store.edges)),
        )

    console.print(table)


@app.command
def generate(
    project: Path,
    target: Target | None = None,
    *,
    family: DatabaseFamily | None = None,
    database: str | None = None,
    entity: list[str] | None = None,
    mode: str | None = None,
) -> None:
    """Generate code for one database of an exported project."""
    store = load_project(project, family)

    database_id = database or store.active_database_id
    if store.find_database(database_id) is None:
        print_error(f"Database not found: {database_id}")
        sys.exit(1)

    adapter_family = store.family_of(database_id)
    print_info(f"Database: {database_id} ({adapter_family})")
    print_info(f"Target: {target or 'default'}")

    options = {"mode": mode} if mode else {}
    try:
        code = store.generate(
            target,
            database_id=database_id,
            collection_ids=entity,
            **options,
        )
    except (TypeError, ValueError) as e:
        print_error(f"Code generation failed: {e}")
        sys.exit(1)

    if not code:
        print_error("Nothing to generate for the selected entities")
        sys.exit(1)

    stdout.write(code)
    print_success("Code generation completed successfully")


@app.command
def targets(family: DatabaseFamily | None = None) -> None:
    """List code generation targets."""
    format_targets_table(family)


@app.command
def inspect(project: Path) -> None:
    """Validate a project file and summarize its databases."""
    store = load_project(project)
    format_project_table(store)
    print_success(
        f"{len(store.databases)} databases, "
        f"{len(store.collections)} entities, "
        f"{len(store.edges)} edges",
    )


@app.command
def pull(output: Path | None = None) -> None:
    """Fetch the backend schema and save it as a project file.

    Without ``output`` the project goes to the configured storage path.
    """
    settings = load_settings()
    bridge = connect_backend(settings)
    try:
        payload = bridge.fetch_schema()
    except TransportError as e:
        print_error(f"Cannot fetch schema: {e}")
        sys.exit(1)

    store = ProjectStore(history=create_history(settings))
    result = store.import_project(payload)
    if not result.success:
        print_error(result.message or "Invalid project file structure.")
        sys.exit(1)

    storage = JsonFileStorage(output) if output is not None else create_storage(settings)
    saved = storage.save(store.state)
    if not saved.ok:
        print_error(f"Cannot write project file: {storage.path} ({saved.error})")
        sys.exit(1)
    print_success(f"Saved {len(store.collections)} entities to {storage.path}")


@app.command
def push(project: Path) -> None:
    """Send an exported project to the backend."""
    settings = load_settings()
    store = load_project(project)
    bridge = connect_backend(settings)
    try:
        bridge.save_schema(store.state)
    except TransportError as e:
        print_error(f"Cannot sync schema: {e}")
        sys.exit(1)
    print_success(f"Synced {len(store.collections)} entities")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
