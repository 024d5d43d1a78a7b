"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import load_store_config
from ..io.workout_store import WorkoutStore, get_default_store_path

# Shared --store-path option type used across all commands
StorePathOption = Annotated[
    Optional[Path],
    typer.Option("--store-path", "-p", help="Directory holding the workout log (default: ~/.liftlog)"),
]

app = typer.Typer(
    name="liftlog",
    help="Workout log: exercises, sessions, sets and personal records.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_store(store_path: Path | None) -> WorkoutStore:
    """Get the workout store from path or default location."""
    if store_path is None:
        store_path = get_default_store_path()
    return WorkoutStore(store_path, max_write_attempts=load_store_config().max_write_attempts)


def require_store(store_path: Path | None) -> WorkoutStore:
    """Get the workout store, exiting with an error if it is not initialized."""
    from . import views

    store = get_store(store_path)
    if not store.exists():
        views.print_error(f"Workout log not found: {store.store_dir}")
        views.print_info("Run 'init' first to create it.")
        raise typer.Exit(1)
    return store
