"""
CLI entry point using Typer.

Provides commands for the workout log:
- init: Create the workout log
- add-exercise / exercises / show-exercise / edit-exercise / reset-pr / delete-exercise
- new-session / sessions / show-session / update-session
- log-set: Log sets and detect personal records
- score / check-pr: Evaluate sets without touching the log
- volume / muscle-group: Training volume per muscle group
"""

import typer

from . import views
from .app import app
from .commands import analysis, exercises, sessions  # noqa: F401  (registers commands)


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    """
    Workout log. Run without a command for interactive mode.
    """
    if ctx.invoked_subcommand is not None:
        return  # A sub-command was given; let it handle things

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]liftlog[/bold cyan]: workout log")
    views.console.print()

    menu = {
        "1": ("sessions",     "List sessions"),
        "2": ("new-session",  "Start a session"),
        "3": ("exercises",    "List exercises and PRs"),
        "4": ("add-exercise", "Add an exercise"),
        "5": ("volume",       "Training volume per muscle group"),
        "i": ("init",         "Create the workout log"),
        "0": ("quit",         "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = {k: v[0] for k, v in menu.items()}.get(choice)

    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    if chosen == "sessions":
        ctx.invoke(sessions.list_sessions)
    elif chosen == "new-session":
        ctx.invoke(sessions.new_session)
    elif chosen == "exercises":
        ctx.invoke(exercises.list_exercises)
    elif chosen == "add-exercise":
        ctx.invoke(exercises.add_exercise)
    elif chosen == "volume":
        ctx.invoke(analysis.volume)
    elif chosen == "init":
        ctx.invoke(sessions.init)


def main() -> None:
    """Console-script entry point."""
    app()


if __name__ == "__main__":
    main()
