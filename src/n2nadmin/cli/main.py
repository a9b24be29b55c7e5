"""
n2n-admin CLI entry point.

Usage:
    n2nadmin [OPTIONS] COMMAND [ARGS]...

Commands:
    serve           Run the admin server
    version         Show version information
    reset-password  Set a user's password (USER:PASS)
"""

from typing import Annotated

import typer
from rich.console import Console

from n2nadmin.server.config import config

console = Console()

app = typer.Typer(
    name="n2nadmin",
    help="n2n supernode web administration",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.command("serve")
def serve(
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="HTTP port (default: N2N_PORT or 8080)"),
    ] = None,
):
    """Run the admin server."""
    from n2nadmin.server.app import run as run_server

    run_server(port=port)


@app.command("version")
def version():
    """Show version information."""
    from n2nadmin import __version__

    console.print(f"n2n-admin v{__version__}")


@app.command("reset-password")
def reset_password(
    credentials: Annotated[
        str, typer.Argument(help="USER:PASS, the user is created if missing")
    ],
):
    """Set a user's password directly in the database."""
    from n2nadmin.db.auth import Session, User
    from n2nadmin.db.base import close_database, initialize_database
    from n2nadmin.server.auth.utils import hash_password

    username, sep, password = credentials.partition(":")
    if not sep or not username:
        console.print("[red]Expected USER:PASS[/red]")
        raise typer.Exit(1)
    if len(password) < config.MIN_PASSWORD_LENGTH:
        console.print(
            f"[red]Password must be at least {config.MIN_PASSWORD_LENGTH} characters[/red]"
        )
        raise typer.Exit(1)

    initialize_database(config.DB_FILE)
    try:
        user = User.get_or_none(User.username == username)
        if user is None:
            User.create(
                username=username,
                password_hash=hash_password(password),
                is_admin=True,
            )
            console.print(f"[green]Created user '{username}'[/green]")
        else:
            user.password_hash = hash_password(password)
            user.save()
            # Existing sessions must log in again
            Session.delete().where(Session.user == user).execute()
            console.print(f"[green]Password reset for '{username}'[/green]")
    finally:
        close_database()


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
