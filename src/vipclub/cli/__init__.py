"""`vipclub` command line: migrations, access links, members and the API server."""

import typer

from vipclub import __version__
from vipclub.cli import access, db, members

app = typer.Typer(name="vipclub", help="VIP Club administration", no_args_is_help=True)
app.add_typer(db.app, name="db")
app.add_typer(access.app, name="access")
app.add_typer(members.app, name="members")


@app.command()
def version():
    """Print the installed version."""
    typer.echo(f"vipclub {__version__}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Restart on code changes"),
):
    """Run the API with uvicorn."""
    import uvicorn

    from vipclub.logging import get_uvicorn_log_config, setup_logging

    setup_logging()
    uvicorn.run("vipclub.main:app", host=host, port=port, reload=reload, log_config=get_uvicorn_log_config())
