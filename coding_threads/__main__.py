"""Entry point when the package is executed as a module."""

import os
import sys

import click
import uvicorn

from .platform.settings import Settings


@click.command()
@click.option("--host", help="Interface to bind, overrides APP_HTTP__HOST.")
@click.option("--port", type=int, help="Port to listen on, overrides APP_HTTP__PORT.")
@click.option(
    "--working-dir",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Working directory of threads started without one.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level, overrides APP_HTTP__LOG_LEVEL.",
)
@click.option("--reload", is_flag=True)
def main(host=None, port=None, working_dir=None, log_level=None, reload=False):
    """Serve the coding threads API."""
    # The app factory builds its own Settings from the environment, also in
    # reload workers, so overrides it must see go through the environment
    if working_dir is not None:
        os.environ["THREADS__DEFAULT_WORKING_DIR"] = working_dir
    if log_level is not None:
        os.environ["APP_HTTP__LOG_LEVEL"] = log_level.upper()

    settings = Settings()

    uvicorn.run(
        "coding_threads:app",
        loop="uvloop",
        factory=True,
        host=host or settings.app_http.host,
        port=port or settings.app_http.port,
        log_level=settings.app_http.log_level.lower(),
        reload=reload,
    )


if __name__ == "__main__":
    sys.exit(main())
