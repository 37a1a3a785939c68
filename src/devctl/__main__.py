from typing import Annotated

from typer import Exit, Option

from devctl import __version__
from devctl.cli.commands import app
from devctl.utils import console


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"devctl {__version__}")
        raise Exit()


@app.callback()
def root(
    version: Annotated[
        bool,
        Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show the devctl version and exit",
        ),
    ] = False,
) -> None:
    """Run the project's dev server in the background and manage it."""


def main() -> None:
    app()


if __name__ == "__main__":
    main()
