"""litscout CLI Package.

Usage:
    python -m litscout.cli discover --new
    python -m litscout.cli shortlist show
    python -m litscout.cli shortlist add --title "..." --doi 10.1/abc
    python -m litscout.cli shortlist remove 10.1/abc
    python -m litscout.cli dismiss --doi 10.1/abc
    python -m litscout.cli validate config/newsreader.yaml
    python -m litscout.cli serve --port 8000
"""

import typer

from litscout.cli.discover import discover_command
from litscout.cli.dismiss import dismiss_command
from litscout.cli.serve import serve_command
from litscout.cli.shortlist import shortlist_app
from litscout.cli.validate import validate_command

app = typer.Typer(help="litscout: research article discovery and shortlist")

app.command(name="discover")(discover_command)
app.command(name="dismiss")(dismiss_command)
app.command(name="validate")(validate_command)
app.command(name="serve")(serve_command)

app.add_typer(shortlist_app, name="shortlist")

__all__ = [
    "app",
    "discover_command",
    "dismiss_command",
    "validate_command",
    "serve_command",
    "shortlist_app",
]
