"""Allow ``python -m mdoc``."""

from mdoc.cli import app

app(prog_name="mdoc")
