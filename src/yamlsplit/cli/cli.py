"""CLI entrypoint: Typer app definition and command registration"""

import typer

from yamlsplit.cli.commands import count_cmd, split_cmd


app = typer.Typer(name="yaml-split", no_args_is_help=True, help="Split a multi-document YAML stream into its documents")

app.command(name="split")(split_cmd)
app.command(name="count")(count_cmd)
