"""Allow `python -m yamlsplit`."""

from yamlsplit.cli.cli import app


if __name__ == "__main__":
    app()
