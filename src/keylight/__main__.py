"""Allow ``python -m keylight``."""

from keylight.cli.main import cli

if __name__ == "__main__":
    cli()
