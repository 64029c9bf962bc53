"""Allow ``python -m sessionlens``."""

from sessionlens import cli

if __name__ == "__main__":
    cli.app()
