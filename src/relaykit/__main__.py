"""Allow ``python -m relaykit``."""

from relaykit.cli.app import app

if __name__ == "__main__":
    app()
