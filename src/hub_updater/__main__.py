"""Entry point for ``python -m hub_updater``."""

from hub_updater.cli import run

if __name__ == "__main__":
    run()
