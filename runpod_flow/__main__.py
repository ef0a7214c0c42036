# runpod_flow/__main__.py
"""Entry point for ``python -m runpod_flow``."""

from runpod_flow.cli import app

if __name__ == "__main__":
    app()
