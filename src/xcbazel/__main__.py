"""
Entry point for running xcbazel as a module.

Usage:
    python -m xcbazel [COMMAND] [OPTIONS]
"""

from xcbazel.cli.main import app

if __name__ == "__main__":
    app()
