"""
Warp Module Entry Point
========================

Allows running the Warp CLI via: python -m warp
"""

from warp.cli import cli

if __name__ == "__main__":
    cli()
