"""HTTP surface for newsreader operations."""

from litscout.api.server import create_app, run_server

__all__ = ["create_app", "run_server"]
