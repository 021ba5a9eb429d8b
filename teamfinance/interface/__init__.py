"""Mini README: Interactive interfaces (web) for Team Finance.

Exports the FastAPI application factory and the store builder shared with
the command line entry point.
"""

from .web_app import build_store, create_application

__all__ = ["build_store", "create_application"]
