"""Mini README: Core package initializer for the Team Finance backend.

The package is split into ``ledger`` (accounts, postings, stores and
reconciliation), ``reports`` (the shared report query and its CSV, Excel and
PDF encoders) and ``interface`` (the FastAPI service). This module stays
lightweight so importing the logging helper does not pull in web or storage
dependencies.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
