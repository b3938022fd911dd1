"""
WorkerMap - Shared Worker Registry Hub.

Keeps one authoritative list of worker records, validates and deduplicates
every change, persists it atomically, and fans each accepted change out to
every connected viewer.
"""

__version__ = "0.1.0"

# API module is available but not exported by default
# Import explicitly: from workermap.api import create_app

__all__ = ["__version__"]
