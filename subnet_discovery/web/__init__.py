"""
JSON web API over the host inventory.
"""

from .app import create_app, run_server

__all__ = ['create_app', 'run_server']
