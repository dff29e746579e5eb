"""Chronologicon HTTP API layer.

Usage
-----
Create the application::

    from chronologicon.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # full mode with event and insight endpoints

"""

from chronologicon.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
