"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from factcheck.api import app

    uvicorn factcheck.api:app --reload
"""

from factcheck.api.app import app, create_app

__all__ = ["app", "create_app"]
