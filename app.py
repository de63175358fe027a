"""
App assembly entry point.

Re-exports the FastAPI `app` from `dailybread.api.main` so that
`uvicorn app:app` works from the repository root.
"""

from dailybread.api.main import app  # noqa: F401
