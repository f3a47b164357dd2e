"""
Entrypoint module for uvicorn.

Run as:

    uvicorn router_inventory.main:app --reload
"""

from router_inventory.api import app  # noqa: F401  FastAPI app
