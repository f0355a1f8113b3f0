"""
Root application entry point for the EasyBuy UI bridge
======================================================

This module exposes the FastAPI application instance defined in
``easybuy/main.py`` so that deployment tools like Uvicorn can import
``main:app`` from the repository root. Application setup and router
registration remain centralized in the package.

Usage
-----

Point Uvicorn at this module, binding to the loopback interface since
the bridge serves a single local UI process:

.. code-block:: bash

    EASYBUY_FIREBASE_API_KEY=... uvicorn main:app --host 127.0.0.1 --port 8000
"""

from easybuy.main import app  # noqa: F401 re-export for Uvicorn

__all__ = ["app"]
