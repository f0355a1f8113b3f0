"""
easybuy package
---------------

Authenticated API client and session synchronizer for the EasyBuy
storefront. The FastAPI bridge that exposes the synchronizer to a UI
lives in :mod:`easybuy.main`; importing this package does not build it.
"""

__version__ = "0.1.0"
