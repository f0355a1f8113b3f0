"""
Core helpers package for the EasyBuy client.

This package contains low-level building blocks: settings, the error
taxonomy, the credential source contract, request building and
response decoding. Keeping them in a dedicated package makes it easy
to swap implementations or customise behaviour for testing.
"""

__all__ = []
