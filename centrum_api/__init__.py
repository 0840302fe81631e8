"""
Top-level package for the Centrum Listings API.

All functionality lives in submodules under ``app``; import the ASGI
application as ``centrum_api.app.main:app``.
"""

__all__ = []
