"""
Application package.

``main`` assembles the FastAPI app from the ``core`` (configuration,
logging, security, SQLite helpers), ``schemas``, ``services``
(normalisation and storage of listings) and ``api`` (routers)
subpackages.
"""

from .main import app  # noqa: F401
