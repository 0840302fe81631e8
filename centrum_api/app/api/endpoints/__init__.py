"""
Endpoint modules.

Each module defines an ``APIRouter`` for one concern (listings, admin
session, HTML pages).  The API routers are aggregated in
``api/router.py``; the pages router is included by ``main`` without
the ``/api`` prefix.
"""
