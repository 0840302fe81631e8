"""
HTTP layer.

``router`` aggregates the domain routers in ``endpoints`` and is
mounted by ``main.create_app`` under the ``/api`` prefix.  Handlers are
thin: they parse the request, call a ``ListingStore`` and translate
results and exceptions into responses.
"""
