"""
Service layer.

``normalizer`` turns untrusted request bodies into validated
``Listing`` records; ``listing_store`` persists them.  API handlers
only talk to a ``ListingStore`` and never touch the storage medium
directly.
"""
