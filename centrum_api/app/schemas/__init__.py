"""
Pydantic schema definitions for API payloads.

Listings travel over the wire and on disk in the same camelCase shape;
the ``Listing`` model exposes snake_case attributes to Python code and
serialises back to the wire names via field aliases.
"""
