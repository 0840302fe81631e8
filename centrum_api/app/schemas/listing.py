"""
Pydantic model for listing records.

``Listing`` is the fully normalised record produced by
``services.normalizer.normalize_listing`` and persisted by the stores.
Request bodies are deliberately *not* parsed through this model: they
are loosely typed mappings that only the normalizer interprets.
"""

from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field


Number = Union[int, float]


class Listing(BaseModel):
    """A single real-estate listing."""

    id: str = Field(..., examples=["3f2c9a5e0d4b4c1e8f7a6b5c4d3e2f10"])
    created_at: int = Field(..., alias="createdAt", examples=[1735689600000])
    updated_at: int = Field(..., alias="updatedAt", examples=[1735689600000])

    title: str = Field(..., examples=["Sunny flat near the park"])
    type: str = Field(..., examples=["Mieszkanie"])
    city: str = Field(..., examples=["Kraków"])
    price: Number = Field(..., examples=[650000])
    area: Number = Field(..., examples=[54.5])
    rooms: Number = Field(..., examples=[3])
    description: str = Field(..., examples=["Three rooms, renovated kitchen, balcony."])

    featured: bool = False
    rent: str = ""
    market: str = ""
    finish: str = ""
    heating: str = ""
    ownership: str = ""
    floor: Any = None

    # Base64 data URLs, cover first.
    images: List[str] = Field(default_factory=list)
    image: str = ""

    model_config = {
        "populate_by_name": True,
    }

    def to_document(self) -> Dict[str, Any]:
        """Return the camelCase JSON-compatible representation."""
        return self.model_dump(mode="json", by_alias=True)
