"""
Validation and coercion of incoming listing data.

``normalize_listing`` is the single gatekeeper between loosely typed
request bodies and stored ``Listing`` records.  It is shared by every
store backend.  Coercion follows the rules the admin front end has
always relied on: strings are trimmed, numbers are converted the way
JavaScript's ``Number()`` converts them, the gallery is capped at
``MAX_IMAGES`` entries and the cover image falls back to the first
gallery entry.  Validation then runs in a fixed order so the first
failing field always yields the same message.
"""

import math
import re
import time
import uuid
from typing import Any, Mapping, Optional

from ..schemas.listing import Listing, Number


MAX_IMAGES = 15

REQUIRED_TEXT_FIELDS = ("title", "type", "city", "description")
OPTIONAL_TEXT_FIELDS = ("rent", "market", "finish", "heating", "ownership")
NUMERIC_FIELDS = ("price", "area", "rooms")


class ListingValidationError(ValueError):
    """Raised when incoming listing data cannot be accepted."""


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def new_listing_id() -> str:
    return uuid.uuid4().hex


# String forms accepted by JavaScript's Number(): signed decimals with an
# optional exponent, "Infinity", and unsigned 0x/0o/0b integers.
_DECIMAL_RE = re.compile(r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")
_PREFIXED_RE = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def to_number(value: Any) -> Number:
    """Convert ``value`` to a number like JavaScript's ``Number()``.

    Numbers pass through untouched, booleans become ``0``/``1``,
    ``None`` becomes ``0`` and strings are parsed after stripping
    whitespace (an empty string is ``0``).  Only the JavaScript numeric
    grammar is accepted, so ``"0x1A"`` is ``26`` while ``"1_000"`` and
    ``"inf"`` are ``NaN``.  Anything unparseable is ``NaN``.  Integral
    results are returned as ``int`` so that stored documents keep
    ``650000`` rather than ``650000.0``.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _PREFIXED_RE.fullmatch(text):
            return int(text, 0)
        if not _DECIMAL_RE.fullmatch(text):
            return math.nan
        number = float(text)
        return int(number) if number.is_integer() else number
    return math.nan


def to_text(value: Any) -> str:
    """Convert ``value`` to a string like JavaScript's ``String()``."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    return str(value)


def _is_positive(value: Number) -> bool:
    try:
        return math.isfinite(value) and value > 0
    except OverflowError:
        # int too large to convert to float
        return False


def _coerce(data: Mapping[str, Any]) -> dict:
    out = {}

    for field in REQUIRED_TEXT_FIELDS:
        value = data.get(field)
        out[field] = to_text(value).strip() if value else ""

    # A missing numeric field is NaN, not 0 as an explicit null would be.
    for field in NUMERIC_FIELDS:
        out[field] = to_number(data[field]) if field in data else math.nan

    for field in OPTIONAL_TEXT_FIELDS:
        value = data.get(field)
        out[field] = to_text(value).strip() if value else ""

    out["featured"] = bool(data.get("featured"))

    floor = data.get("floor")
    out["floor"] = None if floor == "" else floor

    images = data.get("images")
    if not isinstance(images, (list, tuple)):
        images = []
    out["images"] = [to_text(item) for item in images[:MAX_IMAGES]]

    image = data.get("image")
    out["image"] = to_text(image) if image else (out["images"][0] if out["images"] else "")
    return out


def _validate(out: Mapping[str, Any]) -> None:
    if len(out["title"]) < 3:
        raise ListingValidationError("Title too short")
    if len(out["city"]) < 2:
        raise ListingValidationError("City too short")
    if not _is_positive(out["price"]):
        raise ListingValidationError("Invalid price")
    if not _is_positive(out["area"]):
        raise ListingValidationError("Invalid area")
    if not _is_positive(out["rooms"]):
        raise ListingValidationError("Invalid rooms")
    if len(out["description"]) < 10:
        raise ListingValidationError("Description too short")
    if not out["type"]:
        raise ListingValidationError("Type required")


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def normalize_listing(
    data: Optional[Mapping[str, Any]],
    is_update: bool = False,
    now: Optional[int] = None,
) -> Listing:
    """Coerce and validate ``data`` into a ``Listing``.

    Parameters
    ----------
    data : Mapping
        Untrusted field/value mapping using the wire (camelCase) names.
        Unknown keys are ignored.
    is_update : bool
        ``False`` for a new listing: a fresh ``id`` is assigned unless a
        non-empty string was supplied, ``createdAt`` defaults to now and
        ``updatedAt`` is set to now.  ``True`` when ``data`` is a patch
        already merged over a stored record: ``id`` and ``createdAt``
        are kept as given and ``updatedAt`` moves strictly forward from
        the stored value.
    now : Optional[int]
        Current time in milliseconds; defaults to the system clock.

    Raises
    ------
    ListingValidationError
        With one of the fixed messages (``"Title too short"``, ...),
        reporting only the first failing check.
    """
    data = data or {}
    current = now_ms() if now is None else now

    out = _coerce(data)
    _validate(out)

    listing_id = data.get("id")
    created_at = data.get("createdAt")
    if is_update:
        if not isinstance(listing_id, str) or not listing_id or not _is_timestamp(created_at):
            raise ListingValidationError("Update requires the stored id and createdAt")
        previous = data.get("updatedAt")
        updated_at = max(current, previous + 1) if _is_timestamp(previous) else current
    else:
        if not isinstance(listing_id, str) or not listing_id:
            listing_id = new_listing_id()
        if not _is_timestamp(created_at):
            created_at = current
        updated_at = current

    return Listing(id=listing_id, createdAt=created_at, updatedAt=updated_at, **out)
