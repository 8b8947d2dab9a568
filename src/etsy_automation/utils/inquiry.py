"""Quote-request detection for customer inquiries.

Reads free-form customer text and pulls out the details a seller needs
before quoting a print job. No pricing happens here.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any

from etsy_automation.utils.parsers import contains_any


QUOTE_INDICATORS = (
    "how much",
    "price",
    "cost",
    "quote",
    "estimate",
    "print this",
    "can you make",
    "custom",
    "3d print",
)

URGENT_KEYWORDS = ("urgent", "asap", "rush", "quickly", "fast", "tomorrow", "weekend")

MATERIALS = {
    "pla": "PLA",
    "abs": "ABS",
    "petg": "PETG",
    "tpu": "TPU",
    "nylon": "Nylon",
    "resin": "Resin",
}
DEFAULT_MATERIAL = "PLA"

_QUANTITY_PATTERN = re.compile(r"(\d+)\s*(pieces?|units?|items?|x\s|copies)", re.I)
_SIZE_PATTERN = re.compile(r"(\d+)\s*(mm|cm|inches|inch|\")", re.I)
_WORD_PATTERN = re.compile(r"[a-z]+")


@dataclass
class Size:
    """Requested object size."""

    value: int
    unit: str


@dataclass
class QuoteRequest:
    """Details parsed out of a quote inquiry."""

    quantity: int = 1
    material: str = DEFAULT_MATERIAL
    size: Size | None = None
    urgent: bool = False
    has_design_file: bool = False
    custom_requirements: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def extract_quantity(text: str) -> int:
    match = _QUANTITY_PATTERN.search(text)
    return int(match.group(1)) if match else 1


def extract_material(text: str) -> str:
    # Whole words only: "abs" must not match inside "absolutely"
    words = set(_WORD_PATTERN.findall(text.lower()))
    for key, value in MATERIALS.items():
        if key in words:
            return value
    return DEFAULT_MATERIAL


def extract_size(text: str) -> Size | None:
    match = _SIZE_PATTERN.search(text)
    if not match:
        return None
    return Size(value=int(match.group(1)), unit=match.group(2).lower())


def extract_custom_requirements(text: str) -> list[str]:
    requirements: list[str] = []
    if contains_any(text, ("color", "colour")):
        requirements.append("specific color requested")
    if contains_any(text, ("smooth", "finish")):
        requirements.append("post-processing required")
    if contains_any(text, ("strong", "durable")):
        requirements.append("high strength material needed")
    return requirements


def is_quote_request(text: str | None) -> bool:
    return contains_any(text, QUOTE_INDICATORS)


def parse_quote_request(text: str | None) -> QuoteRequest | None:
    """
    Parse a customer message into a quote request.

    Args:
        text: Message text (preview or full body)

    Returns:
        QuoteRequest, or None if the text is not asking for a quote
    """
    if not text or not is_quote_request(text):
        return None

    return QuoteRequest(
        quantity=extract_quantity(text),
        material=extract_material(text),
        size=extract_size(text),
        urgent=contains_any(text, URGENT_KEYWORDS),
        has_design_file=contains_any(text, (".stl", "file")),
        custom_requirements=extract_custom_requirements(text),
    )
