"""Product catalogue and closed tag vocabularies used by the analysis boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    amazon_id: str
    aliases: tuple[str, ...]


PRODUCTS: tuple[Product, ...] = (
    Product("artemis_3d", "Artemis 3D", "ASIN_ARTEMIS_3D", ("artemis", "artemis 3d")),
    Product("ether", "Ether", "ASIN_ETHER", ("ether",)),
    Product("oxylus", "Oxylus", "ASIN_OXYLUS", ("oxylus",)),
    Product("pillow", "Pillow", "ASIN_PILLOW", ("pillow", "camping pillow")),
    Product(
        "apollo_air",
        "ApolloAir",
        "ASIN_APOLLO_AIR",
        ("apolloair", "apollo air", "apollo air 5.2"),
    ),
)

ROOT_CAUSES: tuple[str, ...] = (
    "Leak / Deflates Overnight",
    "Valve Leak",
    "Internal Weld Leak",
    "Doesn't Hold Air All Night",
    "Valve Problem",
    "Valve Flap Sealed (Shipping Compression)",
    "Inflation Difficulty",
    "Slow Inflate/Deflate",
    "Comfort",
    "Bubble / Air Pocket",
    "Noise",
    "Shipping Delay",
    "Missing Item",
    "Accessory Missing",
    "Damaged on Arrival",
    "Warranty/Registration",
    "Returns/Refund",
    UNCATEGORIZED,
)

STANDARD_POSITIVES: tuple[str, ...] = (
    "Excellent Comfort & Support",
    "Holds Air All Night",
    "Easy & Fast Inflation / Deflation",
    "Lightweight & Packable",
    "Durable Materials",
    "Quiet / Low Noise",
    "High Stability / Non-Slip",
    "Good Insulation (Warm)",
    "Comfortable Thickness / True to Size",
    "Great Value for Money",
    "Easy Rolling / Good Stuff Sack",
    "Professional Design & Finish",
    "Useful Accessories",
    "Excellent Customer Service / Warranty",
    "Versatile Use (Camping / Hiking / Travel)",
)

STANDARD_NEGATIVES: tuple[str, ...] = (
    "Air Leaks / Punctures",
    "Valve Issues",
    "Difficult Inflation / Deflation",
    "Uncomfortable / Poor Support",
    "Size / Thickness Mismatch",
    "Slipping / Poor Grip",
    "Noise During Movement",
    "Poor Insulation (Cold)",
    "Material / Durability Issues",
    "Heavy / Bulky When Packed",
    "Hard to Roll / Stuff Sack Issues",
    "Odor / Chemical Smell",
    "Price / Value Concerns",
    "After-Sales / Warranty Issues",
    "Missing or Unhelpful Accessories",
)

CUSTOMER_PAIN_POINTS: tuple[str, ...] = (
    "Ruined sleep / discomfort overnight",
    "Side-sleeper incompatibility",
    "Portability expectations not met (pack size/shape)",
    "Frustration with inflation setup (seal sensitivity)",
    "Comfort vs. expectation gap (ground feel)",
)

AGENT_POSITIVE_THEMES: tuple[str, ...] = (
    "Warm & Empathetic Tone",
    "Acknowledgment of Customer Experience",
    "Clear Resolution or Action Plan",
    "Reinforcing Brand Identity",
    "Clarity and Simplicity",
    "Personalization",
    "Product Knowledge Displayed",
    "Appreciation and Gratitude",
    "Proactive Assistance",
    "Positive Reinforcement",
)

AGENT_NEGATIVE_THEMES: tuple[str, ...] = (
    "Cold or Robotic Tone",
    "Lack of Empathy",
    "Missing Action Plan",
    "Over-Explaining / Too Technical",
    "Defensive Language",
    "Generic Response",
    "No Brand Personality",
    "Ignoring Key Feedback",
    "Punctuation / Grammar Issues",
    "No Ending Warmth / Close-off",
)

# Conversations mentioning none of these are not product support.
PRODUCT_KEYWORDS: tuple[str, ...] = (
    "artemis",
    "ether",
    "oxylus",
    "pillow",
    "apolloair",
    "apollo air",
    "sleeping pad",
    "leak",
    "valve",
    "inflate",
    "deflate",
    "pump",
    "air",
    "mattress",
    "camping",
    "gear doctors",
    "deflation",
    "bubble",
    "noise",
    "comfort",
    "warranty",
    "replacement",
    "refund",
    "order",
)


def get_product_by_id(product_id: Optional[str]) -> Optional[Product]:
    if not product_id:
        return None
    for product in PRODUCTS:
        if product.id == product_id:
            return product
    return None


def detect_product(text: str) -> Optional[Product]:
    """Return the first catalogue product whose alias appears in text."""
    lowered = (text or "").lower()
    for product in PRODUCTS:
        if any(alias in lowered for alias in product.aliases):
            return product
    return None


def mentions_product(text: str) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in PRODUCT_KEYWORDS)


def known_root_cause(value: Optional[str]) -> str:
    """Map a free-form root cause onto the vocabulary; unknown becomes the sentinel."""
    if value and value in ROOT_CAUSES:
        return value
    return UNCATEGORIZED


def filter_known(values: Iterable[str], vocabulary: Iterable[str]) -> list[str]:
    """Keep only vocabulary members, preserving order and dropping duplicates."""
    allowed = set(vocabulary)
    result: list[str] = []
    for value in values or []:
        if value in allowed and value not in result:
            result.append(value)
    return result
