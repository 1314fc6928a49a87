"""
Toxicity tiers and score formatting.

Pure helpers shared by the dashboard, the JSON API and the CLI. Thresholds are
inclusive on the lower tier: 0.3 is Low, 0.7 is Medium.
"""

from __future__ import annotations
from enum import Enum

LOW_MAX = 0.3
MEDIUM_MAX = 0.7


class Tier(Enum):
    LOW = ("Low Toxicity", "text-green-600")
    MEDIUM = ("Medium Toxicity", "text-yellow-600")
    HIGH = ("High Toxicity", "text-red-600")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def color(self) -> str:
        return self.value[1]


def toxicity_tier(score: float) -> Tier:
    """Map a toxicity probability in [0, 1] to its tier."""
    if score <= LOW_MAX:
        return Tier.LOW
    if score <= MEDIUM_MAX:
        return Tier.MEDIUM
    return Tier.HIGH


def format_score(score: float) -> str:
    """Raw score as a percentage with one decimal, e.g. 0.42 -> '42.0%'."""
    return f"{score * 100:.1f}%"
