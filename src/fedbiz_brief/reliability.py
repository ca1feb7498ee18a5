# ABOUTME: Reliability classifier assigning Confirmed/Developing/Signal tiers to news items.
# ABOUTME: Rules are evaluated in fixed precedence: trusted source, official wording, speculation, feed tier.

from dataclasses import dataclass, field

from fedbiz_brief.models import ContentItem, ReliabilityTier

HIGH_RELIABILITY_SOURCES: tuple[str, ...] = (
    "federal news network",
    "fcw",
    "sam.gov",
    "gsa.gov",
    "defense.gov",
    "whitehouse.gov",
    "cio.gov",
    "treasury.gov",
)

OFFICIAL_KEYWORDS: tuple[str, ...] = (
    "announces",
    "awards",
    "selects",
    "official",
    "confirmed",
    "press release",
    "statement",
    "signed",
    "issued",
)

SPECULATIVE_KEYWORDS: tuple[str, ...] = (
    "rumor",
    "speculation",
    "sources say",
    "allegedly",
    "reportedly",
    "unconfirmed",
    "industry chatter",
    "insider reports",
    "may",
    "might",
    "pending",
    "preliminary award",
    "intent to award",
)


@dataclass(frozen=True)
class ReliabilityRules:
    """Keyword lists driving classification. All entries are lower case."""

    high_reliability_sources: tuple[str, ...] = HIGH_RELIABILITY_SOURCES
    official_keywords: tuple[str, ...] = OFFICIAL_KEYWORDS
    speculative_keywords: tuple[str, ...] = SPECULATIVE_KEYWORDS


def _contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(needle in text for needle in needles)


@dataclass(frozen=True)
class ReliabilityClassifier:
    """Assigns a ReliabilityTier to a ContentItem.

    First match wins:

    1. Source matches a high-reliability source -> Confirmed.
    2. Title/body has official wording -> Confirmed, or Developing when the
       feed itself is rated Signal.
    3. Title/body has speculative wording -> Signal.
    4. The feed's base tier, Developing when the feed has none.
    """

    rules: ReliabilityRules = field(default_factory=ReliabilityRules)

    def classify(self, item: ContentItem) -> ReliabilityTier:
        source = (item.source or "").lower()
        text = f"{item.title or ''} {item.body or ''}".lower()
        base_tier = item.base_tier or ReliabilityTier.DEVELOPING

        if _contains_any(source, self.rules.high_reliability_sources):
            return ReliabilityTier.CONFIRMED

        if _contains_any(text, self.rules.official_keywords):
            if base_tier == ReliabilityTier.SIGNAL:
                return ReliabilityTier.DEVELOPING
            return ReliabilityTier.CONFIRMED

        if _contains_any(text, self.rules.speculative_keywords):
            return ReliabilityTier.SIGNAL

        return base_tier

    def contains_signal_words(self, text: str) -> bool:
        """Check whether text carries speculative or conditional language."""
        return _contains_any((text or "").lower(), self.rules.speculative_keywords)
