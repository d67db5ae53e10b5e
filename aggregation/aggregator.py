"""Chat aggregator.

The ChatAggregator turns the full chat transcript into the Live Summary: a
short, deduplicated list of canonical facts. It handles two concerns:

1. Deduplication — a fact mentioned in ten messages appears once. Facts are
   canonical strings from the pattern table, so different wordings that hit
   the same row collapse into one bullet.

2. Ordering and capping — facts are listed in pattern-table order, not
   message order, and at most five are kept.

The summary is recomputed from the whole transcript on every call. There is
no incremental state, so the same transcript always yields the same summary
and the aggregator can be rerun at any time.
"""

import logging
from collections.abc import Iterable

from schemas.chat import ChatMessage
from signals.patterns import FACT_PATTERNS, FactPattern

logger = logging.getLogger(__name__)

MAX_SUMMARY_FACTS = 5


class ChatAggregator:
    """Builds the Live Summary from a chat transcript.

    Matching is case-insensitive: each message text is lower-cased and
    searched for every pattern. For patterns with a capture group (tow ETA)
    only the first matching message contributes, so a later "tow eta 40"
    does not replace an earlier "tow eta 25".
    """

    def __init__(self, patterns: list[FactPattern] | None = None) -> None:
        self._patterns = patterns if patterns is not None else FACT_PATTERNS

    def aggregate(self, transcript: Iterable[ChatMessage]) -> list[str]:
        """Return up to 5 deduplicated facts found anywhere in the transcript.

        Args:
            transcript: All chat messages so far, in arrival order.

        Returns:
            Canonical fact strings in pattern-table order. Empty if nothing
            recognisable has been said.
        """
        texts = [(m.text or "").lower() for m in transcript]

        facts: list[str] = []
        for pattern in self._patterns:
            fact = self._first_fact(pattern, texts)
            if fact is not None and fact not in facts:
                facts.append(fact)

        logger.debug("Aggregated %d messages into %d facts.", len(texts), len(facts))
        return facts[:MAX_SUMMARY_FACTS]

    # ── Private helpers ───────────────────────────────────────────────────────

    def _first_fact(self, pattern: FactPattern, texts: list[str]) -> str | None:
        for text in texts:
            match = pattern.search(text)
            if match:
                return pattern.fact_for(match)
        return None
