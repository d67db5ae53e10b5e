"""Signal extractor — proposes signal updates from one chat message.

Candidates come from two independent paths:

1. The latest message text, matched against the fact pattern table.
2. The current Live Summary, matched against the summary pattern table.

The second path catches facts that were recognised earlier, or phrased in a
way the latest message no longer repeats. Both paths can propose the same
key; the RelevanceGate filters out the no-op.

The extractor never writes to the SignalStore. It only proposes.
"""

import logging

from schemas.chat import ChatMessage
from schemas.signals import SignalCandidate
from signals.patterns import FACT_PATTERNS, SUMMARY_PATTERNS, FactPattern, SummaryPattern

logger = logging.getLogger(__name__)


class SignalExtractor:
    """Pattern-matches a message plus the current summary into candidates."""

    def __init__(
        self,
        patterns: list[FactPattern] | None = None,
        summary_patterns: list[SummaryPattern] | None = None,
    ) -> None:
        self._patterns = patterns if patterns is not None else FACT_PATTERNS
        self._summary_patterns = summary_patterns if summary_patterns is not None else SUMMARY_PATTERNS

    def extract(self, message: ChatMessage | None, summary: list[str]) -> list[SignalCandidate]:
        """Return candidate signal updates in discovery order.

        Missing or empty message text is not an error: the message path
        simply yields nothing.

        Args:
            message: The message that just arrived. May be None.
            summary: The Live Summary recomputed after that message.

        Returns:
            Message-path candidates first, then summary-path candidates.
        """
        candidates = self._from_message(message)
        candidates.extend(self._from_summary(summary))

        logger.debug(
            "SignalExtractor proposed %d candidates: %s",
            len(candidates),
            [c.key for c in candidates],
        )
        return candidates

    # ── Private ───────────────────────────────────────────────────────────────

    def _from_message(self, message: ChatMessage | None) -> list[SignalCandidate]:
        text = ((message.text if message is not None else "") or "").lower()
        if not text:
            return []

        candidates: list[SignalCandidate] = []
        for pattern in self._patterns:
            if pattern.signal_key is None:
                continue
            match = pattern.search(text)
            if not match:
                continue
            # One police candidate is enough even if both police rows match.
            if any(c.key == pattern.signal_key for c in candidates):
                continue
            candidates.append(SignalCandidate(
                key=pattern.signal_key,
                value=pattern.signal_value(match),
                label=pattern.label_for(match),
            ))
        return candidates

    def _from_summary(self, summary: list[str]) -> list[SignalCandidate]:
        lowered = [fact.lower() for fact in summary]
        return [
            SignalCandidate(key=p.signal_key, value=p.signal_value, label=p.signal_label)
            for p in self._summary_patterns
            if any(p.fact in fact for fact in lowered)
        ]
