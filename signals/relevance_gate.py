"""Relevance gate.

The RelevanceGate decides which proposed signal updates are committed to the
SignalStore. All checks are deterministic. It runs two of them, in order:

1. Relevance — the key must be on a fixed allow-list of signals that can
   affect escalation, safety or time. Everything else the extractor finds
   (rider state, injuries) stays in the Live Summary for display but is
   never written automatically.

2. Change — the value must differ from what the store already holds. A
   no-op write is dropped so it neither re-triggers evaluation nor emits a
   notification.

The same gate guards the Q&A side channel, so a language-model answer can
only touch the signals chat extraction could have touched.
"""

import logging

from pydantic import ValidationError

from schemas.signals import SignalCandidate, SignalStore

logger = logging.getLogger(__name__)

PROMOTABLE_KEYS = frozenset({
    "police_present",
    "remote_assist_failed",
    "tow_eta_min",
    "lane_partially_blocked",
})


class RelevanceGate:
    """Filters candidates to the allow-list and applies real changes.

    Attributes:
        allowed_keys: SignalStore field names that may be promoted.
    """

    def __init__(self, allowed_keys: frozenset[str] = PROMOTABLE_KEYS) -> None:
        self.allowed_keys = allowed_keys

    def promote(self, candidates: list[SignalCandidate], store: SignalStore) -> list[SignalCandidate]:
        """Apply accepted candidates to store and return the applied subset.

        Candidates are applied in discovery order. A later candidate for the
        same key overwrites an earlier one if its value differs; if it
        matches what the earlier one just wrote, it is a no-op and is not
        returned.

        Unknown keys are dropped silently. A value the schema rejects (e.g.
        a non-numeric tow ETA) is dropped with a warning and leaves the
        store unchanged.

        Args:
            candidates: Proposed updates from the extractor or Q&A channel.
                Keys may be field names or their camelCase aliases.
            store: The session's SignalStore. Mutated in place.

        Returns:
            The candidates that changed the store, with key normalised to
            the field name. Empty if nothing changed.
        """
        applied: list[SignalCandidate] = []

        for candidate in candidates:
            key = SignalStore.resolve_key(candidate.key)
            if key is None or key not in self.allowed_keys:
                logger.debug("Relevance gate dropped '%s' — not promotable.", candidate.key)
                continue

            before = getattr(store, key)
            if before == candidate.value:
                continue

            try:
                setattr(store, key, candidate.value)
            except ValidationError as exc:
                logger.warning(
                    "Relevance gate rejected %s=%r — invalid value: %s",
                    key,
                    candidate.value,
                    exc.errors()[0].get("msg", exc),
                )
                continue

            # "25" for a stored 25 coerces to the same value.
            after = getattr(store, key)
            if after == before:
                continue

            logger.info("Promoted signal %s=%r (%s).", key, after, candidate.label)
            applied.append(candidate.model_copy(update={"key": key, "value": after}))

        return applied
