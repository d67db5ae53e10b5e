"""Turn a raw model reply into a validated answer model.

Providers are asked for a bare JSON object but do not always comply. The
parser tolerates markdown fences, chatter around the object, and optional
fields of the wrong shape (new_signals as a list, a severity delta of
"high"). It does not tolerate a missing or empty answer.
"""

import json
import math
import re

from pydantic import BaseModel, ValidationError

_FENCE = re.compile(r"```(?:json)?")
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class LLMParseError(Exception):
    """The reply could not be turned into the expected model.

    Attributes:
        raw: The reply exactly as the provider returned it, for logging.
    """

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw


def parse_llm_json(response: str, schema: type[BaseModel]) -> BaseModel:
    """Parse a reply into schema.

    The whole reply (fences removed) is tried as JSON first, then the
    outermost {...} span inside it. Malformed optional fields are scrubbed
    before validation so one bad extra does not cost a usable answer.

    Raises:
        LLMParseError: No JSON object was found, or it failed validation.
    """
    data = _load_object(response or "")
    if data is None:
        raise LLMParseError(f"no JSON object in reply for {schema.__name__}", raw=response)

    _drop_malformed_extras(data)

    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise LLMParseError(f"reply does not match {schema.__name__}: {exc}", raw=response) from exc


# ── Private helpers ────────────────────────────────────────────────────────────

def _load_object(text: str) -> dict | None:
    text = _FENCE.sub("", text).strip()
    candidates = [text]
    match = _OBJECT.search(text)
    if match and match.group(0) != text:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            loaded = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(loaded, dict):
            return loaded
    return None


def _drop_malformed_extras(data: dict) -> None:
    if not isinstance(data.get("new_signals", {}), dict):
        del data["new_signals"]

    if data.get("severity_delta") is not None:
        try:
            delta = float(data["severity_delta"])
        except (TypeError, ValueError):
            delta = math.nan
        if math.isfinite(delta):
            data["severity_delta"] = delta
        else:
            del data["severity_delta"]

    if data.get("confidence") is not None:
        data["confidence"] = str(data["confidence"])

    # Only the local fallback path may mark an answer as a fallback.
    data.pop("fallback", None)
