import hashlib
import logging
from typing import Any

# Create the library logger
logger = logging.getLogger("dynavalve")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_key(key: dict[str, Any] | str | None) -> str:
    """
    Redacts continuation keys for logging.
    Hashes the values to allow correlation without revealing PII.
    """
    if key is None:
        return "<none>"
    try:
        if isinstance(key, dict):
            redacted = {}
            for k, v in sorted(key.items()):
                val_str = str(v).encode("utf-8")
                redacted[k] = hashlib.sha256(val_str).hexdigest()[:8]
            return str(redacted)
        else:
            return hashlib.sha256(str(key).encode("utf-8")).hexdigest()[:8]
    except Exception:
        return "<redaction_failed>"


def print_capacity(consumed: dict[str, Any] | None) -> str:
    """
    Renders a ConsumedCapacity block as a short suffix for log messages.

    Returns an empty string when DynamoDB did not report capacity.
    """
    if not consumed:
        return ""
    units = consumed.get("CapacityUnits")
    if units is None:
        return ""
    return f" ({units} units)"
