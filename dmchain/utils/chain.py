import hashlib
import json
from typing import Any, Mapping


def canonical_bytes(data: Mapping[str, Any]) -> bytes:
    """Serialize data with deterministic key ordering for hashing."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


def compute_chain_hash(payload: Mapping[str, Any], prev_hash: str) -> str:
    """Return the chain hash of a payload linked to the previous hash.

    Args:
        payload: JSON-serializable content of the entry
        prev_hash: Hex digest of the previous entry, empty for the first one

    Returns:
        Hex encoded SHA-256 digest
    """
    hasher = hashlib.sha256()
    hasher.update(canonical_bytes(payload))
    if prev_hash:
        hasher.update(bytes.fromhex(prev_hash))
    return hasher.hexdigest()
