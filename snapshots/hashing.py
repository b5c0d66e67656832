"""
Snapshots — Checksum Computation
==================================
Computes the integrity checksum stored with every snapshot record.

Formula:
    checksum = MD5(canonical_json(data))

Rules:
- Canonical JSON: sorted keys, no whitespace variability
- No salt, no randomness — equal data always yields an equal checksum
- The checksum is for integrity/equality comparison, not uniqueness

This module ONLY computes. It does not persist or compare records.
"""

import hashlib
import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder


CHECKSUM_LENGTH = 32


# ══════════════════════════════════════════════════════════════
# CANONICAL SERIALIZATION
# ══════════════════════════════════════════════════════════════

def canonical_serialize(payload: Any) -> str:
    """
    Produce a deterministic JSON string from payload.

    Rules:
    - Keys sorted alphabetically at all levels
    - No whitespace variability (separators=(',', ':'))
    - ensure_ascii=True for cross-platform consistency
    - DjangoJSONEncoder for datetime, Decimal, UUID and duration values
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        cls=DjangoJSONEncoder,
    )


# ══════════════════════════════════════════════════════════════
# CHECKSUM COMPUTATION
# ══════════════════════════════════════════════════════════════

def compute_checksum(data: Any) -> str:
    """
    Compute the 32-character checksum for snapshot data.

    Args:
        data: Snapshot payload (dict/JSON-serializable).

    Returns:
        32-character lowercase hex MD5 digest.
    """
    canonical = canonical_serialize(data)
    return hashlib.md5(
        canonical.encode("utf-8"), usedforsecurity=False
    ).hexdigest()
