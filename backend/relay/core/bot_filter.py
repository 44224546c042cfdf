"""Bot Filter: silent rejection of automated broadcast submissions.

Invariants:
    - A populated decoy field or an implausibly fast submission is filtered
    - Filtered submissions get the same response shape and status as real ones
    - Nothing about a filtered submission is persisted

Design Decisions:
    - Decoy id is a fresh random UUID per filtered submission: a fixed sentinel
      would let a client tell filtered from accepted by submitting twice
"""

import uuid


def is_bot_submission(
    honeypot: str | None, elapsed_ms: float | None, min_elapsed_ms: int,
) -> bool:
    """True when the submission should be accepted-but-discarded."""
    if honeypot:
        return True
    return elapsed_ms is not None and elapsed_ms < min_elapsed_ms


def decoy_broadcast_id() -> uuid.UUID:
    return uuid.uuid4()
