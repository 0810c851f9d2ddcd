"""
Exponential backoff with full jitter for queue item retries.

Only used when the processor is configured with retry_backoff=True; by
default a failed head item is retried on the very next tick.
"""

import random
from typing import Optional


def calculate_delay(
    retry_count: int,
    base: float,
    cap: float,
    jitter_seed: Optional[int] = None,
) -> float:
    """
    Calculate a retry delay using exponential backoff with full jitter.

    The upper bound doubles per retry (base * 2^retry_count) and is capped
    at ``cap``; the returned delay is drawn uniformly from [0, bound].

    Args:
        retry_count: Zero-based retry number
        base: Base delay in seconds
        cap: Maximum delay in seconds
        jitter_seed: Seed for deterministic jitter (tests only)

    Returns:
        Delay in seconds
    """
    # Clamp the exponent so huge retry counts don't overflow
    exponent = min(max(retry_count, 0), 32)
    upper = min(cap, base * (2 ** exponent))

    rng = random.Random(jitter_seed) if jitter_seed is not None else random
    return rng.uniform(0, upper)
