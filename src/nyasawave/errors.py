"""Error taxonomy for the NyasaWave core.

The core raises exactly one error type. Every failure is a caller
programming or configuration error, raised before any computation
proceeds. Nothing in the core performs I/O, so nothing is retryable.
"""

from __future__ import annotations


class ValidationError(ValueError):
    """Malformed input: invalid split, unknown event kind or licensing
    tier, out-of-range shares, negative amounts."""
