"""Reaction telemetry — turns input timestamps into inter-action latencies.

One collector per attempt. The first input of an attempt only primes the
collector; every later input yields the gap since the previous one. No
latency is ever dropped or deduplicated.

Tier 1 leaf module: stdlib only.
"""


class ReactionCollector:
    """Timestamps consecutive player inputs into latencies (ms).

    Assumes a monotonic clock, so latencies are never negative.
    """

    def __init__(self) -> None:
        self._previous: float | None = None

    def record(self, timestamp_ms: float) -> float | None:
        """Registers one accepted input.

        Args:
            timestamp_ms: Monotonic arrival time of the input.

        Returns:
            None for the first input of the attempt, otherwise the latency
            since the previous input.
        """
        previous = self._previous
        self._previous = timestamp_ms
        if previous is None:
            return None
        return timestamp_ms - previous

    def reset(self) -> None:
        """Forgets the previous timestamp (called on every attempt start)."""
        self._previous = None
