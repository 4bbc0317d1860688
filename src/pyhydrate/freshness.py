"""Per-spec timestamps gating freshness re-validation.

This only limits how often a cached entity is re-checked against the
remote source.  It never invalidates store entries.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable

from pyhydrate.spec import FetchSpec


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


class FreshnessTracker:
    def __init__(
        self,
        *,
        checked_fresh_rate: float = 60.0,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.checked_fresh_rate_ms = int(checked_fresh_rate * 1000)
        self.timestamps: dict[str, int] = {}
        self._clock = clock

    @staticmethod
    def key(spec: FetchSpec) -> str:
        # The raw type name is kept (not underscorized) so keys match the
        # ones existing deployments already inspect.
        return json.dumps(
            {"name": spec.type_name, "params": spec.params},
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )

    def should_check_fresh(self, spec: FetchSpec) -> bool:
        checked_at = self.timestamps.get(self.key(spec))
        if checked_at is None:
            return True
        return self._clock() - checked_at > self.checked_fresh_rate_ms

    def did_check_fresh(self, spec: FetchSpec) -> None:
        self.timestamps[self.key(spec)] = self._clock()

    def clear(self) -> None:
        self.timestamps.clear()
