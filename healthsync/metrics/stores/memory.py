"""In-memory health store.

Holds samples in per-type lists.  Used by tests and by callers that feed
samples from elsewhere (e.g. a phone companion app posting JSON).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable

from healthsync.metrics.base import HealthSample, HealthStore
from healthsync.metrics.sync.errors import SourceUnavailable

logger = logging.getLogger("healthsync.metrics.stores.memory")


class InMemoryHealthStore(HealthStore):
    """HealthStore backed by plain lists.

    Args:
        samples:     Initial samples.
        unavailable: Type identifiers that raise SourceUnavailable on read,
                     simulating a denied permission or unsupported type.
    """

    DISPLAY_NAME = "In-memory store"

    def __init__(
        self,
        samples: Iterable[HealthSample] = (),
        unavailable: Iterable[str] = (),
    ) -> None:
        self._samples: dict[str, list[HealthSample]] = defaultdict(list)
        self._unavailable = set(unavailable)
        self.add(samples)

    def add(self, samples: Iterable[HealthSample]) -> None:
        for sample in samples:
            if sample.start.tzinfo is None or sample.end.tzinfo is None:
                raise ValueError(f"Sample times must be timezone-aware: {sample!r}")
            self._samples[sample.type_id].append(sample)

    def deny(self, type_id: str) -> None:
        self._unavailable.add(type_id)

    def __len__(self) -> int:
        return sum(len(v) for v in self._samples.values())

    async def query_samples(
        self, type_id: str, start: datetime, end: datetime
    ) -> list[HealthSample]:
        self._check(type_id)
        return [s for s in self._samples.get(type_id, []) if start <= s.start < end]

    async def latest_sample(
        self, type_id: str, until: datetime | None = None
    ) -> HealthSample | None:
        self._check(type_id)
        candidates = [
            s for s in self._samples.get(type_id, [])
            if until is None or s.end <= until
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.end)

    def _check(self, type_id: str) -> None:
        if type_id in self._unavailable:
            raise SourceUnavailable(f"Read access to {type_id} not available")
