"""Synthetic reading generation standing in for drone telemetry polls."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from models.records import Reading, ReadingBatch, Region, RepairStatus
from settings import get_settings

logger = logging.getLogger(__name__)

READING_INTERVAL = timedelta(minutes=10)
CRACK_SENSITIVITY_RANGE = (0.5, 1.5)
STRESS_SCORE_RANGE = (0.0, 1.0)
LOAD_PATH_RISK_RANGE = (0.0, 1.0)


class ReadingGenerator:
    """Produces batches of random readings from an injectable random source."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        interval: timedelta = READING_INTERVAL,
    ) -> None:
        self.rng = rng or random.Random()
        self.interval = interval
        self._regions = list(Region)
        self._statuses = list(RepairStatus)

    def generate(self, n: int, now: Optional[datetime] = None) -> ReadingBatch:
        """Return ``n`` readings spaced ``interval`` apart, newest first."""
        if n < 0:
            raise ValueError("Reading count must not be negative.")

        anchor = now or datetime.now(timezone.utc)
        if anchor.tzinfo is None:
            anchor = anchor.replace(tzinfo=timezone.utc)

        readings = [
            Reading(
                timestamp=anchor - index * self.interval,
                region=self.rng.choice(self._regions),
                crack_sensitivity=self._uniform(CRACK_SENSITIVITY_RANGE),
                stress_score=self._uniform(STRESS_SCORE_RANGE),
                load_path_risk=self._uniform(LOAD_PATH_RISK_RANGE),
                repair_status=self.rng.choice(self._statuses),
            )
            for index in range(n)
        ]
        logger.debug("Generated readings", extra={"reading_count": len(readings)})
        return readings

    def _uniform(self, bounds: tuple[float, float]) -> float:
        low, high = bounds
        return round(self.rng.uniform(low, high), 2)


@lru_cache
def build_default_generator(seed: Optional[int] = None) -> ReadingGenerator:
    settings = get_settings()
    resolved = settings.random_seed if seed is None else seed
    return ReadingGenerator(rng=random.Random(resolved))
