"""
Simulated LinkedIn profile consistency check.

This is a demo widget only: it does not look at the résumé, the job
description or the analysis result. The score is random in [60, 95].
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

MIN_SCORE = 60
MAX_SCORE = 95
EXCELLENT_ABOVE = 80


@dataclass(frozen=True)
class ConsistencyCheck:
    score: int
    simulated: bool = True

    @property
    def verdict(self) -> str:
        return "excellent" if self.score > EXCELLENT_ABOVE else "needs adjustments"


def simulate_consistency_score(rng: Optional[random.Random] = None) -> ConsistencyCheck:
    r = rng or random
    return ConsistencyCheck(score=r.randint(MIN_SCORE, MAX_SCORE))
