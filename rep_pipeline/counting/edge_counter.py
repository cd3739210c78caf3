"""
Rest/active rep counter: one rep per sustained detection of the exercise label.
"""
import logging
from typing import Sequence
from ..core.interfaces import Exercise, RepCountingPolicy, RepState

logger = logging.getLogger("EdgeRepCounter")


class EdgeRepCounter(RepCountingPolicy):
    def __init__(self, exercise: Exercise):
        super().__init__(exercise)
        self.state = RepState.REST

    @property
    def initial_state(self) -> RepState:
        return RepState.REST

    def update(self, label: str, features: Sequence[float], now: float) -> int:
        detected = label == self.exercise.value

        if detected and self.state == RepState.REST:
            self.state = RepState.ACTIVE
            logger.debug(f"[{self.exercise.value}] rest -> active")
        elif not detected and self.state == RepState.ACTIVE:
            # Counted on the falling edge
            self.state = RepState.REST
            self.count += 1
            logger.info(f"[{self.exercise.value}] +1 rep, total {self.count}")
            return 1
        return 0

    def reset(self) -> None:
        self.state = RepState.REST
        self.count = 0
