"""
Three-state threshold rep counter with debounce.
"""
import logging
from typing import Optional, Sequence
from ..core.interfaces import Exercise, RepCountingPolicy, RepState
from ..config import ThresholdConfig
from .min_max_tracker import MinMaxTracker

logger = logging.getLogger("ThresholdRepCounter")


class ThresholdRepCounter(RepCountingPolicy):
    def __init__(
        self,
        exercise: Exercise,
        thresholds: ThresholdConfig,
        debounce_interval: float = 0.1
    ):
        """
        Initialize the counter.

        Args:
            exercise: Exercise whose label drives this counter
            thresholds: Trigger channel and down/up thresholds
            debounce_interval: Minimum seconds between two counted reps
        """
        super().__init__(exercise)
        self.thresholds = thresholds
        self.debounce_interval = debounce_interval
        self.tracker = MinMaxTracker()

        self.state = RepState.IDLE
        self.cycle_start_time: Optional[float] = None
        self.last_rep_time: Optional[float] = None

    @property
    def initial_state(self) -> RepState:
        return RepState.IDLE

    def update(self, label: str, features: Sequence[float], now: float) -> int:
        if label == self.exercise.value:
            self.tracker.update(features)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"[{self.exercise.value}] sensor ranges\n{self.tracker.describe(features)}")
            return self._step(float(features[self.thresholds.trigger_channel]), now)

        # Label moved away: a rep on its way up is finished, a down stroke
        # is kept to survive classifier flicker
        if self.state == RepState.GOING_UP:
            self._count_rep(RepState.IDLE, now)
            return 1
        return 0

    def _step(self, trigger: float, now: float) -> int:
        logger.debug(f"[{self.exercise.value}] state={self.state.value} trigger={trigger:.2f}")

        if self.state == RepState.IDLE:
            if self.thresholds.is_down(trigger):
                self._transition(RepState.GOING_DOWN)
                self.cycle_start_time = now

        elif self.state == RepState.GOING_DOWN:
            if self.thresholds.is_up(trigger):
                self._transition(RepState.GOING_UP)

        elif self.state == RepState.GOING_UP:
            if self.thresholds.is_down(trigger):
                if self._debounced(now):
                    self._count_rep(RepState.GOING_DOWN, now)
                    return 1
                logger.debug(f"[{self.exercise.value}] rep blocked by debounce")

        return 0

    def _debounced(self, now: float) -> bool:
        # Measured from the last counted rep, or from the start of the first cycle
        anchor = self.last_rep_time if self.last_rep_time is not None else self.cycle_start_time
        if anchor is None:
            return True
        return now - anchor >= self.debounce_interval

    def _transition(self, new_state: RepState) -> None:
        logger.debug(f"[{self.exercise.value}] {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _count_rep(self, new_state: RepState, now: float) -> None:
        self._transition(new_state)
        self.count += 1
        self.last_rep_time = now
        logger.info(f"[{self.exercise.value}] +1 rep, total {self.count}")

    def reset(self) -> None:
        self.state = RepState.IDLE
        self.count = 0
        self.cycle_start_time = None
        self.last_rep_time = None
        self.tracker.reset()
