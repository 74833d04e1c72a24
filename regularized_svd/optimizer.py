"""
optimizer.py
Stochastic gradient descent driver.

StochasticOptimizer owns the epoch loop: it reshuffles the observation
order at the start of every epoch and hands each per-observation gradient
to a StochasticStep, which applies the update in place. Swapping the step
changes the update rule without touching the objective function.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from .errors import InvalidArgumentError
from .function import SparseGradient

LOGGER = logging.getLogger(__name__)

EpochCallback = Callable[[int, np.ndarray], None]


class OptimizerState(enum.Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    DONE = "done"


# ─────────────────────────────────────────────
# Step strategies
# ─────────────────────────────────────────────

class StochasticStep(ABC):
    """Update rule applied once per observation."""

    def initialize(self, function, parameters: np.ndarray) -> None:
        pass

    @abstractmethod
    def step(self, parameters: np.ndarray, gradient: SparseGradient) -> None:
        ...

    @abstractmethod
    def is_done(self, epoch: int) -> bool:
        ...

    def end_epoch(self, epoch: int) -> None:
        pass


class SGD(StochasticStep):
    """Plain SGD with a fixed learning rate for a fixed number of epochs."""

    def __init__(self, iterations: int = 10, alpha: float = 0.01):
        if iterations <= 0:
            raise InvalidArgumentError(f"iterations must be positive, got {iterations}")
        if not np.isfinite(alpha) or alpha <= 0:
            raise InvalidArgumentError(f"alpha must be positive and finite, got {alpha}")

        self.iterations = int(iterations)
        self.alpha = float(alpha)
        self.step_size = self.alpha

    def initialize(self, function, parameters):
        self.step_size = self.alpha

    def step(self, parameters, gradient):
        parameters[:, gradient.columns] -= self.step_size * gradient.values

    def is_done(self, epoch):
        return epoch >= self.iterations


class ExponentialDecaySGD(SGD):
    """SGD whose learning rate is multiplied by `decay` after every epoch."""

    def __init__(self, iterations: int = 10, alpha: float = 0.01, decay: float = 0.95):
        super().__init__(iterations, alpha)
        if not 0 < decay <= 1:
            raise InvalidArgumentError(f"decay must be in (0, 1], got {decay}")
        self.decay = float(decay)

    def end_epoch(self, epoch):
        self.step_size *= self.decay


# ─────────────────────────────────────────────
# Driver
# ─────────────────────────────────────────────

class StochasticOptimizer:
    def __init__(
        self,
        step: StochasticStep,
        rng: Optional[np.random.Generator] = None,
        shuffle: bool = True,
    ):
        self.step = step
        self.rng = rng if rng is not None else np.random.default_rng()
        self.shuffle = shuffle

        self.state = OptimizerState.INITIALIZED
        self.epoch = 0

    def _order(self, n: int) -> np.ndarray:
        if self.shuffle:
            return self.rng.permutation(n)
        return np.arange(n)

    def optimize(
        self,
        function,
        parameters: np.ndarray,
        callback: Optional[EpochCallback] = None,
    ) -> float:
        """
        Run the step strategy until it reports done; `parameters` is updated
        in place. Returns the final objective value.

        Any exception from the function aborts the run and propagates; the
        parameters are then in an unspecified partially-updated state.
        """
        n = function.num_functions()

        self.step.initialize(function, parameters)
        self.epoch = 0
        self.state = OptimizerState.RUNNING

        LOGGER.info("SGD starting: %d observations, parameters %s", n, parameters.shape)

        while not self.step.is_done(self.epoch):
            for index in self._order(n):
                gradient = function.gradient(parameters, index)
                self.step.step(parameters, gradient)

            self.step.end_epoch(self.epoch)
            self.epoch += 1

            if LOGGER.isEnabledFor(logging.DEBUG):
                LOGGER.debug(
                    "epoch %d objective %.6f", self.epoch, function.evaluate(parameters)
                )
            if callback is not None:
                callback(self.epoch, parameters)

        self.state = OptimizerState.DONE
        objective = function.evaluate(parameters)
        LOGGER.info("SGD finished after %d epochs, objective %.6f", self.epoch, objective)
        return objective
