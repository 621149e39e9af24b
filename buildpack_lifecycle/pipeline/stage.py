"""
Stage abstraction for the staging pipeline.

A stage is one step of a staging run (acquire, detect, compile, ...).
Stages read and write the shared StagingContext; a stage fails the run by
raising a LifecycleError subclass carrying the run's exit code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import StagingContext

logger = logging.getLogger(__name__)


class Stage(ABC):
    """
    Base class for all staging stages.

    Lifecycle Methods:
    - initialize(): Called once before the first stage runs (optional)
    - run(): The stage's work (required)
    - cleanup(): Called when the pipeline completes or errors (optional)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this stage, used in logging and timings."""
        ...

    def initialize(self, ctx: StagingContext) -> None:
        """Default implementation does nothing."""
        pass

    @abstractmethod
    def run(self, ctx: StagingContext) -> None:
        """
        Perform the stage.

        Raises:
            LifecycleError: the run cannot continue
        """
        ...

    def cleanup(self) -> None:
        """Default implementation does nothing."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
