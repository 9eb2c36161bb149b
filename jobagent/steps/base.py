"""
Base step executor and common implementations.

Executors know how to run one step type to completion. They are built from
the step's opaque spec plus the run's StepContext, and signal failure by
raising.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from jobagent.schemas import StepContext

logger = logging.getLogger(__name__)


class StepExecutor(ABC):
    """
    Abstract base class for step executors.

    Subclasses validate their spec in __init__ (raising on bad input) and
    do the work in run().
    """

    def __init__(self, spec: dict[str, Any], context: StepContext):
        self.spec = spec
        self.context = context

    @abstractmethod
    def run(self) -> None:
        """
        Run the step to completion.

        Raises:
            Exception: If the step fails
        """
        pass


class NoOpStep(StepExecutor):
    """
    No-op executor for testing and dry-run mode.

    Logs the step and returns without doing anything.
    """

    def run(self) -> None:
        logger.info(f"noop step in {self.context.workspace}: {sorted(self.spec)}")
