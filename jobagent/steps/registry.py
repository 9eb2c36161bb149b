"""
Step executor registry - maps step types to executor factories.

Dispatch is over the closed StepType enum. New step kinds are added by
extending StepType and registering a factory, never by matching strings.
"""

from typing import Any, Callable, Union

from jobagent.errors import StepTypeUnknownError
from jobagent.schemas import Step, StepContext, StepType
from jobagent.steps.base import NoOpStep, StepExecutor

ExecutorFactory = Callable[[dict[str, Any], StepContext], StepExecutor]


class StepExecutorRegistry:
    """
    Registry of executor factories by step type.

    Usage:
        registry = StepExecutorRegistry()
        registry.register(StepType.SHELL, ShellStep)

        executor = registry.create(step, context)
        executor.run()

        # Or use factory with defaults
        registry = StepExecutorRegistry.create_default()
    """

    def __init__(self) -> None:
        self._factories: dict[StepType, ExecutorFactory] = {}

    def register(self, step_type: StepType, factory: ExecutorFactory) -> None:
        """
        Register an executor factory for a step type.

        Args:
            step_type: The step kind
            factory: Callable (spec, context) -> StepExecutor, usually the executor class
        """
        if not isinstance(step_type, StepType):
            raise TypeError(f"step_type must be a StepType, got {step_type!r}")
        self._factories[step_type] = factory

    def get(self, step_type: Union[StepType, str]) -> ExecutorFactory:
        """
        Get the factory for a step type.

        Raises:
            StepTypeUnknownError: If the type is not a StepType or has no factory
        """
        if not isinstance(step_type, StepType) or step_type not in self._factories:
            raise StepTypeUnknownError(step_type)
        return self._factories[step_type]

    def has(self, step_type: Union[StepType, str]) -> bool:
        return isinstance(step_type, StepType) and step_type in self._factories

    def list_types(self) -> list[StepType]:
        return list(self._factories.keys())

    def create(self, step: Step, context: StepContext) -> StepExecutor:
        """
        Build the executor for a step.

        Raises:
            StepTypeUnknownError: If no factory is registered for the step's type
            Exception: Whatever the factory raises for an invalid spec
        """
        factory = self.get(step.step_type)
        return factory(step.spec, context)

    @classmethod
    def create_default(cls) -> "StepExecutorRegistry":
        """
        Create a registry with the executors shipped in jobagent.

        Only shell and tar_archive are built in; hosts register the other
        step kinds (git, docker_build, ...) themselves.
        """
        from jobagent.steps.archive import TarArchiveStep
        from jobagent.steps.shell import ShellStep

        registry = cls()
        registry.register(StepType.SHELL, ShellStep)
        registry.register(StepType.TAR_ARCHIVE, TarArchiveStep)
        return registry

    @classmethod
    def create_noop(cls) -> "StepExecutorRegistry":
        """
        Create a registry with a NoOp executor for every step type.

        Useful for testing and dry-run mode.
        """
        registry = cls()
        for step_type in StepType:
            registry.register(step_type, NoOpStep)
        return registry
