"""
jobagent.schemas - Data structures for steps, runs and configuration sources.

Steps:
1. Step: One unit of pipeline work (closed StepType + opaque spec + on_failure flag)
2. StepContext: Workspace, search paths and environment shared by a run
3. JobSpec: A job description (steps + context)

Runs:
4. ExecutionOutcome: The run's monotonic failure state
5. StepOutcome / RunResult: What happened to each step

Configuration sources:
6. ConfigurationSource: Declared origin of a stored values document
7. RepoCoordinates / CodeHost: Where a repository lives
8. FetchRequest / FetchResult: Per-fragment fetch bookkeeping
"""

from .step import (
    Step,
    StepContext,
    StepType,
)
from .outcome import (
    ExecutionOutcome,
    RunResult,
    StepOutcome,
    StepStatus,
)
from .job import JobSpec
from .sources import (
    CodeHost,
    CodeHostType,
    ConfigurationSource,
    GitRepoConfig,
    RepoCoordinates,
    SourceOrigin,
    VariableSetRef,
)
from .records import (
    Product,
    RenderRef,
    RenderSet,
    VariableSet,
)
from .fetch import FetchRequest, FetchResult

__all__ = [
    # Steps
    "Step",
    "StepContext",
    "StepType",
    "JobSpec",
    # Runs
    "ExecutionOutcome",
    "RunResult",
    "StepOutcome",
    "StepStatus",
    # Sources
    "CodeHost",
    "CodeHostType",
    "ConfigurationSource",
    "GitRepoConfig",
    "RepoCoordinates",
    "SourceOrigin",
    "VariableSetRef",
    # Records
    "Product",
    "RenderRef",
    "RenderSet",
    "VariableSet",
    # Fetch
    "FetchRequest",
    "FetchResult",
]
