"""
Error classes for jobagent.

Step execution:
- StepTypeUnknownError: The step's type has no registered executor
- StepExecutionError: An executor failed; the underlying cause is preserved

Values fetch/merge:
- DownloadError / ReadError: One fragment could not be fetched (carry the path)
- AggregatedFetchError: Every fragment failure of one merge call, in caller order
- MergeError: The combined fragments could not be merged

Source sync:
- SourceLookupError: A referenced variable set (or other record) is absent
- CompareError: Structural comparison of two documents failed

Error handling contract:
- Errors are exceptions, not values
- run_steps() is the single exception: it returns the last failure to its caller
"""

from typing import Optional, Sequence


class JobAgentError(Exception):
    """Base exception for jobagent."""
    pass


class ConfigError(JobAgentError):
    """Configuration validation error."""
    pass


class StepTypeUnknownError(JobAgentError):
    """Raised when a step's type matches no registered executor."""

    def __init__(self, step_type: object):
        self.step_type = step_type
        value = getattr(step_type, "value", step_type)
        super().__init__(f"step type: {value} does not match any known type")


class StepExecutionError(JobAgentError):
    """Raised when a step executor fails."""

    def __init__(self, step: str, message: str, cause: Optional[BaseException] = None):
        self.step = step
        self.cause = cause
        super().__init__(f"Step '{step}' failed: {message}")


class FetchError(JobAgentError):
    """A single values fragment could not be fetched."""

    action = "fetch"

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"failed to {self.action} file, path {path}: {cause}")


class DownloadError(FetchError):
    """Fragment download from a remote repository failed."""

    action = "download"


class ReadError(FetchError):
    """Fragment read from a local repository copy failed."""

    action = "read"


class AggregatedFetchError(JobAgentError):
    """
    Every fragment failure of one fan-out fetch.

    The message enumerates all failed paths, never just the first.
    """

    def __init__(self, errors: Sequence[FetchError]):
        self.errors = list(errors)
        lines = [f"{len(self.errors)} error(s) occurred:"]
        lines.extend(f"  * {err}" for err in self.errors)
        super().__init__("\n".join(lines))

    @property
    def paths(self) -> list[str]:
        return [err.path for err in self.errors]


class MergeError(JobAgentError):
    """The YAML merge primitive rejected the combined input."""
    pass


class SourceLookupError(JobAgentError):
    """A referenced record (variable set, product, ...) could not be found."""
    pass


class CompareError(JobAgentError):
    """Structural equality check failed, e.g. on a malformed document."""
    pass


class RepositoryError(JobAgentError):
    """Repository resolution or local working copy synchronization failed."""
    pass


class DocumentNotFoundError(JobAgentError):
    """
    Sentinel raised by document stores when a record does not exist.

    Callers distinguish this from hard store failures: "not found yet" is
    often a benign, empty result.
    """
    pass
