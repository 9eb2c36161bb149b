"""
ValueSourceSyncer - decide whether a stored values document has drifted.

Rules, in order:
1. No source, or auto_sync off: no change (drift detection is opt-in)
2. variableSet origin: compare the variable set's YAML with the current value
3. gitRepo origin: download load_path from the repository and compare
   (an unconfigured repository link is a warning, not an error)
4. Any other origin: no change

Comparison is structural (parsed documents), so formatting and key order
never count as drift.
"""

import logging
from typing import Optional

from jobagent import yaml_util
from jobagent.errors import DocumentNotFoundError, DownloadError, FetchError, SourceLookupError
from jobagent.schemas import (
    ConfigurationSource,
    GitRepoConfig,
    SourceOrigin,
    VariableSetRef,
)
from jobagent.sources.clients import RepoDownloader, VariableSetStore

logger = logging.getLogger(__name__)

NO_CHANGE: tuple[bool, str] = (False, "")


class ValueSourceSyncer:
    """
    Compares stored values against their declared origin.

    Usage:
        syncer = ValueSourceSyncer(variable_sets, downloader)
        changed, new_value = syncer.sync(source, current_value)
        if changed:
            store(new_value)
    """

    def __init__(
        self,
        variable_sets: Optional[VariableSetStore] = None,
        downloader: Optional[RepoDownloader] = None,
    ):
        self._variable_sets = variable_sets
        self._downloader = downloader

    def sync(self, source: Optional[ConfigurationSource], current_value: str) -> tuple[bool, str]:
        """
        Check a configuration source for drift.

        Args:
            source: Declared origin of the value (None if the value has none)
            current_value: The currently stored YAML value

        Returns:
            (changed, new_value); new_value is "" when unchanged

        Raises:
            SourceLookupError: The referenced variable set is missing
            DownloadError: The repository file could not be downloaded
            CompareError: A document could not be parsed for comparison
        """
        if source is None or not source.auto_sync:
            return NO_CHANGE
        if source.origin == SourceOrigin.VARIABLE_SET:
            return self._sync_from_variable_set(source, current_value)
        if source.origin == SourceOrigin.GIT_REPO:
            return self._sync_from_git(source, current_value)
        return NO_CHANGE

    def _sync_from_variable_set(self, source: ConfigurationSource, current_value: str) -> tuple[bool, str]:
        detail = source.source_detail
        if not isinstance(detail, VariableSetRef):
            raise SourceLookupError("variable set source has no variable set reference")
        if self._variable_sets is None:
            raise SourceLookupError("no variable set store configured")

        try:
            variable_set = self._variable_sets.find(detail.variable_set_id)
        except DocumentNotFoundError as e:
            raise SourceLookupError(f"variable set {detail.variable_set_id} not found") from e

        return _compare(variable_set.variable_yaml, current_value)

    def _sync_from_git(self, source: ConfigurationSource, current_value: str) -> tuple[bool, str]:
        detail = source.source_detail
        if not isinstance(detail, GitRepoConfig):
            logger.warning("git repo config is nil")
            return NO_CHANGE
        if self._downloader is None:
            raise DownloadError(source.load_path, RuntimeError("no repository downloader configured"))

        try:
            content = self._downloader.download_file(detail.to_coordinates(), source.load_path)
        except FetchError:
            raise
        except Exception as e:
            raise DownloadError(source.load_path, e) from e

        return _compare(content.decode("utf-8", errors="replace"), current_value)


def _compare(source_value: str, current_value: str) -> tuple[bool, str]:
    if yaml_util.equal(source_value, current_value):
        return NO_CHANGE
    return True, source_value


def sync_yaml_from_source(
    source: Optional[ConfigurationSource],
    current_value: str,
    variable_sets: Optional[VariableSetStore] = None,
    downloader: Optional[RepoDownloader] = None,
) -> tuple[bool, str]:
    """Check a configuration source for drift; see ValueSourceSyncer.sync."""
    return ValueSourceSyncer(variable_sets, downloader).sync(source, current_value)
