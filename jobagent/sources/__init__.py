"""
Configuration sources: fetching, merging and drift detection of values files.

Usage:
    from jobagent.sources import ConcurrentFetchMerger, ValueSourceSyncer

    merged = ConcurrentFetchMerger(code_hosts, downloader).merge(paths, coordinates)
    changed, value = ValueSourceSyncer(variable_sets, downloader).sync(source, current)
"""

from jobagent.sources.clients import (
    CodeHostClient,
    ConfigCodeHostClient,
    FileVariableSetStore,
    GitRepoMaterializer,
    HttpRepoDownloader,
    InMemoryProductStore,
    InMemoryRenderSetStore,
    InMemoryVariableSetStore,
    ProductStore,
    RenderSetStore,
    RepoDownloader,
    RepoMaterializer,
    VariableSetStore,
)
from jobagent.sources.merger import ConcurrentFetchMerger, get_merged_yaml_content
from jobagent.sources.syncer import ValueSourceSyncer, sync_yaml_from_source
from jobagent.sources.defaults import DefaultValues, fill_git_namespace, get_default_values

__all__ = [
    # Collaborators
    "CodeHostClient",
    "RepoDownloader",
    "RepoMaterializer",
    "VariableSetStore",
    "ProductStore",
    "RenderSetStore",
    "ConfigCodeHostClient",
    "HttpRepoDownloader",
    "GitRepoMaterializer",
    "FileVariableSetStore",
    "InMemoryVariableSetStore",
    "InMemoryProductStore",
    "InMemoryRenderSetStore",
    # Merge / sync
    "ConcurrentFetchMerger",
    "get_merged_yaml_content",
    "ValueSourceSyncer",
    "sync_yaml_from_source",
    # Defaults
    "DefaultValues",
    "fill_git_namespace",
    "get_default_values",
]
