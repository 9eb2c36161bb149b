"""
ConcurrentFetchMerger - fetch values fragments in parallel and merge them.

Algorithm:
1. Resolve the code host once. For OTHER-type (object-storage-backed)
   repositories, synchronize the local working copy once, then read every
   fragment from {storage_path}/{repo}/{path} instead of downloading it
2. Start one fetch unit per path (one worker per path unless max_workers
   bounds the pool). Each unit stores its FetchResult under its own index;
   failures also go to a lock-protected error list
3. Wait for every unit, even after failures; nothing is cancelled
4. Any failure: raise AggregatedFetchError naming every failed path, in
   caller order. No partial merge is ever produced
5. Otherwise merge the contents in caller order (later fragments win)

The merged result depends only on the order of paths, never on which unit
finishes first.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional, Sequence

from jobagent import yaml_util
from jobagent.errors import (
    AggregatedFetchError,
    DownloadError,
    FetchError,
    MergeError,
    ReadError,
    RepositoryError,
)
from jobagent.schemas import CodeHost, CodeHostType, FetchRequest, FetchResult, RepoCoordinates
from jobagent.sources.clients import CodeHostClient, RepoDownloader, RepoMaterializer

logger = logging.getLogger(__name__)


class ConcurrentFetchMerger:
    """
    Fan-out fetch plus ordered merge of values files.

    Usage:
        merger = ConcurrentFetchMerger(code_hosts, downloader, materializer,
                                       storage_path=config.storage_root)
        merged = merger.merge(["values.yaml", "values-prod.yaml"], coordinates)
    """

    def __init__(
        self,
        code_hosts: CodeHostClient,
        downloader: RepoDownloader,
        materializer: Optional[RepoMaterializer] = None,
        storage_path: Optional[Path] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            code_hosts: Resolves the repository's code host
            downloader: Fetches files from hosted repositories
            materializer: Syncs local copies of OTHER-type repositories
            storage_path: Root of local repository copies
            max_workers: Optional pool bound; default is one worker per path
        """
        self._code_hosts = code_hosts
        self._downloader = downloader
        self._materializer = materializer
        self._storage_path = Path(storage_path) if storage_path is not None else None
        self._max_workers = max_workers

    def merge(self, paths: Sequence[str], coordinates: RepoCoordinates) -> str:
        """
        Fetch every path and merge the results in caller order.

        Raises:
            RepositoryError: Code host lookup or local copy sync failed
            AggregatedFetchError: One or more fragments could not be fetched
            MergeError: The fragments could not be merged
        """
        try:
            code_host = self._code_hosts.get_code_host(coordinates.codehost_id)
        except Exception as e:
            logger.error(f"Failed to resolve code host {coordinates.codehost_id}: {e}")
            raise RepositoryError(f"failed to resolve code host {coordinates.codehost_id}: {e}") from e

        local = code_host.type == CodeHostType.OTHER
        local_base: Optional[Path] = None
        if local:
            local_base = self._prepare_local_copy(code_host, coordinates)

        requests = [
            FetchRequest(index=i, path=path, coordinates=coordinates)
            for i, path in enumerate(paths)
        ]
        results, failures = self._fetch_all(requests, local_base)

        if failures:
            failures.sort(key=lambda item: item[0])
            error = AggregatedFetchError([err for _, err in failures])
            logger.error(f"Failed to fetch {len(failures)}/{len(requests)} values file(s): {error.paths}")
            raise error

        contents = [results[i].content for i in range(len(requests))]
        try:
            return yaml_util.merge(contents)
        except MergeError as e:
            raise MergeError(f"failed to merge files: {e}") from e

    def _prepare_local_copy(self, code_host: CodeHost, coordinates: RepoCoordinates) -> Path:
        if self._storage_path is None:
            raise RepositoryError("storage_path is required for local repositories")
        base = self._storage_path / coordinates.repo
        if self._materializer is not None:
            try:
                self._materializer.sync(code_host, coordinates, base)
            except Exception as e:
                logger.error(f"Failed to sync local copy of {coordinates.repo}: {e}")
                if isinstance(e, RepositoryError):
                    raise
                raise RepositoryError(f"failed to sync local copy of {coordinates.repo}: {e}") from e
        return base

    def _fetch_all(
        self,
        requests: list[FetchRequest],
        local_base: Optional[Path],
    ) -> tuple[dict[int, FetchResult], list[tuple[int, FetchError]]]:
        results: dict[int, FetchResult] = {}
        errors: list[tuple[int, FetchError]] = []
        errors_lock = threading.Lock()

        def unit(request: FetchRequest) -> None:
            result = self._fetch_one(request, local_base)
            # Each unit writes only its own index.
            results[request.index] = result
            if not result.ok:
                with errors_lock:
                    errors.append((request.index, result.error))

        if not requests:
            return results, errors

        workers = self._max_workers or len(requests)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="values-fetch") as pool:
            futures = [pool.submit(unit, request) for request in requests]
        # Pool exit is the barrier: every unit has finished here.
        for future in futures:
            future.result()

        logger.debug(f"Fetched {len(requests)} values file(s), {len(errors)} failed")
        return results, errors

    def _fetch_one(self, request: FetchRequest, local_base: Optional[Path]) -> FetchResult:
        if local_base is not None:
            file_path = local_base / request.path
            try:
                content = file_path.read_bytes()
            except OSError as e:
                return FetchResult(request.index, request.path, error=ReadError(str(file_path), e))
            return FetchResult(request.index, request.path, content=content)

        try:
            content = self._downloader.download_file(request.coordinates, request.path)
        except FetchError as e:
            return FetchResult(request.index, request.path, error=e)
        except Exception as e:
            return FetchResult(request.index, request.path, error=DownloadError(request.path, e))
        return FetchResult(request.index, request.path, content=content)


def get_merged_yaml_content(
    paths: Sequence[str],
    coordinates: RepoCoordinates,
    code_hosts: CodeHostClient,
    downloader: RepoDownloader,
    materializer: Optional[RepoMaterializer] = None,
    storage_path: Optional[Path] = None,
) -> str:
    """Fetch and merge values files; see ConcurrentFetchMerger.merge."""
    merger = ConcurrentFetchMerger(
        code_hosts=code_hosts,
        downloader=downloader,
        materializer=materializer,
        storage_path=storage_path,
    )
    return merger.merge(paths, coordinates)
