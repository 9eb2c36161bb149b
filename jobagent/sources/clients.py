"""
Collaborator clients for configuration sources.

Protocols keep the sync/merge layer free of transport details:
- CodeHostClient: resolve a code host by id
- RepoDownloader: download one file from a hosted repository
- RepoMaterializer: keep a local working copy of an OTHER-type repository
- VariableSetStore / ProductStore / RenderSetStore: document lookups that
  raise DocumentNotFoundError for absent records and anything else for hard
  failures

Implementations shipped here:
- ConfigCodeHostClient: code hosts declared in config.yaml
- HttpRepoDownloader: GitHub raw, GitLab files API, Gitee raw, direct links (httpx)
- GitRepoMaterializer: git clone/fetch via subprocess
- FileVariableSetStore: one YAML file per variable set
- InMemory*Store: dictionaries, for tests and embedding
"""

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Optional, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from jobagent.errors import DocumentNotFoundError, RepositoryError
from jobagent.schemas import (
    CodeHost,
    CodeHostType,
    Product,
    RenderSet,
    RepoCoordinates,
    VariableSet,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class CodeHostClient(Protocol):
    """Resolves code host records."""

    def get_code_host(self, codehost_id: int) -> CodeHost:
        """
        Raises:
            DocumentNotFoundError: If no code host has this id
        """
        ...


@runtime_checkable
class RepoDownloader(Protocol):
    """Downloads single files from hosted repositories."""

    def download_file(self, coordinates: RepoCoordinates, path: str) -> bytes:
        ...


@runtime_checkable
class RepoMaterializer(Protocol):
    """Synchronizes a local working copy of a repository."""

    def sync(self, code_host: CodeHost, coordinates: RepoCoordinates, dest: Path) -> None:
        ...


@runtime_checkable
class VariableSetStore(Protocol):
    def find(self, variable_set_id: str) -> VariableSet:
        ...


@runtime_checkable
class ProductStore(Protocol):
    def find(self, name: str, env_name: str) -> Product:
        ...


@runtime_checkable
class RenderSetStore(Protocol):
    def find(self, name: str, revision: int, product_name: str, env_name: str) -> RenderSet:
        ...


class ConfigCodeHostClient:
    """CodeHostClient backed by a static list of code hosts."""

    def __init__(self, hosts: Iterable[CodeHost]):
        self._hosts = {host.id: host for host in hosts}

    def get_code_host(self, codehost_id: int) -> CodeHost:
        if codehost_id not in self._hosts:
            raise DocumentNotFoundError(f"code host {codehost_id} not found")
        return self._hosts[codehost_id]


class HttpRepoDownloader:
    """
    RepoDownloader over HTTP.

    Coordinates with a repo_link are fetched as {repo_link}/{path}. Otherwise
    the URL is built from the code host type. Gerrit and OTHER hosts have no
    raw-file endpoint and are rejected.
    """

    def __init__(
        self,
        code_hosts: CodeHostClient,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self._code_hosts = code_hosts
        self._http = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def __enter__(self) -> "HttpRepoDownloader":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def download_file(self, coordinates: RepoCoordinates, path: str) -> bytes:
        """
        Download one file.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
            httpx.RequestError: On transport failures
            ValueError: If the host type has no raw-file endpoint
        """
        headers: dict[str, str] = {}
        params: dict[str, str] = {}
        rel = path.lstrip("/")

        if coordinates.repo_link:
            url = f"{coordinates.repo_link.rstrip('/')}/{rel}"
        else:
            host = self._code_hosts.get_code_host(coordinates.codehost_id)
            project = f"{coordinates.full_namespace}/{coordinates.repo}"
            if host.type == CodeHostType.GITHUB:
                base = host.address.rstrip("/") or "https://raw.githubusercontent.com"
                url = f"{base}/{project}/{coordinates.branch}/{rel}"
                if host.access_token:
                    headers["Authorization"] = f"token {host.access_token}"
            elif host.type == CodeHostType.GITLAB:
                url = (
                    f"{host.address.rstrip('/')}/api/v4/projects/{quote(project, safe='')}"
                    f"/repository/files/{quote(rel, safe='')}/raw"
                )
                params["ref"] = coordinates.branch
                if host.access_token:
                    headers["PRIVATE-TOKEN"] = host.access_token
            elif host.type == CodeHostType.GITEE:
                base = host.address.rstrip("/") or "https://gitee.com"
                url = f"{base}/api/v5/repos/{project}/raw/{quote(rel)}"
                params["ref"] = coordinates.branch
                if host.access_token:
                    params["access_token"] = host.access_token
            else:
                raise ValueError(f"file download is not supported for code host type {host.type.value}")

        logger.debug(f"Downloading {rel} from {url}")
        response = self._http.get(url, headers=headers, params=params)
        response.raise_for_status()
        return response.content


class GitRepoMaterializer:
    """Clones or fast-forwards a local working copy with the git CLI."""

    def __init__(self, git: str = "git", remote: str = "origin"):
        self._git = git
        self._remote = remote

    def _run(self, args: list[str]) -> None:
        try:
            subprocess.run([self._git, *args], check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            raise RepositoryError(f"git {args[0]} failed: {e.stderr.strip()}") from e
        except OSError as e:
            raise RepositoryError(f"failed to run git: {e}") from e

    def sync(self, code_host: CodeHost, coordinates: RepoCoordinates, dest: Path) -> None:
        """
        Bring dest to the tip of the configured branch.

        Raises:
            RepositoryError: If any git command fails
        """
        url = f"{code_host.address.rstrip('/')}/{coordinates.full_namespace}/{coordinates.repo}.git"
        if (dest / ".git").exists():
            logger.info(f"Fetching {coordinates.branch} into {dest}")
            self._run(["-C", str(dest), "fetch", self._remote, coordinates.branch])
            self._run(["-C", str(dest), "reset", "--hard", "FETCH_HEAD"])
        else:
            logger.info(f"Cloning {url} ({coordinates.branch}) into {dest}")
            dest.parent.mkdir(parents=True, exist_ok=True)
            self._run([
                "clone", "--origin", self._remote, "--branch", coordinates.branch,
                "--single-branch", url, str(dest),
            ])


class FileVariableSetStore:
    """
    VariableSetStore reading {directory}/{variable_set_id}.yaml.

    The file content is the variable set's YAML document.
    """

    def __init__(self, directory: Path | str):
        self._directory = Path(directory)

    def find(self, variable_set_id: str) -> VariableSet:
        path = self._directory / f"{variable_set_id}.yaml"
        if not path.exists():
            raise DocumentNotFoundError(f"variable set {variable_set_id} not found in {self._directory}")
        return VariableSet(id=variable_set_id, name=variable_set_id, variable_yaml=path.read_text())


class InMemoryVariableSetStore:
    def __init__(self, variable_sets: Iterable[VariableSet] = ()):
        self._sets = {vs.id: vs for vs in variable_sets}

    def add(self, variable_set: VariableSet) -> None:
        self._sets[variable_set.id] = variable_set

    def find(self, variable_set_id: str) -> VariableSet:
        if variable_set_id not in self._sets:
            raise DocumentNotFoundError(f"variable set {variable_set_id} not found")
        return self._sets[variable_set_id]


class InMemoryProductStore:
    def __init__(self, products: Iterable[Product] = ()):
        self._products = {(p.name, p.env_name): p for p in products}

    def find(self, name: str, env_name: str) -> Product:
        key = (name, env_name)
        if key not in self._products:
            raise DocumentNotFoundError(f"product {name}/{env_name} not found")
        return self._products[key]


class InMemoryRenderSetStore:
    def __init__(self, render_sets: Iterable[RenderSet] = ()):
        self._render_sets = {(rs.name, rs.revision): rs for rs in render_sets}

    def find(self, name: str, revision: int, product_name: str, env_name: str) -> RenderSet:
        key = (name, revision)
        if key not in self._render_sets:
            raise DocumentNotFoundError(f"render set {name}@{revision} not found")
        return self._render_sets[key]
