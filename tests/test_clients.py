"""Tests for collaborator client implementations."""

import subprocess
from unittest.mock import patch

import httpx
import pytest

from jobagent.errors import DocumentNotFoundError, RepositoryError
from jobagent.schemas import CodeHost, CodeHostType, RepoCoordinates, VariableSet
from jobagent.sources import (
    ConfigCodeHostClient,
    FileVariableSetStore,
    GitRepoMaterializer,
    HttpRepoDownloader,
    InMemoryVariableSetStore,
    RepoDownloader,
    VariableSetStore,
)


def _downloader(code_hosts, handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpRepoDownloader(code_hosts, client=client)


class TestConfigCodeHostClient:
    def test_lookup(self, code_hosts, gitlab_host):
        assert code_hosts.get_code_host(1) is gitlab_host

    def test_not_found(self, code_hosts):
        with pytest.raises(DocumentNotFoundError):
            code_hosts.get_code_host(42)


class TestHttpRepoDownloader:
    def test_satisfies_protocol(self, code_hosts):
        with _downloader(code_hosts, lambda request: httpx.Response(200)) as downloader:
            assert isinstance(downloader, RepoDownloader)

    def test_gitlab_files_api(self, code_hosts, coordinates):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, content=b"a: 1\n")

        with _downloader(code_hosts, handler) as downloader:
            content = downloader.download_file(coordinates, "deploy/values.yaml")

        request = seen["request"]
        assert content == b"a: 1\n"
        assert request.url.host == "gitlab.example.com"
        assert request.url.raw_path.startswith(
            b"/api/v4/projects/team%2Fsvc/repository/files/deploy%2Fvalues.yaml/raw"
        )
        assert request.url.params["ref"] == "main"
        assert request.headers["PRIVATE-TOKEN"] == "glpat-xyz"

    def test_github_raw(self, coordinates):
        hosts = ConfigCodeHostClient([CodeHost(id=1, type=CodeHostType.GITHUB, access_token="ghp")])
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, content=b"x: y\n")

        with _downloader(hosts, handler) as downloader:
            downloader.download_file(coordinates, "/values.yaml")

        assert seen["url"] == "https://raw.githubusercontent.com/team/svc/main/values.yaml"
        assert seen["auth"] == "token ghp"

    def test_repo_link_bypasses_host(self, code_hosts):
        coords = RepoCoordinates(codehost_id=999, repo_link="https://files.example.com/svc/")
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            return httpx.Response(200, content=b"k: v\n")

        with _downloader(code_hosts, handler) as downloader:
            assert downloader.download_file(coords, "values.yaml") == b"k: v\n"
        assert seen["url"] == "https://files.example.com/svc/values.yaml"

    def test_http_error_raised(self, code_hosts, coordinates):
        with _downloader(code_hosts, lambda request: httpx.Response(404)) as downloader:
            with pytest.raises(httpx.HTTPStatusError):
                downloader.download_file(coordinates, "missing.yaml")

    def test_unsupported_host_type(self, code_hosts):
        coords = RepoCoordinates(codehost_id=2, repo="svc")
        with _downloader(code_hosts, lambda request: httpx.Response(200)) as downloader:
            with pytest.raises(ValueError, match="not supported"):
                downloader.download_file(coords, "values.yaml")


class TestGitRepoMaterializer:
    def test_clone_when_absent(self, local_host, tmp_path):
        coords = RepoCoordinates(codehost_id=2, owner="team", repo="svc", branch="main")
        dest = tmp_path / "storage" / "svc"

        with patch("jobagent.sources.clients.subprocess.run") as run:
            GitRepoMaterializer().sync(local_host, coords, dest)

        args = run.call_args.args[0]
        assert args[:2] == ["git", "clone"]
        assert "https://git.internal/team/svc.git" in args
        assert args[-1] == str(dest)

    def test_fetch_when_present(self, local_host, tmp_path):
        coords = RepoCoordinates(codehost_id=2, owner="team", repo="svc", branch="main")
        dest = tmp_path / "svc"
        (dest / ".git").mkdir(parents=True)

        with patch("jobagent.sources.clients.subprocess.run") as run:
            GitRepoMaterializer().sync(local_host, coords, dest)

        commands = [call.args[0][3] for call in run.call_args_list]
        assert commands == ["fetch", "reset"]

    def test_git_failure(self, local_host, tmp_path):
        coords = RepoCoordinates(codehost_id=2, owner="team", repo="svc", branch="main")
        error = subprocess.CalledProcessError(128, ["git"], stderr="fatal: not found\n")

        with patch("jobagent.sources.clients.subprocess.run", side_effect=error):
            with pytest.raises(RepositoryError, match="fatal: not found"):
                GitRepoMaterializer().sync(local_host, coords, tmp_path / "svc")


class TestVariableSetStores:
    def test_file_store(self, tmp_path):
        (tmp_path / "vs-1.yaml").write_text("a: 1\n")
        store = FileVariableSetStore(tmp_path)

        assert isinstance(store, VariableSetStore)
        assert store.find("vs-1").variable_yaml == "a: 1\n"
        with pytest.raises(DocumentNotFoundError):
            store.find("vs-2")

    def test_in_memory_store(self):
        store = InMemoryVariableSetStore()
        store.add(VariableSet(id="x", variable_yaml="b: 2\n"))
        assert store.find("x").variable_yaml == "b: 2\n"
        with pytest.raises(DocumentNotFoundError):
            store.find("y")
