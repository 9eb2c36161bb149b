import io
import threading

import pytest

from jobagent.schemas import CodeHost, CodeHostType, RepoCoordinates, StepContext, StepType
from jobagent.sources import ConfigCodeHostClient
from jobagent.steps import StepExecutor, StepExecutorRegistry


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    # Never read the developer's real config.yaml
    home = tmp_path / "jobagent-home"
    monkeypatch.setenv("JOBAGENT_HOME", str(home))
    return home


@pytest.fixture
def workspace(tmp_path):
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def step_context(workspace, sink):
    return StepContext(workspace=workspace, sink=sink)


class RecordingStep(StepExecutor):
    """Executor whose behaviour is driven by its spec.

    spec keys:
        id: appended to the calls list when run
        fail: exception instance to raise
    """

    def __init__(self, spec, context, calls):
        super().__init__(spec, context)
        self.calls = calls

    def run(self) -> None:
        self.calls.append(self.spec.get("id"))
        error = self.spec.get("fail")
        if error is not None:
            raise error


@pytest.fixture
def recording_registry():
    """Registry mapping every step type to RecordingStep; returns (registry, calls)."""
    calls = []

    def factory(spec, context):
        return RecordingStep(spec, context, calls)

    registry = StepExecutorRegistry()
    for step_type in StepType:
        registry.register(step_type, factory)
    return registry, calls


@pytest.fixture
def gitlab_host():
    return CodeHost(id=1, type=CodeHostType.GITLAB, address="https://gitlab.example.com",
                    namespace="platform", access_token="glpat-xyz")


@pytest.fixture
def local_host():
    return CodeHost(id=2, type=CodeHostType.OTHER, address="https://git.internal")


@pytest.fixture
def code_hosts(gitlab_host, local_host):
    return ConfigCodeHostClient([gitlab_host, local_host])


@pytest.fixture
def coordinates():
    return RepoCoordinates(codehost_id=1, owner="team", repo="svc", branch="main")


class FakeDownloader:
    """RepoDownloader serving files from a dict; missing paths raise."""

    def __init__(self, files, delays=None):
        self.files = dict(files)
        self.delays = dict(delays or {})
        self.requested = []
        self._lock = threading.Lock()

    def download_file(self, coordinates, path):
        with self._lock:
            self.requested.append(path)
        delay = self.delays.get(path)
        if delay:
            threading.Event().wait(delay)
        if path not in self.files:
            raise FileNotFoundError(f"404 {path}")
        content = self.files[path]
        return content.encode() if isinstance(content, str) else content


@pytest.fixture
def fake_downloader_cls():
    return FakeDownloader
