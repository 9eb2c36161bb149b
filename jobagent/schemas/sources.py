"""
Configuration source schemas - where values files come from.

A ConfigurationSource (a "custom YAML") declares the origin of a stored
values document: a git repository file or a variable set. RepoCoordinates
address a repository on a code host.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from .step import parse_flag


class SourceOrigin(str, Enum):
    """Origin kind of a configuration source."""
    GIT_REPO = "gitRepo"
    VARIABLE_SET = "variableSet"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "SourceOrigin":
        """
        Parse an origin.

        An empty or absent value means the default git origin. Any other
        unrecognised value (e.g. "customEdit") is OTHER, which never syncs.
        """
        if not value:
            return cls.GIT_REPO
        for origin in cls:
            if origin.value == value:
                return origin
        return cls.OTHER


class CodeHostType(str, Enum):
    """Kind of code host. OTHER is a local, object-storage-backed repository."""
    GITHUB = "github"
    GITLAB = "gitlab"
    GERRIT = "gerrit"
    GITEE = "gitee"
    OTHER = "other"


@dataclass(frozen=True)
class RepoCoordinates:
    """
    Address of a repository on a code host.

    Attributes:
        codehost_id: Identifier of the configured code host
        owner: Repository owner (user or group)
        repo: Repository name
        branch: Branch to read from
        namespace: Full namespace (e.g. nested GitLab group path), defaults to owner
        repo_link: Direct link to the repository, bypassing host-specific APIs
    """
    codehost_id: int
    owner: str = ""
    repo: str = ""
    branch: str = ""
    namespace: str = ""
    repo_link: str = ""

    @property
    def full_namespace(self) -> str:
        return self.namespace or self.owner

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoCoordinates":
        """Deserialize from dictionary."""
        return cls(
            codehost_id=int(data.get("codehost_id", data.get("codehostID", 0))),
            owner=data.get("owner", ""),
            repo=data.get("repo", ""),
            branch=data.get("branch", ""),
            namespace=data.get("namespace", ""),
            repo_link=data.get("repo_link", data.get("repoLink", "")),
        )


@dataclass(frozen=True)
class GitRepoConfig:
    """Git repository detail of a configuration source."""
    codehost_id: int
    owner: str = ""
    repo: str = ""
    branch: str = ""
    namespace: str = ""
    repo_link: str = ""

    def to_coordinates(self) -> RepoCoordinates:
        return RepoCoordinates(
            codehost_id=self.codehost_id,
            owner=self.owner,
            repo=self.repo,
            branch=self.branch,
            namespace=self.namespace,
            repo_link=self.repo_link,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "codehost_id": self.codehost_id,
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "namespace": self.namespace,
            "repo_link": self.repo_link,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GitRepoConfig":
        coords = RepoCoordinates.from_dict(data)
        return cls(
            codehost_id=coords.codehost_id,
            owner=coords.owner,
            repo=coords.repo,
            branch=coords.branch,
            namespace=coords.namespace,
            repo_link=coords.repo_link,
        )


@dataclass(frozen=True)
class VariableSetRef:
    """Reference to an independently stored variable set."""
    variable_set_id: str


SourceDetail = Union[GitRepoConfig, VariableSetRef]


@dataclass(frozen=True)
class ConfigurationSource:
    """
    Declared origin of a stored values document.

    Attributes:
        origin: gitRepo (default), variableSet or other
        auto_sync: Opt-in flag for drift detection
        source_detail: GitRepoConfig for git origins, VariableSetRef for
                       variable sets, None while the link is unconfigured
        load_path: File path inside the repository (git origins)
    """
    origin: SourceOrigin = SourceOrigin.GIT_REPO
    auto_sync: bool = False
    source_detail: Optional[SourceDetail] = None
    load_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON/YAML output."""
        result: dict[str, Any] = {
            "source": self.origin.value,
            "auto_sync": self.auto_sync,
            "load_path": self.load_path,
        }
        if isinstance(self.source_detail, GitRepoConfig):
            result["git_repo_config"] = self.source_detail.to_dict()
        elif isinstance(self.source_detail, VariableSetRef):
            result["source_id"] = self.source_detail.variable_set_id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigurationSource":
        """
        Deserialize from dictionary.

        Git detail may appear as "git_repo_config" at the top level or nested
        under "source_detail"; variable sets are referenced by "source_id".
        """
        origin = SourceOrigin.from_string(data.get("source"))
        detail_data = data.get("source_detail") or {}
        load_path = data.get("load_path") or detail_data.get("load_path", "")

        detail: Optional[SourceDetail] = None
        if origin == SourceOrigin.VARIABLE_SET:
            source_id = data.get("source_id") or detail_data.get("source_id")
            if source_id:
                detail = VariableSetRef(variable_set_id=str(source_id))
        elif origin == SourceOrigin.GIT_REPO:
            git_data = data.get("git_repo_config") or detail_data.get("git_repo_config")
            if git_data:
                detail = GitRepoConfig.from_dict(git_data)

        return cls(
            origin=origin,
            auto_sync=parse_flag(data.get("auto_sync", data.get("autoSync", False))),
            source_detail=detail,
            load_path=load_path,
        )


@dataclass(frozen=True)
class CodeHost:
    """
    A configured code host.

    Attributes:
        id: Code host identifier referenced by RepoCoordinates.codehost_id
        type: Host kind
        address: Base URL of the host (or clone base for OTHER hosts)
        namespace: Default namespace used when a source does not carry one
        access_token: Optional token sent with download requests
    """
    id: int
    type: CodeHostType
    address: str = ""
    namespace: str = ""
    access_token: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeHost":
        return cls(
            id=int(data["id"]),
            type=CodeHostType(data.get("type", CodeHostType.OTHER.value)),
            address=data.get("address", ""),
            namespace=data.get("namespace", ""),
            access_token=data.get("access_token", ""),
        )
