"""Tests for product default values resolution."""

from unittest.mock import MagicMock

import pytest

from jobagent.errors import DocumentNotFoundError, JobAgentError
from jobagent.schemas import (
    ConfigurationSource,
    GitRepoConfig,
    Product,
    RenderRef,
    RenderSet,
    SourceOrigin,
)
from jobagent.sources import (
    DefaultValues,
    InMemoryProductStore,
    InMemoryRenderSetStore,
    fill_git_namespace,
    get_default_values,
)


@pytest.fixture
def git_source():
    return ConfigurationSource(
        origin=SourceOrigin.GIT_REPO,
        auto_sync=True,
        source_detail=GitRepoConfig(codehost_id=1, owner="team", repo="svc", branch="main"),
        load_path="values.yaml",
    )


@pytest.fixture
def products():
    return InMemoryProductStore([
        Product(name="shop", env_name="prod", render=RenderRef(name="shop-prod", revision=3)),
        Product(name="shop", env_name="broken"),
    ])


@pytest.fixture
def render_sets(git_source):
    return InMemoryRenderSetStore([
        RenderSet(name="shop-prod", revision=3, default_values="replicas: 2\n", yaml_data=git_source),
    ])


class TestGetDefaultValues:
    def test_resolves_defaults(self, products, render_sets, code_hosts):
        result = get_default_values("shop", "prod", products, render_sets, code_hosts)

        assert result.default_variable == "replicas: 2\n"
        assert result.yaml_data.source_detail.namespace == "platform"
        assert result.yaml_data.load_path == "values.yaml"

    def test_without_code_hosts_namespace_untouched(self, products, render_sets):
        result = get_default_values("shop", "prod", products, render_sets)
        assert result.yaml_data.source_detail.namespace == ""

    def test_missing_product_is_empty(self, products, render_sets):
        assert get_default_values("nope", "prod", products, render_sets) == DefaultValues()

    def test_product_store_failure(self, render_sets):
        store = MagicMock()
        store.find.side_effect = ConnectionError("db down")
        with pytest.raises(JobAgentError, match="failed to query product info"):
            get_default_values("shop", "prod", store, render_sets)

    def test_product_without_render(self, products, render_sets):
        with pytest.raises(JobAgentError, match="nil render data"):
            get_default_values("shop", "broken", products, render_sets)

    def test_missing_render_set_is_empty(self, products):
        empty = InMemoryRenderSetStore()
        assert get_default_values("shop", "prod", products, empty) == DefaultValues()

    def test_render_set_store_failure_propagates(self, products):
        store = MagicMock()
        store.find.side_effect = TimeoutError("slow")
        with pytest.raises(TimeoutError):
            get_default_values("shop", "prod", products, store)

    def test_namespace_failure_only_warns(self, products, render_sets, caplog):
        code_hosts = MagicMock()
        code_hosts.get_code_host.side_effect = DocumentNotFoundError("code host 1 not found")

        result = get_default_values("shop", "prod", products, render_sets, code_hosts)

        assert result.default_variable == "replicas: 2\n"
        assert result.yaml_data.source_detail.namespace == ""
        assert "failed to fill git namespace" in caplog.text

    def test_to_dict(self, products, render_sets):
        data = get_default_values("shop", "prod", products, render_sets).to_dict()
        assert data["default_variable"] == "replicas: 2\n"
        assert data["yaml_data"]["source"] == "gitRepo"
        assert DefaultValues().to_dict() == {"default_variable": ""}


class TestFillGitNamespace:
    def test_existing_namespace_kept(self, git_source, code_hosts):
        source = ConfigurationSource(
            origin=SourceOrigin.GIT_REPO,
            source_detail=GitRepoConfig(codehost_id=1, owner="team", namespace="custom"),
        )
        assert fill_git_namespace(source, code_hosts) is source

    def test_falls_back_to_owner(self, code_hosts):
        # code host 2 has no namespace configured
        source = ConfigurationSource(source_detail=GitRepoConfig(codehost_id=2, owner="team"))
        assert fill_git_namespace(source, code_hosts).source_detail.namespace == "team"

    def test_non_git_source_unchanged(self, code_hosts):
        source = ConfigurationSource(origin=SourceOrigin.VARIABLE_SET)
        assert fill_git_namespace(source, code_hosts) is source
