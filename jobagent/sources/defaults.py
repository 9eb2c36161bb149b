"""
Default values of a product environment.

Looks up the product, then the render set revision it points at, and returns
the render set's default values together with its values-file source. Absent
records are an empty result, not an error: the environment may simply not
exist yet.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional

from jobagent.errors import DocumentNotFoundError, JobAgentError
from jobagent.schemas import ConfigurationSource, GitRepoConfig
from jobagent.sources.clients import CodeHostClient, ProductStore, RenderSetStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefaultValues:
    """Default values of an environment plus the source of its values file."""
    default_variable: str = ""
    yaml_data: Optional[ConfigurationSource] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"default_variable": self.default_variable}
        if self.yaml_data is not None:
            result["yaml_data"] = self.yaml_data.to_dict()
        return result


def fill_git_namespace(source: ConfigurationSource, code_hosts: CodeHostClient) -> ConfigurationSource:
    """
    Return source with its git namespace filled in from the code host.

    Sources without git detail, or that already carry a namespace, are
    returned unchanged.
    """
    detail = source.source_detail
    if not isinstance(detail, GitRepoConfig) or detail.namespace:
        return source
    code_host = code_hosts.get_code_host(detail.codehost_id)
    namespace = code_host.namespace or detail.owner
    return dataclasses.replace(source, source_detail=dataclasses.replace(detail, namespace=namespace))


def get_default_values(
    product_name: str,
    env_name: str,
    products: ProductStore,
    render_sets: RenderSetStore,
    code_hosts: Optional[CodeHostClient] = None,
) -> DefaultValues:
    """
    Resolve the default values of a product environment.

    Raises:
        JobAgentError: The product lookup failed hard, or the product has no
                       render reference
        Exception: Hard render set store failures propagate
    """
    try:
        product = products.find(product_name, env_name)
    except DocumentNotFoundError:
        return DefaultValues()
    except Exception as e:
        logger.error(f"failed to query product info, productName {product_name} envName {env_name} err {e}")
        raise JobAgentError(
            f"failed to query product info, productName {product_name} envName {env_name}"
        ) from e

    if product.render is None:
        raise JobAgentError("invalid product, nil render data")

    try:
        render_set = render_sets.find(
            product.render.name, product.render.revision, product_name, product.env_name
        )
    except DocumentNotFoundError:
        return DefaultValues()
    except Exception as e:
        logger.error(f"failed to query renderset info, name {product.render.name} err {e}")
        raise

    yaml_data = render_set.yaml_data
    if yaml_data is not None and code_hosts is not None:
        try:
            yaml_data = fill_git_namespace(yaml_data, code_hosts)
        except Exception as e:
            # the git link can always be reselected; never block on it
            logger.warning(f"failed to fill git namespace data, err: {e}")

    return DefaultValues(default_variable=render_set.default_values, yaml_data=yaml_data)
