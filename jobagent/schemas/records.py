"""
Collaborator records read from external document stores.

These are owned by the configuration-management layer; jobagent only reads them.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .sources import ConfigurationSource


@dataclass(frozen=True)
class VariableSet:
    """A named, independently stored values document."""
    id: str
    name: str = ""
    variable_yaml: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VariableSet":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            variable_yaml=data.get("variable_yaml", ""),
        )


@dataclass(frozen=True)
class RenderRef:
    """Pointer from a product to the render set revision it uses."""
    name: str
    revision: int = 0


@dataclass(frozen=True)
class Product:
    """A product environment."""
    name: str
    env_name: str
    render: Optional[RenderRef] = None


@dataclass(frozen=True)
class RenderSet:
    """Rendering inputs of a product environment."""
    name: str
    revision: int = 0
    default_values: str = ""
    yaml_data: Optional[ConfigurationSource] = None
