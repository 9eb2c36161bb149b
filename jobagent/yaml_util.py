"""
YAML primitives for values documents.

merge(): later fragments override earlier ones on key conflict; mappings are
merged recursively, lists and scalars are replaced wholesale.
equal(): structural equality of two documents after parsing, so formatting,
whitespace and key order never count as a difference.
"""

import copy
from typing import Any, Sequence, Union

import yaml

from jobagent.errors import CompareError, MergeError

Fragment = Union[str, bytes]


def _load(content: Fragment) -> Any:
    if isinstance(content, bytes):
        content = content.decode("utf-8")
    return yaml.safe_load(content)


def _deep_merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def merge(contents: Sequence[Fragment]) -> str:
    """
    Merge YAML fragments in order.

    Args:
        contents: Fragments, earliest first; empty fragments count as {}

    Returns:
        Merged YAML text ("" when the merged document is empty)

    Raises:
        MergeError: If a fragment is not valid YAML or not a mapping
    """
    merged: dict = {}
    for i, content in enumerate(contents):
        try:
            doc = _load(content)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise MergeError(f"failed to parse values fragment {i}: {e}") from e
        if doc is None:
            continue
        if not isinstance(doc, dict):
            raise MergeError(
                f"values fragment {i} must be a mapping, got {type(doc).__name__}"
            )
        _deep_merge(merged, doc)

    if not merged:
        return ""
    return yaml.safe_dump(merged, sort_keys=False, default_flow_style=False, allow_unicode=True)


def equal(a: Fragment, b: Fragment) -> bool:
    """
    Compare two YAML documents structurally.

    Raises:
        CompareError: If either document cannot be parsed
    """
    try:
        return _load(a) == _load(b)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise CompareError(f"failed to compare yaml documents: {e}") from e
