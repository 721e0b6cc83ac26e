"""Friendly model names -> Bedrock model ids."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import yaml

from relaygate.core.errors import ModelAliasNotFound
from relaygate.util.logger import logger


# 仅收录支持 Converse API 的模型
DEFAULT_MODEL_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "nova-pro": "amazon.nova-pro-v1:0",
        "nova-lite": "amazon.nova-lite-v1:0",
        "nova-micro": "amazon.nova-micro-v1:0",
    }
)

_NAMESPACE_SEPARATOR = "."


class ModelAliasResolver:
    def __init__(self, aliases: Mapping[str, str] = DEFAULT_MODEL_ALIASES) -> None:
        self._aliases = MappingProxyType(dict(aliases))

    @property
    def aliases(self) -> Mapping[str, str]:
        return self._aliases

    def resolve(self, identifier: str) -> str:
        """Return the Bedrock model id; ids containing ``.`` pass through untouched."""

        if _NAMESPACE_SEPARATOR in identifier:
            return identifier
        resolved = self._aliases.get(identifier)
        if resolved is None:
            raise ModelAliasNotFound(identifier, self._aliases.keys())
        return resolved


def load_model_aliases(path: str = "") -> Mapping[str, str]:
    """Built-in aliases, overlaid with the ``aliases`` mapping of an optional YAML file."""

    merged = dict(DEFAULT_MODEL_ALIASES)
    if not path.strip():
        return MappingProxyType(merged)

    alias_path = Path(path)
    if not alias_path.is_file():
        logger.info("model alias file not found, using built-in aliases path=%s", alias_path)
        return MappingProxyType(merged)

    raw = yaml.safe_load(alias_path.read_text(encoding="utf-8")) or {}
    extra = raw.get("aliases", {}) if isinstance(raw, dict) else None
    if not isinstance(extra, dict):
        raise ValueError(f"model alias file must contain an 'aliases' mapping: {alias_path}")
    for alias, model_id in extra.items():
        merged[str(alias)] = str(model_id)
    logger.info("model aliases loaded path=%s count=%d", alias_path, len(merged))
    return MappingProxyType(merged)
