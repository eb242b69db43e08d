from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import metadata
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

PLUGIN_ENTRY_POINT_GROUP = "pmadmin.plugins"


@dataclass(frozen=True)
class PluginInfo:
    name: str
    module: str
    version: Optional[str] = None
    description: Optional[str] = None
    error: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self.error is None


def _entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=PLUGIN_ENTRY_POINT_GROUP)


def _describe(entry_point: metadata.EntryPoint) -> PluginInfo:
    version = entry_point.dist.version if entry_point.dist else None
    try:
        plugin = entry_point.load()
    except Exception as exc:  # noqa: BLE001 - any import error of a third-party plugin
        logger.warning("Failed to load plugin %s: %s", entry_point.name, exc)
        return PluginInfo(
            name=entry_point.name,
            module=entry_point.value,
            version=version,
            error=str(exc),
        )

    description = getattr(plugin, "description", None)
    doc = (plugin.__doc__ or "").strip()
    if description is None and doc:
        description = doc.splitlines()[0]
    return PluginInfo(
        name=getattr(plugin, "name", None) or entry_point.name,
        module=entry_point.value,
        version=getattr(plugin, "version", None) or version,
        description=description,
    )


def discover_plugins() -> list[PluginInfo]:
    """List plugins registered under the ``pmadmin.plugins`` entry point group."""
    plugins = [_describe(entry_point) for entry_point in _entry_points()]
    return sorted(plugins, key=lambda plugin: plugin.name.lower())


__all__ = ["PLUGIN_ENTRY_POINT_GROUP", "PluginInfo", "discover_plugins"]
