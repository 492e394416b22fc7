"""Name-to-class registries for uploadhub plugins.

A plugin class carries a pydantic `config_cls` and a `create` classmethod.
The `@plugin` decorator files it under a `PluginType`; configuration is
always validated against `config_cls` before `create` sees it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, cast

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class PluginType(str, Enum):
    UPLOADER = "uploader"


ConfigT = TypeVar("ConfigT", bound=BaseModel)
PluginInterfaceT = TypeVar("PluginInterfaceT", bound=object, covariant=True)


class PluginProtocol(Protocol[ConfigT, PluginInterfaceT]):
    """Shape every registered plugin class must have."""

    config_cls: type[ConfigT]

    @classmethod
    def create(cls, config: ConfigT) -> PluginInterfaceT: ...


PluginClass = type[PluginProtocol[ConfigT, PluginInterfaceT]]


class PluginRegistry(Generic[ConfigT, PluginInterfaceT]):
    """Plugins of one `PluginType`, keyed by backend name."""

    def __init__(self, plugin_type: PluginType) -> None:
        self.plugin_type = plugin_type
        self._by_name: dict[str, PluginClass[ConfigT, PluginInterfaceT]] = {}

    @property
    def names(self) -> list[str]:
        return sorted(self._by_name)

    def register(self, name: str, plugin_cls: PluginClass[ConfigT, PluginInterfaceT]) -> None:
        kind = self.plugin_type.value
        if name in self._by_name:
            raise ValueError(f"{kind} plugin '{name}' is already registered.")
        self._by_name[name] = plugin_cls
        logger.debug("Registered %s plugin: %s", kind, name)

    def lookup(self, name: str) -> PluginClass[ConfigT, PluginInterfaceT]:
        try:
            return self._by_name[name]
        except KeyError:
            kind = self.plugin_type.value
            raise ValueError(
                f"Unknown {kind} plugin: '{name}'. Available: {', '.join(self.names)}"
            ) from None

    def validate(self, name: str, settings: dict[str, Any]) -> ConfigT:
        """Parse `settings` into the plugin's config model.

        Raises:
            ValueError: `name` was never registered
            ValidationError: `settings` do not fit `config_cls`
        """
        return self.lookup(name).config_cls.model_validate(settings)

    def load(self, name: str, settings: dict[str, Any]) -> PluginInterfaceT:
        """Validate `settings` and build the plugin from them."""
        return self.lookup(name).create(self.validate(name, settings))


_REGISTRIES: dict[PluginType, PluginRegistry[Any, Any]] = {
    plugin_type: PluginRegistry(plugin_type) for plugin_type in PluginType
}


def plugin(plugin_type: PluginType, name: str) -> Callable[[type], type]:
    """Class decorator filing the class under `name` in the `plugin_type` registry.

    Example:
        @plugin(PluginType.UPLOADER, "bundler")
        class BundlerUploader: ...
    """

    def register_class(cls: type) -> type:
        for attribute, wording in (("config_cls", "'config_cls'"), ("create", "'create' classmethod")):
            if not hasattr(cls, attribute):
                raise TypeError(f"Plugin class {cls.__name__} must define {wording}")

        _REGISTRIES[plugin_type].register(name, cls)
        tagged = cast(Any, cls)
        tagged.__plugin_name__ = name
        tagged.__plugin_type__ = plugin_type
        return cls

    return register_class


def _settings_of(config: dict[str, Any] | BaseModel) -> dict[str, Any]:
    return config.model_dump() if isinstance(config, BaseModel) else config


def load_plugin(plugin_type: PluginType, name: str, config: dict[str, Any] | BaseModel) -> Any:
    """Instantiate the named plugin.

    `config` may be a plain mapping or a model that was already validated;
    either way it goes through the plugin's own `config_cls` again.
    """
    return _REGISTRIES[plugin_type].load(name, _settings_of(config))


def validate_plugin(
    plugin_type: PluginType, name: str, config: dict[str, Any] | BaseModel
) -> BaseModel:
    return _REGISTRIES[plugin_type].validate(name, _settings_of(config))


def get_plugin_names(plugin_type: PluginType) -> list[str]:
    return _REGISTRIES[plugin_type].names
