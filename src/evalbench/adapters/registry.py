"""Adapter registry for resolving provider names to adapter instances.

Supports both builtin provider names (e.g., "openai", "anthropic")
and custom dotted-path imports (e.g., "my.module.MyAdapter"). Builtin
providers require credentials: an explicit key, a settings lookup, or
the provider's environment variable.
"""

from __future__ import annotations

import importlib
import os
from collections.abc import Callable
from typing import TYPE_CHECKING

from evalbench.adapters.base import BaseAdapter
from evalbench.errors import AdapterLoadError, MissingCredentialsError, UnknownProviderError

if TYPE_CHECKING:
    from evalbench.models.config import AgentConfig, JudgeConfig

# Mapping of builtin provider short names to their fully-qualified class paths.
# These adapters are lazily imported -- the provider SDK must be installed.
BUILTIN_ADAPTERS: dict[str, str] = {
    "openai": "evalbench.adapters.openai_adapter.OpenAIAdapter",
    "anthropic": "evalbench.adapters.anthropic_adapter.AnthropicAdapter",
}

# Environment variables the provider SDKs read when no key is passed.
API_KEY_ENV_VARS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

# Maps builtin names to their pip install extras for helpful error messages.
_INSTALL_HINTS: dict[str, str] = {
    "openai": "pip install evalbench[openai]",
    "anthropic": "pip install evalbench[anthropic]",
}

ApiKeySource = str | Callable[[str], str | None] | None

# Signature of get_adapter; swapped for a fake in tests.
AdapterResolver = Callable[[str, ApiKeySource], BaseAdapter]


def resolve_api_key(provider: str, api_key: ApiKeySource) -> str | None:
    """Resolve the API key for a builtin provider.

    Resolution order: explicit string > settings lookup callable >
    provider environment variable.

    Raises:
        MissingCredentialsError: If no source yields a non-empty key.
    """
    key: str | None
    if callable(api_key):
        key = api_key(provider)
    else:
        key = api_key

    env_var = API_KEY_ENV_VARS.get(provider)
    if not key and env_var:
        key = os.environ.get(env_var)

    if not key:
        raise MissingCredentialsError(provider, env_var)
    return key


def get_adapter(provider: str, api_key: ApiKeySource = None) -> BaseAdapter:
    """Resolve a provider by name or dotted path and return an instance.

    For builtin names ("openai", "anthropic"), resolves credentials
    first, then lazily imports the registered adapter class. For dotted
    paths ("my.module.MyAdapter"), imports the module and retrieves the
    class directly; credentials are optional and passed through.

    Args:
        provider: A builtin provider name or a fully-qualified dotted
            path to an adapter class.
        api_key: Explicit key, a callable mapping provider name to key
            (settings lookup), or None to use the environment.

    Returns:
        An instance of the resolved adapter class.

    Raises:
        UnknownProviderError: If the name is not a builtin and has no dots.
        MissingCredentialsError: If a builtin provider has no API key.
        AdapterLoadError: If the module cannot be imported (e.g., missing
            SDK), lacks the class, or the class is not a BaseAdapter
            that can be instantiated with an api_key argument.
    """
    # Builtin names are case-insensitive; dotted paths are not
    name = provider.lower() if provider.lower() in BUILTIN_ADAPTERS else provider

    if name in BUILTIN_ADAPTERS:
        dotted_path = BUILTIN_ADAPTERS[name]
        key = resolve_api_key(name, api_key)
    elif "." in name:
        dotted_path = name
        key = api_key(name) if callable(api_key) else api_key
    else:
        raise UnknownProviderError(name, sorted(BUILTIN_ADAPTERS.keys()))

    module_path, _, class_name = dotted_path.rpartition(".")
    if not module_path or not class_name:
        raise UnknownProviderError(name, sorted(BUILTIN_ADAPTERS.keys()))

    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        if name in _INSTALL_HINTS:
            raise AdapterLoadError(
                name,
                f"Provider '{name}' requires the {name} package. "
                f"Install it: {_INSTALL_HINTS[name]}",
            ) from exc
        raise AdapterLoadError(name, f"Cannot import adapter module '{module_path}': {exc}") from exc

    try:
        cls = getattr(module, class_name)
    except AttributeError:
        raise AdapterLoadError(
            name, f"Module '{module_path}' has no attribute '{class_name}'."
        ) from None

    if not isinstance(cls, type) or not issubclass(cls, BaseAdapter):
        raise AdapterLoadError(
            name,
            f"'{dotted_path}' is not a subclass of BaseAdapter. "
            f"Custom adapters must inherit from evalbench.adapters.base.BaseAdapter.",
        )

    try:
        return cls(api_key=key)
    except TypeError as exc:
        raise AdapterLoadError(name, f"Cannot instantiate adapter '{dotted_path}': {exc}") from exc


def resolve_agent_adapter(
    config: AgentConfig | JudgeConfig,
    resolver: AdapterResolver = get_adapter,
    api_keys: ApiKeySource = None,
) -> BaseAdapter:
    """Resolve the adapter for an agent or judge config.

    A key set on the config itself wins over the settings lookup,
    which wins over the provider's environment variable.

    Raises:
        ConfigurationError: If the provider is unknown or has no key.
    """
    source: ApiKeySource = config.api_key if config.api_key else api_keys
    return resolver(config.provider, source)
