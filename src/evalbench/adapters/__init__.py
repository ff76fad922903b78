"""evalbench adapters - model client gateway abstraction layer.

Re-exports the BaseAdapter ABC, the message/result dataclasses, and
the registry function. Concrete adapters are imported lazily by the
registry so provider SDKs stay optional.
"""

from evalbench.adapters.base import (
    AdapterConfig,
    AdapterTurnResult,
    BaseAdapter,
    Message,
    TokenUsage,
)
from evalbench.adapters.registry import (
    AdapterResolver,
    ApiKeySource,
    get_adapter,
    resolve_agent_adapter,
    resolve_api_key,
)

__all__ = [
    "AdapterConfig",
    "AdapterResolver",
    "AdapterTurnResult",
    "ApiKeySource",
    "BaseAdapter",
    "Message",
    "TokenUsage",
    "get_adapter",
    "resolve_agent_adapter",
    "resolve_api_key",
]
