"""Exception hierarchy for evalbench.

Configuration errors are raised before any model call is made.
Generation errors abort a single run and carry whatever partial
transcript was produced. Scoring never raises; it degrades to a
sentinel metrics mapping instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evalbench.models.transcript import Transcript


class EvalbenchError(Exception):
    """Base class for all evalbench errors."""


class ConfigurationError(EvalbenchError):
    """Invalid or incomplete configuration detected before any model call."""


class UnknownProviderError(ConfigurationError):
    """Raised when a provider name cannot be resolved to an adapter.

    Attributes:
        provider: The provider name that was requested.
    """

    def __init__(self, provider: str, available: list[str]) -> None:
        self.provider = provider
        self.available = available
        super().__init__(
            f"Unknown provider '{provider}'. "
            f"Available builtin providers: {', '.join(available)}. "
            f"For custom adapters, provide the full dotted path "
            f"(e.g., 'my.module.MyAdapter')."
        )


class MissingCredentialsError(ConfigurationError):
    """Raised when no API key is available for a provider.

    Attributes:
        provider: The provider whose credentials are missing.
        env_var: The environment variable that was consulted, if any.
    """

    def __init__(self, provider: str, env_var: str | None = None) -> None:
        self.provider = provider
        self.env_var = env_var
        hint = f" Set {env_var} or add it under api_keys in evalbench.yaml." if env_var else ""
        super().__init__(f"API key not configured for {provider}.{hint}")


class AdapterLoadError(ConfigurationError):
    """Raised when a provider resolves to a path that cannot be loaded.

    Covers a missing module or SDK, a missing class, and a class that is
    not a BaseAdapter subclass.

    Attributes:
        provider: The provider name or dotted path that was requested.
    """

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(message)


class RubricError(ConfigurationError, ValueError):
    """Raised when a rubric declaration is malformed.

    Also a ValueError so Pydantic validators report it as a field error.
    """


class GenerationError(EvalbenchError):
    """A model call failed while producing a transcript.

    Attributes:
        reason: Human-readable failure reason.
        transcript: The transcript as it stood when the call failed.
    """

    def __init__(self, reason: str, transcript: Transcript | None = None) -> None:
        self.reason = reason
        self.transcript = transcript
        super().__init__(reason)


class SimulationError(GenerationError):
    """A simulated conversation aborted mid-run.

    Attributes:
        turns_taken: Generated turns completed before the failure.
    """

    def __init__(
        self,
        reason: str,
        transcript: Transcript | None = None,
        turns_taken: int = 0,
    ) -> None:
        self.turns_taken = turns_taken
        super().__init__(reason, transcript)
