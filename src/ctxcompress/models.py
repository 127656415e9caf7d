"""Model descriptor — the slice of model metadata the compressor needs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONTEXT_WINDOW = 128_000
DEFAULT_MAX_OUTPUT_TOKENS = 16_384


class ModelDescriptor(BaseModel):
    """Identifies a target model and its context window.

    A missing or non-positive ``context_window`` means "unknown"; callers
    resolve it through :meth:`effective_context_window`.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    provider: str = ""
    context_window: int = Field(default=0, alias="contextWindow")
    max_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, alias="maxTokens")

    def effective_context_window(self, default: int = DEFAULT_CONTEXT_WINDOW) -> int:
        if self.context_window > 0:
            return self.context_window
        return default

    @classmethod
    def from_capabilities(
        cls,
        model_id: str,
        provider: str = "",
        max_input_tokens: int | None = None,
        max_output_tokens: int | None = None,
    ) -> ModelDescriptor:
        """Build a descriptor from user-configured provider capabilities."""
        return cls(
            id=model_id,
            provider=provider,
            context_window=max_input_tokens or DEFAULT_CONTEXT_WINDOW,
            max_tokens=max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS,
        )
