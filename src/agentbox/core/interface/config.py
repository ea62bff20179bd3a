"""Model configuration: model name, endpoint, sampling parameters."""

from typing import Any

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Configuration for one model binding.

    The ``model`` field uses LiteLLM's naming convention (``gpt-4o`` or
    ``provider/model_name``).  When ``api_base`` points at the session
    backend, ``api_key`` is the session auth token and the backend holds the
    provider credentials.
    """

    model: str
    api_key: str | None = None
    api_base: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"
