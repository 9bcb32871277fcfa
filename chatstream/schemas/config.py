"""Model registry and chat configuration schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """Configuration for a single chat model in the registry.

    Loaded from models.toml. Carries the endpoint, credentials lookup and
    the sampling parameters sent with every request.
    """

    model: str = Field(description="Model identifier sent to the service (e.g. 'glm-4.5')")
    display_name: str = Field(description="Human-friendly model name for CLI output")
    api_key_env: str = Field(description="Environment variable name holding the API key")
    api_base: str = Field(description="Chat completions endpoint URL")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float = Field(default=0.95, gt=0.0, le=1.0)
    max_tokens: int = Field(default=8192, gt=0)
    thinking: bool = Field(
        default=False, description="Whether the model streams a reasoning channel"
    )


class ChatConfig(BaseModel):
    """Chat defaults loaded from defaults.toml."""

    default_model: str = Field(default="glm-4-flash", description="Registry key for normal turns")
    thinking_model: str = Field(default="glm-4.5", description="Registry key for thinking turns")
    timeout: float = Field(default=120.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(default=2, ge=1, description="Connection attempts before failing")
    system_prompt: str = Field(default="", description="Global prompt applied to every session")

    def model_key(self, thinking: bool) -> str:
        """Registry key of the model to use for a turn."""
        return self.thinking_model if thinking else self.default_model
