from pydantic import BaseModel, Field
from typing import List, Literal


class ModelCost(BaseModel):
    """Pricing metadata for a model (USD per 1M tokens)."""
    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0


class ModelDescriptor(BaseModel):
    """Catalog entry the host shows for a provider's model."""
    id: str  # Provider-local id (e.g. "gpt-4o")
    name: str  # Display name
    reasoning: bool = False
    input: List[Literal["text", "image"]] = Field(default_factory=lambda: ["text"])
    cost: ModelCost = Field(default_factory=ModelCost)
    context_window: int = 8192
    max_tokens: int = 4096
