# Shared pydantic base model for all response guard schemas

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Immutable value object; instances are safe to share between threads."""

    model_config = ConfigDict(frozen=True)
