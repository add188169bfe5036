# opsmith/types/base.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Default Pydantic strict model used across opsmith."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
