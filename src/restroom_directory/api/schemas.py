from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx answer."""
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class PoopCountResponse(BaseModel):
    """Counter value for one restroom."""
    id: str
    poop_count: int = Field(..., ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": "3f1c2e0a-5b7d-4c1e-9a55-2f0c6c1d8e11", "poop_count": 42}
        }
    )


class HealthResponse(BaseModel):
    status: str
    database: bool
