"""
Pydantic models for the translator API.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class Signature(BaseModel):
    """Schema for the response signature."""
    type: str
    created: str
    creator: str
    signatureValue: str


class DataProduct(BaseModel):
    """Schema for the data product envelope."""
    model_config = ConfigDict(populate_by_name=True)

    context: str = Field(..., alias="@context")
    type: str = Field("DataProduct", alias="@type")
    items: List[Dict[str, Any]]


class FetchResponse(BaseModel):
    """Schema for a signed fetch response."""
    model_config = ConfigDict(populate_by_name=True)

    context: str = Field(..., alias="@context")
    data: DataProduct
    signature: Signature


class ErrorDetail(BaseModel):
    status: int
    message: str


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: ErrorDetail


class HealthStatus(BaseModel):
    """Schema for health check response."""
    status: str = Field(..., description="Overall service status")
    components: Dict[str, Any] = Field(..., description="Component health details")
    version: Optional[str] = None
