"""
Broker request schema and canonical response definitions.
"""
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


# Canonical item keys
ID = "id"
DATA = "data"
TYPE = "type"
VALUE = "value"
TIMESTAMP = "timestamp"

DEFAULT_PRODUCT_CODE = "default"

CONTEXT_URLS = {
    "DataProduct": "https://standards.lifeengine.io/v1/Context/Identity/Thing/HumanWorld/Product/DataProduct/",
}


class FetchParameters(BaseModel):
    """Request parameters. Unknown keys are kept for dynamic placeholders."""
    model_config = ConfigDict(extra="allow")

    ids: List[Any]
    start: Optional[Any] = Field(default=None, validation_alias=AliasChoices("start", "startTime"))
    end: Optional[Any] = Field(default=None, validation_alias=AliasChoices("end", "endTime"))


class FetchRequest(BaseModel):
    """Schema for a broker data request."""
    model_config = ConfigDict(extra="allow")

    productCode: str
    timestamp: Optional[Any] = None
    parameters: FetchParameters


def validate_request(body: Any) -> FetchRequest:
    """Validate a broker request body against the declared schema.

    Raises:
        ValidationError: If a required parameter is missing or malformed
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be an object.")
    try:
        return FetchRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(_describe(e.errors()[0])) from e


def _describe(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    if error.get("type") == "missing":
        return f"Missing required parameter {location}."
    return f"Invalid parameter {location}: {error.get('msg', 'invalid value')}."
