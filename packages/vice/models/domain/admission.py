from enum import StrEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AdmissionErrorCode(StrEnum):
    PERMISSION_NEEDED = "ERR_PERMISSION_NEEDED"
    FORBIDDEN = "ERR_FORBIDDEN"
    LIMIT_REACHED = "ERR_LIMIT_REACHED"
    RESOURCE_OVERAGE = "ERR_RESOURCE_OVERAGE"


class ErrorResponse(BaseModel):
    """Error body returned to clients as ``{errorCode, message, details}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AdmissionDecision(BaseModel):
    status_code: int
    error: Optional[ErrorResponse] = None

    @property
    def allowed(self) -> bool:
        return self.error is None


class Overage(BaseModel):
    """One resource the quota service reports on."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    resource_name: str
    usage: float
    quota: float

    @property
    def exceeded(self) -> bool:
        return self.usage >= self.quota


class OverageList(BaseModel):
    overages: List[Overage] = Field(default_factory=list)
