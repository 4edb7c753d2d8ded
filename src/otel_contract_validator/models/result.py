"""
Validation result model.
"""

from typing import List
from pydantic import BaseModel, Field


class ValidationResult(BaseModel):
    """Outcome of validating one contract against one provider."""
    provider_name: str = Field(..., description="Name of the provider the spans came from")
    contract_name: str = Field(..., description="Name of the validated contract")
    passed: bool = Field(..., description="True when every expectation was satisfied")
    message: str = Field(..., description="Summary message")
    details: List[str] = Field(default_factory=list, description="Ordered diagnostic messages")

    class Config:
        """Pydantic configuration."""
        frozen = True
