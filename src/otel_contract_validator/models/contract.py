"""
Contract models describing the spans a system under test is expected to emit.

Contract files use camelCase keys (``expectedSpans``, ``minCount``,
``maxLatencyMs``, ``expectedAnyOf``). Every model also accepts the snake_case
field names so contracts can be built directly in code.
"""

from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator

from ..query import normalize_value

DEFAULT_WINDOW_MINUTES = 15


def _none_as_empty(value: Any) -> Any:
    return [] if value is None else value


class ExpectedTag(BaseModel):
    """An attribute expectation on an expected span."""
    key: str = Field(..., description="Attribute key")
    expected: Optional[str] = Field(None, description="Exact value every span carrying the tag must have")
    expected_any_of: Optional[List[str]] = Field(
        None,
        alias="expectedAnyOf",
        description="Set of values the tag may take"
    )
    required: bool = Field(True, description="Whether at least one matching span must carry the tag")

    class Config:
        """Pydantic configuration."""
        frozen = True
        populate_by_name = True

    @field_validator("expected", mode="before")
    @classmethod
    def _normalize_expected(cls, value: Any) -> Any:
        return normalize_value(value)

    @field_validator("expected_any_of", mode="before")
    @classmethod
    def _normalize_expected_any_of(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
            value = [value]
        return [normalize_value(v) for v in value if v is not None]


class ExpectedSpan(BaseModel):
    """A span the contract expects to observe."""
    name: str = Field(..., description="Exact span name")
    service: Optional[str] = Field(None, description="Service filter, any service when omitted")
    min_count: Optional[int] = Field(None, alias="minCount", description="Minimum number of matching spans")
    max_latency_ms: Optional[int] = Field(
        None,
        alias="maxLatencyMs",
        description="Maximum allowed duration of any matching span"
    )
    tags: List[ExpectedTag] = Field(default_factory=list, description="Attribute expectations")

    class Config:
        """Pydantic configuration."""
        frozen = True
        populate_by_name = True

    _tags_none = field_validator("tags", mode="before")(_none_as_empty)


class TimeWindow(BaseModel):
    """Look-back window a contract is evaluated over."""
    minutes: int = Field(DEFAULT_WINDOW_MINUTES, description="Window length in minutes")

    class Config:
        """Pydantic configuration."""
        frozen = True


class Contract(BaseModel):
    """A named set of expectations evaluated against the spans a query selects."""
    name: str = Field(..., description="Contract name, used as the report key")
    description: Optional[str] = Field(None, description="Free-form description")
    query: str = Field("", description="Filter query selecting the relevant spans")
    window: Optional[TimeWindow] = Field(None, description="Look-back window")
    expected_spans: List[ExpectedSpan] = Field(
        default_factory=list,
        alias="expectedSpans",
        description="Spans the system is expected to emit"
    )

    class Config:
        """Pydantic configuration."""
        frozen = True
        populate_by_name = True

    _spans_none = field_validator("expected_spans", mode="before")(_none_as_empty)

    @property
    def window_minutes(self) -> int:
        """Window length, falling back to the default when the contract sets none."""
        return self.window.minutes if self.window is not None else DEFAULT_WINDOW_MINUTES


class ContractsFile(BaseModel):
    """A versioned, ordered collection of contracts."""
    version: str = Field("1", description="Contracts file format version")
    contracts: List[Contract] = Field(default_factory=list, description="Contracts in file order")

    class Config:
        """Pydantic configuration."""
        frozen = True

    _contracts_none = field_validator("contracts", mode="before")(_none_as_empty)

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value: Any) -> Any:
        return normalize_value(value) if value is not None else "1"

    def get(self, name: str) -> Optional[Contract]:
        """Return the first contract with the given name, or None."""
        for contract in self.contracts:
            if contract.name == name:
                return contract
        return None
