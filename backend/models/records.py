"""Pydantic schemas for generic record listing and mutation results."""
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Record = dict[str, Any]


class ListRecordsParams(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "asc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ListRecordsResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: list[Record]
    total: int
    page: int
    limit: int
    total_pages: int


class MutationResult(BaseModel):
    success: bool
    message: str
    data: Optional[Record] = None


class DeleteResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    deleted_id: Optional[Union[int, str]] = None


class RawQueryRequest(BaseModel):
    query: str = Field(..., min_length=1)
