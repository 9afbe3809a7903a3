from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class ItemEnvelope(BaseModel, Generic[T]):
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    data: list[T]
    pagination: PaginationOut


class CollectionEnvelope(BaseModel, Generic[T]):
    data: list[T]


class ErrorBody(BaseModel):
    message: str


class ErrorOut(BaseModel):
    error: ErrorBody
