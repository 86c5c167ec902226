"""Response envelope shared by every endpoint - success and failure look the same."""

from typing import Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool
    message: str
    errors: list[str] | None = None
    data: DataT | None = None

    @classmethod
    def ok(cls, data: DataT, message: str) -> "ApiResponse[DataT]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, errors: list[str] | str | None = None) -> "ApiResponse[DataT]":
        if isinstance(errors, str):
            errors = [errors]
        return cls(success=False, message=message, errors=errors, data=None)
