from datetime import datetime
from typing import ClassVar, Generic, List, Optional, Tuple, TypeVar
from typing_extensions import Annotated
from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel
from app.utils.timeutils import as_utc

T = TypeVar("T")

# Incoming datetimes are stored as UTC so period tuples compare equal across offsets
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class PartialUpdate(CamelModel):
    """
    Body of a PUT: omitted fields keep their stored value.

    Fields named in `not_nullable` back NOT NULL columns or allow-lists, so an
    explicit null for them is a validation error rather than a write.
    """
    not_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulls = [
            to_camel(name) for name in self.not_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
        return self

    def changes(self, exclude=None) -> dict:
        return self.model_dump(exclude_unset=True, exclude=exclude)


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class MessageData(BaseModel):
    message: str


class ErrorItem(BaseModel):
    path: str
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    errors: Optional[List[ErrorItem]] = None


def ok(data) -> dict:
    return {"success": True, "data": data}
