"""
Generic page envelope returned by paginated endpoints.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One server-delivered batch of results plus a continuation marker.

    ``next`` is the only field the pagination engine looks at: a page whose
    ``next`` is ``None`` is the last one.
    """

    model_config = ConfigDict(extra="ignore")

    items: list[T] = Field(default_factory=list, description="Payload for this page")
    next: str | None = Field(default=None, description="Marker/URL of the next page")
    href: str | None = Field(default=None, description="URL of this page")
    limit: int | None = Field(default=None, ge=0, description="Requested page size")
    offset: int | None = Field(default=None, ge=0, description="Offset of this page")
    previous: str | None = Field(default=None, description="URL of the previous page")
    total: int | None = Field(default=None, ge=0, description="Total matching items")

    @property
    def is_last(self) -> bool:
        """Whether this page terminates the result set."""
        return self.next is None
