from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PostingCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: Decimal | None = Field(default=None, ge=0, le=1)
    organization_handle: str = Field(
        min_length=1,
        max_length=25,
        validation_alias=AliasChoices("organization_handle", "organizationHandle"),
    )


class PostingUpdateRequest(BaseModel):
    # organization_handle is fixed at creation; unknown fields are rejected.
    model_config = ConfigDict(extra="forbid")

    title: str = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: Decimal | None = Field(default=None, ge=0, le=1)


class PostingSummaryOut(BaseModel):
    id: int
    title: str
    salary: int | None = None
    equity: Decimal | None = None


class PostingOut(PostingSummaryOut):
    organization_handle: str


class PostingResponse(BaseModel):
    posting: PostingOut


class PostingListResponse(BaseModel):
    postings: list[PostingOut]


class PostingDeletedResponse(BaseModel):
    deleted: int
