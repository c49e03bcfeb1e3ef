from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from jobly.schemas.postings import PostingSummaryOut


class OrganizationCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    handle: str = Field(min_length=1, max_length=25, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(min_length=1)
    description: str
    num_employees: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("num_employees", "numEmployees"),
    )
    logo_url: str | None = Field(default=None, validation_alias=AliasChoices("logo_url", "logoUrl"))


class OrganizationUpdateRequest(BaseModel):
    # name and description are not nullable; leaving them out skips the column.
    model_config = ConfigDict(extra="forbid")

    name: str = Field(default=None, min_length=1)
    description: str = Field(default=None)
    num_employees: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("num_employees", "numEmployees"),
    )
    logo_url: str | None = Field(default=None, validation_alias=AliasChoices("logo_url", "logoUrl"))


class OrganizationOut(BaseModel):
    handle: str
    name: str
    description: str
    num_employees: int | None = None
    logo_url: str | None = None


class OrganizationDetailOut(OrganizationOut):
    postings: list[PostingSummaryOut] = Field(default_factory=list)


class OrganizationResponse(BaseModel):
    organization: OrganizationOut


class OrganizationDetailResponse(BaseModel):
    organization: OrganizationDetailOut


class OrganizationListResponse(BaseModel):
    organizations: list[OrganizationOut]


class OrganizationDeletedResponse(BaseModel):
    deleted: str
