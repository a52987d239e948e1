from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import CamelModel

LOGO_URL_PATTERN = r"^https?://\S+$"


class CompanyCreateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    handle: str = Field(min_length=1, max_length=25)
    name: str = Field(min_length=1)
    description: str
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = Field(default=None, pattern=LOGO_URL_PATTERN)


class CompanyPatchRequest(CamelModel):
    # Extra keys pass through; the repository rejects immutable and unknown fields.
    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = Field(default=None, pattern=LOGO_URL_PATTERN)


class CompanyOut(CamelModel):
    handle: str
    name: str
    description: str | None = None
    num_employees: int | None = None
    logo_url: str | None = None


class CompanyJobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None


class CompanyDetailOut(CompanyOut):
    jobs: list[CompanyJobOut] = Field(default_factory=list)


class CompanyEnvelope(BaseModel):
    company: CompanyOut


class CompanyDetailEnvelope(BaseModel):
    company: CompanyDetailOut


class CompanyListEnvelope(BaseModel):
    companies: list[CompanyOut]
