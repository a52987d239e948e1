from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import CamelModel

# Decimal string in [0, 1], e.g. "0", "0.05", "1.0".
EQUITY_PATTERN = r"^(0(\.\d+)?|1(\.0+)?)$"


class JobCreateRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: str | None = Field(default=None, pattern=EQUITY_PATTERN)
    company_handle: str = Field(min_length=1, max_length=25)


class JobPatchRequest(CamelModel):
    # Extra keys pass through; the repository rejects immutable and unknown fields.
    model_config = ConfigDict(extra="allow")

    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: str | None = Field(default=None, pattern=EQUITY_PATTERN)


class JobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None
    company_handle: str


class JobEnvelope(BaseModel):
    job: JobOut


class JobListEnvelope(BaseModel):
    jobs: list[JobOut]
