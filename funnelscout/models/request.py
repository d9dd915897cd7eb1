from pydantic import BaseModel, Field, HttpUrl


class AnalyzeRequest(BaseModel):
    url: HttpUrl
    max_pages: int = Field(
        default=6,
        ge=1,
        le=8,
        description="Maximum number of pages to return, homepage included (1–8).",
    )


class RepositoryRequest(BaseModel):
    url: HttpUrl
