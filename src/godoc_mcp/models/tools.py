from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

MAX_PATH_LENGTH = 4096


class GetDocInput(BaseModel):
    path: str = Field(min_length=1, max_length=MAX_PATH_LENGTH)
    target: str = Field(default="", max_length=500)
    cmd_flags: list[str] = Field(default_factory=list)
    working_dir: str = ""
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=1000, ge=100, le=5000)

    @field_validator("path", "target", "working_dir")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    @field_validator("path")
    @classmethod
    def path_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("path must not be empty")
        return v

    @field_validator("cmd_flags")
    @classmethod
    def flags_look_like_flags(cls, v: list[str]) -> list[str]:
        # Anything else would be read by go doc as a package or symbol argument
        for flag in v:
            if not flag.startswith("-"):
                raise ValueError(f"cmd_flags entries must start with '-': {flag!r}")
        return v


class GetDocOutput(BaseModel):
    path: str
    resolved_path: str
    target: str
    page: int
    total_pages: int
    first_line: int
    last_line: int
    total_lines: int
    summary: str  # "Page N of M (showing lines a-b of T)"
    content: str
