"""Line-based pagination of go doc output."""

from __future__ import annotations

from dataclasses import dataclass

from godoc_mcp.errors import ErrorCode, GodocError


@dataclass(frozen=True)
class Page:
    number: int
    total_pages: int
    first_line: int  # 1-based, inclusive
    last_line: int  # 1-based, inclusive
    total_lines: int
    content: str

    @property
    def summary(self) -> str:
        return (
            f"Page {self.number} of {self.total_pages} "
            f"(showing lines {self.first_line}-{self.last_line} of {self.total_lines})"
        )


def paginate(text: str, page: int, page_size: int) -> Page:
    """Return the ``page``-th window of ``page_size`` lines from ``text``."""
    lines = text.split("\n")
    total_lines = len(lines)
    total_pages = (total_lines + page_size - 1) // page_size

    if page > total_pages:
        raise GodocError(
            code=ErrorCode.PAGE_OUT_OF_RANGE,
            message=f"page {page} exceeds total pages {total_pages}",
            suggestion=f"Request a page between 1 and {total_pages}.",
            recoverable=False,
        )

    start = (page - 1) * page_size
    end = min(start + page_size, total_lines)
    return Page(
        number=page,
        total_pages=total_pages,
        first_line=start + 1,
        last_line=end,
        total_lines=total_lines,
        content="\n".join(lines[start:end]),
    )
