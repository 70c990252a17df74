from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class MergeOptions:
    """How several documents are combined into one."""

    FORMATS: ClassVar[dict[str, str]] = {
        "pdf": "application/pdf",
        "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "txt": "text/plain",
        "md": "text/markdown",
    }

    output_format: str = "pdf"
    include_metadata: bool = True
    add_page_breaks: bool = True
    title: str | None = None
    author: str | None = None

    def __post_init__(self) -> None:
        if self.output_format not in self.FORMATS:
            raise ValueError(
                f"Unknown output format '{self.output_format}'. Choose from: {list(self.FORMATS)}"
            )

    @property
    def mime_type(self) -> str:
        return self.FORMATS[self.output_format]
