"""Upload checks applied before a file reaches the extractors."""

import re
from dataclasses import dataclass, field
from typing import ClassVar

from docflow.config.settings import Settings
from docflow.documents.models import FileInput
from docflow.documents.text_stats import format_file_size


@dataclass
class FileValidationResult:
    """Outcome of validating one file."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class BatchValidationResult:
    """Outcome of validating a set of files."""

    valid_files: list[FileInput] = field(default_factory=list)
    invalid_files: list[tuple[FileInput, list[str]]] = field(default_factory=list)
    global_errors: list[str] = field(default_factory=list)


class FileValidator:
    """Size, type and filename checks for uploaded files."""

    EXECUTABLE_EXTENSIONS: ClassVar[frozenset[str]] = frozenset({
        ".exe", ".bat", ".cmd", ".com", ".scr", ".pif", ".vbs", ".js", ".jar",
        ".app", ".deb", ".pkg", ".dmg", ".run", ".sh", ".ps1",
    })

    SUSPICIOUS_NAME_PATTERNS: ClassVar[list[re.Pattern[str]]] = [
        re.compile(r"\.\."),
        re.compile(r'[<>:"|?*]'),
        re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])(\.|$)", re.IGNORECASE),
        re.compile(r"(script|javascript|data):", re.IGNORECASE),
    ]

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def validate(self, file: FileInput) -> FileValidationResult:
        """Check one file against the configured ceilings and extension lists."""
        errors: list[str] = []
        warnings: list[str] = []

        if file.size == 0:
            errors.append("File is empty")

        limit = self.max_size_for(file.extension)
        if file.size > limit:
            errors.append(
                f"File size {format_file_size(file.size)} exceeds maximum allowed "
                f"size of {format_file_size(limit)}"
            )

        if file.extension in self.EXECUTABLE_EXTENSIONS:
            errors.append("Executable files are not allowed")
        elif file.extension not in self.supported_extensions:
            errors.append(f"File extension '{file.extension}' is not supported")

        if any(p.search(file.name) for p in self.SUSPICIOUS_NAME_PATTERNS):
            errors.append("Filename contains suspicious characters or patterns")

        if not file.mime_type:
            warnings.append("No MIME type declared; dispatching by extension")

        return FileValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def validate_many(self, files: list[FileInput]) -> BatchValidationResult:
        """Validate a batch, enforcing the configured file-count limit."""
        result = BatchValidationResult()
        if len(files) > self._settings.max_batch_files:
            result.global_errors.append(
                f"Too many files selected. Maximum allowed: "
                f"{self._settings.max_batch_files}, selected: {len(files)}"
            )
            return result
        for file in files:
            outcome = self.validate(file)
            if outcome.is_valid:
                result.valid_files.append(file)
            else:
                result.invalid_files.append((file, outcome.errors))
        return result

    @property
    def supported_extensions(self) -> set[str]:
        s = self._settings
        return {
            *s.pdf_extensions,
            *s.office_extensions,
            *s.text_extensions,
            *s.image_extensions,
        }

    def max_size_for(self, extension: str) -> int:
        s = self._settings
        if extension in s.pdf_extensions:
            return s.max_pdf_size
        if extension in s.office_extensions:
            return s.max_office_size
        if extension in s.image_extensions:
            return s.max_image_size
        if extension in s.text_extensions:
            return s.max_text_size
        return s.max_default_size
