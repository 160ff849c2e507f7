"""
File validation for upload batches.

Checks run before any network work: the batch size ceiling, the per-file
size ceiling and the supported extension set. A file can fail several
checks; every reason is reported.

Dependencies: docingest.core.exceptions
System role: Pre-submission gate for the upload orchestrator
"""

from collections.abc import Sequence

from docingest.core.exceptions import ValidationError
from docingest.core.upload_jobs.models import SourceFile


SUPPORTED_FORMATS: dict[str, frozenset[str]] = {
    "documents": frozenset({".pdf", ".doc", ".docx", ".txt", ".rtf", ".odt"}),
    "images": frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".webp"}),
    "videos": frozenset({".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm"}),
    "audio": frozenset({".mp3", ".wav", ".flac", ".aac", ".ogg", ".m4a"}),
    "data": frozenset({".csv", ".xlsx", ".json", ".xml", ".yaml", ".sql"}),
}

ALLOWED_EXTENSIONS = frozenset().union(*SUPPORTED_FORMATS.values())

UNREADABLE_FILE_REASON = "File could not be read"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_file_size(size_bytes: int) -> str:
    """
    Render a byte count for humans (1024-based, two decimals at most).

    >>> format_file_size(0)
    '0 Bytes'
    >>> format_file_size(100 * 1024 * 1024)
    '100 MB'
    """
    if size_bytes <= 0:
        return "0 Bytes"
    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


def file_category(filename: str) -> str | None:
    """Return the supported-format group of a filename, or None."""
    lowered = filename.lower()
    for category, extensions in SUPPORTED_FORMATS.items():
        if any(lowered.endswith(ext) for ext in extensions):
            return category
    return None


def validate_file(source: SourceFile, max_file_size_bytes: int) -> list[str]:
    """
    Validate one file.

    Args:
        source: File to check
        max_file_size_bytes: Size ceiling in bytes

    Returns:
        list[str]: Every validation failure; empty when the file is valid
    """
    errors: list[str] = []

    try:
        size_bytes = source.size_bytes
    except OSError:
        errors.append(UNREADABLE_FILE_REASON)
    else:
        if size_bytes > max_file_size_bytes:
            errors.append(f"File size exceeds {format_file_size(max_file_size_bytes)} limit")

    if file_category(source.name) is None:
        errors.append("File format not supported")

    return errors


def validate_batch_size(files: Sequence[SourceFile], max_files: int) -> None:
    """
    Refuse a batch that holds more files than allowed.

    Raises:
        ValidationError: Too many files, or none at all
    """
    if not files:
        raise ValidationError("No files to upload", field="files")
    if len(files) > max_files:
        raise ValidationError(
            f"Maximum {max_files} files allowed",
            field="files",
            details={"file_count": len(files)},
        )
