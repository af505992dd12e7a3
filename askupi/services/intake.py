"""File intake: single-file selection of a statement PDF with size and type checks."""

from dataclasses import dataclass

from askupi.core.errors import FileValidationError
from askupi.core.utils import get_logger

PDF_MIME_TYPE = "application/pdf"
SIZE_EXCEEDED = "File exceeds max file size"
INVALID_TYPE = "Only PDF files are allowed"

logger = get_logger("askupi.intake")


@dataclass(frozen=True)
class StatementFile:
    """A selected statement file."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        """Size of the payload in bytes."""
        return len(self.data)


def validate_statement(file: StatementFile, max_size: int) -> list[str]:
    """Return every constraint the file violates (empty when acceptable)."""
    violations = []
    if file.size > max_size:
        violations.append(SIZE_EXCEEDED)
    if file.content_type != PDF_MIME_TYPE:
        violations.append(INVALID_TYPE)
    return violations


class FileIntake:
    """Holds at most one accepted statement file."""

    def __init__(self, max_size: int) -> None:
        """Initialize an empty selection with the given size ceiling in bytes."""
        self.max_size = max_size
        self._selected: StatementFile | None = None

    @property
    def selected(self) -> StatementFile | None:
        """The currently accepted file, if any."""
        return self._selected

    def select(self, file: StatementFile) -> StatementFile:
        """Accept the file or clear the selection and raise FileValidationError."""
        violations = validate_statement(file, self.max_size)
        if violations:
            logger.warning(f"Rejected file {file.filename!r} ({file.size} bytes, {file.content_type}): {violations}")
            self.clear()
            raise FileValidationError(violations)
        self._selected = file
        logger.info(f"Accepted file {file.filename!r} ({file.size} bytes)")
        return file

    def payload(self) -> bytes:
        """Return the raw bytes of the selected file."""
        if self._selected is None:
            msg = "Minimum one file is required."
            raise FileValidationError([msg])
        return self._selected.data

    def clear(self) -> None:
        """Drop the current selection."""
        self._selected = None
