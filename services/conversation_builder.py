"""
Conversation builder for the seed history.
Reads the reference datasets and lays them out as the opening turns of every conversation.
"""
import csv
import io
import re
from dataclasses import dataclass, field
from pathlib import Path

from models.chat_models import Content
from utils.constants import (
    DOCUMENT_INTRO_TEMPLATE,
    DOCUMENT_SUMMARY_TEMPLATE,
    DOCUMENT_FAILED_TEMPLATE,
    SUMMARIZE_PROMPT,
    SUMMARY_HEADER,
    SUMMARY_ANALYSIS,
    EXAMPLE_QUESTION,
    EXAMPLE_ANSWER,
    Role,
    Patterns
)
from utils.errors import LoadError
from utils.logger import app_logger


@dataclass(frozen=True)
class ReferenceDocument:
    """A CSV dataset loaded from disk, kept as raw text for injection."""
    path: str
    content: str
    columns: tuple[str, ...]
    row_count: int

    @property
    def filename(self) -> str:
        return Path(self.path).name

    @property
    def period(self) -> str:
        """Reporting period the dataset covers, derived from its file name."""
        return reporting_period(self.path)


@dataclass
class SeedHistory:
    """Seed turns plus the files that could not be loaded."""
    contents: list[Content]
    failed_files: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_files


def reporting_period(path: str) -> str:
    """Return 'H1 2025' for the H1 2025 export, 'H2 2024' for anything else."""
    if re.search(Patterns.H1_2025, Path(path).name, flags=re.IGNORECASE):
        return "H1 2025"
    return "H2 2024"


def load_reference_document(path: str) -> ReferenceDocument:
    """
    Read a reference dataset and confirm it parses as CSV with a header row.

    Args:
        path: File path, relative paths resolve against the working directory

    Returns:
        The loaded ReferenceDocument

    Raises:
        LoadError: If the file is missing, unreadable, empty or malformed
    """
    resolved = Path(path).resolve()

    try:
        content = resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(path, str(e)) from e

    try:
        reader = csv.reader(io.StringIO(content), strict=True)
        header = next(reader, None)
        row_count = sum(1 for row in reader if any(cell.strip() for cell in row))
    except csv.Error as e:
        raise LoadError(path, f"malformed CSV: {e}") from e

    if not header or not any(column.strip() for column in header):
        raise LoadError(path, "no header row")

    return ReferenceDocument(
        path=path,
        content=content,
        columns=tuple(column.strip() for column in header),
        row_count=row_count,
    )


class ConversationBuilder:
    """Builds the fixed opening of every conversation from the reference datasets."""

    def __init__(self, reference_files: list[str]):
        self.reference_files = list(reference_files)

    def build(self) -> SeedHistory:
        """
        Load every reference file and assemble the seed turns.

        A file that fails to load is replaced by a placeholder in the model's
        summary; the remaining turns are unaffected.
        """
        intro_parts: list[str] = []
        summary_parts: list[str] = []
        failed_files: list[str] = []

        for path in self.reference_files:
            filename = Path(path).name
            try:
                document = load_reference_document(path)
            except LoadError as e:
                app_logger.error(f"Error loading data from {path}: {e.reason}")
                summary_parts.append(DOCUMENT_FAILED_TEMPLATE.format(filename=filename))
                failed_files.append(path)
                continue

            app_logger.info(
                f"Loaded {document.filename}: {document.row_count} rows, {len(document.columns)} columns"
            )
            intro_parts.append(
                DOCUMENT_INTRO_TEMPLATE.format(filename=document.filename, content=document.content)
            )
            summary_parts.append(
                DOCUMENT_SUMMARY_TEMPLATE.format(filename=document.filename, period=document.period)
            )

        contents = [
            Content(role=Role.USER, parts=(*intro_parts, SUMMARIZE_PROMPT)),
            Content(role=Role.MODEL, parts=(SUMMARY_HEADER, *summary_parts, SUMMARY_ANALYSIS)),
            Content.text(Role.USER, EXAMPLE_QUESTION),
            Content.text(Role.MODEL, EXAMPLE_ANSWER),
        ]

        return SeedHistory(contents=contents, failed_files=failed_files)

    def build_seed_history(self) -> list[Content]:
        """Return only the seed turns."""
        return self.build().contents
