"""
leadscore/ingestion/csv_loader.py — Parses and validates uploaded prospect CSV files.

Takes raw CSV bytes and returns clean, typed ProspectRecords plus per-row
validation errors, ready for the store and the scoring pipeline.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from leadscore.domain import ProspectRecord, utcnow
from leadscore.errors import CsvFormatError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["name", "role", "company", "industry", "location", "professional_summary"]

# Header aliases accepted from common export formats
COLUMN_ALIASES = {
    "linkedin_bio": "professional_summary",
    "summary": "professional_summary",
    "bio": "professional_summary",
}

DEFAULT_MAX_ROWS = 1000


# ── Row schema ───────────────────────────────────────────────────────────────

class ProspectRow(BaseModel):
    """One validated CSV row. Whitespace is trimmed before length checks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    role: str = Field(min_length=1, max_length=100)
    company: str = Field(min_length=1, max_length=100)
    industry: str = Field(min_length=1, max_length=100)
    location: str = Field(min_length=1, max_length=100)
    professional_summary: str = Field(min_length=1, max_length=1000)


@dataclass(frozen=True)
class RowError:
    row: int                    # 1-based line number, header is line 1
    message: str
    field: Optional[str] = None
    value: Optional[Any] = None


@dataclass
class CsvIngestionResult:
    prospects: list[ProspectRecord] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def rejected_rows(self) -> int:
        return len({error.row for error in self.errors})


# ── Helpers ──────────────────────────────────────────────────────────────────

def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    renamed = {}
    for column in df.columns:
        key = str(column).strip().lower().replace(" ", "_")
        renamed[column] = COLUMN_ALIASES.get(key, key)
    return df.rename(columns=renamed)


def _read_frame(content: bytes) -> pd.DataFrame:
    if not content or not content.strip():
        raise CsvFormatError("Uploaded file is empty")
    try:
        return pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
            encoding="utf-8-sig",
        ).fillna("")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise CsvFormatError(f"Could not parse CSV: {e}", details={"error_type": "csv_parsing"}) from e


def _row_errors(line: int, exc: ValidationError) -> list[RowError]:
    return [
        RowError(
            row=line,
            field=str(err["loc"][0]) if err.get("loc") else None,
            message=err["msg"],
            value=err.get("input"),
        )
        for err in exc.errors()
    ]


# ── Main function ────────────────────────────────────────────────────────────

def parse_prospect_csv(content: bytes, max_rows: int = DEFAULT_MAX_ROWS) -> CsvIngestionResult:
    """
    Parse CSV bytes into validated ProspectRecords.

    Args:
        content:  Raw file bytes (UTF-8, optional BOM).
        max_rows: Maximum number of data rows accepted.

    Returns:
        CsvIngestionResult with valid prospects (file order) and row errors.

    Raises:
        CsvFormatError: unreadable file, missing required columns, or too many rows.
    """
    df = _normalize_columns(_read_frame(content))

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise CsvFormatError(
            "Invalid CSV headers",
            details={
                "missing_columns": missing,
                "received_headers": [str(c) for c in df.columns],
                "expected_headers": REQUIRED_COLUMNS,
            },
        )

    # Blank lines are kept by the reader so that row i sits on line i + 2.
    rows = []
    for index, raw in enumerate(df[REQUIRED_COLUMNS].to_dict(orient="records")):
        line = index + 2
        if all(not str(value).strip() for value in raw.values()):
            logger.debug("Skipping empty row %d", line)
            continue
        rows.append((line, raw))

    if len(rows) > max_rows:
        raise CsvFormatError(
            f"Too many rows: {len(rows)} (maximum {max_rows})",
            details={"rows": len(rows), "max_rows": max_rows},
        )

    result = CsvIngestionResult(total_rows=len(rows))
    uploaded_at = utcnow()

    for line, raw in rows:
        try:
            row = ProspectRow(**raw)
        except ValidationError as e:
            result.errors.extend(_row_errors(line, e))
            continue

        result.prospects.append(ProspectRecord(**row.model_dump(), uploaded_at=uploaded_at))

    logger.info(
        "CSV parsed: %d rows, %d valid, %d rejected.",
        result.total_rows, len(result.prospects), result.rejected_rows,
    )
    return result
