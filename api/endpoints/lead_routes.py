"""
api/endpoints/lead_routes.py — Routes for uploading and inspecting prospects.

POST /leads/upload  - Upload a CSV of prospects (replaces the current set)
GET  /leads         - Count plus a sample of industries, roles and companies
"""

import logging
import os

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from leadscore.config import settings
from leadscore.db.repository import get_prospects, replace_prospects
from leadscore.db.session import get_db
from leadscore.errors import CsvFormatError
from leadscore.ingestion.csv_loader import parse_prospect_csv
from api.schemas import LeadsSummary, RowErrorOut, UploadResult

logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_EXTENSIONS = {".csv", ".txt"}
SAMPLE_SIZE = 5


def _sample(values: list[str]) -> list[str]:
    """First SAMPLE_SIZE distinct values, in order of appearance."""
    return list(dict.fromkeys(values))[:SAMPLE_SIZE]


@router.post("/upload", response_model=UploadResult, status_code=201, summary="Upload prospects CSV")
async def upload_leads(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """
    Parse and validate a prospects CSV. Required columns: name, role, company,
    industry, location, professional_summary (or linkedin_bio).

    Valid rows replace the stored prospects; invalid rows are reported per row.
    """
    extension = os.path.splitext(file.filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{extension or file.filename}'. Only CSV files are allowed.",
        )

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_bytes} bytes.",
        )

    try:
        parsed = parse_prospect_csv(content, max_rows=settings.max_leads_per_upload)
    except CsvFormatError as e:
        logger.error("CSV upload rejected (%s): %s", file.filename, e.message)
        raise HTTPException(status_code=400, detail={"message": e.message, **e.details})

    errors = [RowErrorOut(row=err.row, field=err.field, message=err.message) for err in parsed.errors]
    if not parsed.prospects:
        logger.error("CSV upload %s contained no valid leads", file.filename)
        raise HTTPException(
            status_code=400,
            detail={
                "message": "No valid leads found in CSV file",
                "errors": [err.model_dump() for err in errors],
            },
        )

    replace_prospects(db, parsed.prospects)
    logger.info(
        "Leads uploaded via API: %d processed, %d rejected (%s)",
        len(parsed.prospects), parsed.rejected_rows, file.filename,
    )
    return UploadResult(
        total_rows=parsed.total_rows,
        processed=len(parsed.prospects),
        rejected=parsed.rejected_rows,
        errors=errors,
        message=f"Successfully uploaded {len(parsed.prospects)} leads.",
    )


@router.get("", response_model=LeadsSummary, summary="Summary of uploaded leads")
def list_leads(db: Session = Depends(get_db)):
    prospects = get_prospects(db)
    return LeadsSummary(
        count=len(prospects),
        sample_industries=_sample([p.industry for p in prospects]),
        sample_roles=_sample([p.role for p in prospects]),
        sample_companies=_sample([p.company for p in prospects]),
    )
