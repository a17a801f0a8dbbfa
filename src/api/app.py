"""FastAPI application for the invoice layout engine.

Provides REST endpoints for parsing positioned OCR fragments,
listing vendor profiles, and health checks.
"""

import time
import uuid
from functools import lru_cache

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from src.extraction.parser import InvoiceParser
from src.ocr.adapters import fragments_from_records
from src.utils.config import load_config
from src.utils.exceptions import EmptyInputError
from src.utils.logger import get_logger

from .schemas import (
    HealthResponse,
    InvoiceResponse,
    ParseRequest,
    ParseResponse,
    ProfileInfo,
    ProfilesResponse,
)

logger = get_logger(__name__)

API_VERSION = "1.0.0"

app = FastAPI(
    title="Invoice Layout Engine API",
    description="Extract vendor, totals, dates and line items from OCR fragments",
    version=API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def _get_parser() -> InvoiceParser:
    """Build the shared parser once; it holds no per-request state."""
    return InvoiceParser(load_config())


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        profiles_loaded=len(_get_parser().registry.profiles),
    )


@app.get("/profiles", response_model=ProfilesResponse)
async def list_profiles() -> ProfilesResponse:
    """List vendor profiles in the order they are tried."""
    return ProfilesResponse(
        profiles=[
            ProfileInfo(name=p.name, has_priority_region=p.amount_region is not None)
            for p in _get_parser().registry.profiles
        ]
    )


@app.post("/parse", response_model=ParseResponse)
def parse_invoice(request: ParseRequest) -> ParseResponse:
    """Extract invoice fields from fragments or raw text.

    Args:
        request: Fragments (normalized rectangles) and/or raw text.

    Returns:
        The parsed invoice with its confidence score.
    """
    start_time = time.time()

    fragments = fragments_from_records(
        (f.model_dump() for f in request.fragments), request.origin.value
    )
    try:
        invoice = _get_parser().parse(
            fragments,
            request.raw_text,
            include_debug_regions=request.include_debug_regions,
            today=request.today,
        )
    except EmptyInputError as exc:
        logger.warning("Rejected parse request: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    processing_time = (time.time() - start_time) * 1000

    return ParseResponse(
        success=True,
        document_id=str(uuid.uuid4()),
        invoice=InvoiceResponse(**invoice.to_dict()),
        processing_time_ms=processing_time,
    )
