"""Pydantic request/response schemas for the FastAPI endpoints."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field


class CoordinateOrigin(StrEnum):
    """Origin convention of incoming fragment rectangles."""

    TOP_LEFT = "top-left"
    BOTTOM_LEFT = "bottom-left"


class FragmentSchema(BaseModel):
    """One recognized text span with a normalized rectangle."""

    text: str
    x: float = Field(ge=0.0, le=1.0)
    y: float = Field(ge=0.0, le=1.0)
    width: float = Field(ge=0.0, le=1.0)
    height: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(1.0, ge=0.0, le=1.0)


class ParseRequest(BaseModel):
    """Request schema for parsing one invoice page."""

    fragments: list[FragmentSchema] = Field(default_factory=list)
    raw_text: str | None = None
    origin: CoordinateOrigin = CoordinateOrigin.TOP_LEFT
    include_debug_regions: bool = False
    today: date | None = None


class RectSchema(BaseModel):
    """Normalized rectangle, top-left origin."""

    x: float
    y: float
    width: float
    height: float


class LineItemResponse(BaseModel):
    """Response schema for a single line item."""

    name: str
    quantity: float
    unit_price: float
    total: float
    tax_rate: int


class DebugRegionResponse(BaseModel):
    """Response schema for a debug region."""

    region_type: str
    label: str
    rect: RectSchema


class InvoiceResponse(BaseModel):
    """Response schema for the extracted invoice fields."""

    vendor_name: str
    vendor_tax_id: str
    invoice_number: str
    invoice_date: date
    ettn: str
    total_amount: float
    tax_amount: float
    subtotal: float
    items: list[LineItemResponse]
    field_confidence: dict[str, float]
    metadata: dict[str, str]
    confidence: float
    debug_regions: list[DebugRegionResponse] = Field(default_factory=list)


class ParseResponse(BaseModel):
    """Response schema for a parse request."""

    success: bool
    document_id: str
    invoice: InvoiceResponse
    processing_time_ms: float


class ProfileInfo(BaseModel):
    """Information about a vendor profile."""

    name: str
    has_priority_region: bool


class ProfilesResponse(BaseModel):
    """Response schema listing vendor profiles in priority order."""

    profiles: list[ProfileInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    profiles_loaded: int
