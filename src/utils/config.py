"""Configuration for the invoice layout engine.

Zone splits, clustering tolerances, tax-rate bounds and date repair
offsets are calibration parameters. They live here as validated
pydantic models with corpus-tuned defaults and can be overridden from
a YAML file without touching extraction code.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LayoutConfig(BaseModel):
    """Geometry thresholds for row clustering, zones and columns."""

    header_split: float = Field(0.30, gt=0.0, lt=1.0)
    footer_split: float = Field(0.70, gt=0.0, lt=1.0)
    column_split: float = Field(0.50, gt=0.0, lt=1.0)
    row_tolerance_floor: float = 0.01
    row_tolerance_factor: float = 0.3
    column_cluster_tolerance: float = 0.05
    column_match_tolerance: float = 0.10
    vendor_top_band: float = 0.15


class FinancialConfig(BaseModel):
    """Tax-rate bounds and tolerances for totals and self-healing."""

    default_tax_rate: float = 0.18
    max_tax_rate: float = 0.20
    heal_tolerance: float = 1.0
    priority_overlap: float = 0.5
    tax_match_tolerance: float = 0.10
    consistency_tolerance: float = 0.01


class DateConfig(BaseModel):
    """Plausibility window for invoice dates."""

    future_window_years: int = 1
    year_shift_correction: int = 4


class ApiConfig(BaseModel):
    """HTTP server binding."""

    host: str = "0.0.0.0"
    port: int = Field(8000, gt=0, lt=65536)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    financial: FinancialConfig = Field(default_factory=FinancialConfig)
    dates: DateConfig = Field(default_factory=DateConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration; defaults when the file
        does not exist.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
