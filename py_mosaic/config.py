"""Configuration management."""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env for local/dev runs only for keys missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    for k, v in file_env.items():
        if k not in os.environ and v is not None:
            os.environ[k] = v


class Settings(BaseSettings):
    """Generation defaults pulled from PY_MOSAIC_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="PY_MOSAIC_", extra="ignore")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Point field
    default_jitter: float = Field(default=0.35, ge=0.0, lt=0.5, description="Grid jitter as a fraction of cell size")
    default_extra_fraction: float = Field(default=0.0, ge=0.0, description="Extra uniform points per grid cell")
    default_margin: float = Field(default=0.0, ge=0.0, lt=0.5, description="Frame margin as a fraction of the short side")
    min_grid_cols: int = Field(default=3, ge=1, description="Minimum grid columns")
    min_grid_rows: int = Field(default=3, ge=1, description="Minimum grid rows")

    # Tessellation
    quantize_decimals: int = Field(default=6, ge=0, le=12, description="Decimal places used to merge points and key edges")
    weld_tolerance: float = Field(default=1e-7, gt=0.0, description="Vertex weld distance relative to the frame's long side")

    # Cells and seams
    default_inset_scale: float = Field(default=0.94, gt=0.0, le=1.0, description="Cell inset scale toward the centroid")
    seam_width_min: float = Field(default=3.0, gt=0.0, description="Seam width for long edges")
    seam_width_max: float = Field(default=6.0, gt=0.0, description="Seam width for short edges")
    seam_length_fraction: float = Field(default=0.2, gt=0.0, description="Edge length, relative to the frame's long side, at which seams reach minimum width")
    edge_width_jitter: bool = Field(default=True, description="Draw a width jitter factor per lead edge")


settings = Settings()
