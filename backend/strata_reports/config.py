from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Page geometry (points; fpdf2 is driven with unit="pt")
    page_format: str = "letter"
    page_margin: float = 50.0
    # Space kept free above the bottom edge for the footer rule and page label
    footer_reserve: float = 70.0

    # Branding
    brand_dir: str = ""  # Directory holding custom/ and template/ theme.json
    logo_path: str = ""  # PNG/JPEG logo drawn in the header, brand name if empty

    # Chart rendering (first readable font wins, Pillow default otherwise)
    chart_font_paths: List[str] = [
        "/usr/share/fonts/google-noto-vf/NotoSans[wght].ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    ]
    chart_bold_font_paths: List[str] = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    ]

    # Report sequences
    max_table_rows: int = 20
    max_chart_months: int = 6

    # Logging
    log_level: str = "INFO"

    @field_validator("page_format")
    @classmethod
    def normalize_page_format(cls, v: str) -> str:
        """fpdf2 accepts lower-case format names only"""
        return v.strip().lower()

    class Config:
        env_file = ".env"
        env_prefix = "STRATA_REPORT_"
        case_sensitive = False


settings = Settings()
