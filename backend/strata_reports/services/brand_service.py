"""
Brand Service - Load the report theme (brand name, logo, colours).

Reads theme.json from <brand_dir>/custom/ (falls back to <brand_dir>/template/,
then to built-in defaults). The result is a frozen Theme value that callers
pass into the report engine; it is cached after the first load.
"""

import json
import logging
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple

from strata_reports.config import settings

logger = logging.getLogger(__name__)

# Resolve paths relative to project root (backend/../branding/) unless configured
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent


@dataclass(frozen=True)
class Theme:
    """Brand name plus the colour palette used by every renderer."""
    name: str = "VibeStrat"
    copyright: str = "VibeStrat"
    logo_path: str = ""
    primary: str = "#1a2332"        # dark navy
    accent: str = "#0891b2"         # teal
    accent_light: str = "#06b6d4"   # cyan
    success: str = "#10b981"        # green
    warning: str = "#ef4444"        # red
    neutral: str = "#f3f4f6"        # light gray
    neutral_dark: str = "#6b7280"   # dark gray
    white: str = "#ffffff"
    table_header: str = "#1a2332"
    table_alt: str = "#f9fafb"
    table_summary: str = "#e0f2f1"

    @property
    def fund_palette(self) -> Tuple[str, ...]:
        return (self.accent, self.success, self.primary, self.warning, self.accent_light)

    @property
    def category_palette(self) -> Tuple[str, ...]:
        return (
            self.warning, self.accent, self.primary,
            self.success, self.accent_light, self.neutral_dark,
        )


_DEFAULT_THEME = Theme()
_THEME_KEYS = {f.name for f in fields(Theme)}
_TEXT_KEYS = {"name", "copyright", "logo_path"}
_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# Cached theme (loaded once at first access)
_theme: Optional[Theme] = None


def _brand_root() -> Path:
    if settings.brand_dir:
        return Path(settings.brand_dir)
    return _PROJECT_ROOT / "branding"


def _load_theme_json(path: Path) -> Optional[dict]:
    """Try to load and parse a theme.json file."""
    try:
        if path.is_file():
            with open(path, "r") as f:
                return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to read %s: %s", path, e)
    return None


def theme_from_dict(config: dict) -> Theme:
    """Merge a theme.json mapping over the defaults, ignoring unknown keys and bad colours."""
    known = {k: str(v) for k, v in config.items() if k in _THEME_KEYS and v is not None}
    unknown = sorted(set(config) - _THEME_KEYS)
    if unknown:
        logger.warning("Ignoring unknown theme keys: %s", ", ".join(unknown))
    for key in sorted(set(known) - _TEXT_KEYS):
        if not _HEX_COLOR_RE.match(known[key]):
            logger.warning("Invalid colour %r for theme key '%s', using default", known[key], key)
            del known[key]
    theme = replace(_DEFAULT_THEME, **known)
    if not theme.logo_path and settings.logo_path:
        theme = replace(theme, logo_path=settings.logo_path)
    return theme


def get_theme() -> Theme:
    """Get the active report theme (cached after first call)."""
    global _theme
    if _theme is not None:
        return _theme

    root = _brand_root()
    config = _load_theme_json(root / "custom" / "theme.json")
    source = "custom"
    if config is None:
        config = _load_theme_json(root / "template" / "theme.json")
        source = "template"
    if not isinstance(config, dict):
        logger.info("No theme.json found, using built-in defaults")
        config = {}
        source = "defaults"

    _theme = theme_from_dict(config)
    logger.info("Theme loaded: %s (%s)", _theme.name, source)
    return _theme


def reload_theme() -> Theme:
    """Force reload the theme (e.g., after editing theme.json)."""
    global _theme
    _theme = None
    return get_theme()
