"""
Shared test fixtures for the strata report engine tests.

Provides reusable fixtures for:
- A fixed theme and settings (no theme.json or font lookups on disk)
- Fresh layout contexts
- Sample report payloads
"""

import pytest

from strata_reports.config import Settings
from strata_reports.services.brand_service import Theme
from strata_reports.services.report_generator_service.layout import LayoutContext


# ---------------------------------------------------------------------------
# Engine configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def theme():
    """Default brand theme, independent of any theme.json on disk."""
    return Theme()


@pytest.fixture
def report_settings():
    """Letter pages, 50pt margin, 70pt footer reserve, no chart fonts."""
    return Settings(chart_font_paths=[], chart_bold_font_paths=[], logo_path="", brand_dir="")


@pytest.fixture
def ctx(theme, report_settings):
    """A fresh layout context (one per document)."""
    return LayoutContext(theme, report_settings)


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def financial_content():
    return {
        "monthlyIncome": 5000,
        "totalExpenses": 3200,
        "funds": [{"name": "Reserve", "type": "reserve", "balance": "125000.00"}],
        "expenses": [],
    }


@pytest.fixture
def expense_items():
    """25 expenses over three months, $100 each, two categories."""
    items = []
    for i in range(25):
        month = 1 + i % 3
        items.append({
            "date": f"2024-0{month}-{(i % 27) + 1:02d}",
            "description": f"Expense {i + 1}",
            "category": "Repairs" if i % 2 == 0 else "Utilities",
            "amount": "100.00",
        })
    return items
