"""
API Routers
"""

from strata_reports.routers import reports_router

__all__ = ["reports_router"]
