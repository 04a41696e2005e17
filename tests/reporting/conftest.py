"""
Reporting-specific test fixtures.

Provides:
- A default ReportingConfig
- A ReportMetadata factory for calling the pure builders directly
"""

from datetime import date

import pytest

from ledger_kernel.domain.ledger import POSTED_ONLY
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import ReportMetadata, ReportType


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Standard reporting configuration for tests."""
    return ReportingConfig.with_defaults()


@pytest.fixture
def make_metadata():
    """Build ReportMetadata for pure builder calls."""

    def _make(
        report_type: ReportType = ReportType.TRIAL_BALANCE,
        as_of: date = date(2024, 1, 31),
        statuses=POSTED_ONLY,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            entity_name="Test Co",
            currency="AED",
            as_of_date=as_of,
            generated_at="2024-01-31T18:00:00+00:00",
            period_start=period_start,
            period_end=period_end,
            status_filter=tuple(sorted(s.value for s in statuses)),
        )

    return _make
