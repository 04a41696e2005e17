"""
Reporting Configuration Schema.

Per-report status filters, the commission extraction rules, and the
policy for groups that fail the double-entry check. Loaded from a dict
or a YAML file; every field has a default that reproduces the books as
they have always been run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self
from uuid import UUID

import yaml

from ledger_kernel.domain.currency import CurrencyRegistry
from ledger_kernel.domain.group_check import UnbalancedGroupPolicy
from ledger_kernel.domain.ledger import DRAFT_AND_POSTED, POSTED_ONLY, GroupStatus
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")

DEFAULT_COMMISSION_TYPE_CODES: tuple[str, ...] = ("GENT", "IPTC", "MNGC", "BNKT")

_STATUS_FIELDS = (
    "trial_balance_statuses",
    "ledger_statuses",
    "book_balance_statuses",
)


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Status filters are kept per report: the trial balance reads draft and
    posted groups, the ledgers and books read posted groups only.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Expected base currency; None accepts whatever the currency table says
    base_currency: str | None = None

    trial_balance_statuses: frozenset[GroupStatus] = field(
        default_factory=lambda: DRAFT_AND_POSTED,
    )
    ledger_statuses: frozenset[GroupStatus] = field(
        default_factory=lambda: POSTED_ONLY,
    )
    book_balance_statuses: frozenset[GroupStatus] = field(
        default_factory=lambda: POSTED_ONLY,
    )

    # Commission extraction
    commission_type_codes: tuple[str, ...] = DEFAULT_COMMISSION_TYPE_CODES
    commission_account_id: UUID | None = None

    unbalanced_group_policy: UnbalancedGroupPolicy = UnbalancedGroupPolicy.RAISE

    # Whether to include accounts with zero balance in the trial balance
    include_zero_balances: bool = False

    # Whether to include inactive accounts
    include_inactive: bool = False

    # Upper bound on lines loaded per report; None disables the check
    max_snapshot_lines: int | None = 500_000

    def __post_init__(self):
        for name in _STATUS_FIELDS:
            statuses = frozenset(GroupStatus(s) for s in getattr(self, name))
            if not statuses:
                raise ValueError(f"{name} cannot be empty")
            setattr(self, name, statuses)
        self.commission_type_codes = tuple(
            c.strip().upper() for c in self.commission_type_codes
        )
        if not self.commission_type_codes:
            raise ValueError("commission_type_codes cannot be empty")
        if self.commission_account_id is not None and not isinstance(
            self.commission_account_id, UUID
        ):
            self.commission_account_id = UUID(str(self.commission_account_id))
        self.unbalanced_group_policy = UnbalancedGroupPolicy(self.unbalanced_group_policy)
        if self.base_currency is not None:
            self.base_currency = CurrencyRegistry.normalize(self.base_currency)
        if self.max_snapshot_lines is not None and self.max_snapshot_lines <= 0:
            raise ValueError("max_snapshot_lines must be positive")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary (unknown keys raise TypeError)."""
        data = dict(data)
        for name in _STATUS_FIELDS:
            if name in data:
                data[name] = frozenset(data[name])
        if "commission_type_codes" in data:
            data["commission_type_codes"] = tuple(data["commission_type_codes"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path | str) -> Self:
        """
        Load config from a YAML file.

        The file may hold the fields at top level or under a ``reporting``
        key. An empty file yields the defaults.

        Raises:
            FileNotFoundError: if the file does not exist.
            yaml.YAMLError: if the file contains invalid YAML.
            ValueError: if the document is not a mapping.
        """
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
        if isinstance(data.get("reporting"), dict):
            data = data["reporting"]
        logger.info("reporting_config_loaded_from_yaml", extra={"path": str(path)})
        return cls.from_dict(data)
