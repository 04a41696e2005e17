"""
Kernel Boundary & Invariants Contract.

Tests that enforce the kernel's architectural boundaries:

1. ledger_kernel/** may NOT import ledger_modules. The kernel never
   depends upward.

2. ledger_kernel/domain/** and the pure report builders are free of
   ORM and database imports.

3. The ledger invariants declaration is complete and non-empty.

These tests read source code via AST. They cannot break anything.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _python_files(relative: str) -> list[Path]:
    """Return all .py files under a package directory."""
    return sorted((ROOT / relative).rglob("*.py"))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Extract (line_number, module_string) for all imports in a file."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _violations(files: list[Path], forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in files:
        for lineno, module in _extract_imports(filepath):
            for prefix in forbidden:
                if module == prefix or module.startswith(f"{prefix}."):
                    found.append(
                        f"  {filepath.relative_to(ROOT)}:{lineno} imports '{module}'"
                    )
    return found


# ---------------------------------------------------------------------------
# Test: Kernel has no upward dependencies
# ---------------------------------------------------------------------------


class TestKernelNoUpwardDependencies:
    """ledger_kernel/** must not import ledger_modules."""

    def test_kernel_package_found(self):
        assert _python_files("ledger_kernel"), "ledger_kernel sources not found"

    def test_kernel_does_not_import_forbidden_packages(self):
        from ledger_kernel.invariants import FORBIDDEN_KERNEL_IMPORTS

        violations = _violations(_python_files("ledger_kernel"), FORBIDDEN_KERNEL_IMPORTS)
        assert not violations, (
            "Kernel boundary violation: ledger_kernel/** must not import "
            "upward packages:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Domain purity
# ---------------------------------------------------------------------------


class TestDomainPurity:
    """Pure layers must not import ORM or DB packages."""

    FORBIDDEN_MODULES = (
        "sqlalchemy",
        "psycopg",
        "sqlite3",
        "ledger_kernel.db",
        "ledger_kernel.models",
        "ledger_kernel.selectors",
    )

    def test_domain_no_orm_imports(self):
        violations = _violations(_python_files("ledger_kernel/domain"), self.FORBIDDEN_MODULES)
        assert not violations, (
            "Domain purity violation: ledger_kernel/domain/** must not "
            "import ORM/DB packages:\n" + "\n".join(violations)
        )

    def test_report_builders_no_orm_imports(self):
        files = [
            ROOT / "ledger_modules" / "reporting" / "statements.py",
            ROOT / "ledger_modules" / "reporting" / "models.py",
        ]
        violations = _violations(files, self.FORBIDDEN_MODULES)
        assert not violations, (
            "Report builders must stay pure:\n" + "\n".join(violations)
        )


# ---------------------------------------------------------------------------
# Test: Invariants declaration exists and is complete
# ---------------------------------------------------------------------------


class TestLedgerInvariantsDeclaration:
    """The ledger invariants contract must be declared and complete."""

    def test_invariants_module_exists(self):
        from ledger_kernel.invariants import ALL_LEDGER_INVARIANTS

        assert len(ALL_LEDGER_INVARIANTS) > 0

    def test_required_invariants_declared(self):
        from ledger_kernel.invariants import LedgerInvariant

        required = {
            "DOUBLE_ENTRY_BALANCE",
            "SINGLE_SIDED_LINE",
            "STORED_RATE_CONVERSION",
            "SINGLE_BASE_CURRENCY",
            "REFERENTIAL_INTEGRITY",
            "DETERMINISTIC_REPLAY",
        }
        declared = {inv.name for inv in LedgerInvariant}
        missing = required - declared
        assert not missing, f"Missing ledger invariants: {missing}"

    def test_tolerance_is_one_minor_unit(self):
        from decimal import Decimal

        from ledger_kernel.invariants import BALANCE_TOLERANCE

        assert BALANCE_TOLERANCE == Decimal("0.01")

    def test_forbidden_imports_declared(self):
        from ledger_kernel.invariants import FORBIDDEN_KERNEL_IMPORTS

        assert "ledger_modules" in FORBIDDEN_KERNEL_IMPORTS
