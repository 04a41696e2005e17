"""
Deterministic errors and no silent correction.

- Every engine error is a typed exception with a unique machine-readable code.
- No source file swallows exceptions with a bare ``except:``.
"""

import ast
import inspect
from pathlib import Path

import ledger_kernel.exceptions as exceptions_module
from ledger_kernel.exceptions import LedgerEngineError

ROOT = Path(__file__).resolve().parents[2]


def _engine_error_classes() -> list[type[LedgerEngineError]]:
    return [
        obj
        for _, obj in inspect.getmembers(exceptions_module, inspect.isclass)
        if issubclass(obj, LedgerEngineError)
    ]


class TestTypedErrors:
    def test_every_error_has_a_code(self):
        for cls in _engine_error_classes():
            assert cls.code, f"{cls.__name__} has no code"
            assert cls.code.isupper(), f"{cls.__name__}.code is not upper snake case"

    def test_codes_are_unique(self):
        codes = [cls.code for cls in _engine_error_classes()]
        assert len(codes) == len(set(codes))

    def test_errors_are_not_builtin_value_errors(self):
        for cls in _engine_error_classes():
            assert not issubclass(cls, ValueError), cls.__name__


class TestNoBareExcept:
    def test_source_has_no_bare_except(self):
        offenders: list[str] = []
        for package in ("ledger_kernel", "ledger_modules"):
            for path in sorted((ROOT / package).rglob("*.py")):
                tree = ast.parse(path.read_text(), filename=str(path))
                for node in ast.walk(tree):
                    if isinstance(node, ast.ExceptHandler) and node.type is None:
                        offenders.append(f"{path.relative_to(ROOT)}:{node.lineno}")
        assert not offenders, "bare except found:\n" + "\n".join(offenders)
