"""
Kernel boundary and invariants contract.

1. bloodbank_kernel/** may NOT import bloodbank_config or scripts.
   The kernel never depends upward.

2. bloodbank_kernel/domain/** is the pure core: no SQLAlchemy, no
   models, services or selectors.

3. Only domain/clock.py reads the system clock.

4. The kernel invariants declaration is complete and non-empty.

These tests read source code via AST; they cannot break anything.
"""

import ast
from pathlib import Path

from bloodbank_kernel.invariants import (
    ALL_KERNEL_INVARIANTS,
    FORBIDDEN_KERNEL_IMPORTS,
    KernelInvariant,
)

ROOT = Path(__file__).resolve().parents[2]
KERNEL = ROOT / "bloodbank_kernel"
DOMAIN = KERNEL / "domain"


def _python_files(root: Path) -> list[Path]:
    return sorted(root.rglob("*.py"))


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    """(line_number, module) for every import in a file."""
    tree = ast.parse(path.read_text(), filename=str(path))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _matches(module: str, prefix: str) -> bool:
    return module == prefix or module.startswith(f"{prefix}.")


def _rel(path: Path) -> str:
    return str(path.relative_to(ROOT))


# ---------------------------------------------------------------------------
# Upward dependencies
# ---------------------------------------------------------------------------


class TestKernelNoUpwardDependencies:

    def test_kernel_does_not_import_forbidden_packages(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files(KERNEL)
            for lineno, module in _extract_imports(path)
            for prefix in FORBIDDEN_KERNEL_IMPORTS
            if _matches(module, prefix)
        ]
        assert not violations, (
            "Kernel boundary violation: bloodbank_kernel/** must not import "
            f"{', '.join(FORBIDDEN_KERNEL_IMPORTS)}:\n" + "\n".join(violations)
        )

    def test_files_were_found(self):
        assert len(_python_files(KERNEL)) > 10


# ---------------------------------------------------------------------------
# Pure domain core
# ---------------------------------------------------------------------------


class TestDomainIsPure:

    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "bloodbank_kernel.db",
        "bloodbank_kernel.models",
        "bloodbank_kernel.services",
        "bloodbank_kernel.selectors",
    )

    def test_domain_has_no_io_imports(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files(DOMAIN)
            for lineno, module in _extract_imports(path)
            for prefix in self.FORBIDDEN_PREFIXES
            if _matches(module, prefix)
        ]
        assert not violations, "domain/** must stay pure:\n" + "\n".join(violations)


class TestClockDiscipline:

    def test_only_clock_module_reads_system_time(self):
        violations = []
        for path in _python_files(KERNEL):
            if path == DOMAIN / "clock.py":
                continue
            tree = ast.parse(path.read_text(), filename=str(path))
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Attribute)
                    and node.attr in ("now", "today", "utcnow")
                    and isinstance(node.value, ast.Name)
                    and node.value.id in ("datetime", "date")
                ):
                    violations.append(f"  {_rel(path)}:{node.lineno} calls {node.value.id}.{node.attr}")
        assert not violations, "Use an injected Clock:\n" + "\n".join(violations)


# ---------------------------------------------------------------------------
# Invariants declaration
# ---------------------------------------------------------------------------


class TestInvariantsDeclaration:

    def test_all_invariants_listed(self):
        assert ALL_KERNEL_INVARIANTS == frozenset(KernelInvariant)
        assert len(ALL_KERNEL_INVARIANTS) >= 6

    def test_core_invariants_present(self):
        names = {inv.name for inv in KernelInvariant}
        assert {"NON_NEGATIVE_STOCK", "PAIRED_LEDGER_WRITES", "ROLE_GATED_MUTATION"} <= names

    def test_invariant_tags_in_source_are_declared(self):
        """Every '# INVARIANT: X' comment names a declared invariant."""
        declared = {inv.name for inv in KernelInvariant}
        unknown = []
        for path in _python_files(KERNEL):
            for lineno, line in enumerate(path.read_text().splitlines(), start=1):
                marker = line.strip()
                if marker.startswith("# INVARIANT:"):
                    name = marker.split(":", 1)[1].split()[0]
                    if name not in declared:
                        unknown.append(f"  {_rel(path)}:{lineno} {name}")
        assert not unknown, "Undeclared invariant tags:\n" + "\n".join(unknown)
