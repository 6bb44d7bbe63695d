#!/usr/bin/env python3
"""
Project Linter Script

Runs linters in order:
1. ruff check (backend + tests)
2. ruff format --check

Stops immediately on first failure and returns all errors for that section.
"""

import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class LintResult:
    """Result of a lint check."""
    name: str
    success: bool
    output: str
    return_code: int


def run_command(cmd: list[str], cwd: Optional[Path] = None) -> tuple[int, str, str]:
    """Run a command and return (return_code, stdout, stderr)."""
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=300,  # 5 minute timeout
        )
        return result.returncode, result.stdout, result.stderr
    except FileNotFoundError:
        return -1, "", f"Command not found: {cmd[0]}"
    except subprocess.TimeoutExpired:
        return -1, "", f"Command timed out: {' '.join(cmd)}"
    except Exception as e:
        return -1, "", str(e)


def run_ruff(name: str, args: list[str], project_root: Path, targets: list[str]) -> LintResult:
    """Run one ruff subcommand, falling back to ``python -m ruff``."""
    print("\n" + "=" * 60)
    print(f"🔍 Running {name}")
    print("=" * 60)

    existing = [t for t in targets if (project_root / t).exists()]
    if not existing:
        return LintResult(
            name=name,
            success=True,
            output="No Python sources found, skipping",
            return_code=0,
        )

    code, stdout, stderr = run_command(["ruff", *args, *existing], cwd=project_root)
    if code == -1 and "not found" in stderr.lower():
        print("ruff not found on PATH, trying python -m ruff...")
        code, stdout, stderr = run_command(
            [sys.executable, "-m", "ruff", *args, *existing],
            cwd=project_root,
        )

    output = stdout + stderr
    success = code == 0

    if success:
        print(f"✅ {name} passed")
    else:
        print(f"❌ {name} failed")
        print(output)

    return LintResult(
        name=name,
        success=success,
        output=output if not success else "No errors",
        return_code=code,
    )


def main() -> int:
    """Run all linters in order."""
    print("🚀 Starting Project Linter")
    print("=" * 60)

    project_root = Path(__file__).parent
    targets = ["backend", "tests", "run_linter.py"]

    checks = [
        ("ruff check", ["check"]),
        ("ruff format", ["format", "--check"]),
    ]

    results: list[LintResult] = []
    for name, args in checks:
        result = run_ruff(name, args, project_root, targets)
        results.append(result)
        if not result.success:
            print_summary(results)
            return 1

    print_summary(results)
    return 0


def print_summary(results: list[LintResult]) -> None:
    """Print summary of all lint results."""
    print("\n" + "=" * 60)
    print("📊 LINT SUMMARY")
    print("=" * 60)

    all_passed = True
    for result in results:
        status = "✅ PASS" if result.success else "❌ FAIL"
        print(f"  {result.name}: {status}")
        if not result.success:
            all_passed = False

    print("=" * 60)

    if all_passed:
        print("🎉 All checks passed!")
    else:
        print("💥 Linting failed! Fix the errors above.")
        for result in results:
            if not result.success:
                print(f"\n--- {result.name} Errors ---")
                print(result.output)
                break  # Only show first failure


if __name__ == "__main__":
    sys.exit(main())
