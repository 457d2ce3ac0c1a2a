from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

# Variables that change report formatting; tests opt in explicitly.
FORMAT_ENV = ("VOUCH", "NO_COLOR", "CLICOLOR", "CLICOLOR_FORCE", "COLUMNS")


@pytest.fixture(autouse=True)
def isolated_format_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reports must not depend on the developer's terminal settings."""
    for name in FORMAT_ENV:
        monkeypatch.delenv(name, raising=False)


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if a scenario table ever repeats an id."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        if item.nodeid in seen:
            duplicates.append(item.nodeid)
            continue
        seen[item.nodeid] = 1

    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
    raise pytest.UsageError(f"Duplicate pytest nodeids detected during collection:\n{lines}")
