"""Reference, insertion and status text for shared selections.

Reference cases live in cases.yaml next to this file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from pide.reference import format_insertion, format_reference, line_count, short_path, status_text
from pide.store import SelectionRecord

CASES_PATH = Path(__file__).parent / "cases.yaml"


def _load_cases() -> list[dict[str, Any]]:
    with open(CASES_PATH) as f:
        return yaml.safe_load(f)


_CASES = _load_cases()


def _case_id(case: dict[str, Any]) -> str:
    return case["id"]


def _build(fields: dict[str, Any]) -> SelectionRecord:
    return SelectionRecord.model_validate({"timestamp": 0, **fields})


@pytest.mark.parametrize("case", _CASES, ids=_case_id)
def test_format_reference(case: dict[str, Any]) -> None:
    record = _build(case["record"])
    assert format_reference(record) == case["reference"]


@pytest.mark.parametrize("case", _CASES, ids=_case_id)
def test_line_count(case: dict[str, Any]) -> None:
    record = _build(case["record"])
    assert line_count(record) == case["line_count"]


def test_insertion_text():
    record = _build({"file": "/p/x.py", "selection": "print(1)", "startLine": 3, "endLine": 3})
    assert format_insertion(record) == "Referencing /p/x.py:3\n"


class TestShortPath:

    def test_short_enough_is_unchanged(self):
        assert short_path("/a/b.ts") == "/a/b.ts"

    def test_keeps_parent_and_name(self):
        path = "/Users/someone/projects/very/deep/tree/components/Button.tsx"
        assert short_path(path) == ".../components/Button.tsx"

    def test_falls_back_to_name(self):
        path = "/Users/someone/projects/an-extremely-long-directory-name/Button.tsx"
        assert short_path(path, max_len=30) == ".../Button.tsx"


class TestStatusText:

    def test_nothing_shared(self):
        assert status_text(None) is None

    def test_selected_lines(self):
        record = _build({
            "file": "/Users/pierre/project/src/components/Button.tsx",
            "selection": "export function Button() {}",
            "startLine": 10,
            "endLine": 16,
            "ide": "vscode",
        })
        assert status_text(record) == "7 lines selected from Button.tsx in vscode (ctrl+i to insert)"

    def test_open_file_uses_short_path(self):
        record = _build({"file": "/Users/pierre/project/src/components/Button.tsx", "ide": "neovim"})
        assert status_text(record) == ".../components/Button.tsx in neovim (ctrl+i to insert)"

    def test_missing_ide_shows_placeholder(self):
        record = _build({"file": "/a/b.ts"})
        assert status_text(record) == "/a/b.ts in IDE (ctrl+i to insert)"
