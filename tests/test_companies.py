"""Tests for company list loading."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest  # type: ignore

from hhflow.errors import ValidationError
from hhflow.ingest.companies import load_companies, load_table, unique_names


def test_csv_first_column_with_header(tmp_path: Path) -> None:
    path = tmp_path / "companies.csv"
    path.write_text("Company name,INN\nООО Ромашка,123\n,\nАкме,456\nООО Ромашка,123\n", encoding="utf-8")
    assert load_companies(str(path)) == ["ООО Ромашка", "Акме"]


def test_txt_without_header(tmp_path: Path) -> None:
    path = tmp_path / "companies.txt"
    path.write_text("Ромашка\nАкме\n", encoding="utf-8")
    assert load_companies(str(path)) == ["Ромашка", "Акме"]


def test_excel(tmp_path: Path) -> None:
    path = tmp_path / "companies.xlsx"
    pd.DataFrame({"a": ["Ромашка", None, "Акме"]}).to_excel(path, header=False, index=False)
    assert load_companies(str(path)) == ["Ромашка", "Акме"]


def test_missing_and_unsupported(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        load_companies(str(tmp_path / "nope.csv"))
    bad = tmp_path / "companies.json"
    bad.write_text("[]", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_companies(str(bad))


def test_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("Company\n\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_companies(str(path))


def test_unique_names_forced_header() -> None:
    assert unique_names(["Header", "A", " A ", "B"], skip_header=True) == ["A", "B"]


def test_load_table_keeps_every_column(tmp_path: Path) -> None:
    path = tmp_path / "links.xlsx"
    pd.DataFrame([["Company name", "INN", "Link to vacancy"], ["Акме", None, "https://hh.ru/vacancy/1"]]).to_excel(
        path, header=False, index=False)
    assert load_table(str(path)) == [
        ["Company name", "INN", "Link to vacancy"],
        ["Акме", "", "https://hh.ru/vacancy/1"],
    ]
