"""Tests for the command line entrypoint."""

from __future__ import annotations

import json
from typing import Any

import pytest
from click.testing import CliRunner

import rental_search.__main__ as entrypoint
from rental_search.domain.ports.pricing_api import FetchOk, FetchTransportError


class FakeAdapter:
    """Stands in for HertzApiAdapter inside the CLI."""

    def __init__(self, timeout: float | None = None) -> None:
        self.outcomes = [
            FetchOk(status=200, body={"data": {"model": {"vehicles": [{"name": "Fiat 500", "quotes": [{"price": "270"}]}]}}}),
            FetchTransportError(kind="ConnectError", message="offline"),
        ]

    async def post(self, endpoint: str, json_body: dict[str, Any]):
        return self.outcomes.pop(0)

    async def __aenter__(self) -> FakeAdapter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None


@pytest.fixture
def runner(monkeypatch) -> CliRunner:
    monkeypatch.setattr(entrypoint, "HertzApiAdapter", FakeAdapter)
    monkeypatch.setattr(entrypoint, "configure_logging", lambda: None)
    return CliRunner()


def test_search_prints_report_and_writes_exports(runner, tmp_path) -> None:
    json_path = tmp_path / "rows.json"
    csv_path = tmp_path / "rows.csv"

    result = runner.invoke(
        entrypoint.cli,
        [
            "search",
            "01/03/2026",
            "02/03/2026",
            "10/03/2026",
            "10/03/2026",
            "--min-days",
            "7",
            "--delay-ms",
            "0",
            "--json-out",
            str(json_path),
            "--csv-out",
            str(csv_path),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "## BEST DEAL" in result.output
    assert "**270.00 CHF** total | **30.00 CHF/day**" in result.output
    records = json.loads(json_path.read_text(encoding="utf-8"))
    assert len(records) == 2
    assert records[1]["error_kind"] == "transport_error"
    assert csv_path.read_text(encoding="utf-8").count("\n") == 2


def test_search_rejects_malformed_date(runner) -> None:
    result = runner.invoke(
        entrypoint.cli,
        ["search", "2026-03-01", "02/03/2026", "10/03/2026", "10/03/2026"],
    )

    assert result.exit_code == 2
    assert "DD/MM/YYYY" in result.output
