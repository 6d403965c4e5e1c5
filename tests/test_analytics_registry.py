from __future__ import annotations

from datetime import date
import re
from pathlib import Path

import pytest

from covid_analytics.analytics_registry import QUERIES, Metric, get_metric, metrics, run_metric
from covid_analytics.config import get_settings
from covid_analytics.models import CovidDeaths


def test_registry_presence_and_shape() -> None:
    names = {m.name for m in metrics}
    assert names == set(QUERIES)
    for required in [
        "deaths.fatality_rate",
        "deaths.infection_rate",
        "deaths.peak_infection_rate",
        "deaths.global_summary",
        "vaccinations.rolling",
        "views.percent_population_vaccinated",
    ]:
        assert required in names
    for m in metrics:
        assert isinstance(m.name, str) and m.name
        assert m.category in ("exploration", "metric", "vaccination", "view")
        assert isinstance(m.sql_sketch, str) and m.sql_sketch.strip()
        assert isinstance(m.description, str) and m.description.strip()
        assert m.test_ids


def test_registry_lookup() -> None:
    m = get_metric("vaccinations.rolling")
    assert m is not None and isinstance(m, Metric)
    assert "OVER" in m.sql_sketch.upper()
    assert get_metric("deaths.unknown") is None


def test_run_metric_dispatches_with_params(db_session) -> None:
    db_session.add(
        CovidDeaths(continent="South America", location="Brazil", date=date(2021, 1, 1), population=1000, total_cases=100, total_deaths=2)
    )
    db_session.commit()

    rows = run_metric(db_session, "deaths.fatality_rate", location="Brazil")
    assert rows[0]["Death_Percentage"] == 2.0
    assert run_metric(db_session, "deaths.global_summary")[0]["Total_Cases"] is None


def test_run_metric_unknown_name(db_session) -> None:
    with pytest.raises(KeyError):
        run_metric(db_session, "deaths.unknown")


def test_registry_test_ids_name_real_tests() -> None:
    tests_dir = Path(__file__).resolve().parent
    defined = set()
    for path in tests_dir.glob("test_*.py"):
        defined.update(re.findall(r"^def (test_\w+)\(", path.read_text(), flags=re.MULTILINE))
    missing = {tid for m in metrics for tid in m.test_ids if tid not in defined}
    assert missing == set()


def test_run_metric_applies_default_location(db_session, monkeypatch: pytest.MonkeyPatch) -> None:
    for location in ("Argentina", "Brazil"):
        db_session.add(
            CovidDeaths(continent="South America", location=location, date=date(2021, 1, 1), population=1000, total_cases=100, total_deaths=2)
        )
    db_session.commit()

    monkeypatch.delenv("COVID_DEFAULT_LOCATION", raising=False)
    get_settings.cache_clear()  # type: ignore[attr-defined]
    try:
        assert [r["location"] for r in run_metric(db_session, "deaths.fatality_rate")] == ["Brazil"]
        assert [r["location"] for r in run_metric(db_session, "deaths.infection_rate")] == ["Brazil"]
        # Explicit None still means every country
        assert [r["location"] for r in run_metric(db_session, "deaths.fatality_rate", location=None)] == [
            "Argentina",
            "Brazil",
        ]

        monkeypatch.setenv("COVID_DEFAULT_LOCATION", "Argentina")
        get_settings.cache_clear()  # type: ignore[attr-defined]
        assert [r["location"] for r in run_metric(db_session, "deaths.infection_rate")] == ["Argentina"]
    finally:
        get_settings.cache_clear()  # type: ignore[attr-defined]
