from __future__ import annotations

"""
EMBED_SUMMARY: Structured registry of the COVID-19 exploration queries with SQL sketches and constraints.
EMBED_TAGS: analytics, registry, metrics, covid, sql, documentation

Each entry documents one query function and maps it by name so callers can run reports by
identifier (run_metric). Fields:
- name: unique identifier (e.g., deaths.fatality_rate)
- category: exploration | metric | vaccination | view
- inputs: source tables/columns referenced
- sql_sketch: representative SQL describing the computation
- constraints: NULL-handling and domain notes
- description: human summary
- tags: keywords
- test_ids: tests asserting the behavior
"""

from typing import Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from . import analytics_metrics, analytics_vaccinations, sql_views
from .config import get_settings


MetricCategory = Literal["exploration", "metric", "vaccination", "view"]


class Metric(BaseModel):
    name: str
    category: MetricCategory
    inputs: List[str] = Field(default_factory=list)
    sql_sketch: str
    constraints: List[str] = Field(default_factory=list)
    description: str
    tags: List[str] = Field(default_factory=list)
    test_ids: List[str] = Field(default_factory=list)


metrics: List[Metric] = [
    Metric(
        name="deaths.all",
        category="exploration",
        inputs=["CovidDeaths"],
        sql_sketch="SELECT * FROM CovidDeaths ORDER BY location, date;",
        constraints=["includes aggregate rows with NULL continent"],
        description="Full deaths table sorted for per-location browsing.",
        tags=["deaths", "exploration"],
        test_ids=["test_all_deaths_keeps_aggregate_rows"],
    ),
    Metric(
        name="deaths.cases_overview",
        category="exploration",
        inputs=["CovidDeaths"],
        sql_sketch=(
            "SELECT location, date, total_cases, new_cases, total_deaths, population "
            "FROM CovidDeaths WHERE continent IS NOT NULL ORDER BY location, date;"
        ),
        constraints=["countries only"],
        description="Key case and death columns for countries.",
        tags=["deaths", "cases", "exploration"],
        test_ids=["test_cases_overview_excludes_aggregates"],
    ),
    Metric(
        name="deaths.fatality_rate",
        category="metric",
        inputs=["CovidDeaths.total_deaths", "CovidDeaths.total_cases"],
        sql_sketch=(
            "SELECT location, date, total_cases, "
            "ROUND(CAST(total_deaths AS FLOAT) / NULLIF(total_cases, 0) * 100, 1) AS Death_Percentage "
            "FROM CovidDeaths WHERE location LIKE '%' || :location || '%' AND continent IS NOT NULL "
            "ORDER BY location, date;"
        ),
        constraints=["NULL if total_cases is 0 or NULL", "rounded to 1 decimal"],
        description="Percentage of confirmed cases that died.",
        tags=["deaths", "fatality", "metric"],
        test_ids=["test_brazil_fatality_and_infection_rates", "test_fatality_rate_null_when_no_cases"],
    ),
    Metric(
        name="deaths.infection_rate",
        category="metric",
        inputs=["CovidDeaths.total_cases", "CovidDeaths.population"],
        sql_sketch=(
            "SELECT location, date, population, total_cases, "
            "ROUND(CAST(total_cases AS FLOAT) / NULLIF(population, 0) * 100, 1) AS Got_Covid_Percentage "
            "FROM CovidDeaths WHERE location LIKE '%' || :location || '%' AND continent IS NOT NULL "
            "ORDER BY location, date;"
        ),
        constraints=["NULL if population is 0 or NULL", "rounded to 1 decimal"],
        description="Percentage of the population with a confirmed infection.",
        tags=["cases", "population", "metric"],
        test_ids=["test_brazil_fatality_and_infection_rates"],
    ),
    Metric(
        name="deaths.peak_infection_rate",
        category="metric",
        inputs=["CovidDeaths.total_cases", "CovidDeaths.population"],
        sql_sketch=(
            "SELECT location, population, MAX(total_cases) AS Hight_Infection, "
            "MAX(CAST(total_cases AS FLOAT) / NULLIF(population, 0)) * 100 AS Percentage_Hight_Infection "
            "FROM CovidDeaths WHERE continent IS NOT NULL GROUP BY location, population "
            "ORDER BY Percentage_Hight_Infection DESC;"
        ),
        constraints=["maxima taken independently per group", "unrounded"],
        description="Peak case count and peak infection share per country.",
        tags=["cases", "population", "peak", "metric"],
        test_ids=["test_peak_infection_percentage_is_independent_max"],
    ),
    Metric(
        name="deaths.peak_deaths",
        category="metric",
        inputs=["CovidDeaths.total_deaths"],
        sql_sketch=(
            "SELECT location, MAX(total_deaths) AS Hight_Deaths FROM CovidDeaths "
            "WHERE continent IS NOT NULL GROUP BY location ORDER BY Hight_Deaths DESC;"
        ),
        constraints=["countries only"],
        description="Highest cumulative deaths per country.",
        tags=["deaths", "peak", "metric"],
        test_ids=["test_peak_deaths_by_location_and_continent"],
    ),
    Metric(
        name="deaths.peak_deaths_by_continent",
        category="metric",
        inputs=["CovidDeaths.continent", "CovidDeaths.total_deaths"],
        sql_sketch=(
            "SELECT continent, MAX(total_deaths) AS Total_Death_Count FROM CovidDeaths "
            "WHERE continent IS NOT NULL GROUP BY continent ORDER BY Total_Death_Count DESC;"
        ),
        constraints=["max of country rows, not a continent sum"],
        description="Highest cumulative deaths of any country in each continent.",
        tags=["deaths", "continent", "metric"],
        test_ids=["test_peak_deaths_by_location_and_continent"],
    ),
    Metric(
        name="deaths.global_summary",
        category="metric",
        inputs=["CovidDeaths.new_cases", "CovidDeaths.new_deaths"],
        sql_sketch=(
            "SELECT SUM(new_cases) AS Total_Cases, SUM(new_deaths) AS Total_Deaths, "
            "CAST(SUM(new_deaths) AS FLOAT) / NULLIF(SUM(new_cases), 0) * 100 AS Deaths_Percentage "
            "FROM CovidDeaths WHERE continent IS NOT NULL;"
        ),
        constraints=["single row", "NULL percentage if no cases"],
        description="Worldwide new case and death totals with case fatality.",
        tags=["global", "deaths", "cases", "metric"],
        test_ids=["test_global_summary_totals", "test_global_summary_without_cases"],
    ),
    Metric(
        name="vaccinations.rolling",
        category="vaccination",
        inputs=["CovidDeaths", "CovidVaccinations.new_vaccinations"],
        sql_sketch=(
            "SELECT dea.continent, dea.location, dea.date, dea.population, vac.new_vaccinations, "
            "SUM(COALESCE(vac.new_vaccinations, 0)) OVER (PARTITION BY dea.location ORDER BY dea.date) "
            "AS rolling_vaccinated FROM CovidDeaths dea JOIN CovidVaccinations vac "
            "ON dea.location = vac.location AND dea.date = vac.date WHERE dea.continent IS NOT NULL;"
        ),
        constraints=["NULL doses count as 0", "non-decreasing per location", "duplicate keys fan out"],
        description="Running total of administered doses per country.",
        tags=["vaccinations", "rolling", "window", "join"],
        test_ids=["test_rolling_treats_null_as_zero", "test_rolling_is_non_decreasing"],
    ),
    Metric(
        name="vaccinations.percent_vaccinated",
        category="vaccination",
        inputs=["CovidDeaths.population", "CovidVaccinations.new_vaccinations"],
        sql_sketch=(
            "WITH pop_vs_vac AS (<vaccinations.rolling>) "
            "SELECT *, CAST(rolling_vaccinated AS FLOAT) / NULLIF(population, 0) * 100 AS percent_vaccinated "
            "FROM pop_vs_vac;"
        ),
        constraints=["counts doses, may exceed 100", "NULL if population is 0 or NULL"],
        description="Running doses as a share of population.",
        tags=["vaccinations", "percent", "population"],
        test_ids=["test_percent_vaccinated_can_exceed_100"],
    ),
    Metric(
        name="vaccinations.duplicate_keys",
        category="vaccination",
        inputs=["CovidDeaths", "CovidVaccinations"],
        sql_sketch=(
            "SELECT 'CovidDeaths', location, date, COUNT(*) FROM CovidDeaths GROUP BY location, date "
            "HAVING COUNT(*) > 1 UNION ALL SELECT 'CovidVaccinations', location, date, COUNT(*) "
            "FROM CovidVaccinations GROUP BY location, date HAVING COUNT(*) > 1;"
        ),
        constraints=["diagnostic only"],
        description="Join keys that would multiply joined rows.",
        tags=["vaccinations", "join", "data quality"],
        test_ids=["test_duplicate_keys_fan_out_join"],
    ),
    Metric(
        name="views.percent_population_vaccinated",
        category="view",
        inputs=["PercentPopulationVaccinated"],
        sql_sketch=(
            "SELECT continent, location, date, population, new_vaccinations, rolling_vaccinated "
            "FROM PercentPopulationVaccinated ORDER BY location, date;"
        ),
        constraints=["logical view, recomputed on read"],
        description="Persisted view of running vaccination totals for BI tools.",
        tags=["views", "vaccinations", "reporting"],
        test_ids=["test_view_matches_rolling_query"],
    ),
]


QUERIES: Dict[str, Callable[..., List[dict]]] = {
    "deaths.all": analytics_metrics.all_deaths,
    "deaths.cases_overview": analytics_metrics.cases_overview,
    "deaths.fatality_rate": analytics_metrics.fatality_rate,
    "deaths.infection_rate": analytics_metrics.infection_rate,
    "deaths.peak_infection_rate": analytics_metrics.peak_infection_rate,
    "deaths.peak_deaths": analytics_metrics.peak_deaths,
    "deaths.peak_deaths_by_continent": analytics_metrics.peak_deaths_by_continent,
    "deaths.global_summary": analytics_metrics.global_summary,
    "vaccinations.rolling": analytics_vaccinations.rolling_vaccinations,
    "vaccinations.percent_vaccinated": analytics_vaccinations.percent_vaccinated,
    "vaccinations.duplicate_keys": analytics_vaccinations.find_duplicate_join_keys,
    "views.percent_population_vaccinated": sql_views.read_percent_population_vaccinated,
}

# Reports that fall back to Settings.default_location when run by name without a location
LOCATION_FILTERED = {"deaths.fatality_rate", "deaths.infection_rate"}


def get_metric(name: str) -> Optional[Metric]:
    for m in metrics:
        if m.name == name:
            return m
    return None


def run_metric(db: Session, name: str, **params) -> List[dict]:
    if name not in QUERIES:
        raise KeyError(f"Unknown metric: {name}")
    if name in LOCATION_FILTERED:
        params.setdefault("location", get_settings().default_location)
    return QUERIES[name](db, **params)
