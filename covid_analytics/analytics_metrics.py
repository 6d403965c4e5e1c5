from __future__ import annotations

"""
EMBED_SUMMARY: Case and death metrics per country, continent and globally (fatality, infection, peaks, totals).
EMBED_TAGS: analytics, covid, deaths, cases, fatality rate, infection rate, population, continent

Every query except all_deaths excludes rows with NULL continent. Those rows are continent/world
rollups stored in the same table as the countries and would double count. Formulas:
- Death_Percentage = round(total_deaths / total_cases * 100, 1), NULL when total_cases is 0/NULL
- Got_Covid_Percentage = round(total_cases / population * 100, 1), NULL when population is 0/NULL
- Percentage_Hight_Infection = max(total_cases / population) * 100 per (location, population)
- Deaths_Percentage = sum(new_deaths) / sum(new_cases) * 100, NULL when sum(new_cases) is 0/NULL

Column labels follow the published report so dashboards keep binding to them.
"""

from typing import List, Optional

from sqlalchemy import Float, cast, func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from .models import CovidDeaths
from .observability import timed_query


def _ratio_percent(numerator, denominator) -> ColumnElement:
    # Float cast avoids integer division; NULLIF turns a zero denominator into NULL
    return cast(numerator, Float) / func.nullif(denominator, 0) * 100


def _countries():
    return CovidDeaths.continent.is_not(None)


def all_deaths(db: Session) -> List[dict]:
    """Every CovidDeaths column, aggregate rows included, ordered by location and date."""
    columns = [c for c in CovidDeaths.__table__.c if c.name != "id"]
    stmt = select(*columns).order_by(CovidDeaths.location, CovidDeaths.date)
    return timed_query(db, "deaths.all", stmt)


def cases_overview(db: Session) -> List[dict]:
    stmt = (
        select(
            CovidDeaths.location,
            CovidDeaths.date,
            CovidDeaths.total_cases,
            CovidDeaths.new_cases,
            CovidDeaths.total_deaths,
            CovidDeaths.population,
        )
        .where(_countries())
        .order_by(CovidDeaths.location, CovidDeaths.date)
    )
    return timed_query(db, "deaths.cases_overview", stmt)


def fatality_rate(db: Session, location: Optional[str] = None) -> List[dict]:
    """
    EMBED_SUMMARY: Share of confirmed cases that died, per location and date, rounded to one decimal.
    EMBED_TAGS: analytics, fatality rate, lethality, deaths, cases

    SQL sketch:
    SELECT location, date, total_cases,
      ROUND(CAST(total_deaths AS FLOAT) / NULLIF(total_cases, 0) * 100, 1) AS Death_Percentage
    FROM CovidDeaths
    WHERE location LIKE '%' || :location || '%' AND continent IS NOT NULL
    ORDER BY location, date;
    """
    stmt = select(
        CovidDeaths.location,
        CovidDeaths.date,
        CovidDeaths.total_cases,
        func.round(_ratio_percent(CovidDeaths.total_deaths, CovidDeaths.total_cases), 1).label(
            "Death_Percentage"
        ),
    ).where(_countries())
    if location:
        stmt = stmt.where(CovidDeaths.location.contains(location, autoescape=True))
    stmt = stmt.order_by(CovidDeaths.location, CovidDeaths.date)
    return timed_query(db, "deaths.fatality_rate", stmt)


def infection_rate(db: Session, location: Optional[str] = None) -> List[dict]:
    """
    EMBED_SUMMARY: Share of the population with a confirmed infection, per location and date.
    EMBED_TAGS: analytics, infection rate, cases, population

    SQL sketch:
    SELECT location, date, population, total_cases,
      ROUND(CAST(total_cases AS FLOAT) / NULLIF(population, 0) * 100, 1) AS Got_Covid_Percentage
    FROM CovidDeaths
    WHERE location LIKE '%' || :location || '%' AND continent IS NOT NULL
    ORDER BY location, date;
    """
    stmt = select(
        CovidDeaths.location,
        CovidDeaths.date,
        CovidDeaths.population,
        CovidDeaths.total_cases,
        func.round(_ratio_percent(CovidDeaths.total_cases, CovidDeaths.population), 1).label(
            "Got_Covid_Percentage"
        ),
    ).where(_countries())
    if location:
        stmt = stmt.where(CovidDeaths.location.contains(location, autoescape=True))
    stmt = stmt.order_by(CovidDeaths.location, CovidDeaths.date)
    return timed_query(db, "deaths.infection_rate", stmt)


def peak_infection_rate(db: Session) -> List[dict]:
    """
    EMBED_SUMMARY: Highest case count and highest infection share per country, largest share first.
    EMBED_TAGS: analytics, infection rate, peak, max, population

    Both maxima are taken independently over the group, so they need not come from the same row.

    SQL sketch:
    SELECT location, population,
      MAX(total_cases) AS Hight_Infection,
      MAX(CAST(total_cases AS FLOAT) / NULLIF(population, 0)) * 100 AS Percentage_Hight_Infection
    FROM CovidDeaths
    WHERE continent IS NOT NULL
    GROUP BY location, population
    ORDER BY Percentage_Hight_Infection DESC;
    """
    percentage = (
        func.max(cast(CovidDeaths.total_cases, Float) / func.nullif(CovidDeaths.population, 0)) * 100
    ).label("Percentage_Hight_Infection")
    stmt = (
        select(
            CovidDeaths.location,
            CovidDeaths.population,
            func.max(CovidDeaths.total_cases).label("Hight_Infection"),
            percentage,
        )
        .where(_countries())
        .group_by(CovidDeaths.location, CovidDeaths.population)
        .order_by(percentage.desc().nulls_last(), CovidDeaths.location)
    )
    return timed_query(db, "deaths.peak_infection_rate", stmt)


def peak_deaths(db: Session) -> List[dict]:
    highest = func.max(CovidDeaths.total_deaths).label("Hight_Deaths")
    stmt = (
        select(CovidDeaths.location, highest)
        .where(_countries())
        .group_by(CovidDeaths.location)
        .order_by(highest.desc().nulls_last(), CovidDeaths.location)
    )
    return timed_query(db, "deaths.peak_deaths", stmt)


def peak_deaths_by_continent(db: Session) -> List[dict]:
    """Highest cumulative death count recorded by any country row of each continent."""
    highest = func.max(CovidDeaths.total_deaths).label("Total_Death_Count")
    stmt = (
        select(CovidDeaths.continent, highest)
        .where(_countries())
        .group_by(CovidDeaths.continent)
        .order_by(highest.desc().nulls_last(), CovidDeaths.continent)
    )
    return timed_query(db, "deaths.peak_deaths_by_continent", stmt)


def global_summary(db: Session) -> List[dict]:
    """
    EMBED_SUMMARY: Worldwide totals of new cases and deaths and the resulting case fatality; one row.
    EMBED_TAGS: analytics, global, totals, fatality rate, sum

    SQL sketch:
    SELECT SUM(new_cases) AS Total_Cases, SUM(new_deaths) AS Total_Deaths,
      CAST(SUM(new_deaths) AS FLOAT) / NULLIF(SUM(new_cases), 0) * 100 AS Deaths_Percentage
    FROM CovidDeaths
    WHERE continent IS NOT NULL;
    """
    total_cases = func.sum(CovidDeaths.new_cases)
    total_deaths = func.sum(CovidDeaths.new_deaths)
    stmt = select(
        total_cases.label("Total_Cases"),
        total_deaths.label("Total_Deaths"),
        _ratio_percent(total_deaths, total_cases).label("Deaths_Percentage"),
    ).where(_countries())
    return timed_query(db, "deaths.global_summary", stmt)
