from __future__ import annotations

"""
EMBED_SUMMARY: Deaths/vaccinations join with a per-location running total of administered doses.
EMBED_TAGS: analytics, vaccinations, rolling sum, window function, join, population

rolling_vaccinated = SUM(COALESCE(new_vaccinations, 0)) OVER (PARTITION BY location ORDER BY date)
percent_vaccinated = rolling_vaccinated / population * 100

NULL new_vaccinations counts as zero, so [10, NULL, 20] rolls up to [10, 10, 30] and a location
without any reported doses reads 0 rather than NULL. new_vaccinations counts doses, so the
percentage can pass 100 once second doses and boosters accumulate.

Rows are matched on (location, date) with no uniqueness guarantee: duplicate keys in either
table multiply joined rows. find_duplicate_join_keys reports them.
"""

from typing import List

from sqlalchemy import Float, cast, func, literal, select, union_all
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from .models import CovidDeaths, CovidVaccinations
from .observability import timed_query


def rolling_vaccinations_select() -> Select:
    """Statement behind rolling_vaccinations and the PercentPopulationVaccinated view."""
    rolling = func.sum(func.coalesce(CovidVaccinations.new_vaccinations, 0)).over(
        partition_by=CovidDeaths.location,
        order_by=CovidDeaths.date,
    )
    return (
        select(
            CovidDeaths.continent,
            CovidDeaths.location,
            CovidDeaths.date,
            CovidDeaths.population,
            CovidVaccinations.new_vaccinations,
            rolling.label("rolling_vaccinated"),
        )
        .join(
            CovidVaccinations,
            (CovidDeaths.location == CovidVaccinations.location)
            & (CovidDeaths.date == CovidVaccinations.date),
        )
        .where(CovidDeaths.continent.is_not(None))
    )


def rolling_vaccinations(db: Session) -> List[dict]:
    stmt = rolling_vaccinations_select().order_by(CovidDeaths.location, CovidDeaths.date)
    return timed_query(db, "vaccinations.rolling", stmt)


def percent_vaccinated(db: Session) -> List[dict]:
    """
    EMBED_SUMMARY: Running doses as a percentage of population, per location and date.
    EMBED_TAGS: analytics, vaccinations, percent, population, cte

    SQL sketch:
    WITH pop_vs_vac AS (<rolling vaccinations join>)
    SELECT *, CAST(rolling_vaccinated AS FLOAT) / NULLIF(population, 0) * 100 AS percent_vaccinated
    FROM pop_vs_vac
    ORDER BY location, date;
    """
    pop_vs_vac = rolling_vaccinations_select().cte("pop_vs_vac")
    stmt = select(
        pop_vs_vac,
        (
            cast(pop_vs_vac.c.rolling_vaccinated, Float) / func.nullif(pop_vs_vac.c.population, 0) * 100
        ).label("percent_vaccinated"),
    ).order_by(pop_vs_vac.c.location, pop_vs_vac.c.date)
    return timed_query(db, "vaccinations.percent_vaccinated", stmt)


def find_duplicate_join_keys(db: Session) -> List[dict]:
    """(location, date) keys stored more than once in either source table.

    Any hit means the vaccination join fans out and the running totals overcount.
    """

    def _duplicates(model, source_table: str) -> Select:
        row_count = func.count().label("row_count")
        return (
            select(literal(source_table).label("source_table"), model.location, model.date, row_count)
            .group_by(model.location, model.date)
            .having(func.count() > 1)
        )

    combined = union_all(
        _duplicates(CovidDeaths, CovidDeaths.__tablename__),
        _duplicates(CovidVaccinations, CovidVaccinations.__tablename__),
    ).subquery()
    stmt = select(combined).order_by(combined.c.source_table, combined.c.location, combined.c.date)
    return timed_query(db, "vaccinations.duplicate_keys", stmt)
