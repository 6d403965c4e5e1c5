from __future__ import annotations

"""
EMBED_SUMMARY: Logical SQL view of the running vaccination totals for BI and dashboard consumers.
EMBED_TAGS: analytics, sql, views, vaccinations, rolling sum, reporting

PercentPopulationVaccinated holds no data of its own; every read re-evaluates the join and window
function over the current tables. The view body is compiled from rolling_vaccinations_select so
the view and the in-process query cannot drift apart.
"""

import logging
from typing import List

from sqlalchemy import BigInteger, Date, String, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .analytics_vaccinations import rolling_vaccinations_select
from .observability import timed_query


VIEW_NAME = "PercentPopulationVaccinated"

VIEW_COLUMNS = (
    "continent",
    "location",
    "date",
    "population",
    "new_vaccinations",
    "rolling_vaccinated",
)


def create_views(engine: Engine) -> None:
    """(Re)define the reporting views. Idempotent; a stale definition is replaced.

    Views:
    - PercentPopulationVaccinated: continent, location, date, population, new_vaccinations, rolling_vaccinated
    """
    preparer = engine.dialect.identifier_preparer
    view = preparer.quote(VIEW_NAME)
    body = rolling_vaccinations_select().compile(engine, compile_kwargs={"literal_binds": True})
    with engine.begin() as conn:
        conn.execute(text(f"DROP VIEW IF EXISTS {view}"))
        conn.execute(text(f"CREATE VIEW {view} AS {body}"))
    logging.getLogger("covid_analytics.views").info("view=%s defined", VIEW_NAME)


def read_percent_population_vaccinated(db: Session) -> List[dict]:
    view = db.get_bind().dialect.identifier_preparer.quote(VIEW_NAME)
    stmt = text(
        f"SELECT {', '.join(VIEW_COLUMNS)} FROM {view} ORDER BY location, date"
    ).columns(
        continent=String,
        location=String,
        date=Date,
        population=BigInteger,
        new_vaccinations=BigInteger,
        rolling_vaccinated=BigInteger,
    )
    return timed_query(db, "views.percent_population_vaccinated", stmt)
