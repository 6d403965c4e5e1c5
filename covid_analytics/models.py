from __future__ import annotations

"""
EMBED_SUMMARY: ORM declarations of the externally maintained COVID-19 deaths and vaccinations tables.
EMBED_TAGS: models, covid, deaths, vaccinations, schema

Both tables are read-only inputs. (location, date) identifies a row by convention only; the
surrogate id exists because the ORM needs a primary key, so duplicate keys can be stored.
"""

import datetime as dt
from typing import Optional

from sqlalchemy import BigInteger, Date, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class CovidDeaths(Base):
    __tablename__ = "CovidDeaths"
    """
    EMBED_SUMMARY: Daily case and death counts per location; rows with NULL continent are aggregate rollups.
    EMBED_TAGS: deaths, cases, population, continent, rollups
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # NULL for aggregate rows such as "World", "Europe", "High income"
    continent: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    location: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    population: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    total_cases: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    new_cases: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    total_deaths: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    new_deaths: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("ix_covid_deaths_location_date", "location", "date"),
        Index("ix_covid_deaths_continent", "continent"),
    )


class CovidVaccinations(Base):
    __tablename__ = "CovidVaccinations"
    """
    EMBED_SUMMARY: Daily administered vaccine doses per location (doses, not distinct people).
    EMBED_TAGS: vaccinations, doses, location
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    new_vaccinations: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        Index("ix_covid_vaccinations_location_date", "location", "date"),
    )
