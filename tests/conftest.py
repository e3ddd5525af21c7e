"""Pytest configuration and fixtures."""

import polars as pl
import pytest

from send_select.config import settings
from send_select.db import init_schema, load_domain
from send_select.vocabulary import ReferenceVocabulary

ROUTE_TERMS = ["ORAL", "ORAL GAVAGE", "SUBCUTANEOUS", "INTRAVENOUS", "DERMAL"]
DESIGN_TERMS = ["PARALLEL", "CROSSOVER", "LATIN SQUARE"]

# Pooled test data:
#   S1  A1 EX ORAL, A2 EX ORAL GAVAGE, A3 no EX; TS ROUTE ORAL
#   S2  B1 EX SUBCUTANEOUS, B2 EX ORAL; no TS ROUTE
#   S3  C1 EX ORAL + INTRAVENOUS, C2 EX empty; no TS ROUTE, no SDESIGN
#   S4  D1 no EX, D2 EX ORAL; TS ROUTE ORAL + SUBCUTANEOUS; two SDESIGN
#   S5  E1, E2 via pool P1 EX INTRAVENOUS; TS ROUTE INTRAVENOUS
#   S6  F1 EX BY MOUTH; TS ROUTE ORAL; invalid SDESIGN
DM_ROWS = [
    ("S1", "A1"), ("S1", "A2"), ("S1", "A3"),
    ("S2", "B1"), ("S2", "B2"),
    ("S3", "C1"), ("S3", "C2"),
    ("S4", "D1"), ("S4", "D2"),
    ("S5", "E1"), ("S5", "E2"),
    ("S6", "F1"),
]
EX_ROWS = [
    ("S1", "A1", None, "ORAL"),
    ("S1", "A1", None, "ORAL"),
    ("S1", "A2", None, "ORAL GAVAGE"),
    ("S2", "B1", None, "SUBCUTANEOUS"),
    ("S2", "B2", None, "ORAL"),
    ("S3", "C1", None, "ORAL"),
    ("S3", "C1", None, "INTRAVENOUS"),
    ("S3", "C2", None, ""),
    ("S4", "D2", None, "ORAL"),
    ("S5", None, "P1", "INTRAVENOUS"),
    ("S6", "F1", None, "BY MOUTH"),
]
POOLDEF_ROWS = [("S5", "P1", "E1"), ("S5", "P1", "E2")]
TS_ROWS = [
    ("S1", "ROUTE", "ORAL"), ("S1", "SDESIGN", "PARALLEL"),
    ("S2", "SDESIGN", "PARALLEL"),
    ("S3", "SPECIES", "RAT"),
    ("S4", "ROUTE", "ORAL"), ("S4", "ROUTE", "SUBCUTANEOUS"),
    ("S4", "SDESIGN", "CROSSOVER"), ("S4", "SDESIGN", "PARALLEL"),
    ("S5", "ROUTE", "INTRAVENOUS"), ("S5", "SDESIGN", "LATIN SQUARE"),
    ("S6", "ROUTE", "ORAL"), ("S6", "SDESIGN", "NOT A DESIGN"),
]

CT_HEADER = (
    "Code\tCodelist Code\tCodelist Extensible (Yes/No)\tCodelist Name\t"
    "CDISC Submission Value\tCDISC Synonym(s)\tCDISC Definition\tNCI Preferred Term"
)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-db",
        action="store_true",
        default=False,
        help="Run tests that require a SQL Server connection",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "db: mark test as requiring a SQL Server connection")


def pytest_collection_modifyitems(config, items):
    """Skip db tests unless --run-db is provided."""
    if config.getoption("--run-db"):
        # --run-db given: do not skip db tests
        return

    skip_db = pytest.mark.skip(reason="Need --run-db option to run database tests")
    for item in items:
        if "db" in item.keywords:
            item.add_marker(skip_db)


@pytest.fixture
def route_vocabulary():
    """ROUTE codelist subset."""
    return ReferenceVocabulary.of("ROUTE", ROUTE_TERMS)


@pytest.fixture
def design_vocabulary():
    """DESIGN codelist subset."""
    return ReferenceVocabulary.of("DESIGN", DESIGN_TERMS)


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """Point the settings at an empty SQLite store with the SEND schema."""
    monkeypatch.setattr(settings, "db_backend", "sqlite")
    monkeypatch.setattr(settings, "db_path", tmp_path / "send.db")
    init_schema()
    return settings.db_path


@pytest.fixture
def send_db(sqlite_db):
    """SQLite store loaded with the pooled test studies."""
    load_domain("DM", pl.DataFrame(DM_ROWS, schema=["STUDYID", "USUBJID"], orient="row"))
    load_domain("EX", pl.DataFrame(EX_ROWS, schema=["STUDYID", "USUBJID", "POOLID", "EXROUTE"], orient="row"))
    load_domain("POOLDEF", pl.DataFrame(POOLDEF_ROWS, schema=["STUDYID", "POOLID", "USUBJID"], orient="row"))
    load_domain("TS", pl.DataFrame(TS_ROWS, schema=["STUDYID", "TSPARMCD", "TSVAL"], orient="row"))
    return sqlite_db


@pytest.fixture
def animals():
    """All animals of the pooled test studies, with an extra column."""
    return pl.DataFrame(DM_ROWS, schema=["STUDYID", "USUBJID"], orient="row").with_columns(
        pl.lit("M").alias("SEX")
    )


@pytest.fixture
def ct_file(tmp_path, monkeypatch):
    """Minimal CDISC CT text file with the ROUTE and DESIGN codelists."""
    lines = [CT_HEADER, "C66729\t\tYes\tRoute of Administration Response\tROUTE\t\tRoutes\tRoute"]
    lines += [f"C9{i:04d}\tC66729\t\tRoute of Administration Response\t{term}\t\t\t{term}" for i, term in enumerate(ROUTE_TERMS)]
    lines.append("C99076\t\tYes\tStudy Design Response\tDESIGN\t\tDesigns\tDesign")
    lines += [f"C8{i:04d}\tC99076\t\tStudy Design Response\t{term}\t\t\t{term}" for i, term in enumerate(DESIGN_TERMS)]
    path = tmp_path / "SEND_Terminology.txt"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    monkeypatch.setattr(settings, "ct_file", path)
    return path
