"""
Candidate queries against the pooled SEND data store.

Returns raw candidate rows as polars frames; empty values are excluded at
the source. Ids are sent in batches to stay below the parameter limits of
the backends.
"""

import logging
from collections.abc import Iterable

import polars as pl

from send_select.db.connection import batched, column_names, execute, placeholders, table_exists
from send_select.engine.attributes import STUDYID, USUBJID, VALUE, AttributeDescriptor

logger = logging.getLogger(__name__)

FINE_SCHEMA = {STUDYID: pl.String, USUBJID: pl.String, VALUE: pl.String}
COARSE_SCHEMA = {STUDYID: pl.String, VALUE: pl.String}


def _unique_ids(study_ids: Iterable[str]) -> list[str]:
    return sorted({str(study) for study in study_ids if study is not None})


def _has_pool_rows(domain: str) -> bool:
    """Check if pool-level rows of a domain can be expanded to animals via POOLDEF."""
    return table_exists("POOLDEF") and "POOLID" in column_names(domain)


def fetch_fine_observations(attribute: AttributeDescriptor, study_ids: Iterable[str]) -> pl.DataFrame:
    """
    Get animal-level candidate values for the studies.

    Rows recorded for a pool (POOLID instead of USUBJID) are expanded to every
    animal of the pool when the data store has a POOLDEF table.

    Args:
        attribute: Attribute with a fine domain and variable (e.g. EX.EXROUTE)
        study_ids: Studies to query

    Returns:
        Distinct rows with STUDYID, USUBJID, VALUE
    """
    if not attribute.mode.has_entity_level:
        return pl.DataFrame(schema=FINE_SCHEMA)

    domain, variable = attribute.fine_domain, attribute.fine_variable
    with_pools = _has_pool_rows(domain)

    rows: list[tuple] = []
    for batch in batched(_unique_ids(study_ids)):
        sql = f"""
            SELECT DISTINCT STUDYID, USUBJID, {variable}
            FROM {domain}
            WHERE STUDYID IN ({placeholders(batch)})
              AND USUBJID IS NOT NULL
              AND {variable} IS NOT NULL
              AND {variable} != ''
            """
        params = list(batch)
        if with_pools:
            sql += f"""
            UNION
            SELECT POOLDEF.STUDYID, POOLDEF.USUBJID, {domain}.{variable}
            FROM POOLDEF
            JOIN {domain}
              ON {domain}.STUDYID = POOLDEF.STUDYID
             AND {domain}.POOLID = POOLDEF.POOLID
             AND {domain}.{variable} IS NOT NULL
             AND {domain}.{variable} != ''
            WHERE POOLDEF.STUDYID IN ({placeholders(batch)})
            """
            params += batch
        rows.extend(execute(sql, params, commit=False))

    logger.debug("%s.%s: %d candidate rows", domain, variable, len(rows))
    return pl.DataFrame(rows, schema=FINE_SCHEMA, orient="row")


def fetch_coarse_observations(
    attribute: AttributeDescriptor,
    study_ids: Iterable[str] | None = None,
) -> pl.DataFrame:
    """
    Get study-level candidate values (TS parameter values).

    Args:
        attribute: Attribute whose TS parameter is queried
        study_ids: Studies to query, None for all studies

    Returns:
        Distinct rows with STUDYID, VALUE
    """
    base_sql = """
        SELECT DISTINCT STUDYID, TSVAL
        FROM TS
        WHERE TSPARMCD = ?
          AND TSVAL IS NOT NULL
          AND TSVAL != ''
        """
    if study_ids is None:
        rows = execute(base_sql, (attribute.ts_parmcd,), commit=False)
    else:
        rows = []
        for batch in batched(_unique_ids(study_ids)):
            rows.extend(
                execute(
                    base_sql + f" AND STUDYID IN ({placeholders(batch)})",
                    [attribute.ts_parmcd, *batch],
                    commit=False,
                )
            )

    logger.debug("TS %s: %d candidate rows", attribute.ts_parmcd, len(rows))
    return pl.DataFrame(rows, schema=COARSE_SCHEMA, orient="row")


def fetch_study_ids() -> list[str]:
    """Get every study with rows in TS."""
    return [row[0] for row in execute("SELECT DISTINCT STUDYID FROM TS ORDER BY STUDYID", commit=False)]
