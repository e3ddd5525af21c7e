"""
Merging engine output back into the caller's table.

Extra caller columns are kept. A reason column the caller already carries
(from an earlier selection step) is combined with the new reason using '|'.
"""

import logging

import polars as pl

logger = logging.getLogger(__name__)

MSG_SEPARATOR = "|"


def merge_messages(existing: pl.Expr, new: pl.Expr) -> pl.Expr:
    """Combine two reason columns; null + null stays null."""
    return (
        pl.when(existing.is_null() | (existing == "")).then(new)
        .when(new.is_null()).then(existing)
        .otherwise(pl.concat_str([existing, new], separator=MSG_SEPARATOR))
    )


def merge_results(
    subject_list: pl.DataFrame,
    results: pl.DataFrame,
    keys: list[str],
    value_col: str,
    msg_col: str | None = None,
) -> pl.DataFrame:
    """
    Inner join engine results with the caller's subject list.

    Args:
        subject_list: Caller's table, may carry any extra columns
        results: Engine output with keys, value_col and optionally msg_col
        keys: Join columns (STUDYID, USUBJID for animals; STUDYID for studies)
        value_col: Resolved value column; replaces a caller column of that name
        msg_col: Reason column produced by the engine, if any

    Returns:
        Caller rows that have a result row, with the result columns attached
    """
    if value_col in subject_list.columns:
        logger.warning("Replacing existing %s column of the input table", value_col)
        subject_list = subject_list.drop(value_col)

    if msg_col is None or msg_col not in subject_list.columns:
        return subject_list.join(results, on=keys, how="inner")

    new_msg = f"{msg_col}_NEW"
    while new_msg in subject_list.columns:
        new_msg = f"_{new_msg}"
    merged = subject_list.join(results.rename({msg_col: new_msg}), on=keys, how="inner")
    return merged.with_columns(
        merge_messages(pl.col(msg_col).cast(pl.String), pl.col(new_msg)).alias(msg_col)
    ).drop(new_msg)
