"""Final shaping of result tables."""

import polars as pl

from send_select.engine.attributes import MSG_COLUMNS


def prepare_final_results(
    frame: pl.DataFrame,
    original_columns: list[str],
    new_columns: list[str],
) -> pl.DataFrame:
    """
    Order result columns and drop duplicate rows.

    Caller columns come first in their original order, then the new columns,
    then anything else; message columns are always last.

    Args:
        frame: Merged result table
        original_columns: Columns of the caller's input table (may be empty)
        new_columns: Columns added by the operation (e.g. ["ROUTE"])

    Returns:
        Reordered frame with unique rows
    """
    ordered: list[str] = []
    for col in [*original_columns, *new_columns, *frame.columns]:
        if col in frame.columns and col not in ordered and col not in MSG_COLUMNS:
            ordered.append(col)
    ordered += [col for col in MSG_COLUMNS if col in frame.columns]
    return frame.select(ordered).unique(maintain_order=True)
