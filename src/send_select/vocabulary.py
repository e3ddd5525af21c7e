"""
CDISC controlled terminology.

Reads the SEND terminology text file published by NCI EVS and exposes the
values of one codelist as a ReferenceVocabulary.

File layout (tab-delimited, one header line):
    Code, Codelist Code, Codelist Extensible (Yes/No), Codelist Name,
    CDISC Submission Value, CDISC Synonym(s), CDISC Definition, NCI Preferred Term

A codelist header row has an empty "Codelist Code"; its terms carry the
header's "Code" in "Codelist Code".
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import httpx
import polars as pl
from tenacity import retry, stop_after_attempt, wait_exponential

from send_select.config import settings

logger = logging.getLogger(__name__)

CODE = "Code"
CODELIST_CODE = "Codelist Code"
SUBMISSION_VALUE = "CDISC Submission Value"


@dataclass(frozen=True)
class ReferenceVocabulary:
    """Valid values of one codelist; membership is case-insensitive."""

    name: str
    values: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, name: str, values: Iterable[str]) -> "ReferenceVocabulary":
        return cls(name, frozenset(v.strip().upper() for v in values if v))

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and value.strip().upper() in self.values

    def __len__(self) -> int:
        return len(self.values)


@lru_cache(maxsize=4)
def load_ct_file(path: Path) -> pl.DataFrame:
    """
    Read a CDISC CT text file.

    Args:
        path: Tab-delimited terminology file

    Returns:
        Frame with the Code, Codelist Code and CDISC Submission Value columns
    """
    if not path.exists():
        raise FileNotFoundError(f"CDISC CT file not found: {path}")

    ct = pl.read_csv(
        path,
        separator="\t",
        infer_schema=False,
        quote_char=None,
        encoding="utf8-lossy",
    )
    missing = {CODE, CODELIST_CODE, SUBMISSION_VALUE} - set(ct.columns)
    if missing:
        raise ValueError(f"{path} is not a CDISC CT file, missing columns: {', '.join(sorted(missing))}")

    logger.debug("Loaded %d CT rows from %s", ct.height, path)
    return ct.select([
        pl.col(CODE).str.strip_chars(),
        pl.col(CODELIST_CODE).str.strip_chars(),
        pl.col(SUBMISSION_VALUE).str.strip_chars(),
    ])


def codelist_values(ct: pl.DataFrame, codelist: str) -> list[str]:
    """
    Extract the submission values of a codelist.

    Args:
        ct: Output of load_ct_file
        codelist: Codelist short name (e.g. "ROUTE", "DESIGN")

    Returns:
        Submission values of the codelist terms
    """
    headers = ct.filter(
        (pl.col(CODELIST_CODE).is_null() | (pl.col(CODELIST_CODE) == ""))
        & (pl.col(SUBMISSION_VALUE).str.to_uppercase() == codelist.upper())
    )
    if headers.is_empty():
        raise LookupError(f"Codelist {codelist} not found in CDISC CT")

    codes = headers.get_column(CODE).to_list()
    return (
        ct.filter(pl.col(CODELIST_CODE).is_in(codes))
        .get_column(SUBMISSION_VALUE)
        .drop_nulls()
        .to_list()
    )


def lookup_reference_values(codelist: str, ct_file: Path | None = None) -> ReferenceVocabulary:
    """
    Get the valid values of a CDISC codelist.

    Args:
        codelist: Codelist short name (e.g. "ROUTE")
        ct_file: CT file to read, defaults to settings.ct_file

    Returns:
        ReferenceVocabulary for the codelist
    """
    path = ct_file or settings.ct_file
    if path is None:
        raise FileNotFoundError(
            "No CDISC CT file configured, set SEND_SELECT_CT_FILE or run 'send-select download-ct'"
        )
    vocabulary = ReferenceVocabulary.of(codelist, codelist_values(load_ct_file(Path(path)), codelist))
    logger.debug("Codelist %s: %d values", codelist, len(vocabulary))
    return vocabulary


@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=30))
def _fetch_url(url: str, dest: Path, timeout: float = 300.0) -> None:
    """
    Fetch a URL to a local file with retries.

    The body is written to a ".part" file next to dest, which only replaces
    dest once the transfer completed.

    Args:
        url: URL to fetch
        dest: Destination file path
        timeout: Request timeout in seconds
    """
    partial = dest.with_name(dest.name + ".part")
    try:
        with httpx.stream("GET", url, timeout=timeout, follow_redirects=True) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_bytes(chunk_size=8192):
                    f.write(chunk)
    except BaseException:
        partial.unlink(missing_ok=True)
        raise
    partial.replace(dest)


def download_ct_file(dest: Path | None = None, force: bool = False) -> Path:
    """
    Download the CDISC SEND terminology file.

    Args:
        dest: Target file, defaults to settings.default_ct_path
        force: Re-download even if the file exists

    Returns:
        Path of the downloaded file
    """
    dest = dest or settings.default_ct_path
    if dest.exists() and not force:
        logger.info("CT file already present: %s", dest)
        return dest

    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s", settings.ct_url)
    _fetch_url(settings.ct_url, dest)
    load_ct_file.cache_clear()
    return dest
