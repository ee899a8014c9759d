"""
csvsql Core - CSV decoding.

Turns uploaded CSV bytes into raw string rows (header first). Cells are
kept as text exactly as written; typing happens later, at import.
"""

from __future__ import annotations

import io
import logging
from typing import Sequence

import pandas as pd

from csvsql.exceptions import ValidationException

logger = logging.getLogger(__name__)

DEFAULT_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


def _read_frame(raw: bytes, encoding: str, delimiter: str) -> pd.DataFrame:
    options = dict(
        encoding=encoding,
        sep=delimiter,
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
    )
    width = len(pd.read_csv(io.BytesIO(raw), nrows=1, **options).columns)
    # Row length is not enforced: cells past the header width are dropped.
    return pd.read_csv(io.BytesIO(raw), on_bad_lines=lambda bad: bad[:width], **options)


def read_csv_rows(
    raw: bytes,
    encodings: Sequence[str] = DEFAULT_ENCODINGS,
    delimiter: str = ",",
) -> list[list[str]]:
    """
    Decode CSV bytes into a list of rows of strings.

    Encodings are tried in order. An empty payload yields no rows. Rows
    shorter than the header are padded with empty strings; longer rows are
    cut to the header width.
    """
    if not raw.strip():
        return []

    frame = None
    last_error: Exception | None = None
    for encoding in encodings:
        try:
            frame = _read_frame(raw, encoding, delimiter)
            break
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except pd.errors.EmptyDataError:
            return []
        except pd.errors.ParserError as e:
            raise ValidationException(f"Malformed CSV: {e}") from e

    if frame is None:
        raise ValidationException(f"Could not decode CSV with encodings {list(encodings)}: {last_error}")

    frame = frame.fillna("")
    logger.debug(f"Decoded CSV: {len(frame)} rows x {len(frame.columns)} columns")
    return [[str(value) for value in row] for row in frame.itertuples(index=False, name=None)]
