"""Flat-file export of pipeline records.

A record becomes a one-row DataFrame: keys are columns in record order.
Nested values (a pipeline without output transforms returns its whole
context) are JSON-encoded so every cell stays a scalar.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


def _cell(value: Any) -> Any:
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value)
    return value


def record_to_frame(record: Mapping[str, Any]) -> pd.DataFrame:
    """One-row DataFrame with the record's keys as columns."""
    return pd.DataFrame([{key: _cell(value) for key, value in record.items()}])


def write_csv(record: Mapping[str, Any], path: str | Path) -> Path:
    """Write a record as a header line plus one CSV row.

    Returns:
        Path to the written file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    record_to_frame(record).to_csv(path, index=False)
    logger.info("Saved %d columns to %s", len(record), path)
    return path
