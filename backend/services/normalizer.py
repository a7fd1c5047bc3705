import json
import logging
from pathlib import Path
from io import BytesIO
import pandas as pd
from ..models import Dataset
from ..parsers.structured import parse_structured
from ..parsers.tabular import derive_buildings, parse_tabular
from typing import Optional, Union

logger = logging.getLogger(__name__)

Src = Union[Path, str, bytes, BytesIO]


def _read_csv(src: Src) -> pd.DataFrame:
    """Accept a path/str/bytes/BytesIO and return a DataFrame of strings."""
    if isinstance(src, bytes):
        return pd.read_csv(BytesIO(src), dtype=str, skip_blank_lines=True)
    if isinstance(src, BytesIO):
        src.seek(0)
        return pd.read_csv(src, dtype=str, skip_blank_lines=True)
    return pd.read_csv(src, dtype=str, skip_blank_lines=True)  # path-like


def _read_json(src: Src):
    if isinstance(src, bytes):
        return json.loads(src.decode("utf-8"))
    if isinstance(src, BytesIO):
        src.seek(0)
        return json.load(src)
    with Path(src).open("r", encoding="utf-8") as f:
        return json.load(f)


def normalize_structured(src: Src) -> Dataset:
    buildings, stations = parse_structured(_read_json(src))
    return Dataset(source="json", buildings=buildings, stations=stations)


def normalize_tabular(src: Src) -> Dataset:
    stations = parse_tabular(_read_csv(src))
    return Dataset(source="csv", buildings=derive_buildings(stations), stations=stations)


def load_dataset(json_src: Optional[Src], csv_src: Optional[Src]) -> Dataset:
    """
    JSON first, CSV when JSON is missing or malformed, and an empty dataset
    when both fail. Never raises: an empty session is still a valid one.
    """
    try:
        if json_src is None:
            raise FileNotFoundError("no JSON source configured")
        dataset = normalize_structured(json_src)
        logger.info("Successfully loaded data from JSON file")
        return dataset
    except (OSError, ValueError) as json_error:
        logger.warning("JSON loading failed: %s", json_error)

    try:
        if csv_src is None:
            raise FileNotFoundError("no CSV source configured")
        dataset = normalize_tabular(csv_src)
        logger.info("Successfully loaded data from CSV backup")
        return dataset
    except (OSError, ValueError, pd.errors.ParserError) as csv_error:
        logger.error("Both JSON and CSV loading failed: %s", csv_error)

    logger.info("No external data files available - starting with empty dataset")
    return Dataset(source="empty")
