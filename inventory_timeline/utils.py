import logging
import re
from datetime import date, datetime
from pathlib import Path
import pandas as pd

logger = logging.getLogger(__name__)

_DATE_IN_NAME = re.compile(r"(\d{4}-\d{2}-\d{2})")


def get_date_suffix_for_filename() -> str:
    """Returns the current date as a YYYY-MM-DD string for filenames."""
    return datetime.now().strftime("%Y-%m-%d")


def find_latest_report(directory: Path, prefix: str) -> tuple[Path, date] | None:
    """
    Finds the newest '<prefix>YYYY-MM-DD.csv' file in a directory.
    Files whose name carries no parseable date are ignored.
    """
    if not directory.exists():
        logger.info(f"INFO: Input directory {directory} does not exist.")
        return None

    latest: tuple[Path, date] | None = None
    for path in directory.glob(f"{prefix}*.csv"):
        match = _DATE_IN_NAME.search(path.name[len(prefix):])
        if not match:
            continue
        try:
            file_date = datetime.strptime(match.group(1), "%Y-%m-%d").date()
        except ValueError:
            continue
        if latest is None or file_date > latest[1]:
            latest = (path, file_date)
    return latest


def load_csv(file_path: Path, skiprows: int = 0, dtype=None) -> pd.DataFrame | None:
    """
    A CSV loader with an encoding fallback:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1, which can read any byte but might misinterpret characters.
    """
    try:
        return pd.read_csv(file_path, encoding="utf-8-sig", skiprows=skiprows, dtype=dtype)

    except UnicodeDecodeError:
        logger.info(f"INFO: UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'.")
        try:
            return pd.read_csv(file_path, encoding="latin-1", skiprows=skiprows, dtype=dtype)
        except (OSError, ValueError) as e_latin1:
            logger.error(
                f"ERROR: Could not read {file_path.name} even with latin-1. Reason: {e_latin1}"
            )
            return None

    except FileNotFoundError:
        logger.info(f"INFO: Report not found at {file_path}, skipping.")
        return None

    except (OSError, ValueError) as e_general:
        # pandas parser errors (malformed CSV, empty file) are ValueError subclasses.
        logger.error(
            f"ERROR: An unexpected error occurred while reading {file_path.name}. Reason: {e_general}"
        )
        return None
