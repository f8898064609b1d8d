import json
import logging
from pathlib import Path
from typing import Any, Optional
import pandas as pd
import requests
from pydantic import BaseModel

from . import settings
from . import utils

logger = logging.getLogger(__name__)


def save_outputs(validated_data: list[BaseModel], filename_base: str) -> dict[str, Path]:
    """
    Saves flat records to a dated CSV (alias column names) and, when enabled,
    to a dated JSON file. Returns the written paths keyed by format.
    """
    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename()

    csv_path = settings.OUTPUT_DIR / f"{filename_base}_{date_suffix}.csv"
    json_path = settings.OUTPUT_DIR / f"{filename_base}_{date_suffix}.json"

    records = [item.model_dump(mode="json", by_alias=True) for item in validated_data]
    columns = None
    if validated_data:
        model = type(validated_data[0])
        columns = [info.alias or name for name, info in model.model_fields.items()]

    pd.DataFrame(records, columns=columns).to_csv(csv_path, index=False)
    logger.info(f"✅ Report saved to: {csv_path}")
    written = {"csv": csv_path}

    if settings.SAVE_JSON_OUTPUT:
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        logger.info(f"✅ JSON output saved to: {json_path}")
        written["json"] = json_path
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return written


def save_json(payload: Any, filename_base: str) -> Path:
    """Saves a nested document (manifest, chart data) to a dated JSON file."""
    settings.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    json_path = (
        settings.OUTPUT_DIR / f"{filename_base}_{utils.get_date_suffix_for_filename()}.json"
    )
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", by_alias=True)

    with open(json_path, "w", encoding="utf-8") as f:
        # Decimals inside plain dicts (merged chart rows) are written as strings.
        json.dump(payload, f, indent=2, default=str)
    logger.info(f"✅ JSON output saved to: {json_path}")
    return json_path


def post_to_webhook(
    validated_data: list[BaseModel],
    metadata: Optional[dict[str, Any]],
    report_type: str,
) -> bool:
    """
    Posts the validated data and the run metadata to the webhook.
    Transport failures are logged, not raised. Returns True on success.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting {report_type} data to webhook: {settings.WEBHOOK_URL}")

    payload = {
        "reportType": report_type,
        "reportData": [
            item.model_dump(mode="json", by_alias=True) for item in validated_data
        ],
        "metadata": metadata or {},
    }

    try:
        response = requests.post(
            settings.WEBHOOK_URL,
            data=json.dumps(payload, default=str),
            headers={"Content-Type": "application/json"},
            timeout=15,
        )
        response.raise_for_status()
        logger.info("✅ Data successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
