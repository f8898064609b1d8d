import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
import pandas as pd
from pydantic import BaseModel

from . import data_handler

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for data pipelines (Imports, Timelines).
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(self, report_type: str, test_mode: bool = False):
        self.report_type = report_type
        self.test_mode = test_mode
        # Base name of the saved files; subclasses may point it elsewhere.
        self.output_name = f"{report_type}_report"
        # Run metadata sent alongside the data (dates, manifests, summaries).
        self.metadata: dict[str, Any] = {}

    def run(self) -> Optional[list[BaseModel]]:
        """
        Orchestrates the pipeline execution.
        Returns the validated records, or None when the transform failed.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()
        if raw_data is None or raw_data.empty:
            logger.warning(f"⚠️ No data extracted for {self.report_type}.")
            self.load([])
            return []

        # --- 2. TRANSFORM ---
        validated_data = self.transform(raw_data)
        if validated_data is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        self.load(validated_data)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return validated_data

    @abstractmethod
    def extract(self) -> pd.DataFrame | None:
        """
        Responsible for finding the source table and returning it as a DataFrame.
        Should also record what it found in self.metadata.
        """
        pass

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> list[BaseModel] | None:
        """
        Responsible for validation and derivation.
        Returns a list of flat Pydantic models ready to be saved.
        """
        pass

    def load(self, validated_data: list[BaseModel]):
        """
        Saves data to disk and posts to webhook.
        """
        if self.metadata:
            logger.info("\n--- Run Metadata ---")
            for key, value in self.metadata.items():
                if not isinstance(value, (dict, list)):
                    logger.info(f"{key}: {value}")

        if validated_data:
            data_handler.save_outputs(validated_data, self.output_name)
        else:
            logger.warning("No data to save to disk.")

        if not self.test_mode:
            data_handler.post_to_webhook(
                validated_data=validated_data,
                metadata=self.metadata,
                report_type=self.report_type,
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
