import logging
from typing import Any, Optional
import pandas as pd
from pydantic import ValidationError

from inventory_timeline import comparison, data_handler, engine, parsers, settings, utils
from inventory_timeline.errors import ProductNotFoundError
from inventory_timeline.pipeline import DataPipeline
from inventory_timeline.schemas import (
    ComparisonPoint,
    ProductDetail,
    ProductWithTimeline,
    TimelineRow,
)

logger = logging.getLogger(__name__)


class TimelinePipeline(DataPipeline):
    """
    Stored daily records -> derived timelines, summaries and (optionally) the
    comparison chart for a selection of product codes.
    """

    def __init__(
        self,
        source: Optional[pd.DataFrame] = None,
        selected_codes: Optional[list[str]] = None,
        test_mode: bool = False,
    ):
        super().__init__("timeline", test_mode=test_mode)
        self.source = source
        self.selected_codes = selected_codes or []
        self.products: list[ProductWithTimeline] = []
        self.details: list[ProductDetail] = []
        self.comparison: list[dict[str, Any]] = []
        self.comparison_series: list[ComparisonPoint] = []

    def extract(self) -> pd.DataFrame | None:
        logger.info("--- Starting Timeline Derivation ---")

        if self.source is not None:
            return self.source

        found_info = utils.find_latest_report(
            settings.OUTPUT_DIR, settings.RECORDS_FILENAME_PREFIX
        )
        if not found_info:
            logger.warning(
                f"  > ⚠️  No stored records ({settings.RECORDS_FILENAME_PREFIX}). Skipping."
            )
            return None

        path, file_date = found_info
        logger.info(f"  > Found: {path.name} (File Date: {file_date})")
        self.metadata["recordsDate"] = file_date.isoformat()
        return utils.load_csv(path, dtype={"id": str, "productCode": str})

    def transform(self, df: pd.DataFrame) -> list[TimelineRow] | None:
        try:
            stored = parsers.parse_records_frame(df)
        except ValidationError as e:
            logger.error("❌ Stored records failed validation!")
            logger.error(e)
            return None

        logger.info(f"Deriving timelines for {len(stored)} products...")
        self.products = [engine.derive_product(product) for product in stored]

        for product in self.products:
            if product.summary.has_negative_inventory:
                logger.warning(
                    f"  > ⚠️  {product.product_code} goes negative "
                    f"(final inventory {product.summary.final_inventory})"
                )

        batch_summary = engine.summarize_batch(self.products)
        logger.info(engine.format_batch_summary(batch_summary))
        self.metadata["batchSummary"] = batch_summary.model_dump(mode="json", by_alias=True)

        if self.selected_codes:
            self._build_comparison(stored)

        return parsers.to_timeline_rows(self.products)

    def _build_comparison(self, stored):
        wanted = set(self.selected_codes)
        selected_ids = [p.id for p in self.products if p.product_code in wanted]
        missing = wanted - {p.product_code for p in self.products}
        if missing:
            logger.warning(f"  > ⚠️  Unknown product codes: {', '.join(sorted(missing))}")

        self.comparison_series = comparison.merge_structured(self.products, selected_ids)
        self.comparison = comparison.flatten_for_chart(self.comparison_series)
        if not self.comparison:
            logger.warning("  > ⚠️  Nothing to compare for the selected products.")

        self.details = []
        for product_id in selected_ids:
            try:
                self.details.append(engine.derive_detail(engine.find_product(stored, product_id)))
            except ProductNotFoundError as e:
                logger.warning(f"  > ⚠️  {e}")

    def load(self, validated_data: list[TimelineRow]):
        super().load(validated_data)
        if not self.products:
            return
        data_handler.save_json(
            {
                "products": [p.model_dump(mode="json", by_alias=True) for p in self.products],
                "comparison": self.comparison,
                "details": [d.model_dump(mode="json", by_alias=True) for d in self.details],
            },
            "timeline_charts",
        )
