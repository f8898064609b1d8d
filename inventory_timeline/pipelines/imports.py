import logging
import time
from datetime import date
from typing import Optional
import pandas as pd

from inventory_timeline import data_handler, engine, parsers, settings, utils, validator
from inventory_timeline.pipeline import DataPipeline
from inventory_timeline.schemas import ImportManifest, StoredProduct, StoredRecordRow

logger = logging.getLogger(__name__)


class ImportPipeline(DataPipeline):
    """
    Candidate rows -> validated, derived daily records ready for storage.
    Rejected rows are reported in the import manifest and never stop the batch.
    """

    def __init__(
        self,
        source: Optional[pd.DataFrame] = None,
        file_name: Optional[str] = None,
        test_mode: bool = False,
    ):
        super().__init__("imports", test_mode=test_mode)
        self.output_name = settings.RECORDS_FILENAME_PREFIX.rstrip("_")
        self.system_date = date.today()
        self.batch_id = self.system_date.strftime("%Y%m%d")
        self.source = source
        self.file_name = file_name
        self.products: list[StoredProduct] = []
        self.manifest: Optional[ImportManifest] = None

    def extract(self) -> pd.DataFrame | None:
        logger.info("--- Starting Import Process ---")

        if self.source is not None:
            logger.info(f"  > Using in-memory table ({len(self.source)} rows)")
            return self.source

        found_info = utils.find_latest_report(
            settings.INPUT_DIR, settings.IMPORT_FILENAME_PREFIX
        )
        if not found_info:
            logger.warning(
                f"  > ⚠️  File missing ({settings.IMPORT_FILENAME_PREFIX}). Skipping."
            )
            return None

        path, file_date = found_info
        logger.info(f"  > Found: {path.name} (File Date: {file_date})")
        self.file_name = path.name
        self.metadata["fileDate"] = file_date.isoformat()
        # Codes such as 0000001 must keep their leading zeros.
        return utils.load_csv(path, dtype={settings.CODE_COLUMN: str})

    def transform(self, df: pd.DataFrame) -> list[StoredRecordRow] | None:
        started = time.perf_counter()

        # --- 1. Validate ---
        logger.info("\n--- Validating Rows ---")
        report = validator.validate_batch(parsers.parse_import_frame(df))
        logger.info(validator.format_validation_summary(report))

        # --- 2. Derive stored records ---
        logger.info("\n--- Calculating Inventory and Amounts ---")
        self.products = [
            StoredProduct(
                id=f"{self.batch_id}_{row.product_code}",
                product_code=row.product_code,
                product_name=row.product_name,
                opening_inventory=row.opening_inventory,
                daily_records=engine.to_stored_records(row),
            )
            for row in report.accepted
        ]

        for product in self.products:
            audit = engine.audit_stored_records(product)
            for issue in audit.warnings:
                logger.warning(f"  > ⚠️  {issue.product_code}: {issue.message}")
            for issue in audit.errors:
                logger.error(f"  > ❌ {issue.product_code}: {issue.message}")

        derived = [engine.derive_product(product) for product in self.products]
        batch_summary = engine.summarize_batch(derived)
        logger.info(engine.format_batch_summary(batch_summary))

        # --- 3. Manifest ---
        record_rows = parsers.to_record_rows(self.products)
        self.manifest = ImportManifest(
            batch_id=self.batch_id,
            file_name=self.file_name,
            total_rows=report.summary.total_rows,
            valid_rows=report.summary.valid_rows,
            skipped_rows=report.summary.invalid_rows,
            products_created=len(self.products),
            daily_records_created=sum(len(p.daily_records) for p in self.products),
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            duplicate_codes=report.summary.duplicate_codes,
            rejections=report.rejected,
            warnings=report.warnings,
        )
        self.metadata["batchId"] = self.batch_id
        self.metadata["manifest"] = self.manifest.model_dump(mode="json", by_alias=True)
        self.metadata["batchSummary"] = batch_summary.model_dump(mode="json", by_alias=True)

        logger.info(
            f"✅ Import prepared: {self.manifest.products_created} products, "
            f"{self.manifest.daily_records_created} daily records, "
            f"{self.manifest.skipped_rows} rows skipped."
        )
        return record_rows

    def load(self, validated_data: list[StoredRecordRow]):
        super().load(validated_data)
        if self.manifest is not None:
            data_handler.save_json(self.manifest, "import_manifest")
