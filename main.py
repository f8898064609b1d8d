import argparse
import logging
import pandas as pd

from inventory_timeline.logger import setup_logger
from inventory_timeline.pipelines.imports import ImportPipeline
from inventory_timeline.pipelines.timeline import TimelinePipeline

logger = logging.getLogger(__name__)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import candidate rows, then derive inventory timelines."
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Run without posting to the webhook.",
    )
    parser.add_argument(
        "--compare",
        nargs="+",
        metavar="ID",
        default=[],
        help="Product IDs to merge into the comparison chart.",
    )
    return parser.parse_args()


def run_process(test_mode: bool = False, compare: list[str] | None = None):
    """Runs the import, then derives timelines from the records it produced."""
    logger.info("--- Starting Inventory Timeline Process ---")

    imports = ImportPipeline(test_mode=test_mode)
    record_rows = imports.run()
    if record_rows is None:
        logger.error("❌ Import failed. Stopping.")
        return

    # Read back what was just imported; fall back to the latest stored file otherwise.
    source = None
    if record_rows:
        source = pd.DataFrame([row.model_dump(by_alias=True) for row in record_rows])

    timeline = TimelinePipeline(source=source, selected_codes=compare, test_mode=test_mode)
    timeline.run()

    logger.info("\n--- Process Finished Successfully ---")


if __name__ == "__main__":
    args = _parse_args()
    setup_logger()
    run_process(test_mode=args.test, compare=args.compare)
