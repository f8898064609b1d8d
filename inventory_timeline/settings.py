import os
from decimal import Decimal
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")

# --- Filename Configuration ---
IMPORT_FILENAME_PREFIX = os.getenv("IMPORT_FILENAME_PREFIX", "import_rows_")
RECORDS_FILENAME_PREFIX = os.getenv("RECORDS_FILENAME_PREFIX", "daily_records_")

# --- Outputs ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "true").strip().lower() in (
    "1",
    "true",
    "yes",
)

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
LOG_FILENAME = "app.log"

# --- Shared Business Logic ---
# The horizon is an explicit ordered list of day indices, 1..N.
DAY_HORIZON = int(os.getenv("DAY_HORIZON", "3"))
DAY_SEQUENCES = tuple(range(1, DAY_HORIZON + 1))

# Row number of the first data row in a source file (header + 1-based lines).
FIRST_DATA_ROW = 2

# Identifier limits for product codes and names.
PRODUCT_CODE_PATTERN = r"^[A-Za-z0-9_-]+$"
PRODUCT_CODE_MAX_LENGTH = 50
PRODUCT_NAME_MAX_LENGTH = 500

# Data quality thresholds (warnings only, never reject a row).
HIGH_PRICE_WARNING = Decimal(os.getenv("HIGH_PRICE_WARNING", "1000"))
HIGH_QTY_WARNING = int(os.getenv("HIGH_QTY_WARNING", "10000"))
SHORT_NAME_WARNING = 3

# Final inventory below this level is reported as a likely data error.
EXTREME_NEGATIVE_INVENTORY = int(os.getenv("EXTREME_NEGATIVE_INVENTORY", "-1000"))

# Column names of the wide candidate-row table, one row per product.
CODE_COLUMN = "ID"
NAME_COLUMN = "Product Name"
OPENING_COLUMN = "Opening Inventory"
DAY_COLUMN_TEMPLATES = {
    "procurement_qty": "Procurement Qty (Day {day})",
    "procurement_price": "Procurement Price (Day {day})",
    "sales_qty": "Sales Qty (Day {day})",
    "sales_price": "Sales Price (Day {day})",
}
