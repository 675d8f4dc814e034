"""Load a starter catalog from CSV files.

    python -m storefront.seed path/to/seed_dir

Expects ``categories.csv`` (id,name,tax_rate) and ``products.csv``
(id,name,price,stock,category_id). Tables that already hold rows are left
untouched.
"""

import csv
import sys
import time
from decimal import Decimal
from pathlib import Path
from sqlalchemy import func, inspect, insert, select
from sqlalchemy.engine import Engine

from storefront.core import get_logger, setup_logging
from storefront.domain.errors import InvalidLineItem, ValidationError
from storefront.domain.models import Category, Product
from storefront.domain.pricing import validate_line

MAX_ATTEMPTS = 30
SLEEP_SECONDS = 2

logger = get_logger(__name__)

TABLE_FILES = {
    Category: "categories.csv",
    Product: "products.csv",
}

# CSV column -> converter
COLUMN_TYPES = {
    Category: {"id": int, "name": str, "tax_rate": Decimal},
    Product: {"id": int, "name": str, "price": Decimal, "stock": int, "category_id": int},
}

# Columns that may not be blank
REQUIRED_COLUMNS = {
    Category: ("id", "name", "tax_rate"),
    Product: ("id", "name", "price", "stock"),
}

def wait_for_table(engine: Engine, table: str, attempts: int = MAX_ATTEMPTS, delay: float = SLEEP_SECONDS) -> bool:
    for attempt in range(attempts):
        if inspect(engine).has_table(table):
            return True
        if attempt == 0:
            logger.info(f"Waiting for table '{table}' to exist...")
        if attempt < attempts - 1:
            time.sleep(delay)
    return False

def read_rows(model, path: Path) -> list[dict]:
    converters = COLUMN_TYPES[model]
    rows = []
    with open(path, newline="", encoding="utf-8") as f:
        for line_no, raw in enumerate(csv.DictReader(f), start=2):
            row = {}
            for column, convert in converters.items():
                value = (raw.get(column) or "").strip()
                try:
                    row[column] = convert(value) if value else None
                except (ArithmeticError, ValueError) as exc:
                    raise invalid_row(model, line_no, f"{column} '{value}' is not a valid value") from exc
            rows.append(row)
    return rows

def invalid_row(model, line_no: int, reason: str) -> ValidationError:
    return ValidationError(
        f"{TABLE_FILES[model]} line {line_no}: {reason}", code="invalid_seed_row"
    )

def check_rows(model, rows: list[dict]) -> None:
    """Reject the whole file if any row would not make a usable catalog entry."""
    for line_no, row in enumerate(rows, start=2):
        missing = [column for column in REQUIRED_COLUMNS[model] if row[column] is None]
        if missing:
            raise invalid_row(model, line_no, f"missing {', '.join(missing)}")
        try:
            if model is Category:
                validate_line(Decimal("0"), row["tax_rate"], 1)
            elif model is Product:
                validate_line(row["price"], Decimal("0"), 1)
        except (InvalidLineItem, ArithmeticError) as exc:
            raise invalid_row(model, line_no, str(exc)) from exc
        if model is Product and row["stock"] < 0:
            raise invalid_row(model, line_no, f"negative stock for product {row['id']}")

def load_table(engine: Engine, model, path: Path, attempts: int = MAX_ATTEMPTS) -> int:
    table = model.__tablename__
    if not wait_for_table(engine, table, attempts=attempts):
        raise RuntimeError(f"Table '{table}' does not exist")
    rows = read_rows(model, path)
    check_rows(model, rows)
    with engine.begin() as conn:
        existing = conn.execute(select(func.count()).select_from(model)).scalar()
        if existing:
            logger.info(f"Skipping {table}: already has {existing} rows")
            return 0
        if rows:
            conn.execute(insert(model), rows)
    logger.info(f"Loaded {len(rows)} rows into {table}", table=table, rows=len(rows))
    return len(rows)

def load_catalog(engine: Engine, data_dir: Path, attempts: int = MAX_ATTEMPTS) -> dict:
    loaded = {}
    for model, file in TABLE_FILES.items():
        path = Path(data_dir) / file
        if not path.exists():
            logger.warning(f"Missing {path}, skipping {model.__tablename__}")
            continue
        loaded[model.__tablename__] = load_table(engine, model, path, attempts=attempts)
    return loaded

def main(argv=None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    data_dir = Path(argv[0]) if argv else Path("seed_data")
    setup_logging(service_name="storefront-seed")
    from storefront.infrastructure.db import engine, init_models
    init_models()
    load_catalog(engine, data_dir)

if __name__ == "__main__":
    main()
