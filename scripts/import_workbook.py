import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from boutique.core.logging import setup_logging
from boutique.database import Base, engine
from boutique.models import import_all_models
from boutique.services.persistence_service import LedgerRepository
from boutique.services.spreadsheet_service import PRODUCT_SHEET, import_products_workbook


def parse_args():
    parser = argparse.ArgumentParser(
        description="Import products from an Excel workbook into a user's inventory."
    )
    parser.add_argument("--path", required=True, help="Path to .xlsx workbook.")
    parser.add_argument("--user", required=True, help="Workspace (user id) to import into.")
    parser.add_argument(
        "--sheet",
        default=PRODUCT_SHEET,
        help="Sheet holding the products. Default: products (falls back to the active sheet).",
    )
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving.")
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)
    repository = LedgerRepository()
    try:
        store = repository.load_store(args.user)
        counts = import_products_workbook(
            store, args.path, sheet=args.sheet, dry_run=args.dry_run
        )
        if not args.dry_run:
            repository.save_snapshot(args.user, store.snapshot())
    except (OSError, ValueError, SQLAlchemyError, InvalidFileException) as exc:
        raise SystemExit(f"Import failed: {exc}") from exc

    print(f"products: {counts['inserted']} inserted, {counts['skipped']} skipped")
    for message in counts["errors"]:
        print(f"  {message}")

    if args.dry_run:
        print("Dry run complete, no changes committed.")
    else:
        print("Import complete.")


if __name__ == "__main__":
    main()
