import logging
from datetime import date
from pathlib import Path
from typing import Optional

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from sqlalchemy import select
from sqlalchemy.orm import Session

from stockledger.config import get_settings
from stockledger.core.business_calendar import day_label
from stockledger.core.errors import NotFound
from stockledger.models.product import Product
from stockledger.models.stores import Store
from stockledger.services.snapshot_service import snapshots_by_date

logger = logging.getLogger(__name__)

REPORT_COLUMNS = (
    ("SKU", None),
    ("Product", None),
    ("Opening Case", "opening_case"),
    ("Opening Unit", "opening_unit"),
    ("Inbound Case", "inbound_case"),
    ("Inbound Unit", "inbound_unit"),
    ("Outbound Case", "outbound_case"),
    ("Outbound Unit", "outbound_unit"),
    ("Adjustment Case", "adjustment_case"),
    ("Adjustment Unit", "adjustment_unit"),
    ("Closing Case", "closing_case"),
    ("Closing Unit", "closing_unit"),
    ("Closing Cost Case", "closing_cost_case"),
    ("Closing Cost Unit", "closing_cost_unit"),
    ("Avg Cost Case", "avg_cost_case"),
    ("Avg Cost Unit", "avg_cost_unit"),
)


def report_path(store_code: str, report_dir: Optional[str] = None) -> Path:
    base = Path(report_dir or get_settings().REPORT_DIR)
    return base / "{}.xlsx".format(store_code)


def _open_workbook(path: Path) -> Workbook:
    if path.exists():
        return load_workbook(path)
    workbook = Workbook()
    default = workbook.active
    if default is not None:
        workbook.remove(default)
    return workbook


def write_day_sheet(workbook: Workbook, label: str, rows) -> None:
    """Replace the ``label`` sheet with a header row plus ``rows``."""
    if label in workbook.sheetnames:
        workbook.remove(workbook[label])

    # Keep day sheets in MMDD order.
    position = sum(1 for name in workbook.sheetnames if name < label)
    sheet = workbook.create_sheet(title=label, index=position)
    sheet.append([title for title, _ in REPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append(row)


def _snapshot_rows(db: Session, store_id: int, business_date: date) -> list[list]:
    snapshots = snapshots_by_date(db, store_id, business_date)
    product_ids = [snapshot.product_id for snapshot in snapshots]
    products = {}
    if product_ids:
        products = {
            product.id: product
            for product in db.execute(
                select(Product).where(Product.id.in_(product_ids))
            ).scalars()
        }

    rows = []
    for snapshot in snapshots:
        product = products.get(snapshot.product_id)
        row = [
            product.sku if product else str(snapshot.product_id),
            product.name if product else "",
        ]
        row.extend(getattr(snapshot, attr) for _, attr in REPORT_COLUMNS[2:])
        rows.append(row)
    return rows


def export_daily_report(
    db: Session,
    store_id: int,
    business_date: date,
    *,
    report_dir: Optional[str] = None,
    enabled: Optional[bool] = None,
) -> Optional[Path]:
    settings = get_settings()
    if enabled is None:
        enabled = settings.REPORT_EXPORT_ENABLED
    if not enabled:
        return None

    store = db.get(Store, store_id)
    if store is None:
        raise NotFound("Store {} not found".format(store_id))

    path = report_path(store.code, report_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook = _open_workbook(path)
    write_day_sheet(workbook, day_label(business_date), _snapshot_rows(db, store_id, business_date))
    workbook.save(path)

    logger.info(
        "Exported report sheet %s to %s",
        day_label(business_date),
        path,
        extra={"store_id": store_id, "business_date": business_date},
    )
    return path


__all__ = ["REPORT_COLUMNS", "export_daily_report", "report_path", "write_day_sheet"]
