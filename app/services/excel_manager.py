"""
Excel Order Ledger with Concurrency Control

Thread-safe Excel operations for:
- Appending placed orders to the shared ledger (Celery worker)
- Building per-restaurant .xlsx exports for staff downloads
"""

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

import pandas as pd
from filelock import FileLock, Timeout

from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def format_items(items: Iterable[dict[str, Any]]) -> str:
    """Render order lines as "2x Paneer Tikka (Full); 1x Naan"."""
    rendered = []
    for item in items:
        name = item.get("name", "")
        if item.get("variant_name"):
            name = f"{name} ({item['variant_name']})"
        rendered.append(f"{item.get('quantity', 1)}x {name}")
    return "; ".join(rendered)


def order_record(order) -> dict[str, Any]:
    """Flatten an Order row into the JSON-safe dict the ledger stores."""
    status = order.status.value if hasattr(order.status, "value") else order.status
    return {
        "order_id": order.order_id,
        "res_id": order.res_id,
        "qr_id": order.qr_id,
        "table_number": order.table_number,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_email": order.customer_email,
        "items": [
            {
                "name": item.name,
                "variant_name": item.variant_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        "special_request": order.special_request,
        "subtotal": order.subtotal,
        "tax": order.tax,
        "total": order.total,
        "order_status": status,
    }


class ExcelManager:
    """Thread-safe Excel ledger manager."""

    DATA_DIR = Path(settings.data_directory)
    FILENAME = settings.excel_filename
    LOCK_TIMEOUT = settings.excel_lock_timeout

    ORDER_COLUMNS = [
        "order_id",
        "res_id",
        "qr_id",
        "table_number",
        "date_time",
        "customer_name",
        "customer_phone",
        "customer_email",
        "items",
        "special_request",
        "subtotal",
        "tax",
        "total",
        "order_status",
        "exported_at",
    ]

    @classmethod
    def orders_file(cls) -> Path:
        return cls.DATA_DIR / cls.FILENAME

    @classmethod
    def lock_file(cls) -> Path:
        return cls.DATA_DIR / f"{cls.FILENAME}.lock"

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        if not cls.DATA_DIR.exists():
            cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {cls.DATA_DIR}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path) -> pd.DataFrame:
        """Load existing ledger or start an empty one."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except (ValueError, OSError) as e:
                logger.warning(f"Error reading {file_path}: {e}")
        return pd.DataFrame(columns=cls.ORDER_COLUMNS)

    @classmethod
    def _row(cls, order_data: dict[str, Any], export_time: str) -> dict[str, Any]:
        items = order_data.get("items") or []
        return {
            "order_id": order_data.get("order_id"),
            "res_id": order_data.get("res_id"),
            "qr_id": order_data.get("qr_id"),
            "table_number": order_data.get("table_number"),
            "date_time": order_data.get("created_at", export_time),
            "customer_name": order_data.get("customer_name"),
            "customer_phone": order_data.get("customer_phone"),
            "customer_email": order_data.get("customer_email"),
            "items": items if isinstance(items, str) else format_items(items),
            "special_request": order_data.get("special_request"),
            "subtotal": order_data.get("subtotal"),
            "tax": order_data.get("tax"),
            "total": order_data.get("total"),
            "order_status": order_data.get("order_status"),
            "exported_at": export_time,
        }

    @classmethod
    def export_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """Append one order to the ledger under a file lock."""
        cls._ensure_data_dir()

        order_id = order_data.get("order_id", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(cls.lock_file()), timeout=cls.LOCK_TIMEOUT)

            with lock:
                logger.debug(f"Lock acquired for Order {order_id}")

                df = cls._load_or_create_df(cls.orders_file())

                export_time = datetime.now().isoformat()
                new_row = cls._row(order_data, export_time)

                if df.empty:
                    df = pd.DataFrame([new_row], columns=cls.ORDER_COLUMNS)
                else:
                    df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(cls.orders_file()), index=False, engine="openpyxl")

                logger.info(f"Order {order_id} exported to Excel")

                result["success"] = True
                result["message"] = f"Order {order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Order {order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({cls.LOCK_TIMEOUT}s)"
            logger.error(f"Lock timeout for Order {order_id}")

        return result

    @classmethod
    def orders_to_workbook(cls, orders: Iterable[dict[str, Any]]) -> bytes:
        """Build an in-memory .xlsx with one row per order record."""
        export_time = datetime.now().isoformat()
        rows = [cls._row(order, export_time) for order in orders]
        df = pd.DataFrame(rows, columns=cls.ORDER_COLUMNS)

        buffer = io.BytesIO()
        df.to_excel(buffer, index=False, sheet_name="Orders", engine="openpyxl")
        return buffer.getvalue()
