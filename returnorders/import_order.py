"""Finding orders to import as returns, and the checks made while importing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from returnorders.db import Database, NoRowsError
from returnorders.entities import from_row

# Number of order heads fetched per page while searching.
_CHUNK_SIZE = 1000


def _col(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"column": name})


@dataclass
class ImportOrderLine:
    """One line of an order found for import."""

    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    price: float = _col("Price", 0.0)
    tracking_no: str = _col("TrackingNo", "")
    order_no: str = _col("OrderNo", "")


@dataclass
class ImportOrder:
    """An order found by order or tracking number, with its lines."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    tracking_no: str = _col("TrackingNo", "")
    create_date: Optional[datetime] = _col("CreateDate")
    order_lines: list[ImportOrderLine] = field(
        default_factory=list, metadata={"column": "OrderLines"}
    )


@dataclass
class ImportItem:
    """An order number with its tracking number."""

    order_no: str = _col("OrderNo", "")
    tracking_no: str = _col("TrackingNo", "")


@dataclass
class ImageRecord:
    """Metadata of an uploaded image."""

    sku: str
    order_no: str
    file_path: str
    image_type_id: int
    create_by: str


_HEAD_QUERY = """
    SELECT OrderNo, SoNo, TrackingNo, CreateDate
    FROM {table}
    WHERE OrderNo = :Search OR TrackingNo = :Search
    ORDER BY OrderNo
    OFFSET :Offset ROWS FETCH NEXT :Limit ROWS ONLY
"""

_LINES_QUERY = """
    SELECT SKU, ItemName, QTY, Price
    FROM {table}
    WHERE OrderNo = :Search OR TrackingNo = :Search
"""

_ORDER_TRACKING_QUERY = """
    SELECT OrderNo, TrackingNo
    FROM BeforeReturnOrder
    ORDER BY RecID
"""

_CHECK_SEARCH_QUERY = """
    SELECT COUNT(1)
    FROM ROM_V_OrderHeadDetail
    WHERE OrderNo = :Search OR TrackingNo = :Search
"""

_VALIDATE_SKU_QUERY = """
    SELECT CASE WHEN EXISTS (
        SELECT 1 FROM BeforeReturnOrderLine
        WHERE OrderNo = :OrderNo AND SKU = :SKU
    ) THEN 1 ELSE 0 END
"""

_ORDER_BY_SO_QUERY = """
    SELECT OrderNo
    FROM ReturnOrder
    WHERE SoNo = :SoNo
"""

_INSERT_IMAGE_QUERY = """
    INSERT INTO Images (SKU, OrderNo, FilePath, ImageTypeID, CreateBy, CreateDate)
    VALUES (:SKU, :OrderNo, :FilePath, :ImageTypeID, :CreateBy, GETDATE());
    SELECT SCOPE_IDENTITY();
"""


class ImportOrderRepository:
    """Queries used when importing orders as returns."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def _search(self, head_table: str, line_table: str, search: str) -> list[ImportOrder]:
        head_query = _HEAD_QUERY.format(table=head_table)
        lines_query = _LINES_QUERY.format(table=line_table)
        orders: list[ImportOrder] = []
        offset = 0
        while True:
            heads = self._db.fetch_all(
                head_query, {"Search": search, "Limit": _CHUNK_SIZE, "Offset": offset}
            )
            if not heads:
                break
            for row in heads:
                order = from_row(ImportOrder, row)
                lines = self._db.fetch_all(lines_query, {"Search": search})
                order.order_lines = [from_row(ImportOrderLine, line) for line in lines]
                for line in order.order_lines:
                    line.tracking_no = order.tracking_no
                    line.order_no = order.order_no
                orders.append(order)
            offset += _CHUNK_SIZE
        return orders

    def search_order_or_tracking(self, search: str) -> list[ImportOrder]:
        """Sales orders whose order or tracking number equals the search text."""
        return self._search("ROM_V_OrderHeadDetail", "ROM_V_OrderLineDetail", search)

    def search_order_or_tracking_no(self, search: str) -> list[ImportOrder]:
        """Before-return orders whose order or tracking number equals the search text."""
        return self._search("BeforeReturnOrder", "BeforeReturnOrderLine", search)

    def get_order_tracking(self) -> list[ImportItem]:
        """Every before-return order's number and tracking number."""
        return [from_row(ImportItem, row) for row in self._db.fetch_all(_ORDER_TRACKING_QUERY)]

    def check_search(self, search: str) -> bool:
        """Whether any sales order has this order or tracking number."""
        return self._db.fetch_value(_CHECK_SEARCH_QUERY, {"Search": search}) > 0

    def validate_sku(self, order_no: str, sku: str) -> bool:
        """Whether the before-return order holds a line with this SKU."""
        return bool(self._db.fetch_value(_VALIDATE_SKU_QUERY, {"OrderNo": order_no, "SKU": sku}))

    def fetch_return_details_by_sale_order(self, so_no: str) -> str:
        """The OrderNo of the return order for this SoNo; NoRowsError if none."""
        rows = self._db.fetch_all(_ORDER_BY_SO_QUERY, {"SoNo": so_no})
        if not rows:
            raise NoRowsError(f"no records found for SoNo: {so_no}")
        return next(iter(rows[0].values()))

    def insert_image_metadata(self, image: ImageRecord) -> int:
        """Store the image's metadata and return its new ID, or 0 if none came back."""
        rows = self._db.fetch_all(
            _INSERT_IMAGE_QUERY,
            {
                "SKU": image.sku,
                "OrderNo": image.order_no,
                "FilePath": image.file_path,
                "ImageTypeID": image.image_type_id,
                "CreateBy": image.create_by,
            },
        )
        if not rows:
            return 0
        return int(next(iter(rows[0].values())))