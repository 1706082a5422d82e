"""Reading return orders and their lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from itertools import islice
from typing import Any, Iterable, Iterator, Optional

from returnorders.db import Database, expand_in
from returnorders.entities import from_row

# Most order numbers put into one IN clause.
_BATCH_SIZE = 1000


def _col(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"column": name})


@dataclass
class ReturnOrderLineView:
    """A stored line of a return order."""

    order_no: str = _col("OrderNo", "")
    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    return_qty: int = _col("ReturnQTY", 0)
    actual_qty: Optional[int] = _col("ActualQTY")
    price: float = _col("Price", 0.0)
    tracking_no: Optional[str] = _col("TrackingNo")
    create_by: str = _col("CreateBy", "")
    create_date: Optional[datetime] = _col("CreateDate")
    alter_sku: Optional[str] = _col("AlterSKU")
    update_by: Optional[str] = _col("UpdateBy")
    update_date: Optional[datetime] = _col("UpdateDate")


@dataclass
class ReturnOrderView:
    """A stored return order with its lines."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    sr_no: Optional[str] = _col("SrNo")
    tracking_no: Optional[str] = _col("TrackingNo")
    platf_id: Optional[int] = _col("PlatfID")
    channel_id: Optional[int] = _col("ChannelID")
    opt_status_id: Optional[int] = _col("OptStatusID")
    ax_status_id: Optional[int] = _col("AxStatusID")
    platf_status_id: Optional[int] = _col("PlatfStatusID")
    reason: Optional[str] = _col("Reason")
    create_by: str = _col("CreateBy", "")
    create_date: Optional[datetime] = _col("CreateDate")
    update_by: Optional[str] = _col("UpdateBy")
    update_date: Optional[datetime] = _col("UpdateDate")
    cancel_id: Optional[int] = _col("CancelID")
    status_check_id: Optional[int] = _col("StatusCheckID")
    check_by: Optional[str] = _col("CheckBy")
    description: Optional[str] = _col("Description")
    lines: list[ReturnOrderLineView] = field(
        default_factory=list, metadata={"column": "ReturnOrderLine"}
    )


_HEAD_COLUMNS = """OrderNo, SoNo, SrNo, TrackingNo, PlatfID, ChannelID,
           OptStatusID, AxStatusID, PlatfStatusID, Reason, CreateBy, CreateDate,
           UpdateBy, UpdateDate, CancelID, StatusCheckID, CheckBy, Description"""

_ALL_HEADS_QUERY = f"""
    SELECT {_HEAD_COLUMNS}
    FROM ReturnOrder
    ORDER BY RecID
"""

_HEAD_BY_ORDER_QUERY = f"""
    SELECT {_HEAD_COLUMNS}
    FROM ReturnOrder
    WHERE OrderNo = :OrderNo
    ORDER BY RecID
"""

_LINES_IN_QUERY = """
    SELECT OrderNo, SKU, QTY, ReturnQTY, ActualQTY, Price, TrackingNo,
           CreateBy, CreateDate, AlterSKU, UpdateBy, UpdateDate
    FROM ReturnOrderLine
    WHERE OrderNo IN (?)
    ORDER BY RecID
"""

_ALL_LINES_QUERY = """
    SELECT OrderNo, SKU, QTY, ReturnQTY, ActualQTY, Price, TrackingNo,
           CreateBy, CreateDate, AlterSKU, UpdateBy, UpdateDate
    FROM ReturnOrderLine
    ORDER BY RecID
"""

_LINES_BY_ORDER_QUERY = """
    SELECT OrderNo, SKU, ItemName, QTY, ReturnQTY, ActualQTY, Price, TrackingNo,
           CreateBy, CreateDate, AlterSKU, UpdateBy, UpdateDate
    FROM ReturnOrderLine
    WHERE OrderNo = :OrderNo
    ORDER BY RecID
"""

_ORDER_EXISTS_QUERY = """
    SELECT CASE WHEN EXISTS (
        SELECT 1 FROM ReturnOrder WHERE OrderNo = :OrderNo
    ) THEN 1 ELSE 0 END
"""

_LINE_EXISTS_QUERY = """
    SELECT CASE WHEN EXISTS (
        SELECT 1 FROM ReturnOrderLine WHERE OrderNo = :OrderNo
    ) THEN 1 ELSE 0 END
"""


def _batches(items: Iterable[str], size: int) -> Iterator[list[str]]:
    iterator = iter(items)
    while batch := list(islice(iterator, size)):
        yield batch


class ReturnOrderRepository:
    """Read access to return orders and their lines."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_all_return_orders(self) -> list[ReturnOrderView]:
        """Every return order with its lines, in insertion order."""
        orders = [from_row(ReturnOrderView, row) for row in self._db.fetch_all(_ALL_HEADS_QUERY)]
        by_order_no = {order.order_no: order for order in orders}
        for batch in _batches((order.order_no for order in orders), _BATCH_SIZE):
            query, params = expand_in(_LINES_IN_QUERY, batch)
            for row in self._db.fetch_all(query, params):
                line = from_row(ReturnOrderLineView, row)
                order = by_order_no.get(line.order_no)
                if order is not None:
                    order.lines.append(line)
        return orders

    def get_return_order_by_order_no(self, order_no: str) -> ReturnOrderView:
        """The return order with its lines; NoRowsError when it does not exist."""
        order = from_row(
            ReturnOrderView, self._db.fetch_one(_HEAD_BY_ORDER_QUERY, {"OrderNo": order_no})
        )
        order.lines = self.get_return_order_lines_by_order_no(order_no)
        return order

    def get_all_return_order_lines(self) -> list[ReturnOrderLineView]:
        return [
            from_row(ReturnOrderLineView, row) for row in self._db.fetch_all(_ALL_LINES_QUERY)
        ]

    def get_return_order_lines_by_order_no(self, order_no: str) -> list[ReturnOrderLineView]:
        rows = self._db.fetch_all(_LINES_BY_ORDER_QUERY, {"OrderNo": order_no})
        return [from_row(ReturnOrderLineView, row) for row in rows]

    def check_order_no_exist(self, order_no: str) -> bool:
        """Whether a return order with this number exists."""
        return bool(self._db.fetch_value(_ORDER_EXISTS_QUERY, {"OrderNo": order_no}))

    def check_order_no_line_exist(self, order_no: str) -> bool:
        """Whether any return order line carries this order number."""
        return bool(self._db.fetch_value(_LINE_EXISTS_QUERY, {"OrderNo": order_no}))