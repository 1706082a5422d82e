"""Draft and confirmed before-return orders and their editable lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from returnorders.db import Database, NoRowsError
from returnorders.entities import from_row


def _col(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"column": name})


@dataclass
class OrderHead:
    """Header of a before-return order as listed for drafts and confirms."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    sr_no: Optional[str] = _col("SrNo")
    customer_id: str = _col("CustomerID", "")
    tracking_no: str = _col("TrackingNo", "")
    logistic: str = _col("Logistic", "")
    channel_id: int = _col("ChannelID", 0)
    create_date: Optional[datetime] = _col("CreateDate")
    warehouse_id: int = _col("WarehouseID", 0)


@dataclass
class DraftConfirmItem:
    """One line of a draft or confirmed order."""

    order_no: str = _col("OrderNo", "")
    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    price: float = _col("Price", 0.0)


@dataclass
class DraftConfirmOrder:
    """A draft or confirmed order with its lines."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    sr_no: Optional[str] = _col("SrNo")
    items: list[DraftConfirmItem] = field(default_factory=list, metadata={"column": "Items"})


@dataclass
class CodeR:
    """A product whose SKU starts with R."""

    sku: str = _col("SKU", "")
    name_alias: str = _col("NAMEALIAS", "")


@dataclass
class AddItemRequest:
    """A line to add to a draft order."""

    order_no: str
    sku: str
    item_name: str
    qty: int
    return_qty: int
    price: float


@dataclass
class AddedItem:
    """A line as stored after insertion."""

    order_no: str = _col("OrderNo", "")
    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    return_qty: int = _col("ReturnQTY", 0)
    price: float = _col("Price", 0.0)
    create_by: str = _col("CreateBy", "")
    create_date: Optional[datetime] = _col("CreateDate")


_ORDERS_QUERY = """
    SELECT OrderNo, SoNo, SrNo, CustomerID, TrackingNo, Logistic, ChannelID, CreateDate, WarehouseID
    FROM BeforeReturnOrder
    WHERE StatusConfID = :statusConfID
    AND CreateDate BETWEEN :startDate AND :endDate
    ORDER BY CreateDate DESC
"""

_ORDER_HEAD_QUERY = """
    SELECT OrderNo, SoNo, SrNo
    FROM BeforeReturnOrder
    WHERE OrderNo = :orderNo AND StatusConfID = :statusConfID
"""

_ORDER_LINES_QUERY = """
    SELECT OrderNo, SKU, ItemName, QTY, Price
    FROM BeforeReturnOrderLine
    WHERE OrderNo = :orderNo
"""

_CODE_R_QUERY = """
    SELECT SKU, NAMEALIAS
    FROM ROM_V_ProductAll
    WHERE SKU LIKE 'R%'
    ORDER BY NAMEALIAS ASC
"""

_ADD_ITEM_QUERY = """
    INSERT INTO BeforeReturnOrderLine (OrderNo, SKU, ItemName, QTY, ReturnQTY, Price, CreateBy, CreateDate)
    OUTPUT inserted.OrderNo, inserted.SKU, inserted.ItemName, inserted.QTY, inserted.ReturnQTY, inserted.Price, inserted.CreateBy, inserted.CreateDate
    VALUES (:OrderNo, :SKU, :ItemName, :QTY, :ReturnQTY, :Price, :CreateBy, GETDATE())
"""

_REMOVE_ITEM_QUERY = """
    DELETE FROM BeforeReturnOrderLine
    WHERE OrderNo = :OrderNo AND SKU = :SKU
"""


class DraftConfirmRepository:
    """Queries behind the draft and confirm pages."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_orders(self, status_conf_id: int, start_date: str, end_date: str) -> list[OrderHead]:
        """Orders in this confirmation status created within the date range, newest first."""
        rows = self._db.fetch_all(
            _ORDERS_QUERY,
            {"statusConfID": status_conf_id, "startDate": start_date, "endDate": end_date},
        )
        return [from_row(OrderHead, row) for row in rows]

    def get_order_with_items(self, order_no: str, status_conf_id: int) -> DraftConfirmOrder:
        """The order in this status with its lines; NoRowsError when it is absent."""
        heads = self._db.fetch_all(
            _ORDER_HEAD_QUERY, {"orderNo": order_no, "statusConfID": status_conf_id}
        )
        if not heads:
            raise NoRowsError("order not found")
        order = from_row(DraftConfirmOrder, heads[0])
        lines = self._db.fetch_all(_ORDER_LINES_QUERY, {"orderNo": order_no})
        order.items = [from_row(DraftConfirmItem, row) for row in lines]
        return order

    def list_code_r(self) -> list[CodeR]:
        """Products whose SKU starts with R, ordered by name."""
        return [from_row(CodeR, row) for row in self._db.fetch_all(_CODE_R_QUERY)]

    def add_item_to_draft_order(self, item: AddItemRequest, user_id: str) -> list[AddedItem]:
        """Insert a line and return it as stored."""
        rows = self._db.fetch_all(
            _ADD_ITEM_QUERY,
            {
                "OrderNo": item.order_no,
                "SKU": item.sku,
                "ItemName": item.item_name,
                "QTY": item.qty,
                "ReturnQTY": item.return_qty,
                "Price": item.price,
                "CreateBy": user_id,
            },
        )
        return [from_row(AddedItem, row) for row in rows]

    def remove_item_from_draft_order(self, order_no: str, sku: str) -> int:
        """Delete the order's lines with this SKU and return how many went."""
        return self._db.execute(_REMOVE_ITEM_QUERY, {"OrderNo": order_no, "SKU": sku})