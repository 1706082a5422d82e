"""Sales-order lookup and the life cycle of before-return orders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from returnorders.db import Database, NoRowsError
from returnorders.entities import from_row


def _col(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"column": name})


# Column holding the reference ID in each table an order can be cancelled from.
_REF_ID_COLUMNS = {"BeforeReturnOrder": "OrderNo", "ReturnOrder": "ReturnID"}


@dataclass
class SearchOrderItem:
    """One line of a sales order found by search."""

    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    price: float = _col("Price", 0.0)


@dataclass
class SearchOrderResult:
    """A sales order found by SoNo and/or OrderNo, with its lines."""

    so_no: str = _col("SoNo", "")
    order_no: str = _col("OrderNo", "")
    status_mkp: str = _col("StatusMKP", "")
    sales_status: str = _col("SalesStatus", "")
    create_date: Optional[datetime] = _col("CreateDate")
    items: list[SearchOrderItem] = field(default_factory=list, metadata={"column": "Items"})


@dataclass
class NewBeforeReturnOrderItem:
    """A line of a before-return order about to be created."""

    sku: str
    item_name: str
    qty: int
    return_qty: int
    price: float
    tracking_no: Optional[str] = None
    alter_sku: Optional[str] = None


@dataclass
class NewBeforeReturnOrder:
    """A before-return order about to be created."""

    order_no: str
    so_no: str
    channel_id: int
    customer_id: str
    reason: str
    so_status: str
    mkp_status: str
    warehouse_id: int
    return_date: Optional[datetime]
    tracking_no: str
    logistic: str
    items: list[NewBeforeReturnOrderItem] = field(default_factory=list)


@dataclass
class BeforeReturnOrderItem:
    """A stored line of a before-return order."""

    order_no: str = _col("OrderNo", "")
    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    return_qty: int = _col("ReturnQTY", 0)
    price: float = _col("Price", 0.0)
    create_by: str = _col("CreateBy", "")
    create_date: Optional[datetime] = _col("CreateDate")
    tracking_no: Optional[str] = _col("TrackingNo")
    alter_sku: Optional[str] = _col("AlterSKU")


@dataclass
class BeforeReturnOrderView:
    """A stored before-return order header."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    sr_no: Optional[str] = _col("SrNo")
    channel_id: int = _col("ChannelID", 0)
    customer_id: str = _col("CustomerID", "")
    reason: str = _col("Reason", "")
    tracking_no: str = _col("TrackingNo", "")
    logistic: str = _col("Logistic", "")
    warehouse_id: int = _col("WarehouseID", 0)
    so_status: str = _col("SoStatus", "")
    mkp_status: str = _col("MkpStatus", "")
    return_date: Optional[datetime] = _col("ReturnDate")
    status_return_id: Optional[int] = _col("StatusReturnID")
    status_conf_id: Optional[int] = _col("StatusConfID")
    confirm_by: Optional[str] = _col("ConfirmBy")
    confirm_date: Optional[datetime] = _col("ConfirmDate")
    create_by: str = _col("CreateBy", "")
    create_date: Optional[datetime] = _col("CreateDate")
    update_by: Optional[str] = _col("UpdateBy")
    update_date: Optional[datetime] = _col("UpdateDate")
    cancel_id: Optional[int] = _col("CancelID")
    is_cn_created: bool = _col("IsCNCreated", False)
    is_edited: bool = _col("IsEdited", False)
    items: list[BeforeReturnOrderItem] = field(default_factory=list, metadata={"column": "Items"})


@dataclass
class SrNoUpdate:
    """An order's state after its credit-note number was set."""

    order_no: str = _col("OrderNo", "")
    sr_no: Optional[str] = _col("SrNo")
    status_return_id: Optional[int] = _col("StatusReturnID")
    status_conf_id: Optional[int] = _col("StatusConfID")
    update_by: Optional[str] = _col("UpdateBy")
    update_date: Optional[datetime] = _col("UpdateDate")


_SEARCH_HEAD_QUERY = """
    SELECT SoNo, OrderNo, StatusMKP, SalesStatus, CreateDate
    FROM ROM_V_OrderHeadDetail
"""

_SEARCH_LINES_QUERY = """
    SELECT SKU, ItemName, QTY, Price
    FROM ROM_V_OrderLineDetail
    WHERE SoNo = :SoNo
"""

_INSERT_HEAD_QUERY = """
    INSERT INTO BeforeReturnOrder
    (OrderNo, SoNo, ChannelID, CustomerID, Reason, SoStatus, MkpStatus, WarehouseID, ReturnDate, TrackingNo, Logistic, CreateBy, CreateDate)
    VALUES
    (:OrderNo, :SoNo, :ChannelID, :CustomerID, :Reason, :SoStatus, :MkpStatus, :WarehouseID, :ReturnDate, :TrackingNo, :Logistic, :CreateBy, GETDATE())
"""

_INSERT_LINE_QUERY = """
    INSERT INTO BeforeReturnOrderLine
    (OrderNo, SKU, ItemName, QTY, ReturnQTY, Price, CreateBy, CreateDate, TrackingNo, AlterSKU)
    VALUES
    (:OrderNo, :SKU, :ItemName, :QTY, :ReturnQTY, :Price, :CreateBy, GETDATE(), :TrackingNo, :AlterSKU)
"""

_GET_ORDER_QUERY = """
    SELECT OrderNo, SoNo, SrNo, ChannelID, CustomerID, Reason, TrackingNo, Logistic, WarehouseID,
           SoStatus, MkpStatus, ReturnDate, StatusReturnID, StatusConfID, ConfirmBy, ConfirmDate,
           CreateBy, CreateDate, UpdateBy, UpdateDate, CancelID, IsCNCreated, IsEdited
    FROM BeforeReturnOrder WHERE OrderNo = :OrderNo
"""

_GET_ITEMS_QUERY = """
    SELECT OrderNo, SKU, ItemName, QTY, ReturnQTY, Price, CreateBy, CreateDate, TrackingNo, AlterSKU
    FROM BeforeReturnOrderLine WHERE OrderNo = :OrderNo
"""

_UPDATE_SR_QUERY = """
    UPDATE BeforeReturnOrder
    SET SrNo = :SrNo,
        UpdateBy = :UpdateBy, UpdateDate = GETDATE()
    WHERE OrderNo = :OrderNo
"""

_SELECT_SR_QUERY = """
    SELECT OrderNo, SrNo, StatusReturnID, StatusConfID, UpdateBy, UpdateDate
    FROM BeforeReturnOrder WHERE OrderNo = :OrderNo
"""

_UPDATE_STATUS_QUERY = """
    UPDATE BeforeReturnOrder
    SET StatusReturnID = :StatusReturnID,
        StatusConfID = :StatusConfID,
        ConfirmBy = :ConfirmBy,
        ConfirmDate = GETDATE(),
        UpdateBy = :UpdateBy,
        UpdateDate = GETDATE()
    WHERE OrderNo = :OrderNo
"""

_UPDATE_CN_QUERY = """
    UPDATE BeforeReturnOrder
    SET IsCNCreated = 1,
        StatusReturnID = 1,
        StatusConfID = 1,
        UpdateBy = :UpdateBy,
        UpdateDate = GETDATE()
    WHERE OrderNo = :OrderNo
"""

_MARK_EDITED_QUERY = """
    UPDATE BeforeReturnOrder
    SET IsEdited = 1, UpdateBy = :UpdateBy, UpdateDate = GETDATE()
    WHERE OrderNo = :OrderNo
"""

_INSERT_CANCEL_QUERY = """
    INSERT INTO CancelStatus (RefID, SourceTable, CancelReason, CancelBy, CancelDate)
    OUTPUT INSERTED.CancelID
    VALUES (:RefID, :SourceTable, :CancelReason, :CancelBy, GETDATE())
"""

_CANCEL_UPDATE_TEMPLATE = """
    UPDATE {table}
    SET CancelID = :CancelID,
        StatusReturnID = 2,
        StatusConfID = 3,
        UpdateBy = :UpdateBy,
        UpdateDate = GETDATE()
    WHERE {column} = :RefID
"""


def _ref_id_column(source_table: str) -> str:
    try:
        return _REF_ID_COLUMNS[source_table]
    except KeyError:
        raise ValueError(f"invalid SourceTable: {source_table}") from None


class OrderRepository:
    """Creates, updates and cancels before-return orders."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def search_order(self, so_no: str = "", order_no: str = "") -> SearchOrderResult:
        """Find a sales order by SoNo and/or OrderNo; NoRowsError when none matches."""
        if not so_no and not order_no:
            raise ValueError("either SoNo or OrderNo must be provided")
        conditions = []
        if so_no:
            conditions.append("SoNo = :SoNo")
        if order_no:
            conditions.append("OrderNo = :OrderNo")
        query = _SEARCH_HEAD_QUERY + " WHERE " + " AND ".join(conditions)
        head = self._db.fetch_one(query, {"SoNo": so_no, "OrderNo": order_no})
        order = from_row(SearchOrderResult, head)
        lines = self._db.fetch_all(_SEARCH_LINES_QUERY, {"SoNo": order.so_no})
        order.items = [from_row(SearchOrderItem, row) for row in lines]
        return order

    def create_before_return_order(self, order: NewBeforeReturnOrder, user_id: str) -> None:
        """Store the order and its lines together; an order needs at least one line."""
        with self._db.transaction() as tx:
            tx.execute(
                _INSERT_HEAD_QUERY,
                {
                    "OrderNo": order.order_no,
                    "SoNo": order.so_no,
                    "ChannelID": order.channel_id,
                    "CustomerID": order.customer_id,
                    "Reason": order.reason,
                    "SoStatus": order.so_status,
                    "MkpStatus": order.mkp_status,
                    "WarehouseID": order.warehouse_id,
                    "ReturnDate": order.return_date,
                    "TrackingNo": order.tracking_no,
                    "Logistic": order.logistic,
                    "CreateBy": user_id,
                },
            )
            tx.execute_many(
                _INSERT_LINE_QUERY,
                (
                    {
                        "OrderNo": order.order_no,
                        "SKU": item.sku,
                        "ItemName": item.item_name,
                        "QTY": item.qty,
                        "ReturnQTY": item.return_qty,
                        "Price": item.price,
                        "CreateBy": user_id,
                        "TrackingNo": item.tracking_no,
                        "AlterSKU": item.alter_sku,
                    }
                    for item in order.items
                ),
            )

    def get_before_return_order(self, order_no: str) -> BeforeReturnOrderView:
        """The order's header; an empty view when there is no such order."""
        rows = self._db.fetch_all(_GET_ORDER_QUERY, {"OrderNo": order_no})
        return from_row(BeforeReturnOrderView, rows[0]) if rows else BeforeReturnOrderView()

    def get_before_return_order_items(self, order_no: str) -> list[BeforeReturnOrderItem]:
        rows = self._db.fetch_all(_GET_ITEMS_QUERY, {"OrderNo": order_no})
        return [from_row(BeforeReturnOrderItem, row) for row in rows]

    def update_sr_no(self, order_no: str, sr_no: str, user_id: str) -> SrNoUpdate:
        """Set the credit-note number and return the order's new state."""
        self._db.execute(
            _UPDATE_SR_QUERY, {"SrNo": sr_no, "UpdateBy": user_id, "OrderNo": order_no}
        )
        rows = self._db.fetch_all(_SELECT_SR_QUERY, {"OrderNo": order_no})
        if not rows:
            raise NoRowsError(f"no order found with OrderNo: {order_no}")
        return from_row(SrNoUpdate, rows[0])

    def update_order_status(
        self, order_no: str, status_return_id: int, status_conf_id: int, user_id: str
    ) -> None:
        """Set both statuses; the user is recorded as confirmer and updater."""
        self._db.execute(
            _UPDATE_STATUS_QUERY,
            {
                "OrderNo": order_no,
                "StatusReturnID": status_return_id,
                "StatusConfID": status_conf_id,
                "ConfirmBy": user_id,
                "UpdateBy": user_id,
            },
        )

    def update_cn_for_order(self, order_no: str, user_id: str) -> None:
        """Mark the credit note as created and reset both statuses to 1."""
        self._db.execute(_UPDATE_CN_QUERY, {"OrderNo": order_no, "UpdateBy": user_id})

    def mark_order_as_edited(self, order_no: str, user_id: str) -> None:
        self._db.execute(_MARK_EDITED_QUERY, {"OrderNo": order_no, "UpdateBy": user_id})

    def cancel_order(
        self, ref_id: str, source_table: str, cancel_reason: str, user_id: str
    ) -> int:
        """Record a cancellation, flag the order cancelled and return the cancel ID."""
        column = _ref_id_column(source_table)
        with self._db.transaction() as tx:
            cancel_id = tx.fetch_value(
                _INSERT_CANCEL_QUERY,
                {
                    "RefID": ref_id,
                    "SourceTable": source_table,
                    "CancelReason": cancel_reason,
                    "CancelBy": user_id,
                },
            )
            updated = tx.execute(
                _CANCEL_UPDATE_TEMPLATE.format(table=source_table, column=column),
                {"CancelID": cancel_id, "UpdateBy": user_id, "RefID": ref_id},
            )
            if updated == 0:
                raise NoRowsError(f"no rows updated for RefID: {ref_id}")
        return int(cancel_id)

    def get_return_order_status(self, ref_id: str, source_table: str) -> int:
        """The StatusReturnID of the order in the given table."""
        column = _ref_id_column(source_table)
        rows = self._db.fetch_all(
            f"SELECT StatusReturnID FROM {source_table} WHERE {column} = :RefID",
            {"RefID": ref_id},
        )
        if not rows:
            raise NoRowsError(f"order not found for RefID: {ref_id}")
        return int(next(iter(rows[0].values())))