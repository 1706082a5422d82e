"""Creating, updating and deleting return orders, and listing them by check status."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from returnorders.db import Database, NoRowsError
from returnorders.entities import from_row
from returnorders.return_orders import ReturnOrderLineView, ReturnOrderRepository


def _col(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"column": name})


@dataclass
class NewReturnOrderLine:
    """A line of a return order about to be created."""

    sku: str
    qty: int
    return_qty: int
    price: float


@dataclass
class NewReturnOrder:
    """A return order about to be created."""

    order_no: str
    so_no: str
    create_by: str
    sr_no: Optional[str] = None
    tracking_no: Optional[str] = None
    platf_id: Optional[int] = None
    channel_id: Optional[int] = None
    opt_status_id: Optional[int] = None
    ax_status_id: Optional[int] = None
    platf_status_id: Optional[int] = None
    reason: Optional[str] = None
    status_check_id: Optional[int] = None
    description: Optional[str] = None
    lines: list[NewReturnOrderLine] = field(default_factory=list)


@dataclass
class CreatedReturnOrder:
    """A return order as stored right after creation, with its lines."""

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
    status_check_id: Optional[int] = _col("StatusCheckID")
    description: Optional[str] = _col("Description")
    lines: list[ReturnOrderLineView] = field(
        default_factory=list, metadata={"column": "ReturnOrderLine"}
    )


@dataclass
class UpdatedReturnOrder:
    """A return order header as stored after an update."""

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
    update_by: Optional[str] = _col("UpdateBy")
    update_date: Optional[datetime] = _col("UpdateDate")
    cancel_id: Optional[int] = _col("CancelID")
    status_check_id: Optional[int] = _col("StatusCheckID")
    check_by: Optional[str] = _col("CheckBy")
    description: Optional[str] = _col("Description")


@dataclass
class ReturnOrderUpdate:
    """Changes to a return order header; fields left as None stay as they are."""

    order_no: str
    update_by: Optional[str] = None
    sr_no: Optional[str] = None
    tracking_no: Optional[str] = None
    platf_id: Optional[int] = None
    channel_id: Optional[int] = None
    opt_status_id: Optional[int] = None
    ax_status_id: Optional[int] = None
    platf_status_id: Optional[int] = None
    reason: Optional[str] = None
    cancel_id: Optional[int] = None
    status_check_id: Optional[int] = None
    check_by: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ReturnOrderLineUpdate:
    """Changes to one line of a return order; None leaves a value as it is."""

    order_no: str
    sku: str
    update_by: Optional[str] = None
    actual_qty: Optional[int] = None
    price: Optional[float] = None


@dataclass
class DraftTradeDetail:
    """A return order as listed by check status."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    customer_id: Optional[str] = _col("CustomerID")
    sr_no: Optional[str] = _col("SrNo")
    tracking_no: Optional[str] = _col("TrackingNo")
    logistic: Optional[str] = _col("Logistic")
    channel_name: Optional[str] = _col("ChannelName")
    create_date: Optional[datetime] = _col("CreateDate")
    warehouse_name: Optional[str] = _col("WarehouseName")
    status_check_id: Optional[int] = _col("StatusCheckID")


# Header columns an update may change, with the matching update attribute.
_UPDATABLE_COLUMNS = (
    ("SrNo", "sr_no"),
    ("TrackingNo", "tracking_no"),
    ("PlatfID", "platf_id"),
    ("ChannelID", "channel_id"),
    ("OptStatusID", "opt_status_id"),
    ("AxStatusID", "ax_status_id"),
    ("PlatfStatusID", "platf_status_id"),
    ("Reason", "reason"),
    ("CancelID", "cancel_id"),
    ("StatusCheckID", "status_check_id"),
    ("CheckBy", "check_by"),
    ("Description", "description"),
)

_INSERT_HEAD_QUERY = """
    INSERT INTO ReturnOrder (
        OrderNo, SoNo, SrNo, TrackingNo, PlatfID, ChannelID, OptStatusID, AxStatusID,
        PlatfStatusID, Reason, StatusCheckID, Description, CreateBy, CreateDate
    ) VALUES (
        :OrderNo, :SoNo, :SrNo, :TrackingNo, :PlatfID, :ChannelID, :OptStatusID, :AxStatusID,
        :PlatfStatusID, :Reason, :StatusCheckID, :Description, :CreateBy, GETDATE()
    )
"""

_INSERT_LINE_QUERY = """
    INSERT INTO ReturnOrderLine (
        OrderNo, SKU, QTY, ReturnQTY, Price, TrackingNo, CreateBy, CreateDate
    ) VALUES (
        :OrderNo, :SKU, :QTY, :ReturnQTY, :Price, :TrackingNo, :CreateBy, GETDATE()
    )
"""

_CREATED_QUERY = """
    SELECT OrderNo, SoNo, SrNo, TrackingNo, PlatfID, ChannelID,
           OptStatusID, AxStatusID, PlatfStatusID, Reason, CreateBy, CreateDate,
           StatusCheckID, Description
    FROM ReturnOrder
    WHERE OrderNo = :OrderNo
"""

_UPDATED_QUERY = """
    SELECT OrderNo, SoNo, SrNo, TrackingNo, PlatfID, ChannelID,
           OptStatusID, AxStatusID, PlatfStatusID, Reason, UpdateBy, UpdateDate,
           CancelID, StatusCheckID, CheckBy, Description
    FROM ReturnOrder
    WHERE OrderNo = :OrderNo
"""

_CURRENT_HEAD_QUERY = """
    SELECT SrNo, TrackingNo, PlatfID, ChannelID, OptStatusID, AxStatusID,
           PlatfStatusID, Reason, CancelID, StatusCheckID, CheckBy, Description
    FROM ReturnOrder
    WHERE OrderNo = :OrderNo
"""

_UPDATE_LINES_TRACKING_QUERY = """
    UPDATE ReturnOrderLine
    SET TrackingNo = :TrackingNo,
        UpdateBy = :UpdateBy,
        UpdateDate = GETDATE()
    WHERE OrderNo = :OrderNo
"""

_CURRENT_LINE_QUERY = """
    SELECT ActualQTY, Price
    FROM ReturnOrderLine
    WHERE OrderNo = :OrderNo AND SKU = :SKU
"""

_DELETE_LINES_QUERY = "DELETE FROM ReturnOrderLine WHERE OrderNo = :OrderNo"
_DELETE_HEAD_QUERY = "DELETE FROM ReturnOrder WHERE OrderNo = :OrderNo"

_BY_STATUS_QUERY = """
    SELECT
        r.OrderNo, r.SoNo, r.CustomerID, r.SrNo, r.TrackingNo,
        r.Logistic, c.ChannelName, r.CreateDate,
        w.WarehouseName, r.StatusCheckID
    FROM ReturnOrder r
    LEFT JOIN Warehouse w ON r.WarehouseID = w.WarehouseID
    LEFT JOIN Channel c ON r.ChannelID = c.ChannelID
    WHERE r.StatusCheckID = :StatusCheckID
    ORDER BY r.CreateDate ASC
"""

_BY_STATUS_AND_DATE_QUERY = """
    SELECT
        r.OrderNo, r.SoNo, r.CustomerID, r.SrNo, r.TrackingNo,
        r.Logistic, c.ChannelName, r.CreateDate,
        w.WarehouseName, r.StatusCheckID
    FROM ReturnOrder r
    LEFT JOIN Warehouse w ON r.WarehouseID = w.WarehouseID
    LEFT JOIN Channel c ON r.ChannelID = c.ChannelID
    WHERE r.StatusCheckID = :StatusCheckID
    AND CAST(r.CreateDate AS DATE) >= :StartDate
    AND CAST(r.CreateDate AS DATE) <= :EndDate
    ORDER BY r.CreateDate ASC
"""


def _require_updater(update_by: Optional[str]) -> str:
    if update_by is None:
        raise ValueError("UpdateBy is required")
    return update_by


class ReturnOrderWorkflow:
    """Writes to return orders and lists them for the checking pages."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._reader = ReturnOrderRepository(db)

    def create_return_order(self, order: NewReturnOrder) -> None:
        """Store the order and, if it has any, its lines, both or neither."""
        with self._db.transaction() as tx:
            tx.execute(
                _INSERT_HEAD_QUERY,
                {
                    "OrderNo": order.order_no,
                    "SoNo": order.so_no,
                    "SrNo": order.sr_no,
                    "TrackingNo": order.tracking_no,
                    "PlatfID": order.platf_id,
                    "ChannelID": order.channel_id,
                    "OptStatusID": order.opt_status_id,
                    "AxStatusID": order.ax_status_id,
                    "PlatfStatusID": order.platf_status_id,
                    "Reason": order.reason,
                    "StatusCheckID": order.status_check_id,
                    "Description": order.description,
                    "CreateBy": order.create_by,
                },
            )
            if order.lines:
                tx.execute_many(
                    _INSERT_LINE_QUERY,
                    (
                        {
                            "OrderNo": order.order_no,
                            "TrackingNo": order.tracking_no,
                            "SKU": line.sku,
                            "QTY": line.qty,
                            "ReturnQTY": line.return_qty,
                            "Price": line.price,
                            "CreateBy": order.create_by,
                        }
                        for line in order.lines
                    ),
                )

    def get_create_return_order(self, order_no: str) -> Optional[CreatedReturnOrder]:
        """The newly created order with its lines, or None when it does not exist."""
        rows = self._db.fetch_all(_CREATED_QUERY, {"OrderNo": order_no})
        if not rows:
            return None
        order = from_row(CreatedReturnOrder, rows[0])
        order.lines = self._reader.get_return_order_lines_by_order_no(order_no)
        return order

    def get_update_return_order(self, order_no: str) -> Optional[UpdatedReturnOrder]:
        """The order's header after an update, or None when it does not exist."""
        rows = self._db.fetch_all(_UPDATED_QUERY, {"OrderNo": order_no})
        return from_row(UpdatedReturnOrder, rows[0]) if rows else None

    def update_return_order(self, update: ReturnOrderUpdate) -> None:
        """Write only the header fields that really change.

        When the tracking number changes, the order's lines take it too.
        Raises NoRowsError for an unknown order.
        """
        update_by = _require_updater(update.update_by)
        with self._db.transaction() as tx:
            try:
                current = tx.fetch_one(_CURRENT_HEAD_QUERY, {"OrderNo": update.order_no})
            except NoRowsError:
                raise NoRowsError("OrderNo not found") from None

            params: dict[str, Any] = {"OrderNo": update.order_no, "UpdateBy": update_by}
            assignments = []
            for column, attr in _UPDATABLE_COLUMNS:
                wanted = getattr(update, attr)
                if wanted is not None and wanted != current.get(column):
                    assignments.append(f"{column} = :{column}")
                    params[column] = wanted
            if not assignments:
                return

            assignments += ["UpdateBy = :UpdateBy", "UpdateDate = GETDATE()"]
            tx.execute(
                f"UPDATE ReturnOrder SET {', '.join(assignments)} WHERE OrderNo = :OrderNo",
                params,
            )
            if "TrackingNo" in params:
                tx.execute(_UPDATE_LINES_TRACKING_QUERY, params)

    def update_return_order_line(self, update: ReturnOrderLineUpdate) -> None:
        """Write the line's checked quantity and price where they change.

        Raises NoRowsError when the order has no line with this SKU.
        """
        update_by = _require_updater(update.update_by)
        with self._db.transaction() as tx:
            key = {"OrderNo": update.order_no, "SKU": update.sku}
            try:
                current = tx.fetch_one(_CURRENT_LINE_QUERY, key)
            except NoRowsError:
                raise NoRowsError("OrderNo and SKU not found") from None

            params: dict[str, Any] = {**key, "UpdateBy": update_by}
            assignments = []
            if update.actual_qty is not None and update.actual_qty != current.get("ActualQTY"):
                assignments.append("ActualQTY = :ActualQTY")
                params["ActualQTY"] = update.actual_qty
            if update.price is not None and update.price != current.get("Price"):
                assignments.append("Price = :Price")
                params["Price"] = update.price
            if not assignments:
                return

            assignments += ["UpdateBy = :UpdateBy", "UpdateDate = GETDATE()"]
            tx.execute(
                f"UPDATE ReturnOrderLine SET {', '.join(assignments)} "
                "WHERE OrderNo = :OrderNo AND SKU = :SKU",
                params,
            )

    def delete_return_order(self, order_no: str) -> None:
        """Remove the order and its lines together."""
        with self._db.transaction() as tx:
            tx.execute(_DELETE_LINES_QUERY, {"OrderNo": order_no})
            tx.execute(_DELETE_HEAD_QUERY, {"OrderNo": order_no})

    def get_return_orders_by_status(self, status_check_id: int) -> list[DraftTradeDetail]:
        """Orders in this check status, oldest first."""
        rows = self._db.fetch_all(_BY_STATUS_QUERY, {"StatusCheckID": status_check_id})
        return [from_row(DraftTradeDetail, row) for row in rows]

    def get_return_orders_by_status_and_date_range(
        self, status_check_id: int, start_date: str, end_date: str
    ) -> list[DraftTradeDetail]:
        """Orders in this check status created on a day within the range, oldest first."""
        rows = self._db.fetch_all(
            _BY_STATUS_AND_DATE_QUERY,
            {"StatusCheckID": status_check_id, "StartDate": start_date, "EndDate": end_date},
        )
        return [from_row(DraftTradeDetail, row) for row in rows]