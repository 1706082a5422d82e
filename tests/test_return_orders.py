import sqlite3

import pytest

from returnorders.db import Database, NoRowsError
from returnorders.return_orders import ReturnOrderRepository

SCHEMA = """
CREATE TABLE ReturnOrder (
    RecID INTEGER PRIMARY KEY AUTOINCREMENT,
    OrderNo TEXT, SoNo TEXT, SrNo TEXT, TrackingNo TEXT, PlatfID INTEGER,
    ChannelID INTEGER, OptStatusID INTEGER, AxStatusID INTEGER, PlatfStatusID INTEGER,
    Reason TEXT, CreateBy TEXT, CreateDate TEXT, UpdateBy TEXT, UpdateDate TEXT,
    CancelID INTEGER, StatusCheckID INTEGER, CheckBy TEXT, Description TEXT
);
CREATE TABLE ReturnOrderLine (
    RecID INTEGER PRIMARY KEY AUTOINCREMENT,
    OrderNo TEXT, SKU TEXT, ItemName TEXT, QTY INTEGER, ReturnQTY INTEGER,
    ActualQTY INTEGER, Price REAL, TrackingNo TEXT, CreateBy TEXT, CreateDate TEXT,
    AlterSKU TEXT, UpdateBy TEXT, UpdateDate TEXT
);
"""


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    connection.executescript(SCHEMA)
    yield connection
    connection.close()


@pytest.fixture
def repo(conn):
    return ReturnOrderRepository(Database(conn))


def add_order(conn, order_no, so_no="SO", tracking_no="TRK", status_check_id=1):
    conn.execute(
        "INSERT INTO ReturnOrder (OrderNo, SoNo, TrackingNo, CreateBy, StatusCheckID) "
        "VALUES (?, ?, ?, ?, ?)",
        (order_no, so_no, tracking_no, "u1", status_check_id),
    )


def add_line(conn, order_no, sku, item_name="Item", qty=1, price=1.0):
    conn.execute(
        "INSERT INTO ReturnOrderLine (OrderNo, SKU, ItemName, QTY, ReturnQTY, Price, CreateBy) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (order_no, sku, item_name, qty, qty, price, "u1"),
    )


def test_get_all_return_orders_groups_lines_by_order(conn, repo):
    add_order(conn, "ORD1", so_no="SO1")
    add_order(conn, "ORD2", so_no="SO2")
    add_order(conn, "ORD3", so_no="SO3")
    add_line(conn, "ORD2", "SKU-B")
    add_line(conn, "ORD1", "SKU-A")
    add_line(conn, "ORD2", "SKU-C")

    orders = repo.get_all_return_orders()

    assert [order.order_no for order in orders] == ["ORD1", "ORD2", "ORD3"]
    assert [line.sku for line in orders[0].lines] == ["SKU-A"]
    assert [line.sku for line in orders[1].lines] == ["SKU-B", "SKU-C"]
    assert orders[2].lines == []
    assert orders[1].so_no == "SO2"


def test_get_all_return_orders_empty(repo):
    assert repo.get_all_return_orders() == []


def test_get_all_return_orders_spans_several_batches(conn, repo):
    for n in range(1001):
        add_order(conn, f"ORD{n}")
        add_line(conn, f"ORD{n}", f"SKU{n}")

    orders = repo.get_all_return_orders()

    assert len(orders) == 1001
    assert all(len(order.lines) == 1 for order in orders)
    assert all(order.lines[0].order_no == order.order_no for order in orders)


def test_get_return_order_by_order_no_includes_lines(conn, repo):
    add_order(conn, "ORD1", so_no="SO1", tracking_no="TRK1", status_check_id=2)
    add_line(conn, "ORD1", "SKU-A", item_name="Shirt", qty=2, price=9.5)
    add_line(conn, "ORD2", "SKU-X")

    order = repo.get_return_order_by_order_no("ORD1")

    assert order.tracking_no == "TRK1"
    assert order.status_check_id == 2
    assert len(order.lines) == 1
    line = order.lines[0]
    assert (line.sku, line.item_name, line.qty, line.price) == ("SKU-A", "Shirt", 2, 9.5)


def test_get_return_order_by_order_no_missing(repo):
    with pytest.raises(NoRowsError):
        repo.get_return_order_by_order_no("NOPE")


def test_get_all_return_order_lines_in_insertion_order(conn, repo):
    add_line(conn, "ORD2", "SKU-B", item_name="Cap")
    add_line(conn, "ORD1", "SKU-A", item_name="Shirt")

    lines = repo.get_all_return_order_lines()

    assert [(line.order_no, line.sku) for line in lines] == [("ORD2", "SKU-B"), ("ORD1", "SKU-A")]
    assert all(line.item_name == "" for line in lines)


def test_get_return_order_lines_by_order_no_filters(conn, repo):
    add_line(conn, "ORD1", "SKU-A")
    add_line(conn, "ORD2", "SKU-B")
    add_line(conn, "ORD1", "SKU-C")

    lines = repo.get_return_order_lines_by_order_no("ORD1")

    assert [line.sku for line in lines] == ["SKU-A", "SKU-C"]
    assert repo.get_return_order_lines_by_order_no("ORD9") == []


def test_check_order_no_exist(conn, repo):
    add_order(conn, "ORD1")
    assert repo.check_order_no_exist("ORD1") is True
    assert repo.check_order_no_exist("ORD2") is False


def test_check_order_no_line_exist(conn, repo):
    add_order(conn, "ORD2")
    add_line(conn, "ORD1", "SKU-A")
    assert repo.check_order_no_line_exist("ORD1") is True
    assert repo.check_order_no_line_exist("ORD2") is False