import pytest

from returnorders.db import Database, NoRowsError
from returnorders.import_order import (
    ImageRecord,
    ImportItem,
    ImportOrderRepository,
)


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self.rowcount = -1
        self._rows = []

    def execute(self, query, params):
        self.conn.calls.append((query, params))
        columns, rows = self.conn.responder(query, params)
        self.description = [(name,) for name in columns] if columns else None
        self._rows = list(rows)
        self.rowcount = len(self._rows)

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, responder):
        self.responder = responder
        self.calls = []
        self.commits = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        pass

    def close(self):
        pass


HEAD_COLUMNS = ["OrderNo", "SoNo", "TrackingNo", "CreateDate"]
LINE_COLUMNS = ["SKU", "ItemName", "QTY", "Price"]


def make_repo(responder):
    conn = FakeConnection(responder)
    return ImportOrderRepository(Database(conn)), conn


def search_responder(heads_by_offset, lines):
    def responder(query, params):
        if "OFFSET" in query:
            return HEAD_COLUMNS, heads_by_offset.get(params["Offset"], [])
        return LINE_COLUMNS, lines

    return responder


def test_search_order_or_tracking_attaches_lines_with_head_numbers():
    heads = {0: [("ORD1", "SO1", "TRK1", None)]}
    lines = [("SKU-A", "Shirt", 2, 10.5), ("SKU-B", "Cap", 1, 3.0)]
    repo, conn = make_repo(search_responder(heads, lines))

    orders = repo.search_order_or_tracking("ORD1")

    assert len(orders) == 1
    order = orders[0]
    assert order.order_no == "ORD1"
    assert order.so_no == "SO1"
    assert [line.sku for line in order.order_lines] == ["SKU-A", "SKU-B"]
    assert all(line.order_no == "ORD1" for line in order.order_lines)
    assert all(line.tracking_no == "TRK1" for line in order.order_lines)
    assert "ROM_V_OrderHeadDetail" in conn.calls[0][0]
    assert "ROM_V_OrderLineDetail" in conn.calls[1][0]


def test_search_pages_until_an_empty_batch():
    heads = {0: [("ORD1", "SO1", "TRK1", None)], 1000: [("ORD2", "SO2", "TRK2", None)]}
    repo, conn = make_repo(search_responder(heads, []))

    orders = repo.search_order_or_tracking("x")

    assert [order.order_no for order in orders] == ["ORD1", "ORD2"]
    offsets = [params["Offset"] for query, params in conn.calls if "OFFSET" in query]
    assert offsets == [0, 1000, 2000]
    assert all(params["Limit"] == 1000 for query, params in conn.calls if "OFFSET" in query)


def test_search_lines_are_fetched_by_search_text_for_every_head():
    heads = {0: [("ORD1", "SO1", "TRK", None), ("ORD2", "SO2", "TRK", None)]}
    lines = [("SKU-A", "Shirt", 1, 1.0)]
    repo, conn = make_repo(search_responder(heads, lines))

    orders = repo.search_order_or_tracking("TRK")

    assert [order.order_lines[0].order_no for order in orders] == ["ORD1", "ORD2"]
    line_params = [params for query, params in conn.calls if "OFFSET" not in query]
    assert line_params == [{"Search": "TRK"}, {"Search": "TRK"}]


def test_search_with_no_match_returns_empty_list():
    repo, _ = make_repo(search_responder({}, []))
    assert repo.search_order_or_tracking("nothing") == []


def test_search_order_or_tracking_no_reads_before_return_tables():
    heads = {0: [("ORD9", "SO9", "TRK9", None)]}
    repo, conn = make_repo(search_responder(heads, [("SKU-Z", "Bag", 3, 7.0)]))

    orders = repo.search_order_or_tracking_no("TRK9")

    assert orders[0].order_lines[0].tracking_no == "TRK9"
    assert "FROM BeforeReturnOrder\n" in conn.calls[0][0]
    assert "BeforeReturnOrderLine" in conn.calls[1][0]


def test_get_order_tracking():
    repo, _ = make_repo(
        lambda q, p: (["OrderNo", "TrackingNo"], [("ORD1", "TRK1"), ("ORD2", "TRK2")])
    )
    assert repo.get_order_tracking() == [
        ImportItem(order_no="ORD1", tracking_no="TRK1"),
        ImportItem(order_no="ORD2", tracking_no="TRK2"),
    ]


@pytest.mark.parametrize("count, expected", [(2, True), (0, False)])
def test_check_search(count, expected):
    repo, conn = make_repo(lambda q, p: (["Count"], [(count,)]))
    assert repo.check_search("TRK1") is expected
    assert conn.calls[0][1] == {"Search": "TRK1"}


@pytest.mark.parametrize("flag, expected", [(1, True), (0, False)])
def test_validate_sku(flag, expected):
    repo, conn = make_repo(lambda q, p: (["Exists"], [(flag,)]))
    assert repo.validate_sku("ORD1", "SKU-A") is expected
    assert conn.calls[0][1] == {"OrderNo": "ORD1", "SKU": "SKU-A"}


def test_fetch_return_details_by_sale_order_returns_order_no():
    repo, _ = make_repo(lambda q, p: (["OrderNo"], [("ORD5",)]))
    assert repo.fetch_return_details_by_sale_order("SO5") == "ORD5"


def test_fetch_return_details_by_sale_order_missing():
    repo, _ = make_repo(lambda q, p: (["OrderNo"], []))
    with pytest.raises(NoRowsError, match="no records found for SoNo: SO404"):
        repo.fetch_return_details_by_sale_order("SO404")


def test_insert_image_metadata_returns_new_id_and_sends_fields():
    repo, conn = make_repo(lambda q, p: ([""], [(42,)]))
    image = ImageRecord(
        sku="SKU-A", order_no="ORD1", file_path="uploads/a.jpg", image_type_id=2, create_by="u1"
    )

    assert repo.insert_image_metadata(image) == 42
    assert conn.calls[0][1] == {
        "SKU": "SKU-A",
        "OrderNo": "ORD1",
        "FilePath": "uploads/a.jpg",
        "ImageTypeID": 2,
        "CreateBy": "u1",
    }


def test_insert_image_metadata_without_result_gives_zero():
    repo, _ = make_repo(lambda q, p: ([], []))
    image = ImageRecord(sku="S", order_no="O", file_path="f", image_type_id=1, create_by="u")
    assert repo.insert_image_metadata(image) == 0