from datetime import datetime

import pytest

from returnorders.entities import (
    District,
    InvoiceInformation,
    OrderLineDetail,
    PostalCode,
    Product,
    Province,
    UserDetail,
    from_row,
)


def test_province_from_row():
    province = from_row(Province, {"ProvinceCode": 10, "ProvicesTH": "Bangkok"})
    assert province == Province(province_code=10, provices_th="Bangkok")


def test_product_uses_namealias_column():
    product = from_row(Product, {"SKU": "R01", "NAMEALIAS": "Shirt", "Size": "M"})
    assert product.name_alias == "Shirt"
    assert product.sku == "R01"
    assert product.barcode is None


def test_missing_columns_keep_defaults():
    user = from_row(UserDetail, {"UserID": "U1", "RoleID": 2})
    assert user.user_id == "U1"
    assert user.role_id == 2
    assert user.warehouse_name == ""
    assert user.is_active is False


def test_unknown_column_raises():
    with pytest.raises(ValueError, match="Bogus"):
        from_row(District, {"DistrictCode": 1, "Bogus": 2})


def test_non_entity_type_raises():
    with pytest.raises(TypeError):
        from_row(dict, {"a": 1})


def test_order_line_round_trip():
    created = datetime(2025, 2, 11, 16, 47, 14)
    row = {"OrderNo": "O1", "SKU": "S1", "QTY": 3, "Price": 9.5, "CreateDate": created}
    line = from_row(OrderLineDetail, row)
    assert (line.order_no, line.sku, line.qty, line.price, line.create_date) == ("O1", "S1", 3, 9.5, created)


def test_invoice_and_postal():
    invoice = from_row(InvoiceInformation, {"CustomerID": "C1", "TaxID": "T"})
    assert invoice.customer_name is None
    assert from_row(PostalCode, {"ZipCode": "10200"}).zip_code == "10200"