"""Rows of the read-only database views."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Type, TypeVar

T = TypeVar("T")


def _col(name: str, default: Any = None) -> Any:
    return field(default=default, metadata={"column": name})


@dataclass
class ErpUser:
    """A user account as known to the ERP."""

    user_id: str = _col("UserID", "")
    user_name: str = _col("UserName", "")
    password: str = _col("Password", "")
    nick_name: str = _col("NickName", "")
    full_name_th: str = _col("FullNameTH", "")
    department_no: str = _col("DepartmentNo", "")


@dataclass
class UserDetail:
    """A user together with role, warehouse and account status."""

    user_id: str = _col("UserID", "")
    password: str = _col("Password", "")
    user_name: str = _col("UserName", "")
    nick_name: str = _col("NickName", "")
    full_name_th: str = _col("FullNameTH", "")
    department_no: str = _col("DepartmentNo", "")
    role_id: int = _col("RoleID", 0)
    role_name: str = _col("RoleName", "")
    warehouse_id: int = _col("WarehouseID", 0)
    warehouse_name: str = _col("WarehouseName", "")
    description: str = _col("Description", "")
    is_active: bool = _col("IsActive", False)


@dataclass
class OrderHeadDetail:
    """Header of a sales order."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    status_mkp: str = _col("StatusMKP", "")
    sales_status: str = _col("SalesStatus", "")
    create_date: Optional[datetime] = _col("CreateDate")
    tracking_no: str = _col("TrackingNo", "")


@dataclass
class OrderLineDetail:
    """One line of a sales order."""

    order_no: str = _col("OrderNo", "")
    so_no: str = _col("SoNo", "")
    status_mkp: str = _col("StatusMKP", "")
    sales_status: str = _col("SalesStatus", "")
    sku: str = _col("SKU", "")
    item_name: str = _col("ItemName", "")
    qty: int = _col("QTY", 0)
    price: float = _col("Price", 0.0)
    create_date: Optional[datetime] = _col("CreateDate")
    tracking_no: str = _col("TrackingNo", "")


@dataclass
class Product:
    """A product of the catalogue."""

    sku: str = _col("SKU", "")
    name_alias: str = _col("NAMEALIAS", "")
    size: str = _col("Size", "")
    size_id: str = _col("SizeID", "")
    barcode: Optional[str] = _col("Barcode")
    type: Optional[str] = _col("Type")


@dataclass
class InvoiceInformation:
    """Invoicing data of a customer."""

    customer_id: str = _col("CustomerID", "")
    customer_name: Optional[str] = _col("CustomerName")
    address: Optional[str] = _col("Address")
    tax_id: str = _col("TaxID", "")


@dataclass
class Province:
    province_code: int = _col("ProvinceCode", 0)
    provices_th: str = _col("ProvicesTH", "")


@dataclass
class District:
    province_code: int = _col("ProvinceCode", 0)
    district_code: int = _col("DistrictCode", 0)
    district_th: str = _col("DistrictTH", "")


@dataclass
class SubDistrict:
    district_code: int = _col("DistrictCode", 0)
    subdistrict_code: int = _col("SubdistrictCode", 0)
    subdistrict_th: str = _col("SubdistrictTH", "")


@dataclass
class PostalCode:
    subdistrict_code: int = _col("SubdistrictCode", 0)
    zip_code: str = _col("ZipCode", "")


def from_row(entity_type: Type[T], row: Mapping[str, Any]) -> T:
    """Build an entity from a row keyed by column name.

    Columns missing from the row keep their defaults; a column with no
    matching field is an error.
    """
    if not (isinstance(entity_type, type) and dataclasses.is_dataclass(entity_type)):
        raise TypeError(f"{entity_type!r} is not an entity type")
    columns = {f.metadata.get("column", f.name): f.name for f in dataclasses.fields(entity_type)}
    values = {}
    for column, value in row.items():
        attr = columns.get(column)
        if attr is None:
            raise ValueError(f"missing destination name {column} in {entity_type.__name__}")
        values[attr] = value
    return entity_type(**values)