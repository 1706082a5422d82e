# returnorders

The data-access core of a return order management service. It follows
orders that customers send back. An order starts as a "before return"
record. It then passes through draft and confirmation. It ends as a checked
return order in the warehouse.

The package has no third-party dependencies. It works on any DB-API
connection whose driver accepts named (`:Name`) parameters.

## Modules

- `returnorders.db` holds the `Database` class. It wraps one DB-API
  connection and returns rows as dictionaries.
  - `fetch_all`, `fetch_one` and `fetch_value` read rows. `fetch_one` raises
    `NoRowsError` when no row matches.
  - `execute` and `execute_many` return the number of affected rows.
  - `transaction()` is a context manager. It commits on success and rolls
    back on any exception. Calls outside a transaction commit at once.
  - `expand_in(query, values)` turns a single `IN (?)` placeholder into
    named parameters.
- `returnorders.entities` holds dataclasses for the ERP views:
  - `ErpUser` and `UserDetail`
  - `OrderHeadDetail` and `OrderLineDetail`
  - `Product` and `InvoiceInformation`
  - `Province`, `District`, `SubDistrict` and `PostalCode`

  `from_row(entity_type, row)` builds one of them from a row keyed by column
  name.
- `returnorders.logs` holds `new_logger(service_name, log_path, max_size,
  max_backups, max_age)`. It returns a `Logger` and a flush function.
  - Errors and worse go to a size-rotated JSON file. Its backups are gzipped
    and pruned by age.
  - Every level goes to stdout as coloured, readable lines.
  - `Logger.fatal` exits with status 1.
  - `Logger.panic` raises `RuntimeError`.
  - `Logger.with_fields` adds fields to every entry.
- `returnorders.draft_confirm` holds `DraftConfirmRepository`:
  - draft and confirmed orders listed by date range
  - an order with its lines
  - the R-code products
  - adding lines to a draft and removing them
- `returnorders.order` holds `OrderRepository`:
  - sales order search by `so_no` and/or `order_no`
  - creating before-return orders with their lines, in one transaction
  - setting the credit-note number and the statuses
  - cancelling an order from `BeforeReturnOrder` or `ReturnOrder`
- `returnorders.import_order` holds `ImportOrderRepository`. It searches
  orders by order or tracking number, page by page. It also validates SKUs,
  looks up orders by sales order number and stores image metadata.
- `returnorders.return_orders` holds `ReturnOrderRepository`. It reads
  return orders and their lines, with lines fetched in batches of 1000
  order numbers. It also checks whether an order exists.
- `returnorders.return_order_workflow` holds `ReturnOrderWorkflow`:
  - `create_return_order` creates an order.
  - `update_return_order` writes only the header fields that actually
    change. When the tracking number changes, it also updates the tracking
    number on the order's lines.
  - `update_return_order_line` updates one line.
  - `delete_return_order` deletes an order and its lines together.
  - `get_return_orders_by_status` and
    `get_return_orders_by_status_and_date_range` list orders by check
    status, optionally within a date range.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Example

```python
import sqlite3

from returnorders.db import Database
from returnorders.logs import new_logger
from returnorders.return_orders import ReturnOrderRepository

logger, flush = new_logger("returns", "./logs/error.log", 1, 1, 7)

db = Database(sqlite3.connect("returns.db"))
repo = ReturnOrderRepository(db)

if repo.check_order_no_exist("ORD-0001"):
    order = repo.get_return_order_by_order_no("ORD-0001")
    logger.info("found order", order_no=order.order_no, lines=len(order.lines))

flush()
db.close()
```

Failures are raised as exceptions. A missing record raises `NoRowsError`, a
subclass of `LookupError`. Bad arguments raise `ValueError`; for example, an
unknown source table passed to `OrderRepository.cancel_order`.

## What this package does not do

The package has no HTTP server and no command to start one. It does not
authenticate users or read tokens. It has no user administration and no
look-ups for roles, warehouses, addresses or customers. It has no error
types carrying HTTP status codes. It does not create database tables either.
The queries target an existing SQL Server schema: they use `GETDATE()`,
`OUTPUT` and `OFFSET ... FETCH`.