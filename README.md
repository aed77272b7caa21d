# previous

Building blocks for a server-rendered web application backed by SQLite,
plus `metagen`, a small build and migration command for projects laid out
around it.

## Modules

- `previous.basic` – small utilities: URL path splitting and path trees
  (`Tree`, `add_string_parts_to_tree`), string casing helpers
  (`capitalize_first_letter`, `snake_case_to_title_case`), date and time
  formatting for HTML forms and SQLite (`html_date_to_time`,
  `time_to_sqlite_string`, `sqlite_string_to_time`, `string_to_date`, ...)
  and list helpers such as `remove_duplicates` and `get_first_n_chars`.
  Unparseable dates give `ZERO_TIME`.
- `previous.constants` – cookie names, lifetimes, login paths and password
  rules.
- `previous.config` – a frozen `Configuration` read from environment
  variables (`HOST`, `PORT`, `DB_CONNECTION_STRING`, `SMTP_*`, ...) by
  `parse_config`. `init_config(debug=True)` first loads a `.env` file from
  the working directory; `get_config` returns the loaded settings. A
  malformed `SMTP_REQUIRE_AUTH` raises `ConfigError`.
- `previous.finance` – money held as integer cents:
  `money_to_int64("153.45")` gives `15345`, `int64_to_money(1324)` gives
  `"13.24"`, and `multiply_by_percentage_s64(15345, 8.625)` gives `1324`.
  Also rounding to whole units and `process_discount`, which clamps a
  percentage to 0..100.
- `previous.api` – `read_json(body, content_type, fields)` decodes one JSON
  value from a request body and raises `MalformedRequest` (with `status`
  and `msg`) for a wrong content type, empty, oversized (over 1 MB) or
  badly formed bodies, unknown fields and trailing data. `write_json` and
  `write_plaintext` return a `(content type, body bytes)` pair.
- `previous.filters` – a `Filter` built from query parameters
  (`orderBy`, `desc`, `pageNum`, `itemsPerPage`, `search_<column>`) by
  `parse_filter_from_query`, turned back into a query string by
  `query_params_from_filter`; page numbers via
  `Pagination.generate_pagination`; in-memory paging with `paginate`.
- `previous.builder` – a `QueryBuilder` that turns `QueryFilter` conditions
  and `QuerySetter` assignments into parameterised `SELECT`, `INSERT`,
  `UPDATE` and `DELETE` statements. Column names in filters, `GROUP BY`
  and `ORDER BY` must be declared as `db` columns on the model, or a
  `QueryError` is raised. `select`, `get`, `insert`, `update` and `delete`
  run a statement on a `sqlite3` connection opened with `connect`.
- `previous.css_preprocessor` – finds `InlineStyle(...)` calls in source
  text and compiles them into one stylesheet, expanding `$me`,
  `$color(name/opacity)`, `$<spacing>` and media-query shorthands such as
  `$md` and `$dark`.
- `previous.migrations` – a `Migrator` that applies numbered
  `<version>_<name>.up.sql` / `.down.sql` files to a SQLite database, and
  `create_migration` to add a new empty pair.
- `previous.metagen_util` – helpers for the command: `print_status`,
  `parse_sqlite_filename` and `parse_notes`.

## Example

```python
from dataclasses import dataclass, field
import sqlite3

from previous.builder import Operator, QueryBuilder, QueryFilter, select


@dataclass
class Order:
    id: int = field(default=0, metadata={"db": "id"})
    price: int = field(default=0, metadata={"db": "price"})


builder = QueryBuilder(
    base_sql="SELECT * FROM orders",
    where=[QueryFilter(column="price", operator=Operator.GT, parameter=100)],
    order_by=["price"],
)
sql, params = builder.build_select(Order)
# sql    == "SELECT * FROM orders  WHERE price > ? ORDER BY price ASC "
# params == [100]

connection = sqlite3.connect(":memory:")
connection.execute("CREATE TABLE orders (id INTEGER, price INTEGER)")
orders = select(builder, connection, Order)
```

## The metagen command

Run it from the project root. It requires a `.env` file there, which it
loads into the environment; `MIGRATION_CONNECTION_STRING` names the
database to migrate (otherwise `example.db` is used).

```
metagen build                  # create and migrate example.db if missing, compile inline styles, write the debug flag
metagen build-all              # the same, then byte-compile the previous package
metagen -env production build  # choose dev (default), staging or production
metagen migrate up             # apply all pending migrations from ./migrations
metagen migrate down           # roll every migration back
metagen migrate goto 3         # move to migration version 3
metagen migrate create add_orders
```

`build` reads `.py` files under `handlers/` and `ui/` and writes
`wwwroot/css/style.metagen.css`, and writes `DEBUG = True` (dev) or
`DEBUG = False` to `previous/debug_metagen.py`. `migrate create` makes a
pair of empty files numbered with seven digits. Run without arguments,
`metagen` prints its usage and exits with status 1.

## What this package does not do

It has no HTTP server, routes, page rendering, login, identity or session
cookies, or e-mail sending. It provides the pieces such an application
uses — settings, request-body parsing, filtering, queries, styles and
migrations — but not the application itself.

## Tests

The test suite uses pytest; install the `test` extra to get it.