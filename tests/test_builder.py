from dataclasses import dataclass, field

import pytest

from previous.builder import (
    Operator,
    QueryBetween,
    QueryBuilder,
    QueryError,
    QueryFilter,
    QuerySetter,
    connect,
    delete,
    get,
    insert,
    select,
    update,
    validate_column_name,
    wildcard,
)
from previous.filters import Filter, Pagination


@dataclass
class Order:
    id: int = field(default=0, metadata={"db": "id"})
    purchaser_name: str = field(default="", metadata={"db": "purchaser_name"})
    price: int = field(default=0, metadata={"db": "price"})
    note: str = ""


ROWS = [
    (1, "alice", 500),
    (2, "bob", 150),
    (3, "carol", 900),
    (4, "dave", 300),
    (5, "erin", 700),
]


@pytest.fixture
def conn():
    connection = connect(":memory:")
    connection.execute(
        "CREATE TABLE orders (id INTEGER PRIMARY KEY, purchaser_name TEXT, price INTEGER, extra TEXT)"
    )
    for row in ROWS:
        insert(
            QueryBuilder(
                base_sql="INSERT INTO orders",
                setters=[
                    QuerySetter(column="id", parameter=row[0]),
                    QuerySetter(column="purchaser_name", parameter=row[1]),
                    QuerySetter(column="price", parameter=row[2]),
                ],
            ),
            connection,
            Order,
        )
    yield connection
    connection.close()


def _all(conn):
    return [Order(*row) for row in ROWS]


def test_validate_column_name():
    assert validate_column_name(Order, "price") is True
    assert validate_column_name(Order, "note") is False
    assert validate_column_name(Order, "missing") is False
    assert validate_column_name(Order, "price; DROP TABLE orders") is False
    assert validate_column_name(Order, "price.") is False


def test_wildcard():
    assert wildcard("abc") == "abc"
    assert wildcard(5) == "%5%"
    assert wildcard(True) == "%true%"


def test_insert_and_select_round_trip(conn):
    rows = select(QueryBuilder(base_sql="SELECT * FROM orders", order_by=["id"]), conn, Order)
    assert rows == _all(conn)


def test_select_eq_filter(conn):
    builder = QueryBuilder(
        base_sql="SELECT * FROM orders",
        where=[QueryFilter(column="purchaser_name", operator=Operator.EQ, parameter="bob")],
    )
    sql, params = builder.build_select(Order)
    assert params == ["bob"]
    assert select(builder, conn, Order) == [Order(2, "bob", 150)]


def test_select_between_and_ordering(conn):
    builder = QueryBuilder(
        base_sql="SELECT * FROM orders",
        where=[QueryFilter(column="price", operator=Operator.BETWEEN, parameter=QueryBetween(200, 800))],
        order_by=["price"],
        order_descending=True,
    )
    result = select(builder, conn, Order)
    expected = sorted(
        (o for o in _all(conn) if 200 <= o.price <= 800), key=lambda o: o.price, reverse=True
    )
    assert result == expected


def test_select_pagination(conn):
    builder = QueryBuilder(
        base_sql="SELECT * FROM orders",
        order_by=["id"],
        pagination_enabled=True,
        current_page=2,
        max_items_per_page=2,
    )
    assert select(builder, conn, Order) == _all(conn)[2:4]


def test_pagination_defaults_are_filled_in(conn):
    builder = QueryBuilder(base_sql="SELECT * FROM orders", pagination_enabled=True)
    result = select(builder, conn, Order)
    assert builder.current_page == 1
    assert builder.max_items_per_page == 10
    assert len(result) == len(ROWS)


def test_where_subquery(conn):
    subquery = QueryBuilder(base_sql="SELECT MIN(price) FROM orders", subquery=True)
    builder = QueryBuilder(
        base_sql="SELECT * FROM orders",
        where=[QueryFilter(column="price", operator=Operator.GT, parameter=0, subquery=subquery)],
        order_by=["id"],
    )
    minimum = min(row[2] for row in ROWS)
    assert select(builder, conn, Order) == [o for o in _all(conn) if o.price > minimum]


def test_get_single_and_missing(conn):
    found = get(
        QueryBuilder(
            base_sql="SELECT * FROM orders",
            where=[QueryFilter(column="id", operator=Operator.EQ, parameter=3)],
        ),
        conn,
        Order,
    )
    assert found == Order(3, "carol", 900)
    with pytest.raises(LookupError):
        get(
            QueryBuilder(
                base_sql="SELECT * FROM orders",
                where=[QueryFilter(column="id", operator=Operator.EQ, parameter=99)],
            ),
            conn,
            Order,
        )


def test_update(conn):
    update(
        QueryBuilder(
            base_sql="UPDATE orders",
            setters=[
                QuerySetter(column="price", parameter=1),
                QuerySetter(column="purchaser_name", parameter="zed"),
            ],
            where=[QueryFilter(column="id", operator=Operator.EQ, parameter=1)],
        ),
        conn,
        Order,
    )
    rows = select(QueryBuilder(base_sql="SELECT * FROM orders", order_by=["id"]), conn, Order)
    assert rows[0] == Order(1, "zed", 1)
    assert rows[1:] == _all(conn)[1:]


def test_delete(conn):
    cursor = delete(
        QueryBuilder(
            base_sql="DELETE FROM orders",
            where=[QueryFilter(column="price", operator=Operator.LT, parameter=400)],
        ),
        conn,
        Order,
    )
    remaining = select(QueryBuilder(base_sql="SELECT * FROM orders", order_by=["id"]), conn, Order)
    assert remaining == [o for o in _all(conn) if o.price >= 400]
    assert cursor.rowcount == len(ROWS) - len(remaining)


def test_like_search_via_apply_search(conn):
    builder = QueryBuilder(base_sql="SELECT * FROM orders", order_by=["id"])
    builder.apply_search(Filter(search={"purchaser_name": "%a%"}))
    assert builder.where[0].operator == Operator.LIKE
    assert select(builder, conn, Order) == [o for o in _all(conn) if "a" in o.purchaser_name]


def test_apply_filter():
    builder = QueryBuilder()
    builder.apply_filter(
        Filter(
            pagination=Pagination(enabled=True, current_page=3, max_items_per_page=7),
            order_by="price",
            order_descending=True,
        )
    )
    assert builder.pagination_enabled is True
    assert builder.current_page == 3
    assert builder.max_items_per_page == 7
    assert builder.order_by == ["price"]
    assert builder.order_descending is True


def test_no_where_gives_empty_clause():
    assert QueryBuilder().build_where(Order) == ("", [])


def test_invalid_where_column_raises():
    builder = QueryBuilder(where=[QueryFilter(column="note", parameter=1)])
    with pytest.raises(QueryError):
        builder.build_select(Order)


def test_unsafe_where_column_skips_validation():
    builder = QueryBuilder(where=[QueryFilter(column="note", parameter=1, unsafe=True)])
    _, params = builder.build_where(Order)
    assert params == [1]


def test_between_requires_query_between():
    builder = QueryBuilder(where=[QueryFilter(column="price", operator=Operator.BETWEEN, parameter=5)])
    with pytest.raises(QueryError):
        builder.build_where(Order)


def test_query_between_rejected_for_other_operators():
    builder = QueryBuilder(
        where=[QueryFilter(column="price", operator=Operator.EQ, parameter=QueryBetween(1, 2))]
    )
    with pytest.raises(QueryError):
        builder.build_where(Order)


def test_none_parameter_raises():
    builder = QueryBuilder(where=[QueryFilter(column="price", parameter=None)])
    with pytest.raises(QueryError):
        builder.build_where(Order)


def test_insert_without_setters_raises():
    with pytest.raises(QueryError):
        QueryBuilder(base_sql="INSERT INTO orders").build_insert(Order)


def test_invalid_order_and_group_columns_raise():
    with pytest.raises(QueryError):
        QueryBuilder(order_by=["note"]).build_select(Order)
    with pytest.raises(QueryError):
        QueryBuilder(group_by=["bad name"]).build_select(Order)


def test_subquery_select_is_parenthesised():
    sql, _ = QueryBuilder(base_sql="SELECT id FROM orders", subquery=True).build_select(Order)
    assert sql.startswith("(")
    assert sql.endswith(")")


def test_insert_params_follow_setter_order():
    sql, params = QueryBuilder(
        base_sql="INSERT INTO orders",
        setters=[QuerySetter(column="price", parameter=9), QuerySetter(column="id", parameter=8)],
    ).build_insert(Order)
    assert params == [9, 8]
    assert "(price,id)" in sql