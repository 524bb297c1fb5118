"""
Database utilities for reading studio records from PostgreSQL.
"""

from typing import Any, List, Optional, Sequence, Tuple

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

# (column, value) pairs; a list/tuple/set value becomes a membership test
Filters = Sequence[Tuple[str, Any]]


def get_connection(database_url: Optional[str]) -> psycopg.Connection:
    """Open an autocommit connection; the insights engine never writes."""
    if not database_url:
        raise RuntimeError("DATABASE_URL not set")
    return psycopg.connect(database_url, autocommit=True)


def build_select(table: str, columns: Optional[Sequence[str]] = None, filters: Filters = ()) -> Tuple[sql.Composed, List[Any]]:
    """Compose a SELECT with equality/membership predicates.

    Columns are compared as text so uuid and text ids match the same way.
    """
    if columns:
        select_list = sql.SQL(", ").join(sql.Identifier(c) for c in columns)
    else:
        select_list = sql.SQL("*")

    conditions = []
    params: List[Any] = []
    for column, value in filters:
        if isinstance(value, (list, tuple, set, frozenset)):
            conditions.append(sql.SQL("{}::text = ANY(%s)").format(sql.Identifier(column)))
            params.append([str(v) for v in value])
        else:
            conditions.append(sql.SQL("{}::text = %s").format(sql.Identifier(column)))
            params.append(str(value))

    query = sql.SQL("SELECT {} FROM {}").format(select_list, sql.Identifier(table))
    if conditions:
        query = query + sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
    return query, params


def fetch_rows(database_url: Optional[str], table: str, filters: Filters = (), columns: Optional[Sequence[str]] = None) -> List[dict]:
    """Run a filtered SELECT on its own connection and return dict rows."""
    query, params = build_select(table, columns, filters)
    with get_connection(database_url) as conn, conn.cursor(row_factory=dict_row) as cur:
        cur.execute(query, params)
        return cur.fetchall()


def fetch_column(database_url: Optional[str], table: str, column: str, filters: Filters = ()) -> List[str]:
    """Distinct non-null values of one column, as strings."""
    rows = fetch_rows(database_url, table, filters, columns=[column])
    return sorted({str(row[column]) for row in rows if row[column] is not None})


def test_connection(database_url: Optional[str]) -> bool:
    """Test the database connection."""
    if not database_url:
        print("ERROR: DATABASE_URL not set. Please set it in your .env file.")
        return False

    try:
        with get_connection(database_url) as conn, conn.cursor() as cur:
            cur.execute("SELECT 1")
            result = cur.fetchone()
            if result and result[0] == 1:
                print("Database connection successful!")
                return True
    except psycopg.Error as e:
        print(f"Database connection failed: {e}")
        return False

    return False
