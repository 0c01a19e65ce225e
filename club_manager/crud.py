"""Single-table store operations shared by the API views."""

from club_manager.db import now
from club_manager.errors import BadRequest, Conflict, ResourceNotFound
from club_manager.records import to_api, to_api_list


def list_rows(conn, resource, conditions=(), values=()):
    sql = resource.select_sql
    if conditions:
        sql += ' WHERE ' + ' AND '.join(conditions)
    sql += f' ORDER BY {resource.order_by}'
    return to_api_list(conn.execute(sql, list(values)).fetchall())


def get_row(conn, resource, row_id):
    row = conn.execute(f'{resource.select_sql} WHERE id = ?', (row_id,)).fetchone()
    if row is None:
        raise ResourceNotFound(f'{resource.label} not found')
    return to_api(row)


def insert_row(conn, resource, values):
    stamp = now()
    values = dict(values, created_at=stamp, updated_at=stamp)
    columns = list(values)
    placeholders = ', '.join('?' for _ in columns)
    cursor = conn.execute(
        f"INSERT INTO {resource.table} ({', '.join(columns)}) VALUES ({placeholders})",
        [values[c] for c in columns],
    )
    return cursor.lastrowid


def update_row(conn, resource, row_id, values):
    values = dict(values, updated_at=now())
    assignments = ', '.join(f'{column} = ?' for column in values)
    cursor = conn.execute(
        f'UPDATE {resource.table} SET {assignments} WHERE id = ?',
        list(values.values()) + [row_id],
    )
    return cursor.rowcount


def delete_row(conn, resource, row_id):
    cursor = conn.execute(f'DELETE FROM {resource.table} WHERE id = ?', (row_id,))
    return cursor.rowcount


def ensure_no_dependents(conn, table, column, row_id, message):
    """Refuse a delete while rows in ``table`` still point at ``row_id``."""
    count = conn.execute(f'SELECT COUNT(*) FROM {table} WHERE {column} = ?', (row_id,)).fetchone()[0]
    if count > 0:
        raise Conflict(message)


def ensure_exists(conn, table, row_id, field_name):
    """Check that an identifier taken from a request body references a row."""
    if row_id is None:
        return
    if conn.execute(f'SELECT 1 FROM {table} WHERE id = ?', (row_id,)).fetchone() is None:
        raise BadRequest(f'{field_name} does not reference an existing record')
