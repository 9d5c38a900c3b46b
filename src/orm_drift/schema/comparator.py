"""Schema drift detection for one declared model against its live table.

Compares a parsed ``Model`` with the columns introspected from the database.
Pure logic -- no I/O, no database connections.

Comparison is deliberately coarse: types are compared by canonical family
(``integer``, ``text``, ``numeric`` ...), never by precision, scale or length,
so driver-level aliases (``int4`` vs ``integer``, ``varchar(255)`` vs
``text``) do not show up as drift.

Usage:
    from orm_drift.schema.comparator import detect_drift
    from orm_drift.schema.introspector import SchemaIntrospector

    introspector = SchemaIntrospector(client)
    columns = None
    if await introspector.table_exists(model.table_name):
        columns = await introspector.get_columns(model.table_name)

    result = detect_drift(model, columns)
    if result.has_changes:
        print(result.format_report())
"""

from collections.abc import Iterable

from orm_drift.orm.models import Model
from orm_drift.orm.types import CanonicalType, postgres_canonical_type
from orm_drift.schema.models import ColumnChange, ColumnSchema, DriftResult, ModelStatus


def detect_drift(
    model: Model,
    live_columns: Iterable[ColumnSchema] | None,
) -> DriftResult:
    """Compare a declared model with the live columns of its table.

    For every declared field that is backed by a column:
    - no live column named ``field.column_name`` -> ``missing_columns``
    - canonical type family differs, or nullability differs ->
      ``changed_columns`` (raw declared/live types kept for display).
      Type families are not compared when either side is ``unknown``.

    Live columns matched by no field end up in ``extra_columns`` in live
    order.  They are informational and do not set ``has_changes``.

    Args:
        model: Declared model (from a parser).
        live_columns: Columns of ``model.table_name``, or ``None`` if the
            table does not exist.

    Returns:
        ``DriftResult``.  When the table does not exist the result has
        ``table_exists=False`` and no column diff at all.

    Examples:
        >>> result = detect_drift(order_model, [
        ...     ColumnSchema(name="id", data_type="integer", is_nullable=False),
        ...     ColumnSchema(name="owner_id", data_type="integer", is_nullable=False),
        ...     ColumnSchema(name="total", data_type="numeric", is_nullable=False),
        ...     ColumnSchema(name="notes", data_type="text"),
        ... ])
        >>> result.extra_columns, result.has_changes
        (['notes'], False)

        >>> detect_drift(order_model, None).status.value
        'missing'
    """
    if live_columns is None:
        return DriftResult(table_name=model.table_name, table_exists=False)

    live_by_name: dict[str, ColumnSchema] = {}
    for column in live_columns:
        live_by_name.setdefault(column.name, column)

    missing_columns = []
    changed_columns: list[ColumnChange] = []
    matched: set[str] = set()

    for field in model.column_fields:
        live = live_by_name.get(field.column_name)
        if live is None:
            missing_columns.append(field)
            continue

        matched.add(live.name)
        live_canonical = postgres_canonical_type(live.data_type, live.udt_name)

        type_differs = (
            field.canonical_type is not CanonicalType.UNKNOWN
            and live_canonical is not CanonicalType.UNKNOWN
            and field.canonical_type != live_canonical
        )
        nullability_differs = field.nullable != live.is_nullable

        if type_differs or nullability_differs:
            changed_columns.append(
                ColumnChange(
                    name=field.column_name,
                    declared_type=field.declared_type,
                    live_type=live.data_type,
                    declared_nullable=field.nullable,
                    live_nullable=live.is_nullable,
                    declared_canonical=field.canonical_type,
                    live_canonical=live_canonical,
                )
            )

    extra_columns = [name for name in live_by_name if name not in matched]

    return DriftResult(
        table_name=model.table_name,
        table_exists=True,
        missing_columns=missing_columns,
        extra_columns=extra_columns,
        changed_columns=changed_columns,
    )


def model_status(drift: DriftResult) -> ModelStatus:
    """Project a drift result onto the presentation status."""
    return drift.status
