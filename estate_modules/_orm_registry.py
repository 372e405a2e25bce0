"""
Module ORM Registry (``estate_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by
``estate_kernel.db.engine.create_tables()``.

Usage
-----
Scripts, entrypoints, and ``tests/conftest.py`` all call
``create_all_tables()`` -- one orchestration function for every consumer.
"""


def import_all_orm_models() -> None:
    """Import every ``estate_modules.*.orm`` module to register ORM models.

    This function is idempotent -- repeated calls are harmless.
    """
    import estate_modules.leasing.orm  # noqa: F401


def create_all_tables() -> None:
    """Create every module table.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from estate_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
