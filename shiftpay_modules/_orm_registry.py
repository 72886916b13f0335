"""
Module ORM Registry (``shiftpay_modules._orm_registry``).

Responsibility
--------------
Import every ``shiftpay_modules.*.orm`` module so that ``Base.metadata``
holds all table definitions before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily by
``shiftpay_kernel.db.engine.create_tables`` and by the immutability
listeners; never imported at kernel import time.
"""


def import_all_orm_models() -> None:
    """Register all module ORM models.  Idempotent."""
    import shiftpay_modules.payroll.orm  # noqa: F401
    import shiftpay_modules.worktime.orm  # noqa: F401
