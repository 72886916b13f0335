"""
Shiftpay Modules.

Application glue over the kernel and the engines.  Each module holds its
domain models (the nouns), workflows (state machines), ORM companions,
stores and a service facade.

Modules:
- worktime: Schedules, attendance reconciliation, review status
- payroll: Contracts, payroll calculation, confirmation ledger
"""
