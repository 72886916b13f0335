"""
Shiftpay Kernel

Shared foundation for the attendance reconciliation and payroll core:
- Typed exception hierarchy
- Structured JSON logging
- SQLAlchemy base, engine and immutability listeners
- Clock, month and hour value helpers
"""

__version__ = "0.1.0"
