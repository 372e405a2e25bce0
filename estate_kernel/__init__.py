"""
Estate Kernel - shared infrastructure for the leasing engine.

Provides:
- Structured JSON logging with request-scoped context
- Typed exception hierarchy with machine-readable codes
- Injectable clock for deterministic overdue and extension checks
- Currency rounding helpers (Decimal only, never float)
- SQLAlchemy declarative base, engine and transactional scope
"""

__version__ = "0.1.0"
