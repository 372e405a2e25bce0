"""
Estate Modules.

Thin orchestration layers over the Estate Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- ORM models, a repository and a service facade

Modules:
- Leasing: Lease schedules, payments, due-date extensions, renewals
"""

from estate_modules import leasing

__all__ = ["leasing"]
