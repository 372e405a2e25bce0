"""
Module: estate_kernel.db.types
Responsibility: Column type definitions shared by every leasing table, so
    that monetary, rate and status columns use identical precision.
Architecture position: Kernel > DB.  MUST NOT import from domain modules.

Invariants enforced:
    CRITICAL: No floats.  Amounts and rates are Numeric and read back as
    Decimal.
"""

from sqlalchemy import Numeric, String

# Monetary amount: 38 digits total, 9 decimal places
MoneyType = Numeric(38, 9)

# Rates (tax fraction, renewal increase percentage)
RateType = Numeric(38, 9)

# Status / enum values stored by their string value
ShortCodeType = String(50)
