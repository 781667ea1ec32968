"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Daily rate stored as a fraction (e.g., 0.0075 = 0.75%)
# Precision: 10 digits total, 6 after decimal point
RateType = DECIMAL(10, 6)

# Percentage for bonus tables (e.g., 0.25 = 0.25%)
# Precision: 6 digits total, 3 after decimal point
PercentType = DECIMAL(6, 3)
