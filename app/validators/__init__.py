"""
app/validators package marker.
"""

from app.validators.value_coercers import parse_date, parse_discount, parse_integer, parse_number

__all__ = [
    "parse_date",
    "parse_discount",
    "parse_integer",
    "parse_number",
]
