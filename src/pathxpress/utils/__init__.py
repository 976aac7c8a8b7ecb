"""Utility functions for pathxpress."""

from pathxpress.utils.date_parser import parse_date, get_date_range, month_to_date_bounds
from pathxpress.utils.amount_parser import parse_amount, round_money

__all__ = ["parse_date", "get_date_range", "month_to_date_bounds", "parse_amount", "round_money"]
