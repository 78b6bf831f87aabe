"""Utility functions for ifrs16."""

from ifrs16.utils.date_parser import parse_date, month_end
from ifrs16.utils.amount_parser import parse_amount, parse_rate
from ifrs16.utils.lease_resolver import resolve_lease

__all__ = ["parse_date", "month_end", "parse_amount", "parse_rate", "resolve_lease"]
