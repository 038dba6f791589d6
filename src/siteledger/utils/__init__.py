"""Utility functions for siteledger."""

from siteledger.utils.amount_parser import parse_amount
from siteledger.utils.date_parser import parse_date, parse_month_arg

__all__ = ["parse_amount", "parse_date", "parse_month_arg"]
