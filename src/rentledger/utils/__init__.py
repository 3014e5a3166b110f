"""Utility functions for rentledger."""

from rentledger.utils.date_parser import parse_date, parse_slash_date
from rentledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_slash_date", "parse_amount"]
