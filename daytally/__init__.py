"""
DayTally package.

A personal time-logging service: activities are recorded per calendar day
against a 24-hour budget and summarised once the day is fully accounted for.
"""
import logging

# Applications using this package configure their own logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

VERSION = "1.0.0"
