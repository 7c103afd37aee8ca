"""EODHD financial statements sync into MongoDB and BigQuery"""

__version__ = "1.0.0"
