"""
EODHD financials: layered pipeline (client → normalizer → sync writer → collector/processor).

Only the source-side modules are re-exported here; the writer and the
orchestrators depend on the database package and are imported from their
own modules.
"""

from .client import EodhdFundamentalsClient, NotFoundError, ProviderError
from .normalizer import (
    EtfDataPresentError,
    FinancialsNormalizer,
    NoFinancialsError,
    NormalizationError,
)
from .schema import SchemaField, infer_schema

__all__ = [
    "EodhdFundamentalsClient",
    "NotFoundError",
    "ProviderError",
    "EtfDataPresentError",
    "FinancialsNormalizer",
    "NoFinancialsError",
    "NormalizationError",
    "SchemaField",
    "infer_schema",
]
