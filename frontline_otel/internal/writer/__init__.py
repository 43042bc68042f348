from .writer import ExportResult
from .writer import OTLPWriter
from .writer import _human_size


__all__ = [
    "ExportResult",
    "OTLPWriter",
    "_human_size",
]
