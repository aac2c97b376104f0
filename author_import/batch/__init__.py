"""
Streaming batch import of author dumps.
"""

from .batcher import Batcher
from .pipeline import AuthorImportPipeline, PipelineState, import_authors
from .readers import LineSource, RecordParser
from .writers import AuthorSink, BulkAuthorWriter

__all__ = [
    "AuthorImportPipeline",
    "PipelineState",
    "import_authors",
    "Batcher",
    "LineSource",
    "RecordParser",
    "AuthorSink",
    "BulkAuthorWriter",
]
