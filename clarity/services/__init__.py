"""Core services: similarity search, ingestion, retrieval, augmentation, generation."""

from clarity.services.coach_agent import CoachAgent
from clarity.services.ingestion import IngestionService, TextChunker
from clarity.services.prompt_augmenter import augment
from clarity.services.retrieval_policy import RetrievalPolicy, is_document_centric
from clarity.services.session import RagSession
from clarity.services.similarity import similarity
from clarity.services.source_extractor import extract_sources
from clarity.services.vector_index import VectorIndex

__all__ = [
    "CoachAgent",
    "IngestionService",
    "RagSession",
    "RetrievalPolicy",
    "TextChunker",
    "VectorIndex",
    "augment",
    "extract_sources",
    "is_document_centric",
    "similarity",
]
