from ai_form_builder.providers.embeddings import DeterministicEmbedder, DspyEmbedder, Embedder, build_embedder
from ai_form_builder.providers.text_generation import (
    DisabledTextGenerator,
    DspyTextGenerator,
    TextGenerator,
    build_text_generator,
)
from ai_form_builder.providers.vector_index import NullVectorIndex, SupabaseVectorIndex, VectorIndex, build_vector_index

__all__ = [
    "DeterministicEmbedder",
    "DisabledTextGenerator",
    "DspyEmbedder",
    "DspyTextGenerator",
    "Embedder",
    "NullVectorIndex",
    "SupabaseVectorIndex",
    "TextGenerator",
    "VectorIndex",
    "build_embedder",
    "build_text_generator",
    "build_vector_index",
]
