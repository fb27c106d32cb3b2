from ai_form_builder.programs.form_memory.history import build_combined_text, build_history_snippet, derive_purpose
from ai_form_builder.programs.form_memory.orchestrator import FormMemoryOrchestrator, generate_and_persist_form
from ai_form_builder.programs.form_memory.similarity import cosine_similarity, rank, rank_scored

__all__ = [
    "FormMemoryOrchestrator",
    "build_combined_text",
    "build_history_snippet",
    "cosine_similarity",
    "derive_purpose",
    "generate_and_persist_form",
    "rank",
    "rank_scored",
]
