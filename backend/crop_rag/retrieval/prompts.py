"""Prompt templates for grounded and general answers."""

from __future__ import annotations

from typing import Sequence

from crop_rag.models.entities import QueryResult

SYSTEM_PROMPT = (
    "You are a helpful agricultural assistant specialising in crop diseases and pest "
    "management. Provide concise, accurate answers."
)

NOT_IN_DOCUMENTS = (
    "Based on the documents I have access to, I cannot provide specific information about "
    "this topic. However, I can share general knowledge about it."
)

_GROUNDED_TEMPLATE = """You are an assistant with access to specific agricultural documents. \
When answering questions, you MUST use ONLY the information provided in the following documents. \
If the answer cannot be found in these documents, respond with: "{not_found}" \
Cite sources inline using [Source N].

CONTEXT:
{context}

QUESTION: {question}

Provide an accurate answer based ONLY on the documents above. \
If the information is not in the documents, acknowledge that limitation."""

_GENERAL_TEMPLATE = """You are a helpful agricultural assistant. You can draw upon general knowledge \
about farming, crops, pests, and diseases to answer questions. When you do reference general \
knowledge, make that clear to the user.

QUESTION: {question}

Please provide a helpful answer drawing on your general knowledge about agriculture."""

_MINIMAL_TEMPLATE = "Answer this question: {question}"


def format_context(docs: Sequence[QueryResult], excerpt_chars: int = 1000) -> str:
    return "\n\n".join(
        f"Source {idx} ({doc.source}):\n{doc.text[:excerpt_chars]}" for idx, doc in enumerate(docs, start=1)
    )


def build_prompt(question: str, docs: Sequence[QueryResult], excerpt_chars: int = 1000) -> str:
    """Grounding prompt over ``docs``, or a general-knowledge prompt when there are none."""
    if docs:
        return _GROUNDED_TEMPLATE.format(
            not_found=NOT_IN_DOCUMENTS,
            context=format_context(docs, excerpt_chars),
            question=question,
        )
    return _GENERAL_TEMPLATE.format(question=question)


def build_minimal_prompt(question: str) -> str:
    return _MINIMAL_TEMPLATE.format(question=question)


__all__ = ["SYSTEM_PROMPT", "NOT_IN_DOCUMENTS", "build_prompt", "build_minimal_prompt", "format_context"]
