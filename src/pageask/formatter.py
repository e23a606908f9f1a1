"""Grounding prompt construction.

``PROMPT_INSTRUCTIONS`` is part of the model-facing contract. Bump
``PROMPT_VERSION`` whenever its wording changes.
"""

from __future__ import annotations

PROMPT_VERSION = "2"

PROMPT_INSTRUCTIONS = """\
You are answering a question about the content of one or more web pages.
Follow these rules:
1. Answer only from the content provided below. Do not use outside knowledge.
2. If the content does not contain the answer, say explicitly that the answer \
cannot be found in the provided content.
3. Cite the source of each claim in brackets, e.g. [Source: <url>].
4. If sources contradict each other, point out the contradiction explicitly.
5. Put the most relevant information first."""


def format_content_query(content: str, question: str) -> str:
    return f"""{PROMPT_INSTRUCTIONS}

Content:
{content}

Question: {question}

Answer:"""
