"""
Question Generator for role-specific reference check questions.

This module provides functionality to:
1. Draft reference questions from a job description with Gemini
2. Fall back to a fixed question list when generation fails
"""

from .agent import (
    generate_reference_questions,
    parse_questions_response,
    fallback_questions,
    QuestionGenerationResult,
)

__all__ = [
    "generate_reference_questions",
    "parse_questions_response",
    "fallback_questions",
    "QuestionGenerationResult",
]
