"""
Question Service - builds the question set asked on a reference call.

A check stores its standard questions plus, when a job description is
available, AI-generated ones. Custom questions are added per call when
it is scheduled.
"""
import logging
import re
import uuid
from typing import Awaitable, Callable, Iterable, Optional, Union

from src.config import STANDARD_QUESTIONS
from src.models import QuestionSource
from src.repositories import QuestionRepository
from question_generator import QuestionGenerationResult, generate_reference_questions

logger = logging.getLogger(__name__)

QuestionGenerator = Callable[[str, str], Awaitable[QuestionGenerationResult]]

# Category of each entry in STANDARD_QUESTIONS, by position
STANDARD_CATEGORIES = [
    "relationship",
    "responsibilities",
    "strengths",
    "growth",
    "communication",
    "problem_solving",
    "recommendation",
    "general",
]


def standard_questions(position: str) -> list[dict]:
    """The fixed questions of every check, with the position filled in."""
    return [
        {
            "question_text": text.format(position=position),
            "category": STANDARD_CATEGORIES[i] if i < len(STANDARD_CATEGORIES) else "general",
            "order_num": i + 1,
            "source": QuestionSource.STANDARD.value,
        }
        for i, text in enumerate(STANDARD_QUESTIONS)
    ]


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip().lower()


def build_question_set(
    stored_questions: Iterable[Union[str, dict]],
    custom_questions: Optional[Iterable[str]] = None,
) -> list[str]:
    """
    Ordered question texts for an assistant prompt.

    Args:
        stored_questions: Question texts, or rows/dicts with question_text
            (and order_num, used for ordering when present)
        custom_questions: Extra questions for this call

    Returns:
        Stored questions in order followed by custom ones. Blank entries
        and duplicates (ignoring case and whitespace) are dropped.
    """
    stored = list(stored_questions)
    if stored and not isinstance(stored[0], str):
        stored = [q["question_text"] for q in sorted(stored, key=lambda q: q["order_num"])]

    result = []
    seen = set()
    for text in [*stored, *(custom_questions or [])]:
        if not text or not text.strip():
            continue
        key = _normalize(text)
        if key in seen:
            continue
        seen.add(key)
        result.append(text.strip())
    return result


class QuestionService:
    """Service for creating and reading the stored questions of a check."""

    def __init__(
        self,
        question_repo: QuestionRepository,
        generator: QuestionGenerator = generate_reference_questions,
    ):
        self.question_repo = question_repo
        self.generator = generator

    async def create_question_set(
        self,
        reference_check_id: uuid.UUID,
        position: str,
        job_description: Optional[str] = None,
        generate: bool = True,
    ) -> list[dict]:
        """
        Persist the question set of a new check.

        Standard questions come first. AI-generated questions follow when
        requested and a job description is present; the generator falls back
        to a fixed list on its own, so this never fails because of Gemini.
        """
        questions = standard_questions(position)

        if generate and job_description and job_description.strip():
            result = await self.generator(job_description, position)
            source = QuestionSource.AI_GENERATED.value
            known = {_normalize(q["question_text"]) for q in questions}
            for q in result.questions:
                if _normalize(q["text"]) in known:
                    continue
                known.add(_normalize(q["text"]))
                questions.append({
                    "question_text": q["text"],
                    "category": q.get("category", "general"),
                    "order_num": len(questions) + 1,
                    "source": source,
                })
            logger.info(
                f"Question set for {reference_check_id}: {len(questions)} questions "
                f"(generated={result.generated})"
            )

        await self.question_repo.create_many(reference_check_id, questions)
        return questions

    async def get_question_texts(
        self,
        reference_check_id: uuid.UUID,
        custom_questions: Optional[list[str]] = None,
    ) -> list[str]:
        """Stored questions of a check plus optional custom ones, ready for a prompt."""
        rows = await self.question_repo.list_for_check(reference_check_id)
        return build_question_set(rows, custom_questions)
