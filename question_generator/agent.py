"""
Question Generator - drafts role-specific reference check questions.

Sends the job description to Gemini and parses the returned JSON array.
Any failure (API error, timeout, malformed JSON) degrades to a fixed list
so a reference check always gets a usable question set.
"""
import asyncio
import json
import logging
import re
from dataclasses import dataclass, field

from google import genai
from google.genai import types

from src.config import GEMINI_MODEL

logger = logging.getLogger(__name__)

GENERATION_TIMEOUT_SECONDS = 30

VALID_CATEGORIES = {
    "intro",
    "technical",
    "leadership",
    "collaboration",
    "problem_solving",
    "performance",
    "growth",
    "recommendation",
}


@dataclass
class QuestionGenerationResult:
    """Questions for a reference check and whether the model produced them."""
    questions: list[dict] = field(default_factory=list)  # {text, category, order_num}
    generated: bool = False


def fallback_questions(position: str) -> list[dict]:
    """Fixed question list used when generation fails."""
    role = position.lower() if position else "previous"
    return [
        {"text": "Can you confirm your name and relationship to the candidate?", "category": "intro", "order_num": 1},
        {"text": "How long did you work with the candidate and in what capacity?", "category": "intro", "order_num": 2},
        {"text": f"What specific skills and experiences made the candidate effective in their {role} role?", "category": "technical", "order_num": 3},
        {"text": "Can you describe how the candidate approached challenging problems or projects?", "category": "problem_solving", "order_num": 4},
        {"text": "How would you describe the candidate's collaboration and communication style?", "category": "collaboration", "order_num": 5},
        {"text": "What was the candidate's biggest strength in their role?", "category": "performance", "order_num": 6},
        {"text": "Are there any areas where you think the candidate could continue to grow?", "category": "growth", "order_num": 7},
        {"text": "Would you hire this candidate again, and would you recommend them for this type of role?", "category": "recommendation", "order_num": 8},
    ]


def build_prompt(job_description: str, position: str, count: int = 8) -> str:
    return f"""Generate {count} tailored reference check questions for this position. Make them specific to the role requirements and responsibilities.

Position: {position}

Job Description:
{job_description}

Requirements:
1. Create {count} questions that dig into the specific skills and experiences needed for this role
2. Include both technical and soft skill questions relevant to the position
3. Make questions conversational and natural for a phone interview
4. Focus on examples and specific scenarios when possible

Return ONLY a JSON array with this exact format:
[
  {{
    "text": "Question text here",
    "category": "intro|technical|leadership|collaboration|problem_solving|performance|growth|recommendation",
    "order_num": 1
  }}
]

DO NOT include any other text, just the JSON array."""


def parse_questions_response(response_text: str) -> list[dict]:
    """
    Parse the JSON array returned by the model.

    The model sometimes wraps the array in markdown code fences.
    Returns an empty list when nothing usable is found.
    """
    fenced = re.search(r'```(?:json)?\s*([\s\S]*?)\s*```', response_text)
    if fenced:
        json_str = fenced.group(1)
    else:
        raw = re.search(r'\[[\s\S]*\]', response_text)
        if not raw:
            logger.error(f"Could not find JSON array in response: {response_text[:500]}")
            return []
        json_str = raw.group(0)

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse questions JSON: {e}")
        return []

    if not isinstance(parsed, list):
        return []

    questions = []
    for item in parsed:
        if not isinstance(item, dict):
            continue
        text = str(item.get("text", "")).strip()
        if not text:
            continue
        category = item.get("category")
        questions.append({
            "text": text,
            "category": category if category in VALID_CATEGORIES else "performance",
            "order_num": len(questions) + 1,
        })
    return questions


async def generate_reference_questions(
    job_description: str,
    position: str,
    count: int = 8,
) -> QuestionGenerationResult:
    """
    Generate reference check questions for a position.

    Args:
        job_description: Full job description text
        position: Job title
        count: Number of questions to request

    Returns:
        QuestionGenerationResult; generated=False means the fallback list was used
    """
    if not job_description or not job_description.strip():
        return QuestionGenerationResult(questions=fallback_questions(position), generated=False)

    try:
        client = genai.Client()
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=GEMINI_MODEL,
                contents=build_prompt(job_description, position, count),
                config=types.GenerateContentConfig(
                    temperature=0.4,
                    max_output_tokens=2048,
                ),
            ),
            timeout=GENERATION_TIMEOUT_SECONDS,
        )
        response_text = response.text or ""
    except Exception as e:
        logger.error(f"Question generation failed, using fallback questions: {e}")
        return QuestionGenerationResult(questions=fallback_questions(position), generated=False)

    questions = parse_questions_response(response_text)
    if not questions:
        logger.warning("Question generation returned no usable questions, using fallback questions")
        return QuestionGenerationResult(questions=fallback_questions(position), generated=False)

    logger.info(f"Generated {len(questions)} reference questions for '{position}'")
    return QuestionGenerationResult(questions=questions, generated=True)
