"""
Transcript Formatter for VAPI reference call transcripts.

Turns the speaker-labelled messages of a finished call into a raw transcript,
then asks Gemini to rewrite it as clean question/answer pairs. The raw
transcript is returned verbatim whenever the model fails or answers empty.
"""
import asyncio
import logging
from typing import Optional

from google import genai
from google.genai import types

from src.config import GEMINI_MODEL

logger = logging.getLogger(__name__)

FORMAT_TIMEOUT_SECONDS = 45

ASSISTANT_ROLES = {"assistant", "bot"}
REFERENCE_ROLES = {"user", "customer"}

SPEAKER_LABELS = {
    "assistant": "AI",
    "reference": "Reference",
}

INSTRUCTION = """You clean up transcripts of automated employment reference check phone calls.

You receive a raw transcript with speaker labels "AI" (the interviewer) and "Reference"
(the person vouching for the candidate). Rewrite it as question/answer pairs:

Q1: <question as asked by the AI, cleaned of filler>
A1: <the reference's answer, faithful to what they said, filler words removed>

RULES:
1. Keep the order of the conversation
2. Never invent, summarise away, or soften what the reference said
3. Merge answers split across several turns into one answer
4. Skip greetings, consent checks and goodbyes unless they contain relevant information
5. If a question was not answered, write "A<n>: [No answer given]"
6. Output ONLY the Q/A text, no preamble"""


def build_turns(messages: list[dict]) -> list[dict]:
    """
    Convert VAPI transcript messages into ordered speaker turns.

    Args:
        messages: VAPI messages with role and message/content/text fields

    Returns:
        List of {"role": "assistant"|"reference", "message", "time_in_call_secs"}.
        System prompts, tool calls and empty messages are dropped.
    """
    turns = []
    for msg in messages:
        role = (msg.get("role") or "").lower()
        if role in ASSISTANT_ROLES:
            speaker = "assistant"
        elif role in REFERENCE_ROLES:
            speaker = "reference"
        else:
            continue

        text = (msg.get("message") or msg.get("content") or msg.get("text") or "").strip()
        if not text:
            continue

        turns.append({
            "role": speaker,
            "message": text,
            "time_in_call_secs": msg.get("secondsFromStart") or msg.get("time_in_call_secs") or 0,
        })
    return turns


def render_raw_transcript(turns: list[dict]) -> str:
    """Render turns as "AI: ..." / "Reference: ..." paragraphs."""
    return "\n\n".join(
        f"{SPEAKER_LABELS[turn['role']]}: {turn['message']}"
        for turn in turns
    )


def _build_prompt(raw_transcript: str, candidate_name: Optional[str], questions: Optional[list[str]]) -> str:
    lines = []
    if candidate_name:
        lines.append(f"## CANDIDATE\n{candidate_name}\n")
    if questions:
        lines.append("## PLANNED QUESTIONS")
        lines.extend(f"{i + 1}. {q}" for i, q in enumerate(questions))
        lines.append("")
    lines.append("## RAW TRANSCRIPT")
    lines.append(raw_transcript)
    return "\n".join(lines)


async def format_transcript(
    raw_transcript: str,
    candidate_name: Optional[str] = None,
    questions: Optional[list[str]] = None,
) -> str:
    """
    Rewrite a raw call transcript as clean Q/A pairs.

    Args:
        raw_transcript: Speaker-labelled transcript text
        candidate_name: Optional candidate name for context
        questions: Optional planned questions, helps the model align answers

    Returns:
        The formatted transcript, or raw_transcript unchanged on any failure
    """
    if not raw_transcript or not raw_transcript.strip():
        return raw_transcript

    try:
        client = genai.Client()
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=GEMINI_MODEL,
                contents=[
                    types.Content(role="user", parts=[types.Part(text=INSTRUCTION)]),
                    types.Content(role="user", parts=[types.Part(text=_build_prompt(raw_transcript, candidate_name, questions))]),
                ],
                config=types.GenerateContentConfig(
                    temperature=0.1,
                    max_output_tokens=8192,
                ),
            ),
            timeout=FORMAT_TIMEOUT_SECONDS,
        )
    except Exception as e:
        logger.error(f"Transcript formatting failed, keeping raw transcript: {e}")
        return raw_transcript

    formatted = (response.text or "").strip()
    if not formatted:
        logger.warning("Transcript formatter returned empty output, keeping raw transcript")
        return raw_transcript

    logger.info(f"Transcript formatted: {len(raw_transcript)} -> {len(formatted)} chars")
    return formatted
