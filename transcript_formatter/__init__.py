"""
Transcript Formatter for VAPI reference call transcripts.

This module provides functionality to:
1. Convert VAPI call messages into ordered assistant/reference turns
2. Render a raw speaker-labelled transcript
3. Clean it into question/answer pairs with Gemini, falling back to the raw text
"""

from .agent import (
    build_turns,
    render_raw_transcript,
    format_transcript,
)

__all__ = [
    "build_turns",
    "render_raw_transcript",
    "format_transcript",
]
