"""
VAPI Voice Agent Prompts - All prompts are built here and sent with the assistant.

We build complete prompts with data already embedded when the call is
scheduled. This keeps all prompts in version control.
"""
from typing import Optional

# Job descriptions are trimmed before being embedded in the system prompt
MAX_JOB_DESCRIPTION_CHARS = 3000


def build_reference_check_prompt(
    candidate_name: str,
    position: str,
    reference_name: str,
    questions: list[str],
    company: Optional[str] = None,
    job_description: Optional[str] = None,
) -> str:
    """
    Build the system prompt for a reference check assistant.

    The assistant confirms who it is talking to, asks for consent and then
    works through the questions one at a time.
    """
    questions_text = "\n".join([
        f"{i+1}. {q}"
        for i, q in enumerate(questions)
    ])

    job_context = ""
    if job_description:
        description = job_description.strip()
        if len(description) > MAX_JOB_DESCRIPTION_CHARS:
            description = description[:MAX_JOB_DESCRIPTION_CHARS] + "..."
        job_context = f"""
## Job context
Use this only to ask relevant follow-up questions. Do not read it out.
{description}
"""

    hiring_company = f" at {company}" if company else ""

    return f"""## Role
You are conducting a professional employment reference check phone interview
for {candidate_name}, who is being considered for a {position} position{hiring_company}.
You are speaking with {reference_name}.

## Steps
1. Introduce yourself as an automated reference checking assistant
2. Confirm you are speaking with {reference_name}
3. Ask for consent to proceed with the reference check (about 10-15 minutes)
4. Ask each of these questions ONE AT A TIME and wait for the full answer:

{questions_text}

5. Thank them warmly for their time and end the call
{job_context}
## Important rules
- Be professional, warm and conversational
- Ask a natural follow-up question when an answer is vague
- Never share your own opinion about the candidate
- If the reference declines or it is a bad time, thank them and end the call
"""


def build_first_message(candidate_name: str, reference_name: str) -> str:
    """Opening line spoken as soon as the reference picks up."""
    return (
        f"Hi, this is the VoiceRef reference assistant calling about {candidate_name}'s job application. "
        f"Am I speaking with {reference_name}?"
    )
