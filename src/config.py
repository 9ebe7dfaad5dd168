"""
Configuration module for VoiceRef Backend.
Centralizes environment variables, logging setup, and constants.
"""
import os
import logging
from dotenv import load_dotenv

# Load .env file for local development
load_dotenv()

# ============================================================================
# Environment Configuration
# ============================================================================

# Environment identifier (production, staging, development, etc.)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "production")

# Public URL of the frontend, used for links in emails
APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:3000").rstrip("/")

# ============================================================================
# Database Configuration
# ============================================================================

DATABASE_URL = os.environ.get("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")

# ============================================================================
# External Service Configuration
# ============================================================================

# VAPI Configuration
VAPI_API_KEY = os.environ.get("VAPI_API_KEY", "")
VAPI_PHONE_NUMBER_ID = os.environ.get("VAPI_PHONE_NUMBER_ID", "")
VAPI_WEBHOOK_SECRET = os.environ.get("VAPI_WEBHOOK_SECRET", "")
VAPI_SERVER_URL = os.environ.get("VAPI_SERVER_URL", f"{APP_BASE_URL}/vapi/events")
VAPI_TIMEOUT_SECONDS = float(os.environ.get("VAPI_TIMEOUT_SECONDS", "20"))

# Resend (email) Configuration
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
EMAIL_FROM = os.environ.get("EMAIL_FROM", "VoiceRef <noreply@voiceref.com>")
NOTIFICATION_EMAIL = os.environ.get("NOTIFICATION_EMAIL", "")
EMAIL_TIMEOUT_SECONDS = float(os.environ.get("EMAIL_TIMEOUT_SECONDS", "15"))

# Gemini model used for question generation and transcript cleanup
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")

# Shared secret the cron trigger sends as "Authorization: Bearer <secret>"
CRON_SECRET = os.environ.get("CRON_SECRET", "")

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# ============================================================================
# Application Constants
# ============================================================================

# Calls due within this window are picked up by a dispatcher scan
DISPATCH_LOOKAHEAD_MINUTES = int(os.environ.get("DISPATCH_LOOKAHEAD_MINUTES", "5"))

# Region used to parse phone numbers entered without a country code
DEFAULT_PHONE_REGION = os.environ.get("DEFAULT_PHONE_REGION", "US")

# Candidates must submit at least this many references
MIN_REFERENCES = int(os.environ.get("MIN_REFERENCES", "2"))

# Fixed questions asked on every reference check. {position} is filled in per check.
STANDARD_QUESTIONS = [
    "Can you describe your working relationship with the candidate?",
    "What were the candidate's primary responsibilities in the {position} role?",
    "What would you say are their greatest strengths?",
    "What areas do you think they could improve?",
    "How would you rate their communication skills?",
    "How did they handle challenging situations or pressure?",
    "Would you rehire this person if given the opportunity?",
    "Is there anything else you think we should know about the candidate?",
]
