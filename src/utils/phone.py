"""
Phone number normalization.
"""
import phonenumbers

from src.config import DEFAULT_PHONE_REGION


def to_e164(raw: str, default_region: str = DEFAULT_PHONE_REGION) -> str:
    """
    Normalize a phone number to E.164 (e.g. "(201) 555-0123" -> "+12015550123").

    Numbers without a leading "+" are parsed in default_region.

    Raises:
        ValueError: If the number cannot be parsed or is not a valid number
    """
    if not raw or not raw.strip():
        raise ValueError("Phone number is empty")

    try:
        number = phonenumbers.parse(raw.strip(), default_region)
    except phonenumbers.NumberParseException as e:
        raise ValueError(f"Invalid phone number: {raw}") from e

    if not phonenumbers.is_valid_number(number):
        raise ValueError(f"Invalid phone number: {raw}")

    return phonenumbers.format_number(number, phonenumbers.PhoneNumberFormat.E164)
