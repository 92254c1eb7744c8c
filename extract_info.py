import json
import logging

from contact_record import CONTACT_FIELDS, ContactRecord
from info_utils import normalize_field, normalize_website

logger = logging.getLogger(__name__)

# Alternate spellings the model sometimes uses
FIELD_ALIASES = {
    'job_title': ('job_title', 'jobTitle', 'title'),
    'name': ('name', 'person_name', 'full_name'),
    'company': ('company', 'company_name', 'organization'),
    'phone': ('phone', 'phone_number', 'contact_numbers'),
    'email': ('email', 'email_address', 'email_addresses'),
}


def strip_code_fences(response_text):
    """Return the JSON body of a reply that may be wrapped in markdown fences."""
    response_text = response_text.strip()
    if "```json" in response_text:
        return response_text.split("```json")[1].split("```")[0].strip()
    if "```" in response_text:
        return response_text.split("```")[1].split("```")[0].strip()
    return response_text


def _lookup(data, field):
    for key in FIELD_ALIASES.get(field, (field,)):
        if data.get(key):
            return data[key]
    return None


def extract_information(response_text):
    """
    Extract and normalize contact information from an LLM response.

    Args:
        response_text: Raw response text from LLM

    Returns:
        ContactRecord with every field normalized to a string

    Raises:
        json.JSONDecodeError: If response contains invalid JSON
        ValueError: If the JSON is not an object
    """
    response_text = strip_code_fences(response_text)

    try:
        extracted_data = json.loads(response_text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON response: {e}")
        logger.error(f"Raw response: {response_text}")
        raise

    if not isinstance(extracted_data, dict):
        raise ValueError(f"Expected a JSON object, got {type(extracted_data).__name__}")

    values = {field: normalize_field(_lookup(extracted_data, field)) for field in CONTACT_FIELDS}
    values['website'] = normalize_website(values['website'])

    return ContactRecord.from_dict(values)
