"""Utility functions for text and field normalization"""

from dataclasses import asdict, is_dataclass


def split_lines(text):
    """
    Split raw text into reading-order lines for the field extractor.

    Args:
        text: Multi-line text (OCR output or pasted card text)

    Returns:
        List of lines with surrounding whitespace trimmed and empty lines removed
    """
    if not text:
        return []

    return [line.strip() for line in text.split('\n') if line.strip()]


def normalize_field(value):
    """
    Normalize a raw field value to a single string.

    Args:
        value: The raw value (string, list, number, None, etc.)

    Returns:
        Stripped string, or '' if nothing usable was given
    """
    if not value:
        return ''

    # If it's a list, take the first non-empty item
    if isinstance(value, list):
        for item in value:
            if normalize_field(item):
                value = item
                break
        else:
            return ''

    if isinstance(value, str):
        return value.strip()

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)

    return ''


def normalize_website(url):
    """Prefix a scheme-less website with https://."""
    url = normalize_field(url)
    if url and not url.lower().startswith(('http://', 'https://')):
        return f'https://{url}'
    return url


def has_content(value):
    """
    Check if a value has meaningful content.

    Args:
        value: Any value to check

    Returns:
        True if value has content, False otherwise
    """
    if value is None:
        return False

    if is_dataclass(value) and not isinstance(value, type):
        return has_content(asdict(value))

    if isinstance(value, str):
        return bool(value.strip())

    if isinstance(value, list):
        return any(has_content(item) for item in value)

    if isinstance(value, dict):
        return any(has_content(v) for v in value.values())

    return bool(value)
