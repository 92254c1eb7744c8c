"""Heuristic contact field extraction from plain OCR text lines.

Each field is resolved by one pass, run in a fixed priority order. A pass
walks the lines top to bottom, skips lines already claimed by an earlier
pass, and claims the first line its recognizer accepts. Tight patterns
(email, phone, website) run first so the looser shape and keyword tests
that follow can never take their lines.
"""

import logging
import re
from collections import namedtuple

from contact_record import ContactRecord
from info_utils import split_lines

logger = logging.getLogger(__name__)


EMAIL_RE = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')

# North American grouping, or any long digit run with an optional country code
PHONE_RE = re.compile(
    r'(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}'
    r'|(?:\+?[0-9]{1,3}[-.\s]?)?[0-9]{10,}'
)

WEBSITE_RE = re.compile(
    r'(?:https?://)?(?:www\.)?[a-zA-Z0-9-]+\.[a-zA-Z]{2,}(?:/[^\s]*)?',
    re.IGNORECASE,
)

NAME_RE = re.compile(r"[a-zA-Z\s.'-]+")

COMPANY_RE = re.compile(
    r'\b(inc|llc|corp|ltd|limited|company|co|group|solutions|technologies|services)\b',
    re.IGNORECASE,
)

POSTAL_CODE_RE = re.compile(r'[0-9]{5}')
DIGIT_RE = re.compile(r'[0-9]')

JOB_TITLE_KEYWORDS = (
    'ceo', 'cto', 'cfo', 'coo', 'director', 'manager', 'engineer', 'developer',
    'designer', 'analyst', 'consultant', 'president', 'vice president', 'vp',
    'founder', 'co-founder', 'partner', 'associate', 'executive', 'officer',
    'head of', 'lead', 'senior', 'junior', 'chief', 'specialist', 'coordinator',
)

ADDRESS_KEYWORDS = (
    'street', 'st', 'avenue', 'ave', 'road', 'rd', 'drive', 'dr', 'suite',
    'floor', 'blvd', 'lane', 'ln',
)


ExtractionResult = namedtuple('ExtractionResult', ['record', 'claims'])


def format_phone(raw):
    """
    Strip a matched phone number down to digits and format 10-digit numbers.

    A leading '+' survives the strip. Exactly ten digits become
    '(AAA) PPP-LLLL'; any other length is returned as the bare digit string.
    """
    digits = re.sub(r'\D', '', raw)
    if raw.lstrip().startswith('+'):
        return '+' + digits
    if len(digits) == 10:
        return f'({digits[:3]}) {digits[3:6]}-{digits[6:]}'
    return digits


def _has_job_keyword(line):
    lowered = line.lower()
    return any(keyword in lowered for keyword in JOB_TITLE_KEYWORDS)


def _unclaimed(lines, claimed):
    for index, line in enumerate(lines):
        if index not in claimed:
            yield index, line


# PASSES
# Each pass returns (line index, field value) or None.

def find_email(lines, claimed, found):
    for index, line in _unclaimed(lines, claimed):
        match = EMAIL_RE.search(line)
        if match:
            return index, match.group(0)
    return None


def find_phone(lines, claimed, found):
    for index, line in _unclaimed(lines, claimed):
        match = PHONE_RE.search(line)
        if match:
            return index, format_phone(match.group(0))
    return None


def find_website(lines, claimed, found):
    email = found.get('email', '')
    for index, line in _unclaimed(lines, claimed):
        match = WEBSITE_RE.search(line)
        if not match:
            continue
        url = match.group(0)
        # An email's local part or domain also looks like a bare domain
        if '@' in url or url in email:
            continue
        if not url.lower().startswith(('http://', 'https://')):
            url = f'https://{url}'
        return index, url
    return None


def find_job_title(lines, claimed, found):
    for index, line in _unclaimed(lines, claimed):
        if _has_job_keyword(line):
            return index, line
    return None


def find_name(lines, claimed, found):
    for index, line in _unclaimed(lines, claimed):
        if (
            2 < len(line) < 50
            and NAME_RE.fullmatch(line)
            and not _has_job_keyword(line)
        ):
            return index, line
    return None


def find_company(lines, claimed, found):
    for index, line in _unclaimed(lines, claimed):
        if COMPANY_RE.search(line):
            return index, line
        # Weak fallback: any capitalized line of plausible length
        if 2 < len(line) < 60 and 'A' <= line[0] <= 'Z' and not PHONE_RE.search(line):
            return index, line
    return None


def find_address(lines, claimed, found):
    for index, line in _unclaimed(lines, claimed):
        if not DIGIT_RE.search(line):
            continue
        lowered = line.lower()
        if any(keyword in lowered for keyword in ADDRESS_KEYWORDS) or POSTAL_CODE_RE.search(line):
            return index, line
    return None


# Priority order. Earlier passes win any line they claim.
PASSES = (
    ('email', find_email),
    ('phone', find_phone),
    ('website', find_website),
    ('job_title', find_job_title),
    ('name', find_name),
    ('company', find_company),
    ('address', find_address),
)


def extract_contact_with_claims(lines):
    """
    Run every field pass over the lines and report which line fed which field.

    Args:
        lines: Ordered sequence of trimmed, non-empty text lines

    Returns:
        ExtractionResult of (ContactRecord, {field name: line index})
    """
    lines = tuple(lines)
    claimed = set()
    found = {}
    claims = {}

    for field_name, find in PASSES:
        hit = find(lines, claimed, found)
        if hit is None:
            continue
        index, value = hit
        claimed.add(index)
        found[field_name] = value
        claims[field_name] = index
        logger.debug(f"Line {index} claimed as {field_name}: {value!r}")

    return ExtractionResult(ContactRecord(**found), claims)


def extract_contact(lines):
    """Extract a ContactRecord from ordered text lines. Missing fields are ''."""
    return extract_contact_with_claims(lines).record


def parse_contact_from_text(text):
    """Split raw OCR text into trimmed non-empty lines and extract a contact."""
    return extract_contact(split_lines(text))
