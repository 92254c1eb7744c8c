from functools import reduce

from contact_record import CONTACT_FIELDS, ContactRecord


def merge_contact_records(primary, fallback):
    """
    Merge two contact records field by field.

    Args:
        primary: Record whose non-empty fields win
        fallback: Record used to fill fields that primary left empty

    Returns:
        Merged ContactRecord
    """
    merged = {}

    for field in CONTACT_FIELDS:
        merged[field] = getattr(primary, field) or getattr(fallback, field) or ''

    return ContactRecord(**merged)


def merge_extracted_data(records):
    """
    Merge records from several sources (e.g. both sides of a card).

    Args:
        records: Iterable of ContactRecord, highest priority first

    Returns:
        Merged ContactRecord; empty if no records were given
    """
    return reduce(merge_contact_records, records, ContactRecord())
