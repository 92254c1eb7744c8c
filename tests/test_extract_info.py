"""
Tests for normalizing the vision model's reply.
"""

import json

import pytest

from contact_record import ContactRecord
from extract_info import extract_information, strip_code_fences


REPLY = {
    "name": "Jane Doe",
    "email": "jane.doe@acme.com",
    "phone": "+1 555 123 4567",
    "company": "Acme Solutions Inc",
    "job_title": "Senior Engineer",
    "address": "123 Main St, Suite 400",
    "website": "www.acme.com",
}


class TestStripCodeFences:

    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestExtractInformation:

    def test_plain_json(self):
        record = extract_information(json.dumps(REPLY))

        assert record == ContactRecord(
            name="Jane Doe",
            email="jane.doe@acme.com",
            phone="+1 555 123 4567",
            company="Acme Solutions Inc",
            job_title="Senior Engineer",
            address="123 Main St, Suite 400",
            website="https://www.acme.com",
        )

    def test_fenced_json(self):
        record = extract_information(f"```json\n{json.dumps(REPLY)}\n```")

        assert record.name == "Jane Doe"

    def test_camel_case_job_title(self):
        record = extract_information(json.dumps({"jobTitle": "CTO"}))

        assert record.job_title == "CTO"

    def test_missing_and_null_fields_become_empty(self):
        record = extract_information(json.dumps({"name": "  Bob  ", "email": None}))

        assert record.name == "Bob"
        assert record.email == ""
        assert record.website == ""

    def test_list_values_take_first_item(self):
        record = extract_information(json.dumps({"phone": ["", "555-123-4567", "555-000-0000"]}))

        assert record.phone == "555-123-4567"

    def test_website_scheme_kept(self):
        record = extract_information(json.dumps({"website": "http://acme.com"}))

        assert record.website == "http://acme.com"

    def test_invalid_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            extract_information("Sorry, I cannot read this card.")

    def test_non_object_raises(self):
        with pytest.raises(ValueError, match="Expected a JSON object"):
            extract_information('["Jane Doe"]')
