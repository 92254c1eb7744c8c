"""Contact record shared by the heuristic and AI extraction paths"""

from dataclasses import dataclass, fields


# Order matters: the edit form is populated in this order
CONTACT_FIELDS = (
    'name',
    'email',
    'phone',
    'company',
    'job_title',
    'address',
    'website',
)


@dataclass(frozen=True)
class ContactRecord:
    """Structured contact fields. An empty string means the field was not found."""

    name: str = ''
    email: str = ''
    phone: str = ''
    company: str = ''
    job_title: str = ''
    address: str = ''
    website: str = ''

    def to_dict(self):
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data):
        """
        Build a record from a mapping, ignoring unknown keys.

        Args:
            data: Mapping with any subset of CONTACT_FIELDS

        Returns:
            ContactRecord with missing or None fields set to ''
        """
        data = data or {}
        return cls(**{name: data.get(name) or '' for name in CONTACT_FIELDS})
