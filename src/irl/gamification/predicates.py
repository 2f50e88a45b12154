"""
Achievement predicates over a snapshot of a person's current state.

Pure calculation, no database I/O. ``PersonSnapshot.from_person`` drops
deleted contacts, deleted interests and memberships of deleted groups, so
every count below only ever sees live rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from irl.db.models import ContactType, PrivacyLevel

if TYPE_CHECKING:
    from irl.db.models import Person

MIN_INTERESTS_COMPLETE = 5
MIN_CONTACT_TYPES = 3
MIN_ACTIVE_GROUPS = 2


@dataclass(frozen=True, slots=True)
class ContactFact:
    type: str
    privacy: str


@dataclass(frozen=True, slots=True)
class PersonSnapshot:
    """What the predicates need to know about a person.

    Only live rows are counted: contacts that are not deleted, interests whose
    catalog entry is not deleted, and memberships in groups that are not
    deleted. ``admin_group_count`` is the subset of memberships flagged admin.
    """

    first_name: str | None = None
    pronouns: str | None = None
    image_url: str | None = None
    contacts: tuple[ContactFact, ...] = ()
    interest_count: int = 0
    group_count: int = 0
    admin_group_count: int = 0

    @classmethod
    def from_person(cls, person: Person) -> PersonSnapshot:
        """Build a snapshot from a Person with contacts, interests and memberships loaded."""
        contacts = tuple(
            ContactFact(type=c.type, privacy=c.privacy) for c in person.contacts if not c.deleted
        )
        interest_count = sum(1 for pi in person.interests if not pi.interest.deleted)
        memberships = [m for m in person.group_memberships if not m.group.deleted]
        return cls(
            first_name=person.first_name,
            pronouns=person.pronouns,
            image_url=person.image_url,
            contacts=contacts,
            interest_count=interest_count,
            group_count=len(memberships),
            admin_group_count=sum(1 for m in memberships if m.is_admin),
        )

    @property
    def contact_type_count(self) -> int:
        return len({c.type for c in self.contacts})


def has_profile_basics(s: PersonSnapshot) -> bool:
    return bool(s.first_name and s.pronouns)


def has_complete_profile(s: PersonSnapshot) -> bool:
    """Name, pronouns, photo and at least three kinds of contact info."""
    return has_profile_basics(s) and bool(s.image_url) and s.contact_type_count >= MIN_CONTACT_TYPES


def profile_keys(s: PersonSnapshot) -> list[str]:
    keys: list[str] = []
    if has_profile_basics(s):
        keys.append("profile_basics")
    if s.image_url:
        keys.append("profile_photo")
    if s.interest_count >= 1:
        keys.append("first_interest")
    if s.interest_count >= MIN_INTERESTS_COMPLETE:
        keys.append("interests_complete")
    if has_complete_profile(s) and s.interest_count >= MIN_INTERESTS_COMPLETE:
        keys.append("profile_complete")
    if s.contact_type_count >= MIN_CONTACT_TYPES:
        keys.append("contact_sharer")
    return keys


def privacy_keys(s: PersonSnapshot) -> list[str]:
    keys: list[str] = []
    private = [c for c in s.contacts if c.privacy == PrivacyLevel.PRIVATE.value]
    public = [c for c in s.contacts if c.privacy == PrivacyLevel.PUBLIC.value]
    if any(c.type == ContactType.ADDRESS.value for c in private):
        keys.append("first_private_address")
    if private and public:
        keys.append("privacy_explorer")
    return keys


def group_keys(s: PersonSnapshot) -> list[str]:
    keys: list[str] = []
    if s.group_count >= 1:
        keys.append("first_group_join")
    if s.admin_group_count >= 1:
        keys.append("group_admin")
    return keys


def is_active_member(s: PersonSnapshot) -> bool:
    return (
        has_complete_profile(s)
        and s.group_count >= MIN_ACTIVE_GROUPS
        and s.interest_count >= MIN_INTERESTS_COMPLETE
    )
