"""Catalogue of tenant-scoped content collections.

Each collection names the permission needed to write to it and, where the
collection is a paid capability, the plan feature that unlocks it.
"""

from dataclasses import dataclass

from app.core.permissions import MANAGE_CONTENT, MANAGE_STUDENTS


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    label: str
    write_permission: str = MANAGE_CONTENT
    read_permission: str | None = None
    feature: str | None = None


COLLECTIONS: tuple[CollectionSpec, ...] = (
    CollectionSpec("students", "Student", write_permission=MANAGE_STUDENTS, feature="students"),
    CollectionSpec("programs", "Program"),
    CollectionSpec("contacts", "Contact", feature="contacts"),
    CollectionSpec("news_events", "News item", feature="events"),
    CollectionSpec("testimonials", "Testimonial"),
    CollectionSpec("faculty", "Faculty member", feature="faculty"),
    CollectionSpec("quick_links", "Quick link"),
    CollectionSpec("gallery", "Gallery item"),
)
