"""
The fixed HSC subject catalog.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List


@dataclass(frozen=True)
class Subject:
    """A catalog entry; ``id`` is a unique slug."""
    id: str
    name: str
    category: str


HSC_SUBJECTS: tuple[Subject, ...] = (
    Subject("math-standard", "Mathematics Standard", "Mathematics"),
    Subject("math-advanced", "Mathematics Advanced", "Mathematics"),
    Subject("math-extension1", "Mathematics Extension 1", "Mathematics"),
    Subject("math-extension2", "Mathematics Extension 2", "Mathematics"),
    Subject("english-standard", "English Standard", "English"),
    Subject("english-advanced", "English Advanced", "English"),
    Subject("english-extension1", "English Extension 1", "English"),
    Subject("english-extension2", "English Extension 2", "English"),
    Subject("biology", "Biology", "Science"),
    Subject("chemistry", "Chemistry", "Science"),
    Subject("physics", "Physics", "Science"),
    Subject("modern-history", "Modern History", "Humanities"),
    Subject("ancient-history", "Ancient History", "Humanities"),
    Subject("geography", "Geography", "Humanities"),
    Subject("economics", "Economics", "Humanities"),
    Subject("business-studies", "Business Studies", "Humanities"),
    Subject("french", "French", "Languages"),
    Subject("german", "German", "Languages"),
    Subject("spanish", "Spanish", "Languages"),
    Subject("japanese", "Japanese", "Languages"),
    Subject("chinese", "Chinese", "Languages"),
)

_BY_ID: Dict[str, Subject] = {subject.id: subject for subject in HSC_SUBJECTS}


def get_subject(subject_id: str) -> Subject | None:
    """Look up a subject by id."""
    return _BY_ID.get(subject_id)


def is_known_subject(subject_id: str) -> bool:
    return subject_id in _BY_ID


def subject_names(subject_ids: Iterable[str]) -> List[str]:
    """Display names for the given ids, in catalog order; unknown ids are skipped."""
    wanted = set(subject_ids)
    return [subject.name for subject in HSC_SUBJECTS if subject.id in wanted]


def subjects_by_category() -> Dict[str, List[Subject]]:
    """Group the catalog by category, preserving catalog order."""
    grouped: Dict[str, List[Subject]] = {}
    for subject in HSC_SUBJECTS:
        grouped.setdefault(subject.category, []).append(subject)
    return grouped
