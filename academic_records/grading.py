# academic_records/grading.py
"""Turns raw per-subject scores into graded marks and record totals.

Nothing in here touches the database. The result service grades a
submission first and only then writes the finished document, so a bad
entry can never leave half a result behind.
"""
import json
from dataclasses import dataclass

from academic_records.errors import ValidationError

EXAM_TYPES = ("mcq", "cq", "combined")
SEMESTERS = ("1st", "2nd", "3rd")

DEFAULT_GRADE_BANDS = [
    (80, "A+", 5.0),
    (70, "A", 4.0),
    (60, "A-", 3.5),
    (50, "B", 3.0),
    (40, "C", 2.0),
    (33, "D", 1.0),
    (0, "F", 0.0),
]


class GradePolicy:
    """Ordered percentage bands, highest first: (min_percentage, letter, gpa)."""

    def __init__(self, bands):
        bands = [(float(low), str(letter), float(gpa)) for low, letter, gpa in bands]
        if not bands:
            raise ValueError("grade policy needs at least one band")
        for upper, lower in zip(bands, bands[1:]):
            if lower[0] >= upper[0]:
                raise ValueError("grade bands must be ordered by descending minimum")
        if bands[-1][0] != 0:
            raise ValueError("the last grade band must start at 0")
        self.bands = tuple(bands)

    @classmethod
    def from_file(cls, path):
        with open(path) as f:
            raw = json.load(f)
        return cls([(b["min"], b["grade"], b["gpa"]) for b in raw])

    def grade_for(self, percentage):
        for low, letter, gpa in self.bands:
            if percentage >= low:
                return letter, gpa
        return self.bands[-1][1], self.bands[-1][2]


DEFAULT_POLICY = GradePolicy(DEFAULT_GRADE_BANDS)


@dataclass(frozen=True)
class MarkEntry:
    subject: str
    mcq_score: float
    mcq_total: float
    cq_score: float
    cq_total: float
    total_score: float
    grade: str
    gpa: float

    def as_document(self):
        return {
            "subject": self.subject,
            "mcq_score": self.mcq_score,
            "mcq_total": self.mcq_total,
            "cq_score": self.cq_score,
            "cq_total": self.cq_total,
            "total_score": self.total_score,
            "grade": self.grade,
            "gpa": self.gpa,
        }


@dataclass(frozen=True)
class GradedResult:
    marks: tuple
    total_mcq_marks: float
    total_cq_marks: float
    total_marks: float
    average_gpa: float

    def as_document(self):
        return {
            "marks": [m.as_document() for m in self.marks],
            "total_mcq_marks": self.total_mcq_marks,
            "total_cq_marks": self.total_cq_marks,
            "total_marks": self.total_marks,
            "average_gpa": self.average_gpa,
        }


def _number(entry, key, subject):
    value = entry.get(key)
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {key} for subject {subject}")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {key} for subject {subject}")
    if value < 0:
        raise ValidationError(f"{key} cannot be negative for subject {subject}")
    return int(value) if value.is_integer() else value


def grade_result(marks, policy=DEFAULT_POLICY):
    """Grade every entry or none of them.

    Raises ValidationError for an empty list, a malformed number or a subject
    whose combined score exceeds its combined total.
    """
    if not marks:
        raise ValidationError("empty marks")

    graded = []
    for entry in marks:
        subject = str(entry.get("subject") or "").strip()
        if not subject:
            raise ValidationError("Every mark entry needs a subject")

        mcq_score = _number(entry, "mcqScore", subject)
        mcq_total = _number(entry, "mcqTotal", subject)
        cq_score = _number(entry, "cqScore", subject)
        cq_total = _number(entry, "cqTotal", subject)

        total_score = mcq_score + cq_score
        total_possible = mcq_total + cq_total
        if total_score > total_possible:
            raise ValidationError(f"Score exceeds total marks for subject {subject}")

        percentage = total_score / total_possible * 100 if total_possible > 0 else 0
        grade, gpa = policy.grade_for(percentage)
        graded.append(MarkEntry(subject, mcq_score, mcq_total, cq_score, cq_total,
                                total_score, grade, gpa))

    gpa_sum = sum(m.gpa for m in graded)
    return GradedResult(
        marks=tuple(graded),
        total_mcq_marks=sum(m.mcq_score for m in graded),
        total_cq_marks=sum(m.cq_score for m in graded),
        total_marks=sum(m.total_score for m in graded),
        average_gpa=round(gpa_sum / len(graded), 2),
    )


def shape_marks(exam_type, subjects, submitted):
    """Lay a {subject: scores} submission over the class subject list.

    mcq and cq submissions carry {score, total}; the other channel is filled
    with zeros so every exam type is graded by the same code.
    """
    if exam_type not in EXAM_TYPES:
        raise ValidationError(f"Invalid exam type: {exam_type}")
    if not isinstance(submitted, dict):
        raise ValidationError("marks must be an object keyed by subject")

    unknown = set(submitted) - set(subjects)
    if unknown:
        raise ValidationError(f"Unknown subjects: {', '.join(sorted(unknown))}")

    shaped = []
    for subject in subjects:
        scores = submitted.get(subject) or {}
        if not isinstance(scores, dict):
            raise ValidationError(f"Marks for {subject} must be an object")
        if exam_type == "mcq":
            row = {"mcqScore": scores.get("score"), "mcqTotal": scores.get("total"),
                   "cqScore": 0, "cqTotal": 0}
        elif exam_type == "cq":
            row = {"mcqScore": 0, "mcqTotal": 0,
                   "cqScore": scores.get("score"), "cqTotal": scores.get("total")}
        else:
            row = {key: scores.get(key) for key in ("mcqScore", "mcqTotal", "cqScore", "cqTotal")}
        row["subject"] = subject
        shaped.append(row)
    return shaped
