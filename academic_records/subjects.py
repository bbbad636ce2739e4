# academic_records/subjects.py
import json

_JUNIOR = ["Bangla", "English", "Mathematics", "Environment Studies", "Religion"]
_MIDDLE = ["Bangla", "English", "Mathematics", "Science", "Social Science", "ICT", "Religion"]
_SECONDARY = ["Bangla", "English", "Mathematics", "Physics", "Chemistry", "Biology",
              "Higher Mathematics", "ICT", "Religion"]

DEFAULT_SUBJECTS = {
    "1": ["Bangla", "English", "Mathematics"],
    "2": ["Bangla", "English", "Mathematics"],
    "3": list(_JUNIOR),
    "4": list(_JUNIOR),
    "5": list(_JUNIOR),
    "6": list(_MIDDLE),
    "7": list(_MIDDLE),
    "8": list(_MIDDLE),
    "9": list(_SECONDARY),
    "10": list(_SECONDARY),
}


def load_subjects(path=""):
    if not path:
        return {k: list(v) for k, v in DEFAULT_SUBJECTS.items()}
    with open(path) as f:
        raw = json.load(f)
    return {str(cls): [str(s) for s in names] for cls, names in raw.items()}
