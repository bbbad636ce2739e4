# academic_records/services/results.py
import logging

from pymongo import DESCENDING

from academic_records import authz
from academic_records.authz import RESULT, Action, Unrestricted
from academic_records.database import object_id, scope_query, translate_errors
from academic_records.errors import NotFoundError, ValidationError
from academic_records.grading import EXAM_TYPES, SEMESTERS, grade_result, shape_marks
from academic_records.models.result import new_result, serialize_result
from academic_records.utils.validation import require_fields

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("created_at", DESCENDING), ("_id", DESCENDING)]


def student_summary(student):
    return {
        "id": str(student["_id"]),
        "name": student.get("name"),
        "roll": student.get("roll"),
        "class": student.get("class"),
        "section": student.get("section"),
    }


class ResultService:
    def __init__(self, database, policy, subjects):
        self.database = database
        self.policy = policy
        self.subjects = subjects

    def subjects_for(self, klass):
        subjects = self.subjects.get(str(klass))
        if not subjects:
            raise NotFoundError("No subjects found for this class")
        return list(subjects)

    def _student(self, student_id):
        with translate_errors():
            student = self.database.students.find_one({"_id": object_id(student_id, "Student")})
        if student is None:
            raise NotFoundError("Student not found")
        return student

    # =====================================================
    # SUBMIT (mcq / cq / combined share one grading path)
    # =====================================================
    def submit(self, actor, exam_type, data, now=None):
        if exam_type not in EXAM_TYPES:
            raise ValidationError(f"Invalid exam type: {exam_type}")
        require_fields(data, ["studentId", "semester", "marks"])

        student = self._student(data["studentId"])
        authz.require(actor, Action(authz.CREATE, RESULT, resource=student))

        class_key = str(data.get("className") or data.get("classNumber") or student["class"])
        subjects = self.subjects.get(class_key)
        if not subjects:
            raise ValidationError(f"Invalid class: {class_key}")
        if data["semester"] not in SEMESTERS:
            raise ValidationError(f"Invalid semester: {data['semester']}")

        graded = grade_result(shape_marks(exam_type, subjects, data["marks"]), self.policy)
        doc = new_result(student["_id"], class_key, data["semester"], exam_type, graded,
                         created_by=object_id(actor.id), now=now)
        # single write of the fully graded record
        with translate_errors():
            doc["_id"] = self.database.results.insert_one(doc).inserted_id

        logger.info("%s result for student %s saved by %s (GPA %.2f)",
                    exam_type.upper(), student["_id"], actor.id, graded.average_gpa)
        return serialize_result(doc)

    # =====================================================
    # READ
    # =====================================================
    def latest_for_student(self, actor, student_id, exam_type=None):
        student = self._student(student_id)
        authz.require(actor, Action(authz.READ, RESULT, resource=student))

        query = {"student": student["_id"]}
        if exam_type is not None:
            if exam_type not in EXAM_TYPES:
                raise ValidationError(f"Invalid exam type: {exam_type}")
            query["exam_type"] = exam_type

        with translate_errors():
            result = self.database.results.find_one(query, sort=NEWEST_FIRST)
        if result is None:
            if exam_type:
                raise NotFoundError(f"No {exam_type.upper()} results found for this student")
            raise NotFoundError("No results found for this student")
        return {"student": student_summary(student), "results": serialize_result(result)}

    def list_results(self, actor, klass=None, student_id=None, semester=None):
        scope = authz.scope_for(actor, RESULT)
        query = {}
        if not isinstance(scope, Unrestricted):
            with translate_errors():
                visible = [s["_id"] for s in self.database.students.find(scope_query(scope), {"_id": 1})]
            query["student"] = {"$in": visible}
        if klass:
            query["class"] = str(klass)
        if semester:
            query["semester"] = semester
        if student_id:
            wanted = object_id(student_id, "Student")
            if "student" in query:
                query["student"]["$in"] = [s for s in query["student"]["$in"] if s == wanted]
            else:
                query["student"] = wanted

        with translate_errors():
            docs = list(self.database.results.find(query).sort(NEWEST_FIRST))
            ids = list({d["student"] for d in docs})
            students = {s["_id"]: s for s in self.database.students.find({"_id": {"$in": ids}})}

        rows = []
        for doc in docs:
            row = serialize_result(doc)
            if doc["student"] in students:
                row["studentInfo"] = student_summary(students[doc["student"]])
            rows.append(row)
        return rows
