# academic_records/models/result.py
from datetime import datetime


def new_result(student_id, klass, semester, exam_type, graded, created_by, now=None):
    doc = {
        "student": student_id,
        "class": str(klass),
        "semester": semester,
        "exam_type": exam_type,
        "created_by": created_by,
        "created_at": now or datetime.utcnow(),
    }
    doc.update(graded.as_document())
    return doc


def serialize_mark(mark):
    return {
        "subject": mark["subject"],
        "mcqScore": mark.get("mcq_score", 0),
        "mcqTotal": mark.get("mcq_total", 0),
        "cqScore": mark.get("cq_score", 0),
        "cqTotal": mark.get("cq_total", 0),
        "totalScore": mark.get("total_score", 0),
        "grade": mark.get("grade"),
        "gpa": mark.get("gpa"),
    }


def serialize_result(doc):
    return {
        "id": str(doc["_id"]),
        "student": str(doc["student"]),
        "class": doc.get("class"),
        "semester": doc.get("semester"),
        "examType": doc.get("exam_type"),
        "marks": [serialize_mark(m) for m in doc.get("marks", [])],
        "totalMcqMarks": doc.get("total_mcq_marks", 0),
        "totalCqMarks": doc.get("total_cq_marks", 0),
        "totalMarks": doc.get("total_marks", 0),
        "averageGPA": doc.get("average_gpa", 0),
        "createdAt": doc.get("created_at"),
    }
