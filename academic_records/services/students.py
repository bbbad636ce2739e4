# academic_records/services/students.py
import logging

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from academic_records import authz
from academic_records.authz import STUDENT, Action
from academic_records.database import object_id, scope_query, translate_errors
from academic_records.errors import ConflictError, NotFoundError
from academic_records.models.student import new_student, serialize_student
from academic_records.utils.security import check_password_length, hash_password
from academic_records.utils.validation import clean_str, parse_roll, provided, require_fields

logger = logging.getLogger(__name__)

SECRET_FIELDS = {"password_hash": 0, "refresh_tokens": 0}

STUDENT_FIELDS = {
    "name": "name",
    "userName": "user_name",
    "password": "password",
    "roll": "roll",
    "class": "class",
    "section": "section",
}


class StudentService:
    def __init__(self, database, config):
        self.database = database
        self.min_password = config.get("MIN_PASSWORD_LENGTH", 6)

    @property
    def students(self):
        return self.database.students

    def get_doc(self, student_id):
        with translate_errors():
            doc = self.students.find_one({"_id": object_id(student_id, "Student")})
        if doc is None:
            raise NotFoundError("Student not found")
        return doc

    def _check_unique(self, user_name=None, klass=None, section=None, roll=None, exclude=None):
        not_self = {"_id": {"$ne": exclude}} if exclude is not None else {}
        with translate_errors():
            if user_name is not None and self.students.find_one({"user_name": user_name, **not_self}):
                raise ConflictError("Username already taken")
            if roll is not None and self.students.find_one(
                    {"class": klass, "section": section, "roll": roll, **not_self}):
                raise ConflictError(f"Roll {roll} already exists in Class {klass} ({section})")

    # =====================================================
    # CREATE
    # =====================================================
    def create_student(self, actor, data, now=None):
        require_fields(data, ["name", "userName", "password", "roll", "class", "section"])
        check_password_length(data["password"], self.min_password)
        roll = parse_roll(data["roll"])

        doc = new_student(data["name"], data["userName"], hash_password(data["password"]), roll,
                          data["class"], data["section"], object_id(actor.id), now=now)
        authz.require(actor, Action(authz.CREATE, STUDENT, resource=doc))

        self._check_unique(doc["user_name"], doc["class"], doc["section"], roll)
        try:
            with translate_errors():
                doc["_id"] = self.students.insert_one(doc).inserted_id
        except DuplicateKeyError:
            # lost a race with a concurrent create; report which key clashed
            self._check_unique(doc["user_name"], doc["class"], doc["section"], roll)
            raise ConflictError("Username or roll number already exists")

        logger.info("Student created: %s by %s", doc["user_name"], actor.id)
        return serialize_student(doc)

    # =====================================================
    # READ
    # =====================================================
    def list_students(self, actor, klass=None, section=None):
        scope = authz.scope_for(actor, STUDENT)
        query = {"$and": [scope_query(scope)]}
        if klass:
            query["$and"].append({"class": klass})
        if section:
            query["$and"].append({"section": section})
        with translate_errors():
            cursor = self.students.find(query, SECRET_FIELDS).sort(
                [("class", ASCENDING), ("section", ASCENDING), ("roll", ASCENDING)])
            return [serialize_student(d) for d in cursor]

    def get_student(self, actor, student_id):
        doc = self.get_doc(student_id)
        authz.require(actor, Action(authz.READ, STUDENT, resource=doc))
        return serialize_student(doc)

    # =====================================================
    # UPDATE / DELETE
    # =====================================================
    def update_student(self, actor, student_id, data):
        doc = self.get_doc(student_id)
        changes = {STUDENT_FIELDS[k]: data[k] for k in STUDENT_FIELDS if provided(data, k)}
        authz.require(actor, Action(authz.UPDATE, STUDENT, resource=doc, fields=tuple(changes)))

        update = {}
        if "name" in changes:
            update["name"] = clean_str(changes["name"])
        if "password" in changes:
            check_password_length(changes["password"], self.min_password)
            update["password_hash"] = hash_password(changes["password"])
        if "user_name" in changes:
            user_name = clean_str(changes["user_name"])
            if user_name != doc["user_name"]:
                self._check_unique(user_name=user_name, exclude=doc["_id"])
                update["user_name"] = user_name
        for key in ("class", "section"):
            if key in changes:
                update[key] = clean_str(changes[key])
        if "roll" in changes:
            update["roll"] = parse_roll(changes["roll"])

        placement = {k: update.get(k, doc[k]) for k in ("class", "section", "roll")}
        if any(k in update for k in placement):
            self._check_unique(klass=placement["class"], section=placement["section"],
                               roll=placement["roll"], exclude=doc["_id"])

        if update:
            try:
                with translate_errors():
                    self.students.update_one({"_id": doc["_id"]}, {"$set": update})
            except DuplicateKeyError:
                raise ConflictError("Username or roll number already exists")
        return serialize_student(self.get_doc(doc["_id"]))

    def delete_student(self, actor, student_id):
        doc = self.get_doc(student_id)
        authz.require(actor, Action(authz.DELETE, STUDENT, resource=doc))
        with translate_errors():
            self.students.delete_one({"_id": doc["_id"]})
            removed = self.database.results.delete_many({"student": doc["_id"]}).deleted_count
        logger.info("Student %s deleted by %s with %d results", doc["_id"], actor.id, removed)
