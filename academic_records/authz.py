# academic_records/authz.py
"""Role and ownership based access decisions.

One rule table answers both kinds of question the services ask:

* single record: ``resolve(actor, Action("update", STUDENT, resource=doc))``
  is a Permit only if the rule's scope matches ``doc``;
* collection: ``resolve(actor, Action("list", STUDENT))`` returns a Permit
  whose scope is handed to ``database.scope_query`` to build the filter.

Scopes are plain values, so nothing here knows how records are stored.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum

from academic_records.errors import AuthorizationError

logger = logging.getLogger(__name__)

INSUFFICIENT = "Insufficient permissions"

READ, LIST, CREATE, UPDATE, DELETE, RESET = "read", "list", "create", "update", "delete", "reset"
ACCOUNT, STUDENT, RESULT, PAYMENT, STATS = "account", "student", "result", "payment", "stats"


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

    @property
    def rank(self):
        return ROLE_PRECEDENCE[self]

    def outranks(self, other):
        return self.rank > Role(other).rank


ROLE_PRECEDENCE = {
    Role.SUPER_ADMIN: 3,
    Role.ADMIN: 2,
    Role.TEACHER: 1,
    Role.STUDENT: 0,
}

ACCOUNT_SELF_FIELDS = frozenset({"first_name", "last_name", "email", "password"})
ADMIN_ACCOUNT_FIELDS = ACCOUNT_SELF_FIELDS | {"assigned_classes"}
TEACHER_STUDENT_FIELDS = frozenset({"name", "roll"})
STUDENT_SELF_FIELDS = frozenset({"name", "password"})


def class_pair(value):
    if isinstance(value, dict):
        return str(value.get("class", "")), str(value.get("section", ""))
    klass, section = value
    return str(klass), str(section)


# =====================================================
# SCOPES
# =====================================================
@dataclass(frozen=True)
class Unrestricted:
    def matches(self, resource):
        return True


@dataclass(frozen=True)
class CreatedByIn:
    ids: frozenset

    def matches(self, resource):
        creator = resource.get("created_by")
        return creator is not None and str(creator) in self.ids


@dataclass(frozen=True)
class ClassSectionIn:
    pairs: frozenset

    def matches(self, resource):
        return class_pair(resource) in self.pairs


@dataclass(frozen=True)
class SelfOnly:
    id: str

    def matches(self, resource):
        return str(resource.get("_id")) == self.id


@dataclass(frozen=True)
class ClassesOverlap:
    """Accounts teaching at least one of these classes."""

    classes: frozenset

    def matches(self, resource):
        return any(class_pair(c)[0] in self.classes for c in resource.get("assigned_classes") or [])


UNRESTRICTED = Unrestricted()


# =====================================================
# ACTOR / ACTION / DECISION
# =====================================================
@dataclass(frozen=True)
class Actor:
    id: str
    role: Role
    assigned_classes: tuple = ()
    # teachers this admin created; loaded by the account service
    teacher_ids: frozenset = frozenset()

    @property
    def class_pairs(self):
        return frozenset(class_pair(c) for c in self.assigned_classes)


@dataclass(frozen=True)
class Action:
    verb: str
    resource_type: str
    resource: dict = None
    fields: tuple = ()


@dataclass(frozen=True)
class Permit:
    scope: object = UNRESTRICTED
    fields: frozenset = None

    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: str = INSUFFICIENT

    allowed = False


@dataclass(frozen=True)
class _Grant:
    scope: object
    fields: frozenset = None
    field_message: str = field(default=INSUFFICIENT)


# =====================================================
# RULE TABLE
# =====================================================
def _managed_by(actor):
    return CreatedByIn(frozenset({actor.id}) | frozenset(actor.teacher_ids))


def _admin_account(actor, action):
    if action.verb == CREATE:
        if action.resource is not None and action.resource.get("role") != Role.TEACHER.value:
            return None
        return _Grant(CreatedByIn(frozenset({actor.id})))
    if action.verb in (READ, LIST, DELETE):
        return _Grant(CreatedByIn(frozenset({actor.id})))
    if action.verb == UPDATE:
        return _Grant(CreatedByIn(frozenset({actor.id})), ADMIN_ACCOUNT_FIELDS,
                      "Only the super admin can change roles or admin codes")
    return None


def _teacher_account(actor, action):
    if action.verb in (READ, LIST):
        return _Grant(ClassesOverlap(frozenset(k for k, _ in actor.class_pairs)))
    return None


def _admin_student(actor, action):
    if action.verb == CREATE:
        return _Grant(CreatedByIn(frozenset({actor.id})))
    if action.verb in (READ, LIST, UPDATE):
        return _Grant(_managed_by(actor))
    if action.verb == DELETE:
        # Stricter than reads: only students this admin created directly
        return _Grant(CreatedByIn(frozenset({actor.id})))
    return None


def _teacher_student(actor, action):
    if action.verb in (CREATE, READ, LIST, DELETE):
        return _Grant(ClassSectionIn(actor.class_pairs))
    if action.verb == UPDATE:
        return _Grant(ClassSectionIn(actor.class_pairs), TEACHER_STUDENT_FIELDS,
                      "Teachers can only update name or roll")
    return None


def _student_self(actor, action):
    if action.verb in (READ, LIST):
        return _Grant(SelfOnly(actor.id))
    if action.verb == UPDATE:
        return _Grant(SelfOnly(actor.id), STUDENT_SELF_FIELDS,
                      "Students can only update name or password")
    return None


def _admin_result(actor, action):
    if action.verb in (CREATE, READ, LIST):
        return _Grant(_managed_by(actor))
    return None


def _teacher_result(actor, action):
    if action.verb in (CREATE, READ, LIST):
        return _Grant(ClassSectionIn(actor.class_pairs))
    return None


def _student_result(actor, action):
    if action.verb in (READ, LIST):
        return _Grant(SelfOnly(actor.id))
    return None


def _admin_payment(actor, action):
    if action.verb in (READ, LIST, UPDATE):
        return _Grant(_managed_by(actor))
    return None


def _teacher_payment(actor, action):
    if action.verb in (READ, LIST):
        return _Grant(ClassSectionIn(actor.class_pairs))
    return None


def _student_payment(actor, action):
    if action.verb == READ:
        return _Grant(SelfOnly(actor.id))
    return None


def _admin_stats(actor, action):
    if action.verb == READ:
        return _Grant(UNRESTRICTED)
    return None


RULES = {
    (Role.ADMIN, STATS): _admin_stats,
    (Role.ADMIN, ACCOUNT): _admin_account,
    (Role.TEACHER, ACCOUNT): _teacher_account,
    (Role.ADMIN, STUDENT): _admin_student,
    (Role.TEACHER, STUDENT): _teacher_student,
    (Role.STUDENT, STUDENT): _student_self,
    (Role.ADMIN, RESULT): _admin_result,
    (Role.TEACHER, RESULT): _teacher_result,
    (Role.STUDENT, RESULT): _student_result,
    (Role.ADMIN, PAYMENT): _admin_payment,
    (Role.TEACHER, PAYMENT): _teacher_payment,
    (Role.STUDENT, PAYMENT): _student_payment,
}


def _own_account(actor, action):
    resource = action.resource
    if action.resource_type != ACCOUNT or resource is None or actor.role is Role.STUDENT:
        return None
    if str(resource.get("_id")) != actor.id or action.verb not in (READ, UPDATE):
        return None
    return _Grant(SelfOnly(actor.id), ACCOUNT_SELF_FIELDS, INSUFFICIENT)


def _apply(grant, action):
    if action.resource is not None and not grant.scope.matches(action.resource):
        return Deny()
    if grant.fields is not None and set(action.fields) - grant.fields:
        return Deny(grant.field_message)
    return Permit(grant.scope, grant.fields)


def resolve(actor, action):
    resource = action.resource
    if (action.resource_type == ACCOUNT and action.verb == DELETE and resource is not None
            and resource.get("role") == Role.SUPER_ADMIN.value):
        return Deny("Super admin cannot be deleted")

    if actor.role is Role.SUPER_ADMIN:
        return Permit(UNRESTRICTED)

    grant = _own_account(actor, action)
    if grant is None:
        rule = RULES.get((actor.role, action.resource_type))
        grant = rule(actor, action) if rule else None
    if grant is None:
        return Deny()
    return _apply(grant, action)


def require(actor, action):
    decision = resolve(actor, action)
    if not decision.allowed:
        logger.warning("Denied %s %s for %s %s: %s", action.verb, action.resource_type,
                       actor.role.value, actor.id, decision.reason)
        raise AuthorizationError(decision.reason)
    return decision


def scope_for(actor, resource_type, verb=LIST):
    return require(actor, Action(verb, resource_type)).scope
