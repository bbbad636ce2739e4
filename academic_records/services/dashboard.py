# academic_records/services/dashboard.py
from academic_records import authz
from academic_records.authz import STATS, Action, Role
from academic_records.database import translate_errors


class DashboardService:
    def __init__(self, database):
        self.database = database

    def stats(self, actor):
        authz.require(actor, Action(authz.READ, STATS))
        with translate_errors():
            return {
                "adminCount": self.database.accounts.count_documents({"role": Role.ADMIN.value}),
                "teacherCount": self.database.accounts.count_documents({"role": Role.TEACHER.value}),
                "studentCount": self.database.students.count_documents({}),
            }

    def chart_data(self, actor):
        counts = self.stats(actor)
        return [
            {"name": "Admins", "count": counts["adminCount"]},
            {"name": "Teachers", "count": counts["teacherCount"]},
            {"name": "Students", "count": counts["studentCount"]},
        ]
