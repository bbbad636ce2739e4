# academic_records/services/__init__.py
from academic_records.grading import DEFAULT_POLICY, GradePolicy
from academic_records.services.accounts import AccountService
from academic_records.services.dashboard import DashboardService
from academic_records.services.payments import PaymentService
from academic_records.services.results import ResultService
from academic_records.services.students import StudentService
from academic_records.services.tokens import TokenService
from academic_records.subjects import load_subjects


class Services:
    def __init__(self, database, config):
        policy_file = config.get("GRADE_POLICY_FILE")
        policy = GradePolicy.from_file(policy_file) if policy_file else DEFAULT_POLICY

        self.database = database
        self.tokens = TokenService(database, config)
        self.accounts = AccountService(database, config)
        self.students = StudentService(database, config)
        self.results = ResultService(database, policy, load_subjects(config.get("SUBJECTS_FILE")))
        self.payments = PaymentService(database, config)
        self.dashboard = DashboardService(database)
