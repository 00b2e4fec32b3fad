from __future__ import annotations

from dataclasses import dataclass

from .attendance.derivation import AttendanceDerivationEngine
from .attendance.exception_service import ExceptionResolver
from .attendance.freeze import FreezeController
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.service import AuditService
from .biometric.mysql_biometric_repository import MySQLBiometricRepository
from .biometric.service import BiometricService
from .database.connection import DBConfig, DatabaseConnection
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.service import CachedHolidayCalendar
from .members.mysql_member_repository import MySQLMemberRepository
from .payroll.engine import SalaryCalculationEngine
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.service import SalaryService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.service import CachedSettings


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    members_repo: MySQLMemberRepository
    biometric_repo: MySQLBiometricRepository
    attendance_repo: MySQLAttendanceRepository
    payroll_repo: MySQLPayrollRepository

    holiday_calendar: CachedHolidayCalendar
    settings: CachedSettings
    audit_service: AuditService

    biometric_service: BiometricService
    derivation_engine: AttendanceDerivationEngine
    attendance_service: AttendanceService
    exception_resolver: ExceptionResolver
    freeze_controller: FreezeController
    salary_engine: SalaryCalculationEngine
    salary_service: SalaryService


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    members_repo = MySQLMemberRepository(conn)
    biometric_repo = MySQLBiometricRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    payroll_repo = MySQLPayrollRepository(conn)

    holiday_calendar = CachedHolidayCalendar(MySQLHolidayRepository(conn))
    settings = CachedSettings(MySQLSettingsRepository(conn))
    audit_service = AuditService(MySQLAuditRepository(conn))

    biometric_service = BiometricService(biometric_repo, audit_service)
    derivation_engine = AttendanceDerivationEngine(
        attendance_repo,
        members_repo,
        biometric_repo,
        holiday_calendar,
        settings,
    )
    attendance_service = AttendanceService(attendance_repo, members_repo, audit_service)
    exception_resolver = ExceptionResolver(attendance_repo, audit_service)
    freeze_controller = FreezeController(attendance_repo, members_repo, audit_service)
    salary_engine = SalaryCalculationEngine(attendance_repo, members_repo)
    salary_service = SalaryService(payroll_repo, salary_engine, members_repo, audit_service)

    return Container(
        conn=conn,
        members_repo=members_repo,
        biometric_repo=biometric_repo,
        attendance_repo=attendance_repo,
        payroll_repo=payroll_repo,
        holiday_calendar=holiday_calendar,
        settings=settings,
        audit_service=audit_service,
        biometric_service=biometric_service,
        derivation_engine=derivation_engine,
        attendance_service=attendance_service,
        exception_resolver=exception_resolver,
        freeze_controller=freeze_controller,
        salary_engine=salary_engine,
        salary_service=salary_service,
    )
