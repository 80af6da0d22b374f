from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .qr_links.mysql_qr_link_repository import MySQLQrLinkRepository
from .qr_links.repository import QrLinkRepository
from .qr_links.service import QrLinkService
from .reports.service import ReportService
from .staff.mysql_staff_repository import MySQLStaffRepository
from .staff.repository import StaffRepository
from .staff.service import StaffService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .work_settings.mysql_work_setting_repository import MySQLWorkSettingRepository
from .work_settings.repository import WorkSettingRepository
from .work_settings.service import WorkSettingService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    staff_repo: StaffRepository
    attendance_repo: AttendanceRepository
    work_settings_repo: WorkSettingRepository
    qr_links_repo: QrLinkRepository

    auth_service: AuthService
    user_service: UserService
    staff_service: StaffService
    attendance_service: AttendanceService
    work_setting_service: WorkSettingService
    report_service: ReportService
    qr_link_service: QrLinkService


def wire_container(
    *,
    users_repo: UserRepository,
    staff_repo: StaffRepository,
    attendance_repo: AttendanceRepository,
    work_settings_repo: WorkSettingRepository,
    qr_links_repo: QrLinkRepository,
) -> Container:
    """Build services over any set of repositories (MySQL in production, fakes in tests)."""

    return Container(
        users_repo=users_repo,
        staff_repo=staff_repo,
        attendance_repo=attendance_repo,
        work_settings_repo=work_settings_repo,
        qr_links_repo=qr_links_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        staff_service=StaffService(staff_repo),
        attendance_service=AttendanceService(attendance_repo, staff_repo),
        work_setting_service=WorkSettingService(work_settings_repo, staff_repo),
        report_service=ReportService(attendance_repo, staff_repo),
        qr_link_service=QrLinkService(qr_links_repo),
    )


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        staff_repo=MySQLStaffRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        work_settings_repo=MySQLWorkSettingRepository(conn),
        qr_links_repo=MySQLQrLinkRepository(conn),
    )
