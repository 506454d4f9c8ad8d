"""Example: use the service layer directly (no Flask, no MySQL).

Controllers are a thin layer; the attendance rules live in the services.
"""

from class_attendance.container import build_container
from class_attendance.core.enums import Role
from class_attendance.attendance.model import Principal


def main():
    container = build_container()
    student = Principal(user_id="student-1", role=Role.STUDENT, full_name="Ada")
    owner = Principal(user_id="owner-1", role=Role.OWNER)

    live_sync = container.live_sync(student.user_id)
    live_sync.start()
    try:
        first = container.attendance_service.mark_attendance(student, class_name="Algebra 101")
        container.attendance_service.mark_attendance(student, class_name="Algebra 101")
        container.approvals.approve(first.id, owner)

        snapshot = container.analytics_service.get_analytics(student.user_id)
        print(snapshot.as_dict())
    finally:
        live_sync.stop()


if __name__ == "__main__":
    main()
