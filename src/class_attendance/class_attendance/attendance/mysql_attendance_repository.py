from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.constants import ATTENDANCE_TABLE, UNKNOWN_FULL_NAME
from ..core.enums import AttemptStatus
from ..core.exceptions import DailyLimitExceeded
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttemptFilter, AttendanceAttempt, NewAttendanceAttempt
from .repository import AttendanceRepository

_COLUMNS = "id, student_id, full_name, class_name, `date`, time_marked, status, phone_number, email"


def _to_attempt(r: Dict[str, Any]) -> AttendanceAttempt:
    phone = r.get("phone_number")
    return AttendanceAttempt(
        id=str(r["id"]),
        student_id=str(r["student_id"]),
        class_name=r["class_name"],
        date=r["date"],
        time_marked=r["time_marked"],
        status=AttemptStatus(r["status"]),
        phone_number=str(phone) if phone is not None else None,
        email=r.get("email"),
        full_name=r.get("full_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def select(self, filter: AttemptFilter) -> Sequence[AttendanceAttempt]:
        clauses: list[str] = []
        params: list[object] = []

        if filter.student_id is not None:
            clauses.append("student_id=%s")
            params.append(filter.student_id)
        if filter.date is not None:
            clauses.append("`date`=%s")
            params.append(filter.date)
        if filter.status is not None:
            clauses.append("status=%s")
            params.append(filter.status.value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        limit = ""
        if filter.limit is not None:
            limit = "LIMIT %s"
            params.append(int(filter.limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM {ATTENDANCE_TABLE}
                {where}
                ORDER BY `date` DESC, time_marked DESC
                {limit}
                """,
                tuple(params),
            )
            return [_to_attempt(r) for r in fetchall(cur)]

    def get_by_id(self, attempt_id: str) -> Optional[AttendanceAttempt]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM {ATTENDANCE_TABLE} WHERE id=%s", (attempt_id,))
            r = fetchone(cur)
            return _to_attempt(r) if r else None

    def count_for_student_and_date(self, student_id: str, on_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS n FROM {ATTENDANCE_TABLE} WHERE student_id=%s AND `date`=%s",
                (student_id, on_date),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def insert(self, attempt: NewAttendanceAttempt, *, daily_limit: Optional[int] = None) -> AttendanceAttempt:
        created = AttendanceAttempt(
            id=str(uuid.uuid4()),
            student_id=attempt.student_id,
            class_name=attempt.class_name,
            date=attempt.date,
            time_marked=attempt.time_marked,
            status=AttemptStatus.PENDING,
            phone_number=attempt.phone_number,
            email=attempt.email,
            full_name=attempt.full_name or UNKNOWN_FULL_NAME,
        )

        with db_cursor(self._conn_factory) as (_, cur):
            if daily_limit is not None:
                # Row locks on the (student_id, date) index range serialize concurrent submitters.
                cur.execute(
                    f"SELECT id FROM {ATTENDANCE_TABLE} WHERE student_id=%s AND `date`=%s FOR UPDATE",
                    (attempt.student_id, attempt.date),
                )
                if len(fetchall(cur)) >= int(daily_limit):
                    raise DailyLimitExceeded(attempt.student_id, attempt.date, int(daily_limit))

            cur.execute(
                f"""
                INSERT INTO {ATTENDANCE_TABLE}(id, student_id, full_name, class_name, `date`, time_marked, status, phone_number, email)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    created.id,
                    created.student_id,
                    created.full_name,
                    created.class_name,
                    created.date,
                    created.time_marked,
                    created.status.value,
                    created.phone_number,
                    created.email,
                ),
            )
        return created

    def update_status(
        self,
        attempt_id: str,
        status: AttemptStatus,
        *,
        expected: AttemptStatus = AttemptStatus.PENDING,
    ) -> Optional[AttendanceAttempt]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE {ATTENDANCE_TABLE} SET status=%s WHERE id=%s AND status=%s",
                (status.value, attempt_id, expected.value),
            )
            if cur.rowcount <= 0:
                return None
            cur.execute(f"SELECT {_COLUMNS} FROM {ATTENDANCE_TABLE} WHERE id=%s", (attempt_id,))
            r = fetchone(cur)
            return _to_attempt(r) if r else None

    def delete(self, attempt_id: str, *, student_id: Optional[str] = None) -> bool:
        sql = f"DELETE FROM {ATTENDANCE_TABLE} WHERE id=%s"
        params: list[object] = [attempt_id]
        if student_id is not None:
            sql += " AND student_id=%s"
            params.append(student_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return cur.rowcount > 0
