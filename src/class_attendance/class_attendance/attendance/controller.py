from __future__ import annotations

from dataclasses import asdict
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request, session

from ..core.enums import AttemptStatus, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DailyLimitExceeded,
    DomainError,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from ..container import Container
from .model import AttendanceAttempt, Principal


def _attempt_json(a: AttendanceAttempt) -> dict:
    data = asdict(a)
    data["date"] = a.date.strftime("%Y-%m-%d")
    data["time_marked"] = a.time_marked.isoformat()
    data["status"] = a.status.value
    return data


def _current_principal() -> Optional[Principal]:
    if "user_id" not in session:
        return None
    try:
        role = Role(session.get("role"))
    except ValueError:
        return None
    return Principal(
        user_id=str(session["user_id"]),
        role=role,
        full_name=session.get("name"),
        email=session.get("email"),
    )


def _error_status(exc: DomainError) -> int:
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, DailyLimitExceeded):
        return 429
    if isinstance(exc, InvalidStateTransition):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    return 500


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            principal = _current_principal()
            if principal is None:
                raise AuthenticationError("Please sign in to continue")
            return view(principal, *args, **kwargs)

        return wrapper

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"error": str(exc), "type": type(exc).__name__}), _error_status(exc)

    @app.route("/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def attendance_list(principal: Principal):
        rows = container.attendance_service.list_for_student(principal.user_id)
        return jsonify(
            {
                "records": [_attempt_json(r) for r in rows],
                "can_submit": container.attendance_service.can_submit_today(principal.user_id),
            }
        )

    @app.route("/attendance", methods=["POST"], endpoint="attendance_mark")
    @login_required
    def attendance_mark(principal: Principal):
        payload = request.get_json(silent=True) or request.form
        created = container.attendance_service.mark_attendance(
            principal,
            class_name=payload.get("class_name") or payload.get("class") or "",
            phone_number=payload.get("phone_number"),
            email=payload.get("email"),
        )
        return jsonify(_attempt_json(created)), 201

    @app.route("/attendance/<attempt_id>", methods=["DELETE"], endpoint="attendance_delete")
    @login_required
    def attendance_delete(principal: Principal, attempt_id: str):
        container.attendance_service.withdraw(principal, attempt_id)
        return "", 204

    @app.route("/attendance/all", methods=["GET"], endpoint="attendance_all")
    @login_required
    def attendance_all(principal: Principal):
        status = None
        raw_status = request.args.get("status")
        if raw_status:
            try:
                status = AttemptStatus(raw_status)
            except ValueError:
                raise ValidationError(f"Unknown status: {raw_status!r}") from None
        rows = container.attendance_service.list_all(principal, status=status)
        return jsonify({"records": [_attempt_json(r) for r in rows]})

    @app.route("/attendance/<attempt_id>/status", methods=["POST"], endpoint="attendance_review")
    @login_required
    def attendance_review(principal: Principal, attempt_id: str):
        payload = request.get_json(silent=True) or request.form
        updated = container.attendance_service.review(principal, attempt_id, payload.get("status") or "")
        return jsonify(_attempt_json(updated))

    @app.route("/attendance/analytics", methods=["GET"], endpoint="attendance_analytics")
    @login_required
    def attendance_analytics(principal: Principal):
        snapshot = container.analytics_service.get_analytics(principal.user_id)
        return jsonify(snapshot.as_dict())

    @app.route("/attendance/enrollments", methods=["GET"], endpoint="attendance_enrollments")
    @login_required
    def attendance_enrollments(principal: Principal):
        return jsonify({"classes": container.analytics_service.get_enrollments(principal.user_id)})
