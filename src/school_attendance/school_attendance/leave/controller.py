from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import api_view, current_context, json_body, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/leave-requests", methods=["GET"], endpoint="leave_requests")
    @api_view
    def leave_requests():
        items = container.leave_request_service.list_requests(
            current_context(),
            status=request.args.get("status") or None,
            student_id=request.args.get("student_id") or None,
        )
        return jsonify({"success": True, "requests": to_json(list(items))}), 200

    @app.route("/api/attendance/leave-requests", methods=["POST"], endpoint="leave_request_create")
    @api_view
    def leave_request_create():
        data = json_body()
        req = container.leave_request_service.create(
            current_context(),
            student_id=str(data.get("student_id") or ""),
            start_date=parse_iso_date(str(data.get("start_date") or "")),
            end_date=parse_iso_date(str(data.get("end_date") or "")),
            leave_type=str(data.get("leave_type") or ""),
            reason=str(data.get("reason") or ""),
        )
        return jsonify({"success": True, "request": to_json(req)}), 201

    @app.route(
        "/api/attendance/leave-requests/<request_id>/approve",
        methods=["POST"],
        endpoint="leave_request_approve",
    )
    @api_view
    def leave_request_approve(request_id: str):
        container.leave_request_service.approve(current_context(), request_id)
        return jsonify({"success": True, "message": "Leave request approved"}), 200

    @app.route(
        "/api/attendance/leave-requests/<request_id>/reject",
        methods=["POST"],
        endpoint="leave_request_reject",
    )
    @api_view
    def leave_request_reject(request_id: str):
        data = request.get_json(silent=True) or {}
        container.leave_request_service.reject(current_context(), request_id, str(data.get("reason") or ""))
        return jsonify({"success": True, "message": "Leave request rejected"}), 200
