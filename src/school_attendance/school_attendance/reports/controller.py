from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_non_empty
from ..common.web import api_view, current_context, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/stats/batch", methods=["GET"], endpoint="attendance_batch_stats")
    @api_view
    def attendance_batch_stats():
        batch_id = require_non_empty(request.args.get("batch_id", ""), "batch_id")
        on_date = parse_iso_date(request.args.get("date", ""))
        stats = container.report_service.batch_stats(current_context(), batch_id, on_date)
        return jsonify({"success": True, "stats": to_json(stats)}), 200

    @app.route("/api/attendance/stats/student/<student_id>", methods=["GET"], endpoint="attendance_student_stats")
    @api_view
    def attendance_student_stats(student_id: str):
        date_from = request.args.get("from")
        date_to = request.args.get("to")
        stats = container.report_service.student_stats(
            current_context(),
            student_id,
            parse_iso_date(date_from) if date_from else None,
            parse_iso_date(date_to) if date_to else None,
        )
        return jsonify({"success": True, "stats": to_json(stats)}), 200
