from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_non_empty
from ..common.web import api_view, current_context, json_body, to_json
from ..container import Container
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


def _sheet_payload(container: Container, sheet, engine) -> dict:
    service = container.attendance_entry_service
    summary = container.report_service.summarize_entries(engine.mode, sheet.students, engine.entries)
    payload = {
        "success": True,
        "batch_id": sheet.batch_id,
        "date": sheet.attendance_date.isoformat(),
        "mode": engine.mode.value,
        "configuration": to_json(sheet.configuration),
        "students": [
            {
                "student_id": s.student_id,
                "full_name": s.full_name,
                "admission_number": s.admission_number,
                "roll_number": s.roll_number,
            }
            for s in sheet.students
        ],
        "period_slots": to_json(sheet.grid.slots) if sheet.grid else [],
        "available_days": list(sheet.available_days),
        "grid_explanation": to_json(service.explain_grid(sheet)),
        "entries": to_json(engine.entries),
        "summary": to_json(summary),
        "is_dirty": engine.is_dirty(),
        "draft_entries_dropped": engine.draft_entries_dropped,
    }
    if engine.draft_entries_dropped:
        payload["message"] = f"Removed {engine.draft_entries_dropped} invalid draft attendance entries"
    return payload


def _apply_entries(engine, data: dict) -> None:
    entries = data.get("entries") or []
    if not isinstance(entries, list):
        raise ValidationError("entries must be a list")

    if data.get("mark_all"):
        engine.bulk_mark_all(data["mark_all"])
    for item in entries:
        if not isinstance(item, dict):
            raise ValidationError("Each entry must be an object")
        engine.apply_mark(
            str(item.get("student_id") or ""),
            item.get("status"),
            period_number=item.get("period_number"),
            session=item.get("session"),
            remarks=item.get("remarks"),
        )


def _sheet_args(data) -> tuple[str, date]:
    batch_id = require_non_empty(str(data.get("batch_id") or ""), "batch_id")
    on_date = parse_iso_date(str(data.get("date") or ""))
    return batch_id, on_date


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/sheet", methods=["GET"], endpoint="attendance_sheet")
    @api_view
    def attendance_sheet():
        ctx = current_context()
        batch_id, on_date = _sheet_args(request.args)

        sheet, engine = container.attendance_entry_service.load_sheet(ctx, batch_id, on_date)
        return jsonify(_sheet_payload(container, sheet, engine)), 200

    @app.route("/api/attendance/save", methods=["POST"], endpoint="attendance_save")
    @api_view
    def attendance_save():
        """Apply the submitted marks on top of the stored ones and save them in one batch."""
        ctx = current_context()
        data = json_body()
        batch_id, on_date = _sheet_args(data)

        service = container.attendance_entry_service
        sheet, engine = service.load_sheet(ctx, batch_id, on_date)
        _apply_entries(engine, data)

        if not engine.is_dirty():
            return jsonify({"success": True, "message": "No changes to save", "saved": 0, "skipped": 0}), 200

        result = service.save(engine, ctx)
        body = to_json(result)
        body["summary"] = to_json(
            container.report_service.summarize_entries(engine.mode, sheet.students, engine.entries)
        )
        return jsonify(body), 200

    @app.route("/api/attendance/draft", methods=["PUT"], endpoint="attendance_keep_draft")
    @api_view
    def attendance_keep_draft():
        """Keep the submitted marks as a draft of the sheet without saving them."""
        ctx = current_context()
        data = json_body()
        batch_id, on_date = _sheet_args(data)

        service = container.attendance_entry_service
        sheet, engine = service.load_sheet(ctx, batch_id, on_date)
        _apply_entries(engine, data)
        kept = service.keep_draft(engine)

        body = _sheet_payload(container, sheet, engine)
        body["draft_kept"] = kept
        return jsonify(body), 200

    @app.route("/api/attendance/draft", methods=["DELETE"], endpoint="attendance_clear_draft")
    @api_view
    def attendance_clear_draft():
        ctx = current_context()
        batch_id, on_date = _sheet_args(request.args)

        service = container.attendance_entry_service
        sheet, engine = service.load_sheet(ctx, batch_id, on_date)
        service.clear(engine)
        return jsonify(_sheet_payload(container, sheet, engine)), 200

    @app.route("/api/attendance/status-cycle", methods=["POST"], endpoint="attendance_status_cycle")
    @api_view
    def attendance_status_cycle():
        data = json_body()
        current = data.get("current")
        nxt = container.attendance_entry_service.status_cycle.next(
            AttendanceStatus.parse(current) if current else None
        )
        return jsonify({"success": True, "next": nxt.value if nxt else None}), 200
