from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_hhmm
from ..common.web import api_view, current_context, json_body, to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/configurations", methods=["GET"], endpoint="attendance_configurations")
    @api_view
    def attendance_configurations():
        configs = container.configuration_service.list_active(current_context())
        return jsonify({"success": True, "configurations": to_json(list(configs))}), 200

    @app.route(
        "/api/attendance/configurations/<batch_id>",
        methods=["GET"],
        endpoint="attendance_configuration_for_batch",
    )
    @api_view
    def attendance_configuration_for_batch(batch_id: str):
        config = container.configuration_service.get_active(current_context(), batch_id)
        return jsonify({"success": True, "configuration": to_json(config)}), 200

    @app.route("/api/attendance/configurations", methods=["POST"], endpoint="attendance_switch_mode")
    @api_view
    def attendance_switch_mode():
        data = json_body()
        config = container.configuration_service.switch_mode(
            current_context(),
            (data.get("batch_id") or None),
            str(data.get("mode") or ""),
            auto_absent_enabled=bool(data.get("auto_absent_enabled", False)),
            auto_absent_time=parse_hhmm(data.get("auto_absent_time")),
            notification_enabled=bool(data.get("notification_enabled", True)),
        )
        return jsonify({"success": True, "configuration": to_json(config)}), 200
