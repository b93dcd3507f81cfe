from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import as_bool, json_body
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/punch", methods=["POST"], endpoint="attendance_punch")
    def punch():
        data = json_body()
        record = service.submit_punch(
            data.get("userId"),
            data.get("type"),
            manual=as_bool(data.get("manual")),
            manual_actor=data.get("manualActor"),
            reason=data.get("reason"),
            custom_time=data.get("customTime"),
            selfie_ref=data.get("selfieRef"),
            location_ref=data.get("locationRef"),
        )
        return jsonify(record.to_json())

    @app.route("/api/attendance/today/<user_id>", methods=["GET"], endpoint="attendance_today")
    def today(user_id: str):
        record = service.get_today(user_id)
        return jsonify(record.to_json() if record else None)

    @app.route("/api/attendance/history/<user_id>", methods=["GET"], endpoint="attendance_history")
    def history(user_id: str):
        raw_limit = request.args.get("limit")
        try:
            limit = int(raw_limit) if raw_limit else None
        except ValueError:
            raise ValidationError("limit must be an integer")
        records = service.get_history(user_id, limit=limit)
        return jsonify([r.to_json() for r in records])

    @app.route("/api/attendance/all", methods=["GET"], endpoint="attendance_all")
    def all_records():
        return jsonify([r.to_json() for r in service.list_all()])

    @app.route("/api/attendance/clear", methods=["DELETE"], endpoint="attendance_clear")
    def clear():
        admin_id = request.args.get("adminId") or json_body().get("adminId")
        deleted = service.clear_all(admin_id=admin_id)
        return jsonify({"message": "All attendance records cleared", "deletedCount": deleted})
