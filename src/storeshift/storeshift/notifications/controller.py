from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import as_bool, json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.notification_service

    @app.route("/api/notifications", methods=["GET"], endpoint="notifications_list")
    def list_notifications():
        items = service.list_for_user(
            request.args.get("userId"),
            unread_only=as_bool(request.args.get("unreadOnly")),
        )
        return jsonify([n.to_document() for n in items])

    @app.route("/api/notifications/read-all", methods=["PUT"], endpoint="notifications_read_all")
    def read_all():
        user_id = json_body().get("userId") or request.args.get("userId")
        count = service.mark_all_read(user_id)
        return jsonify({"message": "All notifications marked as read", "updatedCount": count})

    @app.route("/api/notifications/<notification_id>/read", methods=["PUT"], endpoint="notification_read")
    def read_one(notification_id: str):
        service.mark_read(notification_id)
        return jsonify({"message": "Notification marked as read"})

    @app.route("/api/notifications/<notification_id>", methods=["DELETE"], endpoint="notification_delete")
    def delete(notification_id: str):
        service.delete(notification_id)
        return jsonify({"message": "Notification deleted"})
