from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body
from ..container import Container


def register(app: Flask, container: Container) -> None:
    approvals = container.late_approval_service
    permissions = container.late_permission_service

    # Late approvals (opened by late check-ins, decided by admins)

    @app.route("/api/late-approvals/pending", methods=["GET"], endpoint="late_approvals_pending")
    def pending_approvals():
        return jsonify([a.to_document() for a in approvals.list_pending()])

    @app.route("/api/late-approvals/user/<user_id>", methods=["GET"], endpoint="late_approvals_for_user")
    def user_approvals(user_id: str):
        return jsonify([a.to_document() for a in approvals.list_for_user(user_id)])

    @app.route("/api/late-approvals/<approval_id>", methods=["GET"], endpoint="late_approval_detail")
    def approval_detail(approval_id: str):
        return jsonify(approvals.get(approval_id).to_document())

    @app.route("/api/late-approvals/<approval_id>/status", methods=["PUT"], endpoint="late_approval_decide")
    def decide_approval(approval_id: str):
        data = json_body()
        approval = approvals.decide(
            approval_id,
            status=data.get("status"),
            approved_by=data.get("approvedBy"),
            rejection_reason=data.get("rejectionReason"),
            admin_notes=data.get("adminNotes"),
        )
        return jsonify(approval.to_document())

    # Late permissions (requested ahead of time by employees)

    @app.route("/api/late-permissions", methods=["POST"], endpoint="late_permission_request")
    def request_permission():
        data = json_body()
        permission = permissions.request(
            user_id=data.get("userId"),
            work_date=data.get("date"),
            reason=data.get("reason"),
            expected_arrival_time=data.get("expectedArrivalTime"),
        )
        return jsonify(permission.to_document()), 201

    @app.route("/api/late-permissions/user/<user_id>", methods=["GET"], endpoint="late_permissions_for_user")
    def user_permissions(user_id: str):
        items = permissions.list_for_user(
            user_id,
            status=request.args.get("status"),
            work_date=request.args.get("date"),
        )
        return jsonify([p.to_document() for p in items])

    @app.route("/api/late-permissions/pending", methods=["GET"], endpoint="late_permissions_pending")
    def pending_permissions():
        return jsonify([p.to_document() for p in permissions.list_pending()])

    @app.route("/api/late-permissions/<permission_id>/status", methods=["PUT"], endpoint="late_permission_decide")
    def decide_permission(permission_id: str):
        data = json_body()
        permission = permissions.decide(
            permission_id,
            status=data.get("status"),
            approved_by=data.get("approvedBy"),
            rejection_reason=data.get("rejectionReason"),
        )
        return jsonify(permission.to_document())
