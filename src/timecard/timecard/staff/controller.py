from __future__ import annotations

from flask import Flask, request

from ..common.http import current_auth, json_body, ok
from ..container import Container
from ..core.exceptions import ValidationError
from .model import Staff


def staff_json(s: Staff) -> dict:
    return {
        "staff_id": s.staff_id,
        "name": s.name,
        "employee_id": s.employee_id,
        "qr_code": s.qr_code,
        "email": s.email,
        "tags": list(s.tags),
        "is_active": s.is_active,
    }


def _staff_ids(data: dict) -> list[int]:
    ids = data.get("staff_ids")
    if not isinstance(ids, list):
        raise ValidationError("staff_ids must be a list")
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError):
        raise ValidationError("staff_ids must contain integers") from None


def register(app: Flask, container: Container) -> None:
    service = container.staff_service

    @app.route("/api/staff", methods=["GET"], endpoint="staff_list")
    def staff_list():
        auth = current_auth()
        if request.args.get("status") == "inactive":
            staff = service.list_inactive(auth)
        else:
            staff = service.list_active(auth)
        return ok([staff_json(s) for s in staff])

    @app.route("/api/staff", methods=["POST"], endpoint="staff_create")
    def staff_create():
        auth = current_auth()
        data = json_body()
        staff = service.create_staff(auth, name=data.get("name"), tags=data.get("tags"), email=data.get("email"))
        return ok(staff_json(staff), message="Staff created", status=201)

    @app.route("/api/staff/tags", methods=["GET"], endpoint="staff_tags")
    def staff_tags():
        return ok(service.all_tags(current_auth()))

    @app.route("/api/staff/<int:staff_id>", methods=["GET"], endpoint="staff_get")
    def staff_get(staff_id: int):
        return ok(staff_json(service.get(current_auth(), staff_id)))

    @app.route("/api/staff/<int:staff_id>", methods=["PUT"], endpoint="staff_update")
    def staff_update(staff_id: int):
        auth = current_auth()
        data = json_body()
        staff = service.update_staff(
            auth, staff_id, name=data.get("name"), tags=data.get("tags"), email=data.get("email")
        )
        return ok(staff_json(staff), message="Staff updated")

    @app.route("/api/staff/deactivate", methods=["POST"], endpoint="staff_deactivate")
    def staff_deactivate():
        auth = current_auth()
        changed = service.deactivate(auth, _staff_ids(json_body()))
        return ok({"changed": changed})

    @app.route("/api/staff/reactivate", methods=["POST"], endpoint="staff_reactivate")
    def staff_reactivate():
        auth = current_auth()
        changed = service.reactivate(auth, _staff_ids(json_body()))
        return ok({"changed": changed})

    @app.route("/api/staff/<int:staff_id>/qr.png", methods=["GET"], endpoint="staff_qr_png")
    def staff_qr_png(staff_id: int):
        png = service.qr_png(current_auth(), staff_id)
        return app.response_class(png, mimetype="image/png")
