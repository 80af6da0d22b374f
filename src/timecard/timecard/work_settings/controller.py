from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_auth, json_body, ok
from ..common.validators import optional_int, require_int
from ..container import Container
from .model import AppliedWorkSetting, WorkSetting


def setting_json(s: WorkSetting) -> dict:
    return {
        "setting_id": s.setting_id,
        "name": s.name,
        "work_hours": s.work_hours,
        "break_hours": s.break_hours,
        "is_default": s.is_default,
    }


def applied_json(a: AppliedWorkSetting) -> dict:
    return {
        "applied_id": a.applied_id,
        "staff_id": a.staff_id,
        "work_date": a.work_date.strftime("%Y-%m-%d"),
        "setting_id": a.setting_id,
        "is_auto_assigned": a.is_auto_assigned,
    }


def register(app: Flask, container: Container) -> None:
    service = container.work_setting_service

    @app.route("/api/work-settings", methods=["GET"], endpoint="work_settings_list")
    def work_settings_list():
        return ok([setting_json(s) for s in service.list(current_auth())])

    @app.route("/api/work-settings", methods=["POST"], endpoint="work_settings_create")
    def work_settings_create():
        auth = current_auth()
        data = json_body()
        setting = service.create(
            auth, name=data.get("name"), work_hours=data.get("work_hours"), break_hours=data.get("break_hours")
        )
        return ok(setting_json(setting), status=201)

    @app.route("/api/work-settings/initial", methods=["POST"], endpoint="work_settings_initial")
    def work_settings_initial():
        created = service.create_initial(current_auth())
        return ok({"created": created}, message="Initial settings created" if created else "Settings already exist")

    @app.route("/api/work-settings/detect", methods=["GET"], endpoint="work_settings_detect")
    def work_settings_detect():
        auth = current_auth()
        best = service.detect_best(auth, require_int(request.args.get("work_minutes"), "work_minutes"))
        return ok(setting_json(best) if best else None)

    @app.route("/api/work-settings/<int:setting_id>", methods=["PUT"], endpoint="work_settings_update")
    def work_settings_update(setting_id: int):
        auth = current_auth()
        data = json_body()
        setting = service.update(
            auth,
            setting_id,
            name=data.get("name"),
            work_hours=data.get("work_hours"),
            break_hours=data.get("break_hours"),
        )
        return ok(setting_json(setting))

    @app.route("/api/work-settings/<int:setting_id>", methods=["DELETE"], endpoint="work_settings_delete")
    def work_settings_delete(setting_id: int):
        service.delete(current_auth(), setting_id)
        return ok(message="Work setting deleted")

    @app.route("/api/work-settings/<int:setting_id>/default", methods=["POST"], endpoint="work_settings_default")
    def work_settings_default(setting_id: int):
        return ok(setting_json(service.set_default(current_auth(), setting_id)))

    @app.route("/api/work-settings/applied", methods=["PUT"], endpoint="work_settings_apply")
    def work_settings_apply():
        auth = current_auth()
        data = json_body()
        applied = service.set_applied(
            auth,
            staff_id=require_int(data.get("staff_id"), "staff_id"),
            work_date=parse_iso_date(data.get("date")),
            setting_id=optional_int(data.get("setting_id"), "setting_id"),
        )
        return ok(applied_json(applied) if applied else None)

    @app.route("/api/work-settings/applied/auto", methods=["POST"], endpoint="work_settings_auto_assign")
    def work_settings_auto_assign():
        auth = current_auth()
        data = json_body()
        applied = service.auto_assign(
            auth,
            staff_id=require_int(data.get("staff_id"), "staff_id"),
            work_date=parse_iso_date(data.get("date")),
            work_minutes=require_int(data.get("work_minutes"), "work_minutes"),
        )
        return ok(applied_json(applied) if applied else None)

    @app.route("/api/work-settings/applied", methods=["GET"], endpoint="work_settings_monthly_applied")
    def work_settings_monthly_applied():
        auth = current_auth()
        days = service.monthly_applied(
            auth,
            staff_id=require_int(request.args.get("staff_id"), "staff_id"),
            year=require_int(request.args.get("year"), "year"),
            month=require_int(request.args.get("month"), "month"),
        )
        return ok(
            {
                day: {"applied": applied_json(entry.applied), "setting": setting_json(entry.setting)}
                for day, entry in days.items()
            }
        )
