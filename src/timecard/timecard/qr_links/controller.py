from __future__ import annotations

from flask import Flask, current_app

from ..common.http import current_auth, json_body, ok
from ..common.qr_image import render_qr_png
from ..container import Container
from .model import QrLink


def link_url(link: QrLink) -> str:
    base = str(current_app.config.get("QR_BASE_URL") or "").rstrip("/")
    return f"{base}/kiosk/{link.url_id}"


def link_json(link: QrLink) -> dict:
    return {
        "link_id": link.link_id,
        "name": link.name,
        "url_id": link.url_id,
        "url": link_url(link),
        "is_active": link.is_active,
        "expires_at": link.expires_at,
    }


def register(app: Flask, container: Container) -> None:
    service = container.qr_link_service

    @app.route("/api/qr-links", methods=["GET"], endpoint="qr_links_list")
    def qr_links_list():
        return ok([link_json(link) for link in service.list(current_auth())])

    @app.route("/api/qr-links", methods=["POST"], endpoint="qr_links_create")
    def qr_links_create():
        auth = current_auth()
        data = json_body()
        link = service.create(auth, name=data.get("name"), expires_at=data.get("expires_at"))
        return ok(link_json(link), status=201)

    @app.route("/api/qr-links/<int:link_id>/regenerate", methods=["POST"], endpoint="qr_links_regenerate")
    def qr_links_regenerate(link_id: int):
        return ok(link_json(service.regenerate(current_auth(), link_id)))

    @app.route("/api/qr-links/<int:link_id>/toggle", methods=["POST"], endpoint="qr_links_toggle")
    def qr_links_toggle(link_id: int):
        return ok(link_json(service.toggle(current_auth(), link_id)))

    @app.route("/api/qr-links/<int:link_id>", methods=["DELETE"], endpoint="qr_links_delete")
    def qr_links_delete(link_id: int):
        service.delete(current_auth(), link_id)
        return ok(message="QR link deleted")

    @app.route("/api/qr-links/<int:link_id>/qr.png", methods=["GET"], endpoint="qr_links_png")
    def qr_links_png(link_id: int):
        link = service.get(current_auth(), link_id)
        return app.response_class(render_qr_png(link_url(link)), mimetype="image/png")

    # Kiosk endpoints are public: the url_id is the credential.

    @app.route("/api/kiosk/<url_id>", methods=["GET"], endpoint="kiosk_resolve")
    def kiosk_resolve(url_id: str):
        link = service.resolve(url_id)
        return ok({"name": link.name, "url_id": link.url_id})

    @app.route("/api/kiosk/<url_id>/clock", methods=["POST"], endpoint="kiosk_clock")
    def kiosk_clock(url_id: str):
        link = service.resolve(url_id)
        data = json_body()
        result = container.attendance_service.record_clock_by_qr(
            data.get("qr_code") or "", record_type=data.get("type"), owner_id=link.owner_id
        )
        return ok(
            {
                "attendance_id": result.record.attendance_id,
                "pair_id": result.pair_id,
                "type": result.record.record_type.value,
                "timestamp": result.record.timestamp,
                "staff": {"staff_id": result.staff.staff_id, "name": result.staff.name},
            },
            message=f"{result.staff.name}: {result.record.record_type.value} recorded",
            status=201,
        )
