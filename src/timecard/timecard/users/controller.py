from __future__ import annotations

from flask import Flask, session

from ..common.http import json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        return ok({"user_id": s_user.user_id, "full_name": s_user.full_name}, message="Logged in")

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/register", methods=["POST"], endpoint="register")
    def register_user():
        data = json_body()
        user_id = container.user_service.register(
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
        )
        return ok({"user_id": user_id}, message="Account created", status=201)
