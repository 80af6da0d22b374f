from __future__ import annotations

import csv
import io

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_auth, ok
from ..common.validators import require_int
from ..container import Container
from .service import REPORT_CSV_FIELDS, ReportData


def register(app: Flask, container: Container) -> None:
    service = container.report_service

    def _write_report_csv(*, data: ReportData, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_CSV_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        # BOM so spreadsheet apps pick up UTF-8 names.
        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _period_report() -> ReportData:
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
        return service.period_report(current_auth(), start=start, end=end)

    @app.route("/api/reports/period", methods=["GET"], endpoint="reports_period")
    def reports_period():
        data = _period_report()
        return ok({"rows": data.rows, "summary": data.summary, "totals": data.totals})

    @app.route("/api/reports/period.csv", methods=["GET"], endpoint="reports_period_csv")
    def reports_period_csv():
        data = _period_report()
        filename = f"attendance_{data.totals['start']}_{data.totals['end']}.csv"
        return _write_report_csv(data=data, filename=filename)

    @app.route("/api/reports/calendar", methods=["GET"], endpoint="reports_calendar")
    def reports_calendar():
        data = service.monthly_calendar(
            current_auth(),
            year=require_int(request.args.get("year"), "year"),
            month=require_int(request.args.get("month"), "month"),
        )
        return ok({"days": data.days, "summary": data.summary})
