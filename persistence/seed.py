from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from passwords import hash_password

from . import seed_series
from .document import (
    AuditLogRecord,
    DatasetRecord,
    Document,
    Meta,
    ModelRecord,
    OrgRecord,
    ReportRecord,
    ScenarioRecord,
    UserRecord,
)
from .migrations import CURRENT_SEED_VERSION

DEMO_PASSWORD = "Password123!"
DEMO_ORG_ID = "org_1"

_DEMO_USERS: list[tuple[str, str, str, str]] = [
    # id, name, email, role
    ("u_viewer", "بیننده دمو", "viewer@demo.local", "viewer"),
    ("u_analyst", "تحلیلگر دمو", "analyst@demo.local", "analyst"),
    ("u_admin", "مدیر دمو", "admin@demo.local", "admin"),
    ("u_org_admin", "مدیر سازمان دمو", "orgadmin@demo.local", "org_admin"),
    ("u_super_admin", "ابرمدیر دمو", "superadmin@demo.local", "super_admin"),
]


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _plains() -> list[dict[str, Any]]:
    province = "کهگیلویه و بویراحمد"
    return [
        {"id": "plain_1", "province": province, "nameFa": "دشت یاسوج", "nameEn": "Yasooj Plain"},
        {"id": "plain_2", "province": province, "nameFa": "دشت سی‌سخت", "nameEn": "Sisakht Plain"},
        {"id": "plain_3", "province": province, "nameFa": "دشت مارگون", "nameEn": "Margoon Plain"},
    ]


def _datasets(seeded_at: str) -> list[DatasetRecord]:
    rows = [
        ("ds_1", "پایش آب زیرزمینی (۲۰۲۱ تا ۲۰۲۵)", "groundwater", "مشاهدات ماهانه سطح آب زیرزمینی برای ۳۰ چاه (دمو).", "published"),
        ("ds_2", "پایه اقلیم (مشاهدات)", "climate", "سری پایه بارش و دما (دمو).", "published"),
        ("ds_3", "مصرف آب (دمو)", "usage", "برآورد برداشت آب به تفکیک دشت (دمو).", "validated"),
        ("ds_4", "مرزبندی جی‌آی‌اس (دشت‌ها/آبخوان‌ها)", "gis", "مرزهای ساده‌شده پلیگونی (دمو).", "draft"),
    ]
    return [
        DatasetRecord(
            id=ds_id,
            orgId=DEMO_ORG_ID,
            name=name,
            description=description,
            type=ds_type,
            source="ManualUpload",
            version="1.0.0" if status == "published" else "0.1.0",
            status=status,
            createdAt=seeded_at,
            updatedAt=seeded_at,
        )
        for ds_id, name, ds_type, description, status in rows
    ]


def _scenarios(seeded_at: str) -> list[ScenarioRecord]:
    return [
        ScenarioRecord(
            id="sc_1",
            orgId=DEMO_ORG_ID,
            name="سناریوی مبنا (اس‌اس‌پی ۲-۴.۵) ۲۰۲۶ تا ۲۰۵۰",
            ssp="SSP2-4.5",
            horizonFromYear=2026,
            horizonToYear=2050,
            method="LARS-WG",
            plainIds=["plain_1", "plain_2", "plain_3"],
            status="ready",
            lastRunAt=seeded_at,
            createdAt=seeded_at,
        ),
        ScenarioRecord(
            id="sc_2",
            orgId=DEMO_ORG_ID,
            name="سناریوی گرم و خشک (اس‌اس‌پی ۵-۸.۵) ۲۰۲۶ تا ۲۰۵۰",
            ssp="SSP5-8.5",
            horizonFromYear=2026,
            horizonToYear=2050,
            method="BiasCorrection",
            plainIds=["plain_1", "plain_2"],
            status="ready",
            lastRunAt=seeded_at,
            createdAt=seeded_at,
        ),
    ]


def _models(seeded_at: str) -> list[ModelRecord]:
    return [
        ModelRecord(
            id="m_1", orgId=DEMO_ORG_ID, name="ایکس‌جی‌بی نسخه ۲", family="XGB", version="2.0.0",
            status="active", trainedAt=seeded_at, createdAt=seeded_at, metricsBadge="RMSE ۱٫۸",
        ),
        ModelRecord(
            id="m_2", orgId=DEMO_ORG_ID, name="جنگل تصادفی نسخه ۱", family="RF", version="1.0.0",
            status="archived", trainedAt=seeded_at, createdAt=seeded_at, metricsBadge="RMSE ۲٫۲",
        ),
        ModelRecord(
            id="m_3", orgId=DEMO_ORG_ID, name="ال‌اس‌تی‌ام نسخه ۰", family="LSTM", version="0.1.0",
            status="draft", createdAt=seeded_at,
        ),
    ]


def _reports(seeded_at: str) -> list[ReportRecord]:
    rows = [
        ("rp_1", "گزارش مدیریتی ماهانه (دمو)", "executive", ["kpis", "scenario_summary", "risk_table", "alerts_summary"], "executive_demo_1.html"),
        ("rp_2", "گزارش فنی مدل (دمو)", "technical", ["kpis", "forecast_charts", "data_quality"], "technical_demo_1.html"),
        ("rp_3", "گزارش عملیات پایش (دمو)", "ops", ["kpis", "alerts_summary"], "ops_demo_1.html"),
        ("rp_4", "خلاصه هفتگی مدیریتی (دمو)", "executive", ["kpis", "risk_table"], "executive_demo_2.html"),
        ("rp_5", "ضمیمه فنی پیش‌بینی (دمو)", "technical", ["forecast_charts"], "technical_demo_2.html"),
    ]
    return [
        ReportRecord(
            id=rp_id,
            orgId=DEMO_ORG_ID,
            title=title,
            type=rp_type,
            createdAt=seeded_at,
            status="ready",
            sections=sections,
            filename=filename,
        )
        for rp_id, title, rp_type, sections, filename in rows
    ]


def _dataset_files(seeded_at: str) -> list[dict[str, Any]]:
    rows = [
        ("dsf_1", "ds_1", "gw_monitoring_2021_2025.csv", 418_200),
        ("dsf_2", "ds_2", "climate_baseline_monthly.csv", 182_900),
        ("dsf_3", "ds_3", "usage_mock.xlsx", 52_300),
    ]
    return [
        {"id": f_id, "datasetId": ds_id, "filename": filename, "sizeBytes": size, "status": "validated", "uploadedAt": seeded_at}
        for f_id, ds_id, filename, size in rows
    ]


def _dataset_validations(seeded_at: str) -> list[dict[str, Any]]:
    return [
        {
            "id": "dsv_1",
            "datasetId": "ds_1",
            "validatedAt": seeded_at,
            "summary": {"rows": 1800, "columns": 7, "missingPct": 3.2, "invalidDatePct": 0.1, "duplicates": 2},
            "errors": [
                {"column": "gwLevelM", "errorType": "outlier", "rowIndex": 244, "message": "مقدار خارج از بازه مورد انتظار است."},
                {"column": "date", "errorType": "invalid_format", "rowIndex": 917, "message": "فرمت تاریخ معتبر نیست."},
            ],
            "completenessByColumn": [
                {"column": "date", "completeness": 1},
                {"column": "wellCode", "completeness": 1},
                {"column": "gwLevelM", "completeness": 0.968},
                {"column": "precipMm", "completeness": 0.996},
                {"column": "tmeanC", "completeness": 0.995},
            ],
        },
        {
            "id": "dsv_2",
            "datasetId": "ds_3",
            "validatedAt": seeded_at,
            "summary": {"rows": 360, "columns": 5, "missingPct": 1.1, "invalidDatePct": 0, "duplicates": 0},
            "errors": [{"column": "usage", "errorType": "missing", "rowIndex": 41, "message": "مقدار خالی است."}],
            "completenessByColumn": [
                {"column": "plainId", "completeness": 1},
                {"column": "month", "completeness": 1},
                {"column": "usage", "completeness": 0.989},
            ],
        },
    ]


def _alerts(seeded_at: str) -> list[dict[str, Any]]:
    def _alert(alert_id, name, severity, plain_ids, condition, params, email, triggered):
        alert = {
            "id": alert_id,
            "orgId": DEMO_ORG_ID,
            "name": name,
            "severity": severity,
            "status": "enabled",
            "scope": {"plainIds": plain_ids, "aquiferIds": [], "wellIds": []},
            "conditionType": condition,
            "params": params,
            "channels": {"inApp": True, "email": email},
            "createdAt": seeded_at,
            "updatedAt": seeded_at,
        }
        if triggered:
            alert["lastTriggeredAt"] = seeded_at
        return alert

    return [
        _alert("al_1", "هشدار بحرانی: سطح آب زیرزمینی کمتر از آستانه", "critical", ["plain_1"],
               "gw_level_below", {"thresholdM": 1100}, False, True),
        _alert("al_2", "هشدار: نرخ افت بیشتر از ۰٫۶ متر در ماه", "warning", ["plain_2", "plain_3"],
               "drop_rate_above", {"threshold": 0.6}, True, True),
        _alert("al_3", "اطلاع: کیفیت داده پایین (کمتر از ۶۰)", "info", [],
               "data_quality_below", {"minScore": 60}, False, False),
    ]


def _alert_history(wells: list[dict[str, Any]], seeded_at: str) -> list[dict[str, Any]]:
    below = [
        w["id"] for w in wells
        if w["plainId"] == "plain_1" and w["latestGwLevelM"] is not None and w["latestGwLevelM"] < 1100
    ]
    dropping = [w["id"] for w in wells if w["plainId"] in ("plain_2", "plain_3") and w["riskLevel"] != "low"]
    return [
        {"id": "alh_1", "alertId": "al_1", "triggeredAt": seeded_at, "wellsAffected": below[:5],
         "summary": "۵ چاه کمتر از آستانه (۱۱۰۰ متر)."},
        {"id": "alh_2", "alertId": "al_2", "triggeredAt": seeded_at, "wellsAffected": dropping[:6],
         "summary": "۶ چاه با ریسک بالای نرخ افت."},
    ]


_NOTIFICATION_TEXT = {
    "critical": ("هشدار بحرانی", "احتمال عبور از آستانه در چند چاه افزایش یافته است. (دمو)"),
    "warning": ("هشدار", "کاهش سطح آبخوان در حال تشدید است. (دمو)"),
    "info": ("اطلاع", "عملیات جدید ثبت شد. (دمو)"),
}


def _notifications(wells: list[dict[str, Any]], seeded_at: str) -> list[dict[str, Any]]:
    user_ids = [user_id for user_id, _, _, _ in _DEMO_USERS]
    items = []
    for i in range(24):
        severity = "critical" if i % 7 == 0 else "warning" if i % 3 == 0 else "info"
        title, body = _NOTIFICATION_TEXT[severity]
        item = {
            "id": f"nt_{i + 1}",
            "orgId": DEMO_ORG_ID,
            "userId": user_ids[i % len(user_ids)],
            "title": title,
            "body": body,
            "severity": severity,
            "createdAt": seeded_at,
            "related": {"entity": "forecast", "entityId": "fc_1"}
            if i % 2 == 0
            else {"entity": "well", "entityId": wells[i % len(wells)]["id"]},
        }
        if i % 4 == 0:
            item["readAt"] = seeded_at
        items.append(item)
    return items


_AUDIT_ACTIONS = [
    ("dataset.upload", "dataset"),
    ("dataset.validate", "dataset"),
    ("dataset.publish", "dataset"),
    ("scenario.run", "scenario"),
    ("model.train", "model"),
    ("forecast.run", "forecast"),
    ("alert.trigger", "alert"),
    ("user.create", "user"),
    ("user.update", "user"),
]


def _audit_logs(doc: Document, now: datetime) -> list[AuditLogRecord]:
    """Seventy historical entries, newest first, 18 minutes apart."""
    targets = {
        "dataset": doc.datasets,
        "scenario": doc.scenarios,
        "model": doc.models,
        "forecast": doc.forecasts,
        "alert": doc.alerts,
        "user": doc.users,
    }
    logs = []
    for i in range(70):
        user = doc.users[i % len(doc.users)]
        action, entity = _AUDIT_ACTIONS[i % len(_AUDIT_ACTIONS)]
        target = targets[entity][i % len(targets[entity])]
        created = now - timedelta(minutes=18 * i)
        logs.append(
            AuditLogRecord(
                id=f"aud_{i + 1}",
                orgId=user.orgId,
                userId=user.id,
                userEmail=user.email,
                action=action,
                entity=entity,
                entityId=target["id"] if isinstance(target, dict) else target.id,
                createdAt=created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
                ip="127.0.0.1",
                userAgent="seed",
                payloadSnippet='{"demo":true}',
            )
        )
    return logs


def build_seed_document(*, password: str = DEMO_PASSWORD, now: str | None = None) -> Document:
    """
    First-boot document: one demo org, one account per role (all sharing the demo
    password), reference plains and aquifers, 30 monitored wells with five years
    of monthly readings, one finished forecast, alerts, notifications, audit
    history, and the demo datasets/scenarios/models/reports.

    Generated series come from a fixed random seed, so two fresh boots produce
    the same wells and readings.
    """
    seeded_at = now or iso_now()
    seeded_dt = datetime.fromisoformat(seeded_at.replace("Z", "+00:00"))
    password_hash = hash_password(password)
    rng = seed_series.demo_rng()

    org = OrgRecord(
        id=DEMO_ORG_ID,
        name="دمو سامانه تصمیم‌یار آب زیرزمینی یاسوج",
        createdAt=seeded_at,
        settings={
            "units": {"gwLevel": "m", "precip": "mm", "temp": "C"},
            "timezone": "Asia/Tehran",
            "logoUrl": "/logo.svg",
        },
    )
    users = [
        UserRecord(
            id=user_id,
            orgId=DEMO_ORG_ID,
            name=name,
            email=email,
            role=role,
            status="active",
            passwordHash=password_hash,
            language="fa",
            theme="light",
            createdAt=seeded_at,
        )
        for user_id, name, email, role in _DEMO_USERS
    ]

    wells, well_timeseries, well_notes = seed_series.wells_with_series(rng, seeded_at)
    scenarios = _scenarios(seeded_at)
    scenario_results = seed_series.scenario_results(rng, scenarios)
    model_metrics = seed_series.model_metrics(rng)
    forecast, forecast_series, forecast_well_results = seed_series.ready_forecast(rng, wells, seeded_at)

    doc = Document(
        meta=Meta(version=CURRENT_SEED_VERSION, seededAt=seeded_at),
        orgs=[org],
        users=users,
        plains=_plains(),
        aquifers=seed_series.aquifers(),
        wells=wells,
        wellTimeseries=well_timeseries,
        wellNotes=well_notes,
        datasets=_datasets(seeded_at),
        datasetFiles=_dataset_files(seeded_at),
        datasetValidations=_dataset_validations(seeded_at),
        scenarios=scenarios,
        scenarioResults=scenario_results,
        models=_models(seeded_at),
        modelMetrics=model_metrics,
        forecasts=[forecast],
        forecastSeries=forecast_series,
        forecastWellResults=forecast_well_results,
        alerts=_alerts(seeded_at),
        alertHistory=_alert_history(wells, seeded_at),
        notifications=_notifications(wells, seeded_at),
        reports=_reports(seeded_at),
    )
    doc.auditLogs = _audit_logs(doc, seeded_dt)
    return doc
