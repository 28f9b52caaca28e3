from __future__ import annotations

import math
import random
from typing import Any, Iterable

# Reproducible demo data: the same seed string always yields the same wells.
DEMO_RANDOM_SEED = "yasooj-water-dss-demo"

OBSERVED_MONTHS = 60  # 2021-01 .. 2025-12
FORECAST_HORIZON_MONTHS = 24

_WELL_GROUPS = [
    # plain, aquifers, code prefix, lat0, lon0, base level (m)
    ("plain_1", ("aq_1", "aq_2"), "YAS", 30.66, 51.59, 1125.0),
    ("plain_2", ("aq_3", "aq_4"), "SIS", 30.89, 51.46, 1138.0),
    ("plain_3", ("aq_5", "aq_6"), "MAR", 31.09, 51.68, 1112.0),
]


def demo_rng() -> random.Random:
    return random.Random(DEMO_RANDOM_SEED)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def risk_level(score: float) -> str:
    if score < 0.25:
        return "low"
    if score < 0.5:
        return "medium"
    if score < 0.75:
        return "high"
    return "critical"


def month_start(year: int, month: int, offset: int = 0) -> str:
    """ISO timestamp of the first of the month, `offset` months after (year, month)."""
    index = year * 12 + (month - 1) + offset
    return f"{index // 12:04d}-{index % 12 + 1:02d}-01T00:00:00.000Z"


def _season(month: int) -> float:
    return ((month - 1) / 12) * math.pi * 2


def aquifers() -> list[dict[str, Any]]:
    return [
        {"id": "aq_1", "plainId": "plain_1", "nameFa": "آبخوان یاسوج-شمال", "nameEn": "Yasooj North Aquifer"},
        {"id": "aq_2", "plainId": "plain_1", "nameFa": "آبخوان یاسوج-جنوب", "nameEn": "Yasooj South Aquifer"},
        {"id": "aq_3", "plainId": "plain_2", "nameFa": "آبخوان سی‌سخت-مرکزی", "nameEn": "Sisakht Central Aquifer"},
        {"id": "aq_4", "plainId": "plain_2", "nameFa": "آبخوان سی‌سخت-غرب", "nameEn": "Sisakht West Aquifer"},
        {"id": "aq_5", "plainId": "plain_3", "nameFa": "آبخوان مارگون-کوهپایه", "nameEn": "Margoon Foothills Aquifer"},
        {"id": "aq_6", "plainId": "plain_3", "nameFa": "آبخوان مارگون-دشت", "nameEn": "Margoon Plain Aquifer"},
    ]


def _last_observed(levels: list[float | None], before: int | None = None) -> int | None:
    stop = len(levels) if before is None else before + 1
    for idx in range(stop - 1, -1, -1):
        if levels[idx] is not None:
            return idx
    return None


def wells_with_series(
    rng: random.Random, seeded_at: str
) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[dict[str, Any]]]:
    """
    Ten monitored wells per plain with monthly observations.

    Each well gets a falling trend with seasonal swing and noise, a few
    missing months (gwLevelM = null) and a few anomalous spikes. Summary
    fields (latest level, 30-day change, data quality, risk) are derived
    from the generated series.
    """
    wells: list[dict[str, Any]] = []
    points: list[dict[str, Any]] = []
    notes: list[dict[str, Any]] = []

    for plain_id, aquifer_ids, prefix, lat0, lon0, base in _WELL_GROUPS:
        for i in range(1, 11):
            well_id = f"well_{prefix.lower()}_{i:03d}"
            code = f"{prefix}-{i:03d}"
            depth_m = round(120 + rng.random() * 180)
            lat = lat0 + (rng.random() - 0.5) * 0.12
            lon = lon0 + (rng.random() - 0.5) * 0.12

            drop_per_month = 0.25 + rng.random() * 0.4
            seasonal_amp = 0.4 + rng.random() * 0.35
            noise_amp = 0.08 + rng.random() * 0.12

            missing = set(rng.sample(range(OBSERVED_MONTHS), 2 + rng.randrange(5)))
            anomaly_count = 1 + rng.randrange(3)
            anomalies = set(rng.sample([m for m in range(OBSERVED_MONTHS) if m not in missing], anomaly_count))

            base_level = base + (rng.random() - 0.5) * 10 + (i - 5) * 0.4
            levels: list[float | None] = []

            for m in range(OBSERVED_MONTHS):
                date = month_start(2021, 1, m)
                month = m % 12 + 1
                seasonal = math.sin(_season(month)) * seasonal_amp
                noise = (rng.random() - 0.5) * noise_amp

                precip_season = max(0.0, 1.15 - math.cos(_season(month)))
                precip_mm = clamp(precip_season * (25 + rng.random() * 35) + (rng.random() - 0.5) * 8, 0, 180)
                tmean_c = clamp(16 + math.sin(_season(month)) * 10 + (rng.random() - 0.5) * 2, -5, 42)

                level = base_level - drop_per_month * m + seasonal + noise
                if m in anomalies:
                    level += (rng.random() - 0.5) * 4.5

                point = {
                    "id": f"wts_{well_id}_{m}",
                    "wellId": well_id,
                    "date": date,
                    "precipMm": round(precip_mm, 1),
                    "tmeanC": round(tmean_c, 1),
                }
                if m in missing:
                    levels.append(None)
                    point.update(gwLevelM=None, flags={"missing": True})
                else:
                    levels.append(round(level, 2))
                    point.update(gwLevelM=round(level, 2), flags={"anomaly": True} if m in anomalies else {})
                points.append(point)

            last_idx = _last_observed(levels)
            latest = levels[last_idx] if last_idx is not None else None
            prev_idx = _last_observed(levels, last_idx - 1) if last_idx else None
            change_30d = round(latest - levels[prev_idx], 2) if prev_idx is not None else None

            missing_pct = len(missing) / OBSERVED_MONTHS
            anomaly_pct = len(anomalies) / (OBSERVED_MONTHS - len(missing))
            quality = round(clamp((1 - missing_pct) * 80 + (1 - anomaly_pct) * 20, 35, 98))

            drop_rate = 0.35
            if last_idx is not None:
                idx12 = _last_observed(levels, max(0, last_idx - 12))
                if idx12 is not None and last_idx - idx12 >= 6:
                    drop_rate = clamp((levels[idx12] - latest) / (last_idx - idx12), 0, 1.2)

            score = clamp((drop_rate / 0.9) * 0.7 + ((100 - quality) / 100) * 0.3, 0, 1)
            level_name = risk_level(score)
            tags = [prefix.lower()]
            if level_name == "critical":
                tags.append("priority")
            elif level_name == "high":
                tags.append("watchlist")

            wells.append(
                {
                    "id": well_id,
                    "code": code,
                    "name": f"چاه {code}",
                    "plainId": plain_id,
                    "aquiferId": aquifer_ids[i % 2],
                    "status": "active" if rng.random() > 0.08 else "inactive",
                    "tags": tags,
                    "depthM": depth_m,
                    "lat": round(lat, 5),
                    "lon": round(lon, 5),
                    "monitoringFrequency": "monthly",
                    "latestGwLevelM": latest,
                    "change30dM": change_30d,
                    "dataQualityScore": quality,
                    "riskScore": round(score, 3),
                    "riskLevel": level_name,
                    "lastUpdate": month_start(2021, 1, OBSERVED_MONTHS - 1),
                    "createdAt": seeded_at,
                }
            )

            if rng.random() > 0.6:
                notes.append(
                    {
                        "id": f"note_{well_id}_1",
                        "wellId": well_id,
                        "authorUserId": "u_analyst",
                        "body": "بازدید میدانی انجام شد. نیاز به کالیبراسیون سنسور دارد. (دمو)",
                        "createdAt": seeded_at,
                    }
                )

    return wells, points, notes


def scenario_results(rng: random.Random, scenarios: Iterable[Any]) -> list[dict[str, Any]]:
    """Annual and monthly climate projections per (scenario, plain)."""
    results: list[dict[str, Any]] = []
    for sc in scenarios:
        hot = getattr(sc, "ssp", None) == "SSP5-8.5"
        first, last = sc.horizonFromYear, min(sc.horizonToYear, sc.horizonFromYear + 24)
        for plain_id in sc.plainIds:
            annual = []
            for year in range(first, last + 1):
                t_base = 18.2 + (0.35 if hot else 0.18) * (year - first)
                p_base = 410 - (3.2 if hot else 1.2) * (year - first)
                annual.append(
                    {
                        "year": year,
                        "tmean": round(t_base + (rng.random() - 0.5) * 0.25, 2),
                        "precip": round(p_base + (rng.random() - 0.5) * 12, 1),
                    }
                )

            monthly = []
            for month in range(1, 13):
                t = 16 + math.sin(_season(month)) * 10 + (1.4 if hot else 0.6)
                p = clamp((40 + math.cos(_season(month)) * 18) * (0.8 if hot else 0.92), 0, 140)
                monthly.append({"month": month, "tmean": round(t, 1), "precip": round(p, 1)})

            results.append(
                {
                    "id": f"scr_{sc.id}_{plain_id}",
                    "scenarioId": sc.id,
                    "plainId": plain_id,
                    "annual": annual,
                    "monthlyDist": monthly,
                    "extremes": {
                        "max1DayPrecip": round(65 + rng.random() * 30 * (0.85 if hot else 1), 1),
                        "heatDays": round(18 + rng.random() * 18 + (10 if hot else 3)),
                    },
                }
            )
    return results


def _residuals(rng: random.Random, spread: float) -> list[dict[str, float]]:
    rows = []
    for _ in range(120):
        actual = 1100 + (rng.random() - 0.5) * 20
        res = (rng.random() - 0.5) * spread
        rows.append({"actual": round(actual, 2), "pred": round(actual - res, 2), "res": round(res, 2)})
    return rows


def model_metrics(rng: random.Random) -> list[dict[str, Any]]:
    return [
        {
            "id": "mm_1",
            "modelId": "m_1",
            "metrics": {"rmse": 1.8, "mae": 1.2, "r2": 0.83, "nse": 0.71},
            "residuals": _residuals(rng, 3.2),
            "featureImportance": [
                {"feature": "precip_lag_2", "importance": 0.18},
                {"feature": "tmean", "importance": 0.12},
                {"feature": "gwLevel_lag_1", "importance": 0.22},
                {"feature": "gwLevel_lag_6", "importance": 0.09},
                {"feature": "seasonality", "importance": 0.07},
            ],
        },
        {
            "id": "mm_2",
            "modelId": "m_2",
            "metrics": {"rmse": 2.2, "mae": 1.6, "r2": 0.78, "nse": 0.62},
            "residuals": _residuals(rng, 4.2),
            "featureImportance": [
                {"feature": "gwLevel_lag_1", "importance": 0.26},
                {"feature": "precip", "importance": 0.11},
                {"feature": "tmean", "importance": 0.1},
            ],
        },
    ]


def ready_forecast(
    rng: random.Random, wells: list[dict[str, Any]], seeded_at: str
) -> tuple[dict[str, Any], list[dict[str, Any]], list[dict[str, Any]]]:
    """One finished forecast (sc_1 with m_1) for the first ten wells, with p10/p50/p90 bands."""
    forecast_wells = wells[:10]
    forecast = {
        "id": "fc_1",
        "orgId": "org_1",
        "scenarioId": "sc_1",
        "modelId": "m_1",
        "wellIds": [w["id"] for w in forecast_wells],
        "horizonMonths": FORECAST_HORIZON_MONTHS,
        "status": "ready",
        "createdAt": seeded_at,
        "createdByUserId": "u_analyst",
        "confidence": "medium",
    }

    series: list[dict[str, Any]] = []
    results: list[dict[str, Any]] = []
    for well in forecast_wells:
        last_obs = well["latestGwLevelM"] if well["latestGwLevelM"] is not None else 1100.0
        base_drop = 0.22 + rng.random() * 0.28
        p50 = last_obs
        for m in range(FORECAST_HORIZON_MONTHS):
            p50 = last_obs - base_drop * (m + 1) + math.sin((m / 12) * math.pi * 2) * 0.25
            sigma = 0.6 + (m / FORECAST_HORIZON_MONTHS) * 1.1
            series.append(
                {
                    "id": f"fcs_fc_1_{well['id']}_{m}",
                    "forecastId": "fc_1",
                    "wellId": well["id"],
                    "date": month_start(2026, 1, m),
                    "p10": round(p50 - sigma * 1.1, 2),
                    "p50": round(p50, 2),
                    "p90": round(p50 + sigma * 1.1, 2),
                }
            )

        prob_cross = clamp(0.15 + (base_drop / 0.5) * 0.5 + (1 - well["dataQualityScore"] / 100) * 0.2, 0, 0.98)
        expected_drop = round(base_drop, 2)
        score = clamp(prob_cross * 0.7 + (expected_drop / 0.7) * 0.3, 0, 1)
        results.append(
            {
                "forecastId": "fc_1",
                "wellId": well["id"],
                "wellCode": well["code"],
                "p50FinalLevel": round(p50, 2),
                "probCrossThreshold": round(prob_cross, 2),
                "expectedDropRate": expected_drop,
                "riskLevel": risk_level(score),
            }
        )

    return forecast, series, results
