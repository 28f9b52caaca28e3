from __future__ import annotations

import pytest

from persistence import CURRENT_SEED_VERSION
from persistence.seed import build_seed_document
from persistence.seed_series import OBSERVED_MONTHS, month_start

SEEDED_AT = "2025-06-01T08:00:00.000Z"


@pytest.fixture(scope="module")
def seed_doc():
    return build_seed_document(now=SEEDED_AT)


def test_first_boot_document_has_monitoring_content(seed_doc):
    assert seed_doc.meta.version == CURRENT_SEED_VERSION
    assert len(seed_doc.aquifers) == 6
    assert len(seed_doc.wells) == 30
    assert len(seed_doc.wellTimeseries) == 30 * OBSERVED_MONTHS
    assert len(seed_doc.scenarioResults) == 5  # sc_1 covers 3 plains, sc_2 covers 2
    assert [m["id"] for m in seed_doc.modelMetrics] == ["mm_1", "mm_2"]
    assert [f["id"] for f in seed_doc.forecasts] == ["fc_1"]
    assert len(seed_doc.forecastSeries) == 10 * 24
    assert len(seed_doc.forecastWellResults) == 10
    assert [a["id"] for a in seed_doc.alerts] == ["al_1", "al_2", "al_3"]
    assert len(seed_doc.alertHistory) == 2
    assert len(seed_doc.notifications) == 24
    assert len(seed_doc.auditLogs) == 70
    assert len(seed_doc.datasetFiles) == 3
    assert len(seed_doc.datasetValidations) == 2


def test_wells_reference_known_plains_and_aquifers(seed_doc):
    plains = {p["id"] for p in seed_doc.plains}
    aquifers = {a["id"]: a["plainId"] for a in seed_doc.aquifers}
    for well in seed_doc.wells:
        assert well["plainId"] in plains
        assert aquifers[well["aquiferId"]] == well["plainId"]
        assert well["riskLevel"] in ("low", "medium", "high", "critical")
        assert 35 <= well["dataQualityScore"] <= 98


def test_timeseries_marks_missing_months(seed_doc):
    first_well = seed_doc.wells[0]["id"]
    points = [p for p in seed_doc.wellTimeseries if p["wellId"] == first_well]
    assert points[0]["date"] == "2021-01-01T00:00:00.000Z"
    assert points[-1]["date"] == "2025-12-01T00:00:00.000Z"
    missing = [p for p in points if p["gwLevelM"] is None]
    assert 2 <= len(missing) <= 6
    assert all(p["flags"] == {"missing": True} for p in missing)


def test_forecast_bands_are_ordered(seed_doc):
    for point in seed_doc.forecastSeries:
        assert point["p10"] < point["p50"] < point["p90"]


def test_generated_content_is_reproducible(seed_doc):
    again = build_seed_document(now=SEEDED_AT)
    assert again.wells == seed_doc.wells
    assert again.wellTimeseries == seed_doc.wellTimeseries
    assert again.forecastSeries == seed_doc.forecastSeries


def test_seed_is_a_valid_disk_document(seed_doc):
    disk = seed_doc.to_disk_doc()
    assert disk["auditLogs"][0]["createdAt"] == SEEDED_AT
    assert disk["users"][0]["passwordHash"] != "Password123!"


def test_month_start_rolls_over_years():
    assert month_start(2021, 1, 0) == "2021-01-01T00:00:00.000Z"
    assert month_start(2021, 1, 12) == "2022-01-01T00:00:00.000Z"
    assert month_start(2026, 11, 3) == "2027-02-01T00:00:00.000Z"
