from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """
    A collection entry identified by a string id. Unknown fields are kept as-is.

    Display text the content migration rewrites (names, titles) is optional:
    older databases may hold null there and the migration fills it in.
    """

    model_config = ConfigDict(extra="allow")

    id: str


class OrgRecord(Record):
    name: str | None = None
    createdAt: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)


class UserRecord(Record):
    orgId: str
    name: str | None = None
    email: str
    role: str
    status: str = "active"
    passwordHash: str
    language: str = "fa"
    theme: str = "light"
    createdAt: str | None = None
    lastLoginAt: str | None = None


class SessionRecord(Record):
    orgId: str
    userId: str
    refreshToken: str
    createdAt: str
    revokedAt: str | None = None
    ip: str | None = None
    userAgent: str | None = None


class DatasetRecord(Record):
    orgId: str
    name: str | None = None
    description: str | None = None


class ScenarioRecord(Record):
    orgId: str
    name: str | None = None


class ModelRecord(Record):
    orgId: str
    name: str | None = None
    metricsBadge: str | None = None


class ReportRecord(Record):
    orgId: str
    title: str | None = None
    filename: str


class AuditLogRecord(Record):
    orgId: str
    userId: str
    userEmail: str
    action: str
    entity: str
    entityId: str | None = None
    createdAt: str
    ip: str | None = None
    userAgent: str | None = None
    payloadSnippet: str | None = None


class Meta(BaseModel):
    model_config = ConfigDict(extra="allow")

    version: int = 0
    seededAt: str | None = None


class Document(BaseModel):
    """
    Mirrors the on-disk db.json schema:
      {
        "meta": { "version": 3, "seededAt": "..." },
        "orgs": [ {...} ],
        "users": [ {...} ],
        ...
      }

    Collections the store and the auth routes touch are typed; the rest are
    free-form JSON objects owned by their routes.
    """

    model_config = ConfigDict(extra="allow")

    meta: Meta = Field(default_factory=Meta)

    orgs: list[OrgRecord] = Field(default_factory=list)
    users: list[UserRecord] = Field(default_factory=list)
    sessions: list[SessionRecord] = Field(default_factory=list)
    plains: list[dict[str, Any]] = Field(default_factory=list)
    aquifers: list[dict[str, Any]] = Field(default_factory=list)
    wells: list[dict[str, Any]] = Field(default_factory=list)
    wellTimeseries: list[dict[str, Any]] = Field(default_factory=list)
    wellNotes: list[dict[str, Any]] = Field(default_factory=list)
    datasets: list[DatasetRecord] = Field(default_factory=list)
    datasetFiles: list[dict[str, Any]] = Field(default_factory=list)
    datasetValidations: list[dict[str, Any]] = Field(default_factory=list)
    scenarios: list[ScenarioRecord] = Field(default_factory=list)
    scenarioResults: list[dict[str, Any]] = Field(default_factory=list)
    models: list[ModelRecord] = Field(default_factory=list)
    modelMetrics: list[dict[str, Any]] = Field(default_factory=list)
    forecasts: list[dict[str, Any]] = Field(default_factory=list)
    forecastSeries: list[dict[str, Any]] = Field(default_factory=list)
    forecastWellResults: list[dict[str, Any]] = Field(default_factory=list)
    alerts: list[dict[str, Any]] = Field(default_factory=list)
    alertHistory: list[dict[str, Any]] = Field(default_factory=list)
    notifications: list[dict[str, Any]] = Field(default_factory=list)
    reports: list[ReportRecord] = Field(default_factory=list)
    auditLogs: list[AuditLogRecord] = Field(default_factory=list)
    jobs: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_disk_doc(cls, doc: Mapping[str, Any]) -> "Document":
        return cls.model_validate(doc)

    def to_disk_doc(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def collection(self, name: str) -> list[Any]:
        items = getattr(self, name, None)
        if not isinstance(items, list):
            raise KeyError(name)
        return items


def find_by_id(items: list[Any], record_id: str) -> Any | None:
    for item in items:
        item_id = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
        if item_id == record_id:
            return item
    return None
