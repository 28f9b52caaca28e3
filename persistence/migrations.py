from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from .document import Document, OrgRecord, UserRecord

logger = logging.getLogger(__name__)

# Keep in sync with persistence/seed.py
CURRENT_SEED_VERSION = 3

_LATIN_LETTER = re.compile(r"[A-Za-z]")

# collection -> record id -> field -> replacement
FieldPatches = Mapping[str, Mapping[str, Mapping[str, str]]]
RecordFixup = Callable[[Document], bool]


def looks_unmigrated(value: Any) -> bool:
    """
    True when a field still holds pre-migration demo content.

    Old demo databases used English placeholders ("Demo Viewer", "Baseline"), so
    any ASCII letter marks the value as never rewritten. Blank and non-string
    values count too. Mixed-script values are therefore always overwritten.
    """
    if not isinstance(value, str):
        return True
    s = value.strip()
    if not s:
        return True
    return bool(_LATIN_LETTER.search(s))


def _get_field(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _set_field(record: Any, name: str, value: Any) -> None:
    if isinstance(record, dict):
        record[name] = value
    else:
        setattr(record, name, value)


def _record_id(record: Any) -> Any:
    return _get_field(record, "id")


@dataclass(frozen=True)
class MigrationRunner:
    """
    Version-gated content upgrade applied once to a loaded document.

    `run` patches fields whose current value looks like placeholder content,
    applies the unconditional fixups, then stamps `meta.version`. Any pass that
    runs at all reports a change so the new version gets persisted.
    """

    version: int
    patches: FieldPatches = field(default_factory=dict)
    fixups: tuple[RecordFixup, ...] = ()

    def is_due(self, doc: Document) -> bool:
        return int(doc.meta.version or 0) < self.version

    def run(self, doc: Document) -> bool:
        current = int(doc.meta.version or 0)
        if current >= self.version:
            return False

        patched = 0
        for collection, by_id in self.patches.items():
            for record in doc.collection(collection):
                fields = by_id.get(_record_id(record))
                if not fields:
                    continue
                for name, replacement in fields.items():
                    if looks_unmigrated(_get_field(record, name)):
                        _set_field(record, name, replacement)
                        patched += 1

        fixed = sum(1 for fixup in self.fixups if fixup(doc))

        # Bump even when nothing matched so the scan doesn't repeat on every boot.
        doc.meta.version = self.version
        logger.info(
            "MIGRATION: version %s -> %s (%s field(s) patched, %s fixup(s) applied)",
            current,
            self.version,
            patched,
            fixed,
        )
        return True


def default_org_logo(doc: Document) -> bool:
    changed = False
    for org in doc.orgs:
        if not isinstance(org, OrgRecord):
            continue
        if not org.settings.get("logoUrl"):
            org.settings = {**org.settings, "logoUrl": "/logo.svg"}
            changed = True
    return changed


def force_persian_ui(doc: Document) -> bool:
    changed = False
    for user in doc.users:
        if isinstance(user, UserRecord) and user.language != "fa":
            user.language = "fa"
            changed = True
    return changed


DEMO_CONTENT_PATCHES: dict[str, dict[str, dict[str, str]]] = {
    "orgs": {
        "org_1": {"name": "دمو سامانه تصمیم‌یار آب زیرزمینی یاسوج"},
    },
    "users": {
        "u_viewer": {"name": "بیننده دمو"},
        "u_analyst": {"name": "تحلیلگر دمو"},
        "u_admin": {"name": "مدیر دمو"},
        "u_org_admin": {"name": "مدیر سازمان دمو"},
        "u_super_admin": {"name": "ابرمدیر دمو"},
    },
    "datasets": {
        "ds_1": {
            "name": "پایش آب زیرزمینی (۲۰۲۱ تا ۲۰۲۵)",
            "description": "مشاهدات ماهانه سطح آب زیرزمینی برای ۳۰ چاه (دمو).",
        },
        "ds_2": {"name": "پایه اقلیم (مشاهدات)", "description": "سری پایه بارش و دما (دمو)."},
        "ds_3": {"name": "مصرف آب (دمو)", "description": "برآورد برداشت آب به تفکیک دشت (دمو)."},
        "ds_4": {
            "name": "مرزبندی جی‌آی‌اس (دشت‌ها/آبخوان‌ها)",
            "description": "مرزهای ساده‌شده پلیگونی (دمو).",
        },
    },
    "scenarios": {
        "sc_1": {"name": "سناریوی مبنا (اس‌اس‌پی ۲-۴.۵) ۲۰۲۶ تا ۲۰۵۰"},
        "sc_2": {"name": "سناریوی گرم و خشک (اس‌اس‌پی ۵-۸.۵) ۲۰۲۶ تا ۲۰۵۰"},
    },
    "models": {
        "m_1": {"name": "ایکس‌جی‌بی نسخه ۲", "metricsBadge": "RMSE ۱٫۸"},
        "m_2": {"name": "جنگل تصادفی نسخه ۱", "metricsBadge": "RMSE ۲٫۲"},
        "m_3": {"name": "ال‌اس‌تی‌ام نسخه ۰"},
    },
    "reports": {
        "rp_1": {"title": "گزارش مدیریتی ماهانه (دمو)"},
        "rp_2": {"title": "گزارش فنی مدل (دمو)"},
        "rp_3": {"title": "گزارش عملیات پایش (دمو)"},
        "rp_4": {"title": "خلاصه هفتگی مدیریتی (دمو)"},
        "rp_5": {"title": "ضمیمه فنی پیش‌بینی (دمو)"},
    },
}


DEMO_CONTENT_MIGRATION = MigrationRunner(
    version=CURRENT_SEED_VERSION,
    patches=DEMO_CONTENT_PATCHES,
    fixups=(default_org_logo, force_persian_ui),
)
