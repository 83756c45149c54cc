"""Key-value persistence for computed rates.

Two stores share one tiny interface (``get``/``set``/``delete``/``keys``,
values are JSON strings):

- ``SessionStore`` keeps values in ``st.session_state`` for the browser session.
- ``JsonFileStore`` keeps them in one JSON object on disk so they survive a
  refresh (path from ``CREWRATE_STORE_PATH``).

``RateRepository`` writes the latest recommended rate per service type and per
crew, and answers "what rate should an estimate use" for other pages.
Persistence is best-effort: failures are logged and reported as ``False`` /
``None``, never raised into the page.
"""
from __future__ import annotations

import json
import logging
import math
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, MutableMapping, Optional

from . import settings as cfg
from .model import Crew, RateResult

logger = logging.getLogger(__name__)

RATE_KEY_PREFIX = "rate-state"
STORE_ERRORS = (OSError, TypeError, ValueError)


# -------------------------
# Stores
# -------------------------
class SessionStore:
    """String values kept in a mutable mapping (``st.session_state`` by default)."""

    def __init__(self, mapping: MutableMapping[str, Any] | None = None, namespace: str = "kv"):
        if mapping is None:
            import streamlit as st
            mapping = st.session_state
        self._mapping = mapping
        self._ns = namespace

    def _bucket(self) -> Dict[str, str]:
        if self._ns not in self._mapping:
            self._mapping[self._ns] = {}
        return self._mapping[self._ns]

    def get(self, key: str) -> Optional[str]:
        return self._bucket().get(key)

    def set(self, key: str, value: str) -> None:
        self._bucket()[key] = value

    def delete(self, key: str) -> None:
        self._bucket().pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._bucket().keys()))


class JsonFileStore:
    """String values kept in a single JSON object file, rewritten atomically."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.isfile(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=folder, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def _read_for_write(self) -> Dict[str, str]:
        try:
            return self._read()
        except ValueError:
            # unreadable file is replaced by the next write
            logger.warning("discarding unreadable store %s", self.path, exc_info=True)
            return {}

    def set(self, key: str, value: str) -> None:
        data = self._read_for_write()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read_for_write()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> Iterator[str]:
        return iter(list(self._read().keys()))


def default_store(session: MutableMapping[str, Any] | None = None):
    """File store when a path is configured, otherwise the session store."""
    path = cfg.store_path()
    if path:
        return JsonFileStore(path)
    return SessionStore(session)


def read_json(store, key: str) -> Any:
    """Parsed value for ``key``; None when absent, unreadable or not JSON."""
    try:
        raw = store.get(key)
    except STORE_ERRORS:
        logger.warning("could not read %s", key, exc_info=True)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("ignoring malformed JSON under %s", key)
        return None


def write_json(store, key: str, value: Any) -> bool:
    try:
        store.set(key, json.dumps(value))
    except STORE_ERRORS:
        logger.warning("could not save %s", key, exc_info=True)
        return False
    return True


# -------------------------
# Rate records
# -------------------------
def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", str(name).strip().lower()).strip("-")
    return slug or "crew"


def rate_key(service_type: str, crew_name: str | None = None) -> str:
    key = f"{RATE_KEY_PREFIX}:{service_type}"
    if crew_name:
        key += f":crew:{slugify(crew_name)}"
    return key


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SavedRate:
    rate_name: str
    recommended_rate: float
    service_type: str
    wastage_percent: float
    desired_margin: float
    commission_enabled: bool
    daily_work_hours: float
    daily_billable_hours: float
    last_updated: str
    crew_id: Optional[str] = None
    crew_name: Optional[str] = None

    @property
    def label(self) -> str:
        who = f" – {self.crew_name}" if self.crew_name else ""
        return f"{self.rate_name}{who} (${self.recommended_rate:,.2f}/hr)"

    def to_record(self) -> Dict[str, Any]:
        rec = {
            "rateName": self.rate_name,
            "recommendedRate": self.recommended_rate,
            "serviceType": self.service_type,
            "wastagePercent": self.wastage_percent,
            "desiredMargin": self.desired_margin,
            "commissionEnabled": self.commission_enabled,
            "dailyWorkHours": self.daily_work_hours,
            "dailyBillableHours": self.daily_billable_hours,
            "lastUpdated": self.last_updated,
        }
        if self.crew_name is not None:
            rec["crewId"] = self.crew_id
            rec["crewName"] = self.crew_name
        return rec

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "SavedRate":
        rate = float(rec["recommendedRate"])
        if not math.isfinite(rate):
            raise ValueError("recommendedRate is not finite")
        return cls(
            rate_name=str(rec["rateName"]),
            recommended_rate=rate,
            service_type=str(rec["serviceType"]),
            wastage_percent=float(rec["wastagePercent"]),
            desired_margin=float(rec["desiredMargin"]),
            commission_enabled=bool(rec["commissionEnabled"]),
            daily_work_hours=float(rec["dailyWorkHours"]),
            daily_billable_hours=float(rec["dailyBillableHours"]),
            last_updated=str(rec["lastUpdated"]),
            crew_id=rec.get("crewId"),
            crew_name=rec.get("crewName"),
        )


class RateRepository:
    """Latest recommended rate per service type and per crew (last write wins)."""

    def __init__(self, store):
        self.store = store

    def save(
        self,
        service_type: str,
        result: RateResult,
        *,
        rate_name: str,
        wastage_percent: float,
        desired_margin: float,
        commission_enabled: bool,
        daily_work_hours: float,
        daily_billable_hours: float,
        crew: Crew | None = None,
    ) -> bool:
        if not result.valid or not math.isfinite(result.recommended_rate):
            logger.info("not saving %s: rate is not computable", rate_key(service_type))
            return False

        saved = SavedRate(
            rate_name=rate_name,
            recommended_rate=result.recommended_rate,
            service_type=service_type,
            wastage_percent=wastage_percent,
            desired_margin=desired_margin,
            commission_enabled=commission_enabled,
            daily_work_hours=daily_work_hours,
            daily_billable_hours=daily_billable_hours,
            last_updated=now_iso(),
            crew_id=crew.id if crew else None,
            crew_name=crew.name if crew else None,
        )
        key = rate_key(service_type, crew.name if crew else None)
        return write_json(self.store, key, saved.to_record())

    def load(self, service_type: str, crew_name: str | None = None) -> Optional[SavedRate]:
        key = rate_key(service_type, crew_name)
        rec = read_json(self.store, key)
        if rec is None:
            return None
        try:
            return SavedRate.from_record(rec)
        except (KeyError, TypeError, ValueError):
            logger.warning("ignoring malformed rate record under %s", key)
            return None

    def list_rates(self) -> List[SavedRate]:
        try:
            keys = [k for k in self.store.keys() if k.startswith(RATE_KEY_PREFIX + ":")]
        except STORE_ERRORS:
            logger.warning("could not list saved rates", exc_info=True)
            return []
        out = []
        for key in sorted(keys):
            rec = read_json(self.store, key)
            if rec is None:
                continue
            try:
                out.append(SavedRate.from_record(rec))
            except (KeyError, TypeError, ValueError):
                logger.warning("ignoring malformed rate record under %s", key)
        return out

    def rate_for(
        self,
        service_type: str,
        crew_name: str | None = None,
        default: float = cfg.DEFAULT_HOURLY_RATE,
    ) -> float:
        """Crew rate, else the service rate, else ``default``."""
        if crew_name:
            saved = self.load(service_type, crew_name)
            if saved is not None:
                return saved.recommended_rate
        saved = self.load(service_type)
        return saved.recommended_rate if saved is not None else default

