from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .data.repository import SQLiteRuleRepository
from .registry.registry import build_default_registry
from .rules_db import rebuild_rules_db
from .schemas import DetectProfilesRequest, NormalizeRequest, ValidationRequest
from .service import ValidationService

ROOT = Path(__file__).resolve().parents[2]

load_dotenv(ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


RULES_DB_PATH = Path(os.getenv("RULES_DB_PATH", str(ROOT / "data" / "rules.db"))).expanduser()
PSU_HEADROOM_PERCENT = _env_int("PSU_HEADROOM_PERCENT", 20)
REPOSITORY_TIMEOUT_SECONDS = _env_float("REPOSITORY_TIMEOUT_SECONDS", 2.0)
RULES_REBUILD = _env_bool("RULES_REBUILD", False)


def _bootstrap_rules_db() -> None:
    if RULES_DB_PATH.exists() and RULES_DB_PATH.is_dir():
        raise RuntimeError(f"RULES_DB_PATH points to a directory: {RULES_DB_PATH}")
    if RULES_DB_PATH.exists() and not RULES_REBUILD:
        return
    result = rebuild_rules_db(RULES_DB_PATH)
    print(
        f"[RigCheck] Rules database rebuilt: {result['rules_total']} rules, "
        f"{result['tags_total']} category tags"
    )


_bootstrap_rules_db()
registry = build_default_registry()
repository = SQLiteRuleRepository(RULES_DB_PATH)
service = ValidationService(
    repository,
    registry,
    headroom_percent=PSU_HEADROOM_PERCENT,
    repository_timeout_seconds=REPOSITORY_TIMEOUT_SECONDS,
)

app = FastAPI(title="RigCheck｜装机兼容性校验")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/api/validate")
async def validate(payload: ValidationRequest):
    result = await service.validate_configuration(payload.configuration)
    return result.model_dump(mode="json")


@app.post("/api/normalize")
def normalize_value(payload: NormalizeRequest):
    result = service.normalize_field(
        payload.raw_value, payload.profile_id, payload.field, payload.context
    )
    body = result.model_dump(mode="json")
    body["is_valid"] = result.is_valid
    return body


@app.post("/api/detect-profiles")
def detect_profiles(payload: DetectProfilesRequest):
    return [m.model_dump() for m in service.detect_profiles(payload.category_name, payload.description)]


@app.get("/api/profiles")
def list_profiles():
    return [p.model_dump(mode="json") for p in registry.profiles()]
