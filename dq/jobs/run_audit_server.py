"""HTTP entrypoint for audits, health reports and queued fix runs (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from dq.core.config import get_settings
from dq.core.db import LocationStore, init_pool
from dq.core.errors import ConfigError
from dq.core.models import AuditOptions, IssueType, Severity
from dq.core.overrides import load_overrides
from dq.fixers.base import FixerContext
from dq.jobs.pipeline import build_report, collect_issues, run_audit, run_fixes
from dq.jobs.run_audit import make_places_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
_executor = ThreadPoolExecutor(max_workers=4)


@app.get("/")
def root() -> Any:
    return jsonify({"service": "location-dq", "endpoints": ["/audit", "/report", "/fix", "/healthz"]}), 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Readiness of the overrides file; never touches the database.

    Answers 503 when the overrides file is malformed.
    """
    settings = get_settings()
    body: Dict[str, Any] = {
        "status": "ok",
        "overrides_path": settings.overrides_path,
        "places_enabled": bool(settings.google_api_key),
        "revision": os.getenv("K_REVISION", "unknown"),
    }
    try:
        overrides = load_overrides(settings.overrides_path)
    except ConfigError as exc:
        logger.error("Overrides file %s failed to load: %s", settings.overrides_path, exc)
        body.update(status="degraded", overrides_error=str(exc))
        return jsonify(body), 503

    body["overrides_version"] = overrides.version
    body["skipped_locations"] = len(overrides.skip)
    return jsonify(body), 200


def _options_from(source: Dict[str, Any]) -> AuditOptions:
    """Build audit options from query args or a JSON body; raises ``ValueError``."""
    rules = source.get("rules")
    if isinstance(rules, str):
        rules = [part.strip() for part in rules.split(",") if part.strip()]

    severity_raw = source.get("severity")
    severity = Severity(str(severity_raw).lower()) if severity_raw else None

    limit_raw = source.get("limit")
    limit: Optional[int] = None
    if limit_raw is not None:
        limit = int(limit_raw)
        if limit <= 0:
            raise ValueError("limit must be positive")

    return AuditOptions(
        rules=rules or None,
        severity=severity,
        limit=limit,
        city=source.get("city") or None,
        region=source.get("region") or None,
        category=source.get("category") or None,
    )


@app.get("/audit")
def audit() -> Any:
    try:
        options = _options_from(request.args)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    settings = get_settings()
    init_pool()
    issues = run_audit(
        LocationStore(),
        load_overrides(settings.overrides_path),
        options,
        max_workers=settings.rule_workers,
    )
    return jsonify({"data": [issue.to_dict() for issue in issues], "count": len(issues)}), 200


@app.get("/report")
def report() -> Any:
    try:
        options = _options_from(request.args)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    settings = get_settings()
    init_pool()
    health = build_report(
        LocationStore(),
        load_overrides(settings.overrides_path),
        options,
        max_workers=settings.rule_workers,
    )
    return jsonify({"data": health.to_dict()}), 200


@app.post("/fix")
def enqueue_fix() -> Any:
    """
    Queue a fix run.
    Optional JSON fields: types (list of issue types), limit (int), apply (bool),
    plus the audit filters (rules, severity, city, region, category).
    Runs as a dry run unless ``apply`` is true.
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        options = _options_from(payload)
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400

    types_raw = payload.get("types") or []
    if isinstance(types_raw, str):
        types_raw = [types_raw]
    try:
        types = [IssueType(str(name).upper()) for name in types_raw]
    except ValueError:
        return jsonify({"error": "unknown issue type"}), 400

    limit, options.limit = options.limit, None
    job_args = dict(
        options=options,
        types=types or None,
        limit=limit,
        dry_run=not bool(payload.get("apply", False)),
    )

    logger.info("Queueing fix run: %s", job_args)
    _executor.submit(_run_job_safe, job_args)

    return jsonify({"data": {"status": "queued", "dry_run": job_args["dry_run"]}}), 202


def run_fix_job(
    *,
    options: AuditOptions,
    types: Optional[list],
    limit: Optional[int],
    dry_run: bool,
) -> None:
    settings = get_settings()
    init_pool()
    store = LocationStore()
    overrides = load_overrides(settings.overrides_path)

    _, issues = collect_issues(store, overrides, options, max_workers=settings.rule_workers)
    ctx = FixerContext(store=store, overrides=overrides, dry_run=dry_run, places=make_places_client())
    run_fixes(issues, ctx, types=types, limit=limit, max_workers=settings.fix_workers)


def _run_job_safe(job_args: Dict[str, Any]) -> None:
    try:
        run_fix_job(**job_args)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Fix job failed: %s", exc)


def main() -> None:
    port = get_settings().server_port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
