"""roster_qa Web App: stateless FastAPI backend.

Endpoints:
  GET  /health
  POST /api/datasets                  → upload CSV/XLSX, parse + validate
  POST /api/validate                  → validate rows of one category
  POST /api/modify                    → apply filter/action instructions
  POST /api/issues/merge              → merge externally identified issues
  POST /api/issues/apply-correction   → apply one issue's suggested correction
  POST /api/rules/order               → resolved execution order of rules
  POST /api/rules/natural-language    → wrap an AI translation as a rule
  POST /api/rules/export              → rules.json download
  POST /api/rules/import              → upload rules.json

The server keeps no dataset or rule state; every request carries what it needs.

Run with:
  uvicorn roster_qa.web.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from roster_qa import __version__
from roster_qa.core.dataset import load_dataset
from roster_qa.core.instructions import parse_external_issues, parse_issue
from roster_qa.core.issues import merge_issues, summarize_issues
from roster_qa.core.models import Category, Row, StructuralError, ValidationIssue
from roster_qa.core.modify import apply_correction, modify_rows
from roster_qa.core.precedence import ordered_rule_summary, rule_details
from roster_qa.core.profile import load_profile
from roster_qa.core.rule_set import RuleSet, export_rules, import_rules, wrap_natural_language
from roster_qa.core.validator import validate_rows
from roster_qa.core.values import is_number

# ---------------------------------------------------------------------------
# Configuration via environment variables
# ---------------------------------------------------------------------------

_ENV = os.environ.get("ROSTER_QA_ENV", "dev")

_MAX_ROWS = int(os.environ.get("ROSTER_QA_MAX_ROWS", "50000"))

# "*" = every origin, otherwise a comma-separated list
_CORS_ORIGINS_RAW = os.environ.get("ROSTER_QA_CORS_ORIGINS", "*")
_CORS_ORIGINS: list[str] = (
    ["*"]
    if _CORS_ORIGINS_RAW in ("*", "")
    else [o.strip() for o in _CORS_ORIGINS_RAW.split(",") if o.strip()]
)
# allow_credentials is incompatible with allow_origins=["*"]
_CORS_ALLOW_CREDENTIALS = "*" not in _CORS_ORIGINS

_PROFILE_PATH = os.environ.get("ROSTER_QA_PROFILE") or None
_PROFILE: dict = load_profile(_PROFILE_PATH)

_ALLOWED_EXTENSIONS = {".csv", ".tsv", ".txt", ".xlsx", ".xlsm"}
_MAX_UPLOAD_BYTES = 20 * 1024 * 1024
_MAX_RULES_BYTES = 1 * 1024 * 1024

_logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="roster_qa API",
    description="Validation, bulk modification and rule ordering for client/worker/task rosters",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_CORS_ORIGINS,
    allow_credentials=_CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def _log_startup() -> None:
    _logger.info(
        "roster_qa started: env=%s max_rows=%d cors=%s profile=%s",
        _ENV,
        _MAX_ROWS,
        _CORS_ORIGINS_RAW,
        _PROFILE_PATH or "default",
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# Datasets and validation
# ---------------------------------------------------------------------------


@app.post("/api/datasets")
async def upload_dataset(file: UploadFile = File(...), category: str = Form(...)):
    """Parse an uploaded CSV/XLSX file and validate it as *category*."""
    cat = _category(category)
    suffix = Path(file.filename or "").suffix.lower()
    if suffix not in _ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=415, detail=f"Unsupported file type: {suffix or 'none'}")

    content = await file.read()
    if len(content) > _MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="The file exceeds the maximum upload size (20 MB).")

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / f"upload{suffix}"
        path.write_bytes(content)
        try:
            rows, meta = load_dataset(path)
        except Exception as exc:
            _logger.exception("Could not parse %s", file.filename)
            raise HTTPException(status_code=422, detail=f"Failed to parse file: {exc}")

    _check_size(rows)
    issues = validate_rows(rows, cat, _PROFILE)
    return {
        "category": cat.value,
        "headers": meta.column_order,
        "data": rows,
        "meta": meta.to_dict(),
        **_issues_payload(issues),
    }


@app.post("/api/validate")
async def validate(request: Request):
    body = await _body(request)
    cat = _category(_field(body, "category"))
    rows = _rows(body)
    return _issues_payload(validate_rows(rows, cat, _PROFILE))


@app.post("/api/modify")
async def modify(request: Request):
    """Apply structured modification instructions to the supplied rows.

    Body: ``{"data": [...], "instructions": {...}, "category"?: "..."}``.
    The instructions are validated before any row is touched.
    """
    body = await _body(request)
    rows = _rows(body)
    payload = _field(body, "instructions")
    category = _category(body["category"]) if body.get("category") is not None else None
    try:
        instructions, result = modify_rows(rows, payload, category, _PROFILE)
    except StructuralError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {
        **result.to_dict(),
        "instructions": instructions.to_dict(),
        "summary": summarize_issues(result.issues).to_dict(),
    }


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------


@app.post("/api/issues/merge")
async def merge(request: Request):
    """Merge externally identified issues into an existing issue list.

    Body: ``{"errors": [...existing...], "issues": [...external...]}``.
    """
    body = await _body(request)
    try:
        existing = parse_external_issues(body.get("errors", []), "errors")
        external = parse_external_issues(_field(body, "issues"), "issues")
    except StructuralError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _issues_payload(merge_issues(existing, external))


@app.post("/api/issues/apply-correction")
async def correct(request: Request):
    body = await _body(request)
    cat = _category(_field(body, "category"))
    rows = _rows(body)
    try:
        issue = parse_issue(_field(body, "issue"))
        result = apply_correction(rows, issue, cat, _PROFILE)
    except StructuralError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {**result.to_dict(), "summary": summarize_issues(result.issues).to_dict()}


# ---------------------------------------------------------------------------
# Business rules
# ---------------------------------------------------------------------------


@app.post("/api/rules/order")
async def rules_order(request: Request):
    """Return the enabled rules in execution order plus the rendered summary."""
    rule_set = _rule_set(await _body(request))
    ordered = rule_set.resolved_order()
    return {
        "order": [rule.id for rule in ordered],
        "rules": [rule.to_dict() for rule in ordered],
        "details": [rule_details(rule) for rule in ordered],
        "summary": ordered_rule_summary(rule_set),
    }


@app.post("/api/rules/natural-language")
async def rules_natural_language(request: Request):
    """Wrap an AI-translated rule suggestion as a natural-language rule.

    Body: ``{"prompt": "...", "suggestedRule": {...} | null, "aiConfidence"?: 0.8}``.
    """
    body = await _body(request)
    prompt = _field(body, "prompt")
    if not isinstance(prompt, str) or not prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required.")
    confidence = body.get("aiConfidence")
    if confidence is not None and not is_number(confidence):
        raise HTTPException(status_code=422, detail="aiConfidence: expected a number between 0 and 1")
    try:
        rule = wrap_natural_language(prompt, body.get("suggestedRule"), confidence)
    except StructuralError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {"rule": rule.to_dict(), "details": rule_details(rule)}


@app.post("/api/rules/export")
async def rules_export(request: Request):
    """Download the posted rules (override included) as ``rules.json``."""
    rule_set = _rule_set(await _body(request))
    return Response(
        content=export_rules(rule_set).encode("utf-8"),
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="rules.json"'},
    )


@app.post("/api/rules/import")
async def rules_import(file: UploadFile = File(...)):
    content = await file.read()
    if len(content) > _MAX_RULES_BYTES:
        raise HTTPException(status_code=413, detail="The rules file exceeds the maximum size (1 MB).")
    try:
        rule_set = import_rules(content)
    except StructuralError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return {
        "rules": rule_set.to_list(),
        "visibleRules": [rule.id for rule in rule_set.visible_rules()],
        "order": [rule.id for rule in rule_set.resolved_order()],
    }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON.")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object.")
    return body


def _field(body: dict, key: str) -> Any:
    if key not in body or body[key] is None:
        raise HTTPException(status_code=400, detail=f"Missing required field '{key}'.")
    return body[key]


def _category(value: Any) -> Category:
    try:
        return Category(value)
    except ValueError:
        choices = ", ".join(c.value for c in Category)
        raise HTTPException(status_code=422, detail=f"category: {value!r} is not one of {choices}")


def _rows(body: dict) -> list[Row]:
    rows = _field(body, "data")
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise HTTPException(status_code=422, detail="data: expected an array of objects")
    _check_size(rows)
    return rows


def _check_size(rows: list[Row]) -> None:
    if len(rows) > _MAX_ROWS:
        raise HTTPException(
            status_code=413,
            detail=f"Dataset has {len(rows)} rows; the limit is {_MAX_ROWS}.",
        )


def _rule_set(body: dict) -> RuleSet:
    try:
        return RuleSet.from_list(_field(body, "rules"))
    except StructuralError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _issues_payload(issues: list[ValidationIssue]) -> dict:
    return {
        "errors": [issue.to_dict() for issue in issues],
        "summary": summarize_issues(issues).to_dict(),
    }
