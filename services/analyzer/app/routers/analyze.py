import json
import logging
import time
from pathlib import Path

from fastapi import APIRouter

from schemas.models import AnalyzeResponse, AuditMetrics, IngestRequest, Report
from ..services.report_pipeline import analyze_audit, build_report
from ..settings import settings

router = APIRouter(prefix="/analyze", tags=["analyze"])
logger = logging.getLogger("analyzer.routes")


def _save(response: AnalyzeResponse) -> None:
    if not settings.REPORTS_DIR:
        return
    path = Path(settings.REPORTS_DIR) / f"report-{int(time.time() * 1000)}.json"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(response.model_dump(by_alias=True), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    except OSError as e:
        logger.warning("Could not save report", extra={"path": str(path), "error": str(e)})
        return
    logger.info("Report saved", extra={"path": str(path)})


@router.post("", response_model=AnalyzeResponse, response_model_by_alias=True)
def analyze(audit: AuditMetrics):
    report = analyze_audit(audit)
    resp = AnalyzeResponse(lighthouse=audit, ai_analysis=report)
    _save(resp)
    return resp


@router.post("/ingest", response_model=Report, response_model_by_alias=True)
def ingest(req: IngestRequest):
    # model output captured elsewhere; no model call here
    return build_report(req.text, req.audit)
