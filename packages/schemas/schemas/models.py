# packages/schemas/schemas/models.py
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional, Literal, Dict

# ----- Common -----
ProblemType = Literal["script", "image", "network", "render", "third-party", "other"]
Level = Literal["high", "medium", "low"]

PROBLEM_TYPES = ("script", "image", "network", "render", "third-party", "other")
LEVELS = ("high", "medium", "low")


class _Cfg(BaseModel):
    model_config = {
        "extra": "ignore",           # ignore unknown keys from the collector / LLM
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


# =========================
#  AUDIT (collector output)
# =========================
class CategoryScores(_Cfg):
    performance: int = 0
    accessibility: int = 0
    best_practices: int = Field(default=0, alias="best-practices")
    seo: int = 0


class CoreMetrics(_Cfg):
    lcp: Optional[float] = None          # ms
    fid: Optional[float] = None          # ms (max potential FID)
    cls: Optional[float] = None          # unitless
    fcp: Optional[float] = None          # ms
    tti: Optional[float] = None          # ms
    tbt: Optional[float] = None          # ms
    speed_index: Optional[float] = None  # ms


class ResourceSizes(_Cfg):
    # all KB
    js_total_size: float = 0
    css_total_size: float = 0
    image_total_size: float = 0
    third_party_size: float = 0
    total_size: float = 0


class SlowRequest(_Cfg):
    url: str
    duration: float = 0
    size: float = 0
    type: str = "unknown"


class RequestStats(_Cfg):
    total: int = 0
    third_party: int = 0
    third_party_ratio: float = 0     # percent
    slow_requests: List[SlowRequest] = []


class MainThread(_Cfg):
    script_evaluation: float = 0
    layout: float = 0
    paint: float = 0
    style: float = 0
    other: float = 0


class AuditItem(_Cfg):
    id: str = ""
    title: str = ""
    description: Optional[str] = None
    score: Optional[float] = None
    display_value: Optional[str] = None


class AuditMetrics(_Cfg):
    """Numeric page audit as produced by the (external) Lighthouse collector."""
    url: str
    score: int = 0
    scores: CategoryScores = CategoryScores()
    metrics: CoreMetrics = CoreMetrics()
    resources: ResourceSizes = ResourceSizes()
    requests: RequestStats = RequestStats()
    main_thread: MainThread = MainThread()
    audits: Dict[str, AuditItem] = {}

    def failing_audits(self, limit: int = 10) -> List[AuditItem]:
        """Audits scored below 0.9, in collector order."""
        items = [a for a in self.audits.values() if a.score is not None and a.score < 0.9]
        return items[:limit]


# =========================
#  REPORT (validated output)
# =========================
class _Frozen(_Cfg):
    model_config = {**_Cfg.model_config, "frozen": True}


class Score(_Frozen):
    performance: int = Field(default=0, ge=0, le=100)
    accessibility: int = Field(default=0, ge=0, le=100)
    best_practices: int = Field(default=0, ge=0, le=100)
    seo: int = Field(default=0, ge=0, le=100)


class Problem(_Frozen):
    type: ProblemType
    title: str = Field(min_length=1)
    severity: Level
    impact: str = Field(min_length=1)
    suggestion: str = Field(min_length=1)


class Insights(_Frozen):
    main_bottleneck: str
    root_causes: List[str] = []
    quick_wins: List[str] = []


class Suggestion(_Frozen):
    title: str
    desc: str
    category: str = "general"
    code: str = ""
    benefit: str = ""


class CodeExample(_Frozen):
    type: str = "general"
    desc: str = ""
    code: str


class MetricTrend(_Frozen):
    metric: str
    before: float
    after: float


class AICard(_Frozen):
    title: str
    impact: str
    suggestion: str
    confidence: Level = "medium"


class Visualization(_Frozen):
    metric_trends: List[MetricTrend] = []
    bottleneck_distribution: Dict[str, float] = {}
    ai_cards: List[AICard] = []


class Report(_Frozen):
    """Schema-complete optimization report handed to the renderer."""
    summary: str = Field(min_length=1)
    score: Score
    metrics: Dict[str, str] = {}
    problems: List[Problem] = []
    insights: Insights
    suggestions: List[Suggestion] = []
    code_examples: List[CodeExample] = []
    visualization: Visualization = Visualization()
    prediction: str = Field(min_length=1)


# ----- API envelopes -----
class IngestRequest(_Cfg):
    text: Optional[str] = None
    audit: AuditMetrics


class AnalyzeResponse(_Cfg):
    lighthouse: AuditMetrics
    ai_analysis: Report
