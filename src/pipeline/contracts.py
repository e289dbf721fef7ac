# src/pipeline/contracts.py — v2
"""Typed input/output contracts for every analysis phase.

Each phase's output model is the next phase's input. All bounded scores
are enforced here, so a model instance is always in range:

  confidence / probability / completeness   [0, 1]
  impact / effort / risk scores             [0, 10]
  CSAT                                      [1, 5]
  percentage                                [0, 100]

Hypothesis identifiers must resolve: every reference from the priority
matrix, the investigation plan or another hypothesis must name a
hypothesis in the same output.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_validator

from signalcx.core.models import ImpactLevel, Ticket

Confidence = Annotated[float, Field(ge=0.0, le=1.0)]
Score10 = Annotated[float, Field(ge=0.0, le=10.0)]
Csat = Annotated[float, Field(ge=1.0, le=5.0)]
Percentage = Annotated[float, Field(ge=0.0, le=100.0)]
NonNegative = Annotated[float, Field(ge=0.0)]

HypothesisType = Literal["performance", "quality", "process", "resource", "risk", "opportunity"]
SupportLevel = Literal["weak", "moderate", "strong", "very_strong"]
EffortLevel = Literal["low", "medium", "high"]


# === DISCOVERY ===


class DiscoveryInput(BaseModel):
    """Tickets to explore plus sampling parameters."""

    tickets: list[Ticket] = Field(default_factory=list)
    sample_size: int | None = Field(default=None, ge=1)
    total_ticket_count: int = Field(default=0, ge=0)

    def entity_ids(self) -> list[int]:
        return [t.id for t in self.tickets]

    def cache_mode(self) -> str:
        return f"sample={self.sample_size or 'auto'}"


class DataQuality(BaseModel):
    completeness: Confidence
    consistency: Confidence
    issues: list[str]


class DistributionBucket(BaseModel):
    value: str
    count: int = Field(ge=0)
    percentage: Percentage


class DataDistribution(BaseModel):
    dimension: str
    distribution: list[DistributionBucket] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)


class PatternInsight(BaseModel):
    pattern: str
    confidence: Confidence
    evidence: list[str] = Field(default_factory=list)
    impact: ImpactLevel
    ticket_ids: list[int] = Field(default_factory=list)


class KeyMetrics(BaseModel):
    total_tickets: int = Field(ge=0)
    avg_resolution_time: NonNegative | None = None
    sla_breach_rate: NonNegative
    avg_csat_score: Csat | None = None
    top_categories: list[str]
    top_agents: list[str]


class Anomaly(BaseModel):
    type: str
    description: str
    severity: ImpactLevel
    affected_tickets: list[int] = Field(default_factory=list)


class DiscoveryOutput(BaseModel):
    """Result of exploratory analysis over a ticket sample.

    Every field is required; a reply missing one is a contract violation.
    """

    data_quality: DataQuality
    distributions: list[DataDistribution]
    patterns: list[PatternInsight]
    key_metrics: KeyMetrics
    anomalies: list[Anomaly]
    recommendations: list[str]
    confidence_score: Confidence

    @classmethod
    def empty(cls) -> DiscoveryOutput:
        """Explicit result for a dataset with no tickets."""
        return cls(
            data_quality=DataQuality(completeness=0.0, consistency=0.0, issues=[]),
            distributions=[],
            patterns=[],
            key_metrics=KeyMetrics(
                total_tickets=0, sla_breach_rate=0.0, top_categories=[], top_agents=[]
            ),
            anomalies=[],
            recommendations=[],
            confidence_score=0.0,
        )

    @property
    def analyzed_ticket_count(self) -> int:
        return self.key_metrics.total_tickets


# === HYPOTHESIS ===


class BusinessContext(BaseModel):
    priorities: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)


class HypothesisInput(BaseModel):
    discovery_results: DiscoveryOutput
    business_context: BusinessContext | None = None
    # Tickets the pipeline actually received; None when unknown.
    ticket_count: int | None = Field(default=None, ge=0)


class HypothesisTestStrategy(BaseModel):
    approach: str
    data_required: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)
    metrics: list[str] = Field(default_factory=list)


class Hypothesis(BaseModel):
    id: str = Field(min_length=1)
    title: str
    description: str = ""
    type: HypothesisType
    priority: ImpactLevel
    confidence: Confidence
    evidence: list[str] = Field(default_factory=list)
    test_strategy: HypothesisTestStrategy
    expected_outcome: str = ""
    business_impact: str = ""
    related_patterns: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


class PriorityEntry(BaseModel):
    hypothesis_id: str
    impact_score: Score10
    effort_score: Score10
    risk_score: Score10
    recommended_order: int = Field(ge=1)


class InvestigationPhase(BaseModel):
    phase: int = Field(ge=1)
    hypotheses: list[str] = Field(default_factory=list)
    parallelizable: bool = False
    estimated_time: str = ""


class PlanDependency(BaseModel):
    hypothesis: str
    depends_on: list[str] = Field(default_factory=list)


class InvestigationPlan(BaseModel):
    phases: list[InvestigationPhase]
    dependencies: list[PlanDependency]

    def referenced_ids(self) -> set[str]:
        """Every hypothesis id the plan mentions."""
        refs = {h for phase in self.phases for h in phase.hypotheses}
        for dep in self.dependencies:
            refs.add(dep.hypothesis)
            refs.update(dep.depends_on)
        return refs


class RiskItem(BaseModel):
    risk: str
    impact: ImpactLevel
    mitigation: str = ""


class HypothesisOutput(BaseModel):
    """Testable hypotheses with priorities and an investigation plan."""

    hypotheses: list[Hypothesis]
    priority_matrix: list[PriorityEntry]
    investigation_plan: InvestigationPlan
    risk_assessment: list[RiskItem]
    success_criteria: list[str]
    confidence_score: Confidence

    @classmethod
    def empty(cls) -> HypothesisOutput:
        return cls(
            hypotheses=[],
            priority_matrix=[],
            investigation_plan=InvestigationPlan(phases=[], dependencies=[]),
            risk_assessment=[],
            success_criteria=[],
            confidence_score=0.0,
        )

    def hypothesis_ids(self) -> list[str]:
        return [h.id for h in self.hypotheses]

    def integrity_errors(self) -> list[str]:
        """Unresolvable or duplicate hypothesis references."""
        ids = self.hypothesis_ids()
        known = set(ids)
        errors: list[str] = []
        if len(known) != len(ids):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            errors.append(f"duplicate hypothesis ids: {dupes}")
        for h in self.hypotheses:
            missing = sorted(set(h.dependencies) - known)
            if missing:
                errors.append(f"hypothesis '{h.id}' depends on unknown {missing}")
        unknown_matrix = sorted({p.hypothesis_id for p in self.priority_matrix} - known)
        if unknown_matrix:
            errors.append(f"priority_matrix references unknown {unknown_matrix}")
        unknown_plan = sorted(self.investigation_plan.referenced_ids() - known)
        if unknown_plan:
            errors.append(f"investigation_plan references unknown {unknown_plan}")
        return errors

    @model_validator(mode="after")
    def check_references(self) -> HypothesisOutput:
        errors = self.integrity_errors()
        if errors:
            raise ValueError("; ".join(errors))
        return self


# === TARGETED ANALYSIS ===


class TicketSummary(BaseModel):
    total_tickets: int = Field(default=0, ge=0)
    categories: list[str] = Field(default_factory=list)
    time_range: str = "unknown"
    key_metrics: dict[str, Any] = Field(default_factory=dict)


class SampleTicket(BaseModel):
    """Structured, free-text-free projection of a ticket."""

    id: int
    category: str
    priority: str | None = None
    status: str
    created_at: str
    tags: list[str] = Field(default_factory=list)
    sla_breached: bool = False
    csat_score: Csat | None = None


class TicketData(BaseModel):
    summary: TicketSummary = Field(default_factory=TicketSummary)
    sample_data: list[SampleTicket] = Field(default_factory=list)


class TargetedAnalysisInput(BaseModel):
    hypotheses: list[Hypothesis] = Field(default_factory=list)
    investigation_plan: InvestigationPlan = Field(
        default_factory=lambda: InvestigationPlan(phases=[], dependencies=[])
    )
    available_tools: list[str] = Field(default_factory=list)
    ticket_data: TicketData = Field(default_factory=TicketData)

    def hypothesis_ids(self) -> set[str]:
        return {h.id for h in self.hypotheses}

    @model_validator(mode="after")
    def check_plan_references(self) -> TargetedAnalysisInput:
        unknown = sorted(self.investigation_plan.referenced_ids() - self.hypothesis_ids())
        if unknown:
            raise ValueError(f"investigation_plan references unknown hypotheses {unknown}")
        return self


class Finding(BaseModel):
    finding: str
    evidence: list[str] = Field(default_factory=list)
    confidence: Confidence
    statistical_significance: Confidence | None = None


class MetricValue(BaseModel):
    metric: str
    value: float
    unit: str = ""
    comparison: str | None = None


class Validation(BaseModel):
    hypothesis_supported: bool
    support_level: SupportLevel
    alternative_explanations: list[str] = Field(default_factory=list)


class RecommendedAction(BaseModel):
    action: str
    priority: ImpactLevel
    impact: str = ""
    effort: EffortLevel


class HypothesisAnalysis(BaseModel):
    hypothesis_id: str
    test_approach: str = ""
    tools_used: list[str] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)
    metrics: list[MetricValue] = Field(default_factory=list)
    validation: Validation
    insights: list[str] = Field(default_factory=list)
    limitations: list[str] = Field(default_factory=list)
    recommended_actions: list[RecommendedAction] = Field(default_factory=list)


class CrossHypothesisInsight(BaseModel):
    insight: str
    related_hypotheses: list[str] = Field(default_factory=list)
    confidence: Confidence
    business_impact: str = ""


class DataQualityIssue(BaseModel):
    issue: str
    impact: str = ""
    mitigation: str = ""


class PriorityFinding(BaseModel):
    finding: str
    urgency: ImpactLevel
    action_required: str = ""
    timeline: str = ""


class TargetedAnalysisOutput(BaseModel):
    """Per-hypothesis test results and cross-cutting findings."""

    analysis_results: list[HypothesisAnalysis]
    cross_hypothesis_insights: list[CrossHypothesisInsight]
    methodology_notes: list[str]
    data_quality_issues: list[DataQualityIssue]
    priority_findings: list[PriorityFinding]
    confidence_score: Confidence

    @classmethod
    def empty(cls) -> TargetedAnalysisOutput:
        return cls(
            analysis_results=[],
            cross_hypothesis_insights=[],
            methodology_notes=[],
            data_quality_issues=[],
            priority_findings=[],
            confidence_score=0.0,
        )

    def referenced_ids(self) -> set[str]:
        refs = {r.hypothesis_id for r in self.analysis_results}
        for insight in self.cross_hypothesis_insights:
            refs.update(insight.related_hypotheses)
        return refs


# === PER-ENTITY ===


class EntityInput(BaseModel):
    """One entity (agent) and its recent work items."""

    entity_id: str = Field(min_length=1)
    entity_name: str = ""
    tickets: list[Ticket] = Field(default_factory=list)

    def entity_ids(self) -> list[str]:
        return [self.entity_id]

    @property
    def display_name(self) -> str:
        return self.entity_name or self.entity_id


class PerformanceForecast(BaseModel):
    """Next-week workload and satisfaction forecast for one agent."""

    agent_id: str
    agent_name: str = ""
    predicted_tickets_next_week: NonNegative
    predicted_csat_next_week: Csat
    confidence: Confidence
    risk_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @property
    def entity_id(self) -> str:
        return self.agent_id


class BurnoutIndicator(BaseModel):
    """Burnout risk assessment for one agent."""

    agent_id: str
    agent_name: str = ""
    risk_level: ImpactLevel
    indicators: list[str] = Field(default_factory=list)
    ticket_count: int = Field(ge=0)
    avg_resolution_time: NonNegative = 0.0
    last_activity: str = ""
    confidence: Confidence

    @property
    def entity_id(self) -> str:
        return self.agent_id
