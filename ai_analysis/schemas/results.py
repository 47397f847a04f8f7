"""Canonical result schemas, one per result type.

Every record is frozen and fully populated: fields that the model may omit
carry an explicit documented default instead of None.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

NOT_SPECIFIED = "Not specified"


class CanonicalResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# ---------------------------------------------------------------------------
# VARK learning styles
# ---------------------------------------------------------------------------


class VarkScores(CanonicalResult):
    V: float
    A: float
    R: float
    K: float


class VarkStyleShare(CanonicalResult):
    style: str
    score: float
    percentage: int


class VarkResult(CanonicalResult):
    primary_style: str = Field(..., min_length=1)
    secondary_style: str = ""  # empty when only one modality scored
    scores: VarkScores
    all_styles: list[VarkStyleShare]
    analysis: str = Field(..., min_length=1)
    recommendations: list[str] = Field(..., min_length=2, max_length=6)
    study_tips: list[str] = Field(..., min_length=2, max_length=6)
    learning_strategies: list[str] = Field(..., min_length=2, max_length=6)
    cognitive_strengths: list[str] = Field(..., min_length=2, max_length=6)
    improvement_areas: list[str] = Field(..., min_length=2, max_length=6)
    environment_suggestions: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Tarot
# ---------------------------------------------------------------------------


class TarotCardInterpretation(CanonicalResult):
    card_name: str
    position: str = NOT_SPECIFIED
    orientation: str = "upright"  # upright | reversed
    interpretation: str = Field(..., min_length=1)
    advice: str = NOT_SPECIFIED


class DrawnCard(CanonicalResult):
    card_id: str
    name: str
    position: str
    is_reversed: bool
    meaning: str = ""
    suit: str = "Major Arcana"
    element: str = "Spirit"
    number: int = 0


class TarotResult(CanonicalResult):
    overall_interpretation: str = Field(..., min_length=1)
    card_interpretations: list[TarotCardInterpretation] = Field(..., min_length=1)
    synthesis: str = Field(..., min_length=1)
    action_guidance: list[str] = Field(..., min_length=2, max_length=6)
    timing_advice: str = NOT_SPECIFIED
    emotional_insights: str = NOT_SPECIFIED
    spiritual_guidance: str = NOT_SPECIFIED
    warning_signs: str = NOT_SPECIFIED
    opportunities: str = NOT_SPECIFIED
    # Populated from the draw itself, not the model
    drawn_cards: list[DrawnCard] = Field(default_factory=list)
    spread_type: str = "single_card"
    question_text: str = ""
    question_category: str = "general"


# ---------------------------------------------------------------------------
# PHQ-9
# ---------------------------------------------------------------------------


class Phq9ItemScore(CanonicalResult):
    question: int
    score: int = Field(..., ge=0, le=3)
    symptom: str


class LifestyleInterventions(CanonicalResult):
    sleep_hygiene: str = NOT_SPECIFIED
    physical_activity: str = NOT_SPECIFIED
    nutrition: str = NOT_SPECIFIED
    social_support: str = NOT_SPECIFIED


class Phq9Result(CanonicalResult):
    total_score: int = Field(..., ge=0, le=27)
    severity: str
    risk_level: str
    risk_level_name: str
    risk_description: str
    individual_scores: list[Phq9ItemScore] = Field(default_factory=list)
    lifestyle_interventions: LifestyleInterventions
    follow_up_advice: str = Field(..., min_length=1)
    physical_analysis: str = Field(..., min_length=1)
    psychological_analysis: str = Field(..., min_length=1)
    recommendations: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# EQ
# ---------------------------------------------------------------------------


class EqDimension(CanonicalResult):
    name: str = "Unknown Dimension"
    level: str = "Average"
    description: str = "No description available"
    strengths: list[str] = Field(default_factory=list)


class EqImprovementPlan(CanonicalResult):
    short_term: list[str] = Field(default_factory=list)
    long_term: list[str] = Field(default_factory=list)
    daily_practices: list[str] = Field(default_factory=list)


class EqResult(CanonicalResult):
    overall_level: str = Field(..., min_length=1)
    level_name: str = "Emotional Intelligence Assessment"
    overall_analysis: str = NOT_SPECIFIED
    dimensions: list[EqDimension] = Field(..., min_length=1)
    improvement_plan: EqImprovementPlan = Field(default_factory=EqImprovementPlan)
    total_score: float = 0.0
    max_score: float = 0.0
    percentage: float = 0.0


# ---------------------------------------------------------------------------
# MBTI
# ---------------------------------------------------------------------------


class WorkplacePerformance(CanonicalResult):
    leadership_style: str = NOT_SPECIFIED
    team_collaboration: str = NOT_SPECIFIED
    decision_making: str = NOT_SPECIFIED


class FamilyPerformance(CanonicalResult):
    role: str = NOT_SPECIFIED
    communication: str = NOT_SPECIFIED
    emotional_expression: str = NOT_SPECIFIED


class FriendshipPerformance(CanonicalResult):
    preferences: str = NOT_SPECIFIED
    social_pattern: str = NOT_SPECIFIED
    support_style: str = NOT_SPECIFIED


class RomancePerformance(CanonicalResult):
    dating_style: str = NOT_SPECIFIED
    emotional_needs: str = NOT_SPECIFIED
    relationship_pattern: str = NOT_SPECIFIED


class RelationshipPerformance(CanonicalResult):
    workplace: WorkplacePerformance = Field(default_factory=WorkplacePerformance)
    family: FamilyPerformance = Field(default_factory=FamilyPerformance)
    friendship: FriendshipPerformance = Field(default_factory=FriendshipPerformance)
    romance: RomancePerformance = Field(default_factory=RomancePerformance)


class MbtiResult(CanonicalResult):
    personality_type: str = Field(..., pattern=r"^[EI][SN][TF][JP](-[AT])?$")
    type_name: str
    type_description: str = NOT_SPECIFIED
    detailed_analysis: str = Field(..., min_length=1)
    dimensions: list[dict[str, Any]] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    blind_spots: list[str] = Field(default_factory=list)
    career_suggestions: list[str] = Field(default_factory=list)
    relationship_performance: RelationshipPerformance = Field(default_factory=RelationshipPerformance)
    relationship_compatibility: dict[str, Any] = Field(default_factory=dict)
    scores: dict[str, int] = Field(default_factory=dict)  # letter tallies from the answers
    answer_type: str = ""  # type implied by the answers


# ---------------------------------------------------------------------------
# Love languages
# ---------------------------------------------------------------------------


class LoveLanguageResult(CanonicalResult):
    primary_language: str = Field(..., min_length=1)
    secondary_language: str = NOT_SPECIFIED
    analysis: str | dict[str, Any]
    scores: dict[str, float] = Field(default_factory=dict)
    recommendations: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Holland (RIASEC)
# ---------------------------------------------------------------------------


class HollandTypeScore(CanonicalResult):
    type: str
    score: float
    description: str
    percentage: int


class HollandResult(CanonicalResult):
    scores: dict[str, float]
    top_types: list[str] = Field(..., min_length=3, max_length=3)
    holland_code: str = Field(..., min_length=3, max_length=3)
    primary_type: str
    secondary_type: str
    tertiary_type: str
    individual_scores: list[HollandTypeScore]
    total_questions: int


# ---------------------------------------------------------------------------
# Happiness (PERMA)
# ---------------------------------------------------------------------------


class HappinessDomain(CanonicalResult):
    name: str = "Unknown Domain"
    level: str = ""  # overall level name, stamped on every domain
    description: str = "No description available"
    current_status: str = NOT_SPECIFIED
    improvement_areas: list[str] = Field(default_factory=list)
    positive_aspects: list[str] = Field(default_factory=list)


class HappinessImprovementPlan(CanonicalResult):
    immediate: list[str] = Field(default_factory=list)
    short_term: list[str] = Field(default_factory=list)
    long_term: list[str] = Field(default_factory=list)
    daily_habits: list[str] = Field(default_factory=list)


class HappinessResult(CanonicalResult):
    overall_analysis: str = Field(..., min_length=1)
    domains: list[HappinessDomain] = Field(..., min_length=1)
    improvement_plan: HappinessImprovementPlan = Field(default_factory=HappinessImprovementPlan)
    total_score: float = 0.0
    max_score: float = 0.0
    percentage: float = 0.0
    happiness_level: str = ""
    level_name: str = ""
    level_description: str = ""


# ---------------------------------------------------------------------------
# DISC
# ---------------------------------------------------------------------------


class DiscStyleDetail(CanonicalResult):
    name: str
    score: float = 0.0
    description: str = NOT_SPECIFIED
    characteristics: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    challenges: list[str] = Field(default_factory=list)


class DiscTypeScore(CanonicalResult):
    type: str
    score: float
    description: str
    percentage: int


class DiscResult(CanonicalResult):
    primary_style: str = Field(..., pattern=r"^[DISC]$")
    secondary_style: str = ""
    analysis: str = Field(..., min_length=1)
    styles: list[DiscStyleDetail] = Field(default_factory=list)
    work_style: str = NOT_SPECIFIED
    communication_style: str = NOT_SPECIFIED
    team_role: str = NOT_SPECIFIED
    leadership_style: str = NOT_SPECIFIED
    stress_behaviors: list[str] = Field(default_factory=list)
    development_areas: list[str] = Field(default_factory=list)
    motivation_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    scores: dict[str, float] = Field(default_factory=dict)
    dominant_type: str = ""  # highest answer score; may differ from the model's primary_style
    individual_scores: list[DiscTypeScore] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Leadership
# ---------------------------------------------------------------------------


class LeadershipDimension(CanonicalResult):
    name: str = "Unknown Dimension"
    level: str = NOT_SPECIFIED
    description: str = "No description available"
    strengths: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)


class LeadershipDimensionScore(CanonicalResult):
    score: float
    max_score: float
    percentage: float


class LeadershipResult(CanonicalResult):
    leadership_level: str = Field(..., min_length=1)
    analysis: str = Field(..., min_length=1)
    leadership_dimensions: list[LeadershipDimension] = Field(..., min_length=1)
    strengths: list[str] = Field(default_factory=list)
    leadership_challenges: list[str] = Field(default_factory=list)
    development_plan: list[str] = Field(default_factory=list)
    mentoring_advice: list[str] = Field(default_factory=list)
    organizational_impact: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    overall_score: float = 0.0
    max_score: float = 0.0
    percentage: float = 0.0
    dimension_scores: dict[str, LeadershipDimensionScore] = Field(default_factory=dict)
