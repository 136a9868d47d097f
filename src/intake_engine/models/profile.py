"""Typed profile tree — the structured record an interview fills in.

The profile has two representations:

  - ``ProfileDocument``: a typed tree of pydantic models, one per category
    and per sub-group.  Every leaf is optional; ``None`` means "not yet
    collected", which is distinct from an explicit ``False`` or ``0``.
  - the *document*: a plain nested ``dict`` addressed by dot paths such as
    ``financial_reality.equity.offered``.  This is what the merge engine
    operates on and what gets persisted.

``ProfileDocument.from_document()`` and ``ProfileDocument.to_document()``
are the only conversion points between the two.  The document is the
canonical form; the tree is a read view used for signal extraction and to
build the initial all-null record.

Leaves are typed ``Any`` because values come from an external model and
may be strings, numbers, booleans, or lists.  Unknown keys are preserved
at every level (``extra="allow"``) so a round trip never drops data.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Branch(BaseModel):
    """Base for every non-leaf node of the profile tree."""

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _drop_non_mapping_branches(cls, data: Any) -> Any:
        # A merge may overwrite a sub-group with a scalar; the typed view
        # treats such a branch as not yet collected.
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for name, info in cls.model_fields.items():
            sub = info.annotation
            if (
                name in cleaned
                and isinstance(sub, type)
                and issubclass(sub, _Branch)
                and not isinstance(cleaned[name], (dict, _Branch))
            ):
                del cleaned[name]
        return cleaned


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

class UserContext(_Branch):
    name: Any = None
    timezone: Any = None
    preferred_language: Any = None


class RoleOverview(_Branch):
    job_title: Any = None
    company_name: Any = None
    department: Any = None
    employment_type: Any = None
    location_city: Any = None
    location_state: Any = None
    location_country: Any = None
    location_type: Any = None
    reports_to: Any = None
    headcount: Any = None
    is_new_role: Any = None
    role_summary: Any = None
    visa_sponsorship: Any = None
    relocation_assistance: Any = None


class RoleContent(_Branch):
    key_responsibilities: Any = None
    required_skills: Any = None
    required_experience_years: Any = None
    certifications_required: Any = None
    languages_required: Any = None
    tech_stack: Any = None
    must_haves: Any = None
    nice_to_haves: Any = None
    ideal_candidate_description: Any = None
    typical_projects: Any = None
    first_30_60_90_days: Any = None
    key_deliverables: Any = None
    travel_percentage: Any = None
    customer_interaction_level: Any = None
    target_start_date: Any = None


# ---------------------------------------------------------------------------
# Financial reality
# ---------------------------------------------------------------------------

class BaseCompensation(_Branch):
    amount_or_range: Any = None
    pay_frequency: Any = None
    currency: Any = None


class VariableCompensation(_Branch):
    exists: Any = None
    type: Any = None
    structure: Any = None
    average_realized: Any = None
    frequency: Any = None
    guarantee_minimum: Any = None
    guarantee_details: Any = None
    tips: Any = None
    commission: Any = None


class Equity(_Branch):
    offered: Any = None
    type: Any = None
    vesting_schedule: Any = None
    cliff: Any = None


class Bonuses(_Branch):
    signing_bonus: Any = None
    retention_bonus: Any = None
    performance_bonus: Any = None
    referral_bonus: Any = None
    holiday_bonus: Any = None


class RaisesAndReviews(_Branch):
    review_frequency: Any = None
    typical_raise_percentage: Any = None
    promotion_raise_typical: Any = None


class HiddenFinancialValue(_Branch):
    meals_provided: Any = None
    meals_details: Any = None
    discounts: Any = None
    equipment_provided: Any = None
    wellness_budget: Any = None
    commuter_benefits: Any = None
    phone_stipend: Any = None
    internet_stipend: Any = None


class PaymentReliability(_Branch):
    payment_method: Any = None
    payment_timing: Any = None
    overtime_policy: Any = None
    overtime_rate: Any = None


class FinancialReality(_Branch):
    base_compensation: BaseCompensation = Field(default_factory=BaseCompensation)
    variable_compensation: VariableCompensation = Field(default_factory=VariableCompensation)
    equity: Equity = Field(default_factory=Equity)
    bonuses: Bonuses = Field(default_factory=Bonuses)
    raises_and_reviews: RaisesAndReviews = Field(default_factory=RaisesAndReviews)
    hidden_financial_value: HiddenFinancialValue = Field(default_factory=HiddenFinancialValue)
    payment_reliability: PaymentReliability = Field(default_factory=PaymentReliability)


# ---------------------------------------------------------------------------
# Time and life
# ---------------------------------------------------------------------------

class SchedulePattern(_Branch):
    type: Any = None
    typical_hours_per_week: Any = None
    days_per_week: Any = None
    shift_types: Any = None
    shift_length_typical: Any = None
    weekend_frequency: Any = None
    holiday_policy: Any = None


class SchedulePredictability(_Branch):
    advance_notice: Any = None
    shift_swapping_allowed: Any = None
    self_scheduling: Any = None
    schedule_stability: Any = None


class Flexibility(_Branch):
    remote_allowed: Any = None
    remote_frequency: Any = None
    remote_details: Any = None
    async_friendly: Any = None
    core_hours: Any = None
    location_flexibility: Any = None


class TimeOff(_Branch):
    pto_days: Any = None
    pto_structure: Any = None
    sick_days: Any = None
    sick_days_separate: Any = None
    parental_leave: Any = None
    bereavement_policy: Any = None
    mental_health_days: Any = None
    sabbatical_available: Any = None
    sabbatical_details: Any = None


class CommuteReality(_Branch):
    address: Any = None
    neighborhood_description: Any = None
    public_transit_proximity: Any = None
    parking_situation: Any = None
    bike_friendly: Any = None
    bike_storage: Any = None


class BreakReality(_Branch):
    paid_breaks: Any = None
    break_duration: Any = None
    break_flexibility: Any = None


class OvertimeReality(_Branch):
    overtime_expected: Any = None
    overtime_voluntary: Any = None
    overtime_notice: Any = None
    crunch_periods: Any = None


class TimeAndLife(_Branch):
    schedule_pattern: SchedulePattern = Field(default_factory=SchedulePattern)
    schedule_predictability: SchedulePredictability = Field(default_factory=SchedulePredictability)
    flexibility: Flexibility = Field(default_factory=Flexibility)
    time_off: TimeOff = Field(default_factory=TimeOff)
    commute_reality: CommuteReality = Field(default_factory=CommuteReality)
    break_reality: BreakReality = Field(default_factory=BreakReality)
    overtime_reality: OvertimeReality = Field(default_factory=OvertimeReality)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

class PhysicalSpace(_Branch):
    type: Any = None
    description: Any = None
    size_context: Any = None


class WorkspaceQuality(_Branch):
    dedicated_workspace: Any = None
    workspace_description: Any = None
    equipment_quality: Any = None
    natural_light: Any = None
    noise_level: Any = None
    temperature_control: Any = None


class Amenities(_Branch):
    kitchen: Any = None
    kitchen_quality: Any = None
    bathroom_quality: Any = None
    lounge_area: Any = None
    outdoor_space: Any = None
    gym: Any = None
    showers: Any = None
    nap_room: Any = None
    mother_room: Any = None


class SafetyAndComfort(_Branch):
    physical_demands: Any = None
    safety_measures: Any = None
    dress_code: Any = None
    uniform_provided: Any = None
    uniform_cost: Any = None


class Accessibility(_Branch):
    wheelchair_accessible: Any = None
    accessibility_details: Any = None
    accommodation_friendly: Any = None


class Neighborhood(_Branch):
    area_description: Any = None
    food_options_nearby: Any = None
    safety_perception: Any = None
    vibe: Any = None


class Environment(_Branch):
    physical_space: PhysicalSpace = Field(default_factory=PhysicalSpace)
    workspace_quality: WorkspaceQuality = Field(default_factory=WorkspaceQuality)
    amenities: Amenities = Field(default_factory=Amenities)
    safety_and_comfort: SafetyAndComfort = Field(default_factory=SafetyAndComfort)
    accessibility: Accessibility = Field(default_factory=Accessibility)
    neighborhood: Neighborhood = Field(default_factory=Neighborhood)


# ---------------------------------------------------------------------------
# Humans and culture
# ---------------------------------------------------------------------------

class TeamComposition(_Branch):
    team_size: Any = None
    reporting_to: Any = None
    direct_reports: Any = None
    cross_functional_interaction: Any = None


class TeamDemographics(_Branch):
    experience_distribution: Any = None
    tenure_distribution: Any = None
    age_range_vibe: Any = None
    diversity_description: Any = None


class ManagementStyle(_Branch):
    manager_description: Any = None
    management_approach: Any = None
    feedback_frequency: Any = None
    one_on_ones: Any = None
    one_on_one_frequency: Any = None


class SocialDynamics(_Branch):
    team_bonding: Any = None
    social_pressure: Any = None
    after_work_culture: Any = None
    remote_social: Any = None


class CommunicationCulture(_Branch):
    primary_channels: Any = None
    meeting_load: Any = None
    meeting_description: Any = None
    async_vs_sync: Any = None
    documentation_culture: Any = None


class ConflictAndFeedback(_Branch):
    feedback_culture: Any = None
    conflict_resolution: Any = None
    psychological_safety: Any = None


class ValuesInPractice(_Branch):
    stated_values: Any = None
    values_evidence: Any = None
    decision_making_style: Any = None


class TurnoverContext(_Branch):
    average_tenure: Any = None
    why_people_stay: Any = None
    why_people_leave: Any = None
    recent_departures_context: Any = None


class HumansAndCulture(_Branch):
    team_composition: TeamComposition = Field(default_factory=TeamComposition)
    team_demographics: TeamDemographics = Field(default_factory=TeamDemographics)
    management_style: ManagementStyle = Field(default_factory=ManagementStyle)
    social_dynamics: SocialDynamics = Field(default_factory=SocialDynamics)
    communication_culture: CommunicationCulture = Field(default_factory=CommunicationCulture)
    conflict_and_feedback: ConflictAndFeedback = Field(default_factory=ConflictAndFeedback)
    values_in_practice: ValuesInPractice = Field(default_factory=ValuesInPractice)
    turnover_context: TurnoverContext = Field(default_factory=TurnoverContext)


# ---------------------------------------------------------------------------
# Growth trajectory
# ---------------------------------------------------------------------------

class LearningOpportunities(_Branch):
    mentorship_available: Any = None
    mentorship_structure: Any = None
    learning_from_whom: Any = None
    skill_development: Any = None
    exposure_to: Any = None


class FormalDevelopment(_Branch):
    training_provided: Any = None
    training_description: Any = None
    certifications_supported: Any = None
    certifications_details: Any = None
    conferences: Any = None
    conference_budget: Any = None
    education_reimbursement: Any = None
    education_details: Any = None


class CareerPath(_Branch):
    promotion_path: Any = None
    promotion_timeline_typical: Any = None
    promotion_criteria: Any = None
    internal_mobility: Any = None


class GrowthSignals(_Branch):
    company_growth_rate: Any = None
    new_roles_being_created: Any = None
    expansion_plans: Any = None


class SkillBuilding(_Branch):
    technologies_used: Any = None
    tools_used: Any = None
    processes_learned: Any = None
    transferable_skills: Any = None


class LeadershipOpportunities(_Branch):
    lead_projects: Any = None
    manage_others: Any = None
    client_facing: Any = None
    decision_authority: Any = None


class GrowthTrajectory(_Branch):
    learning_opportunities: LearningOpportunities = Field(default_factory=LearningOpportunities)
    formal_development: FormalDevelopment = Field(default_factory=FormalDevelopment)
    career_path: CareerPath = Field(default_factory=CareerPath)
    growth_signals: GrowthSignals = Field(default_factory=GrowthSignals)
    skill_building: SkillBuilding = Field(default_factory=SkillBuilding)
    leadership_opportunities: LeadershipOpportunities = Field(default_factory=LeadershipOpportunities)


# ---------------------------------------------------------------------------
# Stability signals
# ---------------------------------------------------------------------------

class CompanyHealth(_Branch):
    company_age: Any = None
    company_stage: Any = None
    funding_status: Any = None
    revenue_trend: Any = None
    recent_layoffs: Any = None
    layoff_context: Any = None


class JobSecurity(_Branch):
    position_type: Any = None
    contract_length: Any = None
    conversion_possibility: Any = None
    probation_period: Any = None
    background_check_required: Any = None
    clearance_required: Any = None


class BenefitsSecurity(_Branch):
    health_insurance: Any = None
    health_insurance_details: Any = None
    health_insurance_start: Any = None
    dental: Any = None
    vision: Any = None
    life_insurance: Any = None
    disability: Any = None
    retirement_plan: Any = None
    retirement_match: Any = None
    retirement_vesting: Any = None


class LegalProtections(_Branch):
    employment_type: Any = None
    union: Any = None
    union_details: Any = None
    at_will: Any = None
    contract_terms: Any = None


class StabilitySignals(_Branch):
    company_health: CompanyHealth = Field(default_factory=CompanyHealth)
    job_security: JobSecurity = Field(default_factory=JobSecurity)
    benefits_security: BenefitsSecurity = Field(default_factory=BenefitsSecurity)
    legal_protections: LegalProtections = Field(default_factory=LegalProtections)


# ---------------------------------------------------------------------------
# Role reality
# ---------------------------------------------------------------------------

class DayToDay(_Branch):
    typical_day_description: Any = None
    variety_level: Any = None
    task_breakdown: Any = None


class Autonomy(_Branch):
    decision_authority: Any = None
    supervision_level: Any = None
    creativity_allowed: Any = None
    process_flexibility: Any = None


class Workload(_Branch):
    intensity: Any = None
    workload_predictability: Any = None
    staffing_level: Any = None
    support_available: Any = None


class ResourcesAndTools(_Branch):
    tools_provided: Any = None
    tools_quality: Any = None
    budget_authority: Any = None
    resource_constraints: Any = None


class SuccessMetrics(_Branch):
    how_measured: Any = None
    performance_visibility: Any = None
    feedback_loop: Any = None


class PainPointsHonesty(_Branch):
    challenges: Any = None
    frustrations_common: Any = None
    what_changed_would_help: Any = None


class ImpactVisibility(_Branch):
    who_benefits: Any = None
    impact_tangibility: Any = None
    recognition_culture: Any = None


class RoleReality(_Branch):
    day_to_day: DayToDay = Field(default_factory=DayToDay)
    autonomy: Autonomy = Field(default_factory=Autonomy)
    workload: Workload = Field(default_factory=Workload)
    resources_and_tools: ResourcesAndTools = Field(default_factory=ResourcesAndTools)
    success_metrics: SuccessMetrics = Field(default_factory=SuccessMetrics)
    pain_points_honesty: PainPointsHonesty = Field(default_factory=PainPointsHonesty)
    impact_visibility: ImpactVisibility = Field(default_factory=ImpactVisibility)


# ---------------------------------------------------------------------------
# Unique value
# ---------------------------------------------------------------------------

class ItemList(_Branch):
    list: Any = None


class StatusSignals(_Branch):
    brand_value: Any = None
    network_access: Any = None
    credential_value: Any = None


class PersonalMeaning(_Branch):
    mission_connection: Any = None
    impact_story: Any = None
    pride_factor: Any = None


class RareOfferings(_Branch):
    what_competitors_dont_have: Any = None
    what_makes_this_special: Any = None


class UniqueValue(_Branch):
    hidden_perks: ItemList = Field(default_factory=ItemList)
    convenience_factors: ItemList = Field(default_factory=ItemList)
    lifestyle_enablers: ItemList = Field(default_factory=ItemList)
    status_signals: StatusSignals = Field(default_factory=StatusSignals)
    personal_meaning: PersonalMeaning = Field(default_factory=PersonalMeaning)
    rare_offerings: RareOfferings = Field(default_factory=RareOfferings)


# ---------------------------------------------------------------------------
# Extraction metadata
# ---------------------------------------------------------------------------

class ExtractionMetadata(_Branch):
    source_text: Any = None
    extraction_confidence: Any = None
    fields_inferred: Any = None
    fields_missing: Any = None
    clarifying_questions: Any = None
    industry_detected: Any = None
    role_category_detected: Any = None
    seniority_detected: Any = None
    role_archetype: Any = None


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

class ProfileDocument(_Branch):
    """Root of the typed profile tree."""

    # Any path can be merged, so the housekeeping keys stay untyped.
    id: Any = None
    session_id: Any = None
    created_at: Any = None
    updated_at: Any = None
    company_id: Any = None

    user_context: UserContext = Field(default_factory=UserContext)
    role_overview: RoleOverview = Field(default_factory=RoleOverview)
    role_content: RoleContent = Field(default_factory=RoleContent)
    financial_reality: FinancialReality = Field(default_factory=FinancialReality)
    time_and_life: TimeAndLife = Field(default_factory=TimeAndLife)
    environment: Environment = Field(default_factory=Environment)
    humans_and_culture: HumansAndCulture = Field(default_factory=HumansAndCulture)
    growth_trajectory: GrowthTrajectory = Field(default_factory=GrowthTrajectory)
    stability_signals: StabilitySignals = Field(default_factory=StabilitySignals)
    role_reality: RoleReality = Field(default_factory=RoleReality)
    unique_value: UniqueValue = Field(default_factory=UniqueValue)
    extraction_metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    @classmethod
    def blank(
        cls,
        session_id: str,
        *,
        company_id: str | None = None,
        company_name: str | None = None,
        user_name: str | None = None,
    ) -> "ProfileDocument":
        """Build the initial record for a new session: every leaf ``None``."""
        now = datetime.now(timezone.utc).isoformat()
        return cls(
            id=str(uuid.uuid4()),
            session_id=session_id,
            created_at=now,
            updated_at=now,
            company_id=company_id,
            user_context=UserContext(name=user_name),
            role_overview=RoleOverview(company_name=company_name),
        )

    # --- Conversion boundary ---

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ProfileDocument":
        """Project a path-addressed document onto the typed tree."""
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Flatten the typed tree back to a plain nested dict."""
        return self.model_dump(mode="json")
