"""Onboarding Pydantic schemas: the seven profile sections and the finalized profile.

Wire format is camelCase (``firstName``), matching the wizard's form data;
snake_case names are accepted too.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class SectionModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonalInfo(SectionModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    date_of_birth: date
    phone_number: str | None = None
    zip_code: str | None = None
    school: str = Field(..., min_length=1)
    graduation_year: int = Field(..., ge=2024, le=2035)
    jersey_number: str | None = None
    coach_name: str | None = None


class FootballInfo(SectionModel):
    years_played: int = Field(..., ge=0)
    position: str = Field(..., min_length=1)
    secondary_positions: list[str] | None = None
    team_level: str = Field(..., min_length=1)
    captain_leadership_roles: str | None = None


class AthleticMetrics(SectionModel):
    height: str = Field(..., min_length=1)
    weight: int = Field(..., ge=50)
    projected_height: str | None = None
    forty_yard: float | None = Field(default=None, gt=0)
    ten_yard_split: float | None = Field(default=None, gt=0)
    shuttle: float | None = Field(default=None, gt=0)
    three_cone: float | None = Field(default=None, gt=0)
    vertical_jump: float | None = Field(default=None, gt=0)
    broad_jump: float | None = Field(default=None, gt=0)
    bench_press: int | None = Field(default=None, gt=0)
    bench_press_reps: int | None = Field(default=None, gt=0)
    squat_max: int | None = Field(default=None, gt=0)
    power_clean: int | None = Field(default=None, gt=0)
    deadlift: int | None = Field(default=None, gt=0)
    pull_ups: int | None = Field(default=None, ge=0)


class AcademicProfile(SectionModel):
    gpa: float | None = Field(default=None, ge=0, le=4)
    weighted_gpa: float | None = Field(default=None, ge=0, le=5)
    sat_score: int | None = Field(default=None, ge=400, le=1600)
    act_score: int | None = Field(default=None, ge=1, le=36)
    ncaa_eligibility: bool | None = None
    core_gpa: float | None = Field(default=None, ge=0, le=4)
    ap_honors_classes: str | None = None
    volunteer_work: str | None = None
    intended_majors: str | None = None


class StrengthConditioning(SectionModel):
    years_training: int | None = Field(default=None, ge=0)
    days_per_week: int | None = Field(default=None, ge=0, le=7)
    training_focus: list[str] | None = None
    areas_to_improve: list[str] | None = None
    gym_access: str | None = None
    sleep_hours: int | None = Field(default=None, ge=0, le=24)
    recovery_methods: list[str] | None = None
    injuries_surgeries: str | None = None


class Nutrition(SectionModel):
    diet_type: str | None = None
    current_weight: int | None = Field(default=None, gt=0)
    current_calories: int | None = Field(default=None, gt=0)
    meal_frequency: int | None = Field(default=None, ge=1, le=10)
    water_intake: int | None = Field(default=None, gt=0)
    dietary_restrictions: str | None = None
    supplements_used: str | None = None
    food_allergies: str | None = None
    breakfast_routine: str | None = None
    cooking_access: list[str] | None = None


class RecruitingGoals(SectionModel):
    desired_division: str | None = None
    schools_of_interest: list[str] | None = None
    has_highlight_film: bool = False
    attended_camps: bool = False
    football_season_start: date | None = None
    football_season_end: date | None = None
    preferred_training_days: list[str] | None = None

    @model_validator(mode="after")
    def season_end_after_start(self) -> "RecruitingGoals":
        if self.football_season_start and self.football_season_end:
            if self.football_season_end < self.football_season_start:
                raise ValueError("Football season cannot end before it starts")
        return self


class OnboardingData(SectionModel):
    """The complete profile submitted when onboarding is finalized."""

    personal_info: PersonalInfo
    football_info: FootballInfo
    athletic_metrics: AthleticMetrics
    academic_profile: AcademicProfile
    strength_conditioning: StrengthConditioning
    nutrition: Nutrition
    recruiting_goals: RecruitingGoals


class AthleteResponse(BaseModel):
    """Response for an athlete record."""

    id: int
    first_name: str | None
    last_name: str | None
    school: str | None
    graduation_year: int | None
    position: str | None
    onboarding_completed: bool
    onboarding_completed_at: datetime | None
    profile: dict | None


class OnboardingStatusResponse(BaseModel):
    """Whether the athlete finished onboarding, and whether a draft is saved."""

    onboarding_completed: bool
    has_saved_progress: bool
