"""Declarative questionnaire definitions.

Questions form a tagged union keyed by ``type`` so that every widget kind has a
statically known ``config`` shape. Field names are snake_case in Python and
camelCase on the wire (``questionText``, ``dependsOn``, ``allowMultiple``...).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from .constants import DEFAULT_AUTO_ADVANCE_DELAY_MS, DEFAULT_AUTO_SAVE_INTERVAL_MS

ConditionOperator = Literal["equals", "not-equals", "contains", "greater-than", "less-than"]
Level = Literal["low", "medium", "high"]
TimeUnitName = Literal["minutes", "hours", "days", "weeks", "months"]


class _Model(BaseModel):
    """Immutable model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Condition(_Model):
    """Visibility rule: show the owning question only when this holds."""

    depends_on: str
    required_value: Any = None
    operator: ConditionOperator = "equals"


class ValidationRules(_Model):
    """Declarative checks applied when the respondent tries to advance."""

    min_length: int | None = None
    max_length: int | None = None
    min_value: float | None = Field(default=None, alias="min")
    max_value: float | None = Field(default=None, alias="max")
    pattern: str | None = None


# ---------------------------------------------------------------------------
# Widget configuration models
# ---------------------------------------------------------------------------
class ChoiceOption(_Model):
    id: str
    label: str
    description: str | None = None
    disabled: bool = False


class MultipleChoiceConfig(_Model):
    options: tuple[ChoiceOption, ...] = ()
    layout: Literal["vertical", "grid"] = "vertical"
    allow_multiple: bool = False


class YesNoConfig(_Model):
    show_unsure: bool = False
    layout: Literal["horizontal", "vertical"] = "horizontal"


class RatingConfig(_Model):
    min: int = 1
    max: int = 10
    step: int = 1
    show_labels: bool = True
    labels: dict[str, str] | None = None


class TextConfig(_Model):
    placeholder: str | None = None
    max_length: int | None = None
    show_character_count: bool = True
    rows: int = 4


class RankingItem(_Model):
    id: str
    label: str
    description: str | None = None


class RankingConfig(_Model):
    items: tuple[RankingItem, ...] = ()
    max_selections: int | None = None
    variant: Literal["drag", "buttons"] = "buttons"


class CodeApproach(_Model):
    id: str
    title: str
    code: str
    description: str | None = None
    language: str | None = None
    pros: tuple[str, ...] = ()
    cons: tuple[str, ...] = ()
    metadata: dict[str, Any] | None = None


class CodeComparisonConfig(_Model):
    approaches: tuple[CodeApproach, ...] = ()
    layout: Literal["horizontal", "vertical"] = "horizontal"
    show_metadata: bool = True
    show_pros_and_cons: bool = True


class ArchitectureOption(_Model):
    id: str
    title: str
    components: tuple[str, ...] = ()
    description: str | None = None
    image_url: str | None = None
    pros: tuple[str, ...] = ()
    cons: tuple[str, ...] = ()
    complexity: Literal["simple", "moderate", "complex"] | None = None
    scalability: Level | None = None
    cost: Level | None = None


class ArchitectureConfig(_Model):
    architectures: tuple[ArchitectureOption, ...] = ()
    layout: Literal["grid", "list"] = "grid"
    columns: Literal[2, 3, 4] = 2
    show_metadata: bool = True


class TimeEstimate(_Model):
    value: float
    unit: TimeUnitName


class TimePreset(_Model):
    label: str
    value: TimeEstimate


class TimeEstimateConfig(_Model):
    allowed_units: tuple[TimeUnitName, ...] = ("hours", "days", "weeks")
    presets: tuple[TimePreset, ...] = ()
    show_confidence: bool = False
    min: float | None = None
    max: float | None = None


class DifficultyConfig(_Model):
    variant: Literal["stars", "circles", "bars", "shapes", "custom"] = "stars"
    show_descriptions: bool = True
    show_examples: bool = False
    orientation: Literal["horizontal", "vertical"] = "horizontal"


class TechDebtScenario(_Model):
    id: str
    title: str
    description: str
    impact: Level
    urgency: Level
    effort: Level
    tradeoffs: dict[str, tuple[str, ...]] = Field(default_factory=dict)


class TechDebtConfig(_Model):
    variant: Literal["scale", "cards", "scenarios"] = "cards"
    scenario: TechDebtScenario | None = None
    show_tradeoffs: bool = True
    show_traits: bool = True


# ---------------------------------------------------------------------------
# Question variants
# ---------------------------------------------------------------------------
class BaseQuestion(_Model):
    """Fields shared by every question kind."""

    id: str
    type: str
    question_text: str = Field(
        validation_alias=AliasChoices("questionText", "question_text", "question"),
        serialization_alias="questionText",
    )
    description: str | None = None
    required: bool = False
    validation_rules: ValidationRules | None = Field(
        default=None,
        validation_alias=AliasChoices("validationRules", "validation_rules", "validation"),
        serialization_alias="validationRules",
    )
    conditions: tuple[Condition, ...] = ()


class MultipleChoiceQuestion(BaseQuestion):
    type: Literal["multiple-choice"] = "multiple-choice"
    config: MultipleChoiceConfig = Field(default_factory=MultipleChoiceConfig)


class YesNoQuestion(BaseQuestion):
    type: Literal["yes-no"] = "yes-no"
    config: YesNoConfig = Field(default_factory=YesNoConfig)


class RatingQuestion(BaseQuestion):
    type: Literal["rating"] = "rating"
    config: RatingConfig = Field(default_factory=RatingConfig)


class TextQuestion(BaseQuestion):
    type: Literal["text"] = "text"
    config: TextConfig = Field(default_factory=TextConfig)


class RankingQuestion(BaseQuestion):
    type: Literal["ranking"] = "ranking"
    config: RankingConfig = Field(default_factory=RankingConfig)


class CodeComparisonQuestion(BaseQuestion):
    type: Literal["code-comparison"] = "code-comparison"
    config: CodeComparisonConfig = Field(default_factory=CodeComparisonConfig)


class ArchitectureQuestion(BaseQuestion):
    type: Literal["architecture"] = "architecture"
    config: ArchitectureConfig = Field(default_factory=ArchitectureConfig)


class TimeEstimateQuestion(BaseQuestion):
    type: Literal["time-estimate"] = "time-estimate"
    config: TimeEstimateConfig = Field(default_factory=TimeEstimateConfig)


class DifficultyQuestion(BaseQuestion):
    type: Literal["difficulty"] = "difficulty"
    config: DifficultyConfig = Field(default_factory=DifficultyConfig)


class TechDebtQuestion(BaseQuestion):
    type: Literal["tech-debt"] = "tech-debt"
    config: TechDebtConfig = Field(default_factory=TechDebtConfig)


Question = Annotated[
    MultipleChoiceQuestion
    | YesNoQuestion
    | RatingQuestion
    | TextQuestion
    | RankingQuestion
    | CodeComparisonQuestion
    | ArchitectureQuestion
    | TimeEstimateQuestion
    | DifficultyQuestion
    | TechDebtQuestion,
    Field(discriminator="type"),
]

QUESTION_ADAPTER: TypeAdapter[Question] = TypeAdapter(Question)
QUESTION_LIST_ADAPTER: TypeAdapter[list[Question]] = TypeAdapter(list[Question])


class FlowOptions(_Model):
    """Flow-level behaviour switches."""

    allow_skip: bool = False
    auto_advance: bool = False
    auto_advance_delay_ms: int = Field(default=DEFAULT_AUTO_ADVANCE_DELAY_MS, ge=0)
    auto_save: bool = False
    auto_save_interval_ms: int = Field(default=DEFAULT_AUTO_SAVE_INTERVAL_MS, gt=0)


class Questionnaire(_Model):
    """A named, ordered list of questions plus default options."""

    id: str
    title: str
    description: str | None = None
    category: str | None = None
    questions: tuple[Question, ...]
    options: FlowOptions = Field(default_factory=FlowOptions)

    def question_by_id(self, question_id: str) -> BaseQuestion | None:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


def parse_question(data: dict[str, Any]) -> BaseQuestion:
    """Validate a raw mapping into the matching question variant."""
    return QUESTION_ADAPTER.validate_python(data)


def parse_questions(items: list[dict[str, Any]]) -> list[BaseQuestion]:
    return list(QUESTION_LIST_ADAPTER.validate_python(items))
