"""Widget (UI tool) models — the contract between the asker and the renderer.

Every widget type in the closed catalog has its own props model.  Required
props are declared as required pydantic fields; everything else is
optional and unknown props are kept (``extra="allow"``) since the renderer
tolerates additions.

``WidgetType`` enumerates the catalog, ``widget_mapper`` maps each type to
its props class, and the module asserts at import that the two agree, so a
new type cannot be added to one without the other.

``WidgetSpec`` is what travels on a turn: a type name plus a props bag.
Its ``type`` is a plain string because the external model may propose a
name outside the catalog; ``intake_engine.widgets.validate`` reports that
case instead of failing to parse.
"""

import enum
from types import MappingProxyType
from typing import Any, ClassVar, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class WidgetCategory(str, enum.Enum):
    VISUAL_QUANTIFIERS = "visual_quantifiers"
    GRIDS_SELECTORS = "grids_selectors"
    LISTS_TOGGLES = "lists_toggles"
    INTERACTIVE_GAMIFIED = "interactive_gamified"
    TEXT_MEDIA = "text_media"


class WidgetType(str, enum.Enum):
    """Closed catalog of widget type names."""

    # Visual quantifiers & sliders
    CIRCULAR_GAUGE = "circular_gauge"
    STACKED_BAR = "stacked_bar"
    EQUITY_BUILDER = "equity_builder"
    GRADIENT_SLIDER = "gradient_slider"
    BIPOLAR_SCALE = "bipolar_scale"
    RADAR_CHART = "radar_chart"
    DIAL_GROUP = "dial_group"
    BRAND_METER = "brand_meter"
    # Grids, cards & selectors
    ICON_GRID = "icon_grid"
    DETAILED_CARDS = "detailed_cards"
    GRADIENT_CARDS = "gradient_cards"
    SUPERPOWER_GRID = "superpower_grid"
    NODE_MAP = "node_map"
    # Lists & toggles
    TOGGLE_LIST = "toggle_list"
    CHIP_CLOUD = "chip_cloud"
    SEGMENTED_ROWS = "segmented_rows"
    EXPANDABLE_LIST = "expandable_list"
    PERK_REVEALER = "perk_revealer"
    COUNTER_STACK = "counter_stack"
    # Interactive & gamified
    TOKEN_ALLOCATOR = "token_allocator"
    SWIPE_DECK = "swipe_deck"
    REACTION_SCALE = "reaction_scale"
    COMPARISON_DUEL = "comparison_duel"
    HEAT_MAP = "heat_map"
    WEEK_SCHEDULER = "week_scheduler"
    # Rich input & text
    SMART_TEXTAREA = "smart_textarea"
    TAG_INPUT = "tag_input"
    CHAT_SIMULATOR = "chat_simulator"
    TIMELINE_BUILDER = "timeline_builder"
    COMPARISON_TABLE = "comparison_table"
    QA_LIST = "qa_list"
    MEDIA_UPLOAD = "media_upload"


# --- Base props type ---

class WidgetProps(BaseModel):
    """Fields and catalog metadata shared by all widget props models."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    widget_type: ClassVar[WidgetType]
    category: ClassVar[WidgetCategory]
    value_type: ClassVar[str]
    description: ClassVar[str]

    title: Optional[str] = None

    @classmethod
    def required_props(cls) -> list[str]:
        """Wire names of the props this widget cannot render without."""
        return [
            info.alias or name
            for name, info in cls.model_fields.items()
            if info.is_required()
        ]


# ---------------------------------------------------------------------------
# Visual quantifiers & sliders
# ---------------------------------------------------------------------------

class CircularGaugeProps(WidgetProps):
    widget_type = WidgetType.CIRCULAR_GAUGE
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "number"
    description = "Circular slider for a numeric value within a range (salary, team size, budget)."

    label: Optional[str] = None
    min: float = 0
    max: float = 100
    step: float = 1
    unit: str = ""
    prefix: str = ""


class StackedBarProps(WidgetProps):
    widget_type = WidgetType.STACKED_BAR
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "array"
    description = "Sliders feeding one stacked bar whose parts sum to 100% (e.g. pay structure)."

    segments: list[Any]
    total: float = 100


class EquityBuilderProps(WidgetProps):
    widget_type = WidgetType.EQUITY_BUILDER
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "object"
    description = "Two-step wizard: equity type, then percentage, vesting, and cliff."


class GradientSliderProps(WidgetProps):
    widget_type = WidgetType.GRADIENT_SLIDER
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "number"
    description = "Gradient slider revealing sub-options per value range (e.g. remote flexibility)."

    levels: Optional[list[Any]] = None


class BipolarScaleProps(WidgetProps):
    widget_type = WidgetType.BIPOLAR_SCALE
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "array"
    description = "Sliders balancing between two opposing extremes (culture fit)."

    items: list[Any]


class RadarChartProps(WidgetProps):
    widget_type = WidgetType.RADAR_CHART
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "array"
    description = "Radar chart whose axes are controlled by sliders."

    dimensions: list[Any]


class DialGroupProps(WidgetProps):
    widget_type = WidgetType.DIAL_GROUP
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "array"
    description = "Range inputs averaged into a colour-coded score."

    dials: list[Any]


class BrandMeterProps(WidgetProps):
    widget_type = WidgetType.BRAND_METER
    category = WidgetCategory.VISUAL_QUANTIFIERS
    value_type = "array"
    description = "Vertical bars with an overall star rating for brand value."

    metrics: list[Any]


# ---------------------------------------------------------------------------
# Grids, cards & selectors
# ---------------------------------------------------------------------------

class IconGridProps(WidgetProps):
    widget_type = WidgetType.ICON_GRID
    category = WidgetCategory.GRIDS_SELECTORS
    value_type = "string | array"
    description = "Grid of icon cards, single or multi-select (benefits, amenities)."

    options: list[Any]
    multiple: bool = False


class DetailedCardsProps(WidgetProps):
    widget_type = WidgetType.DETAILED_CARDS
    category = WidgetCategory.GRIDS_SELECTORS
    value_type = "string | array"
    description = "Cards with icon, title, and description (shift patterns, management styles)."

    options: list[Any]
    multiple: bool = False


class GradientCardsProps(WidgetProps):
    widget_type = WidgetType.GRADIENT_CARDS
    category = WidgetCategory.GRIDS_SELECTORS
    value_type = "string | array"
    description = "Gradient-backed cards for mood or vibe choices."

    options: list[Any]
    multiple: bool = False


class SuperpowerGridProps(WidgetProps):
    widget_type = WidgetType.SUPERPOWER_GRID
    category = WidgetCategory.GRIDS_SELECTORS
    value_type = "object"
    description = "Predefined traits plus a custom text entry."

    traits: list[Any]


class NodeMapProps(WidgetProps):
    widget_type = WidgetType.NODE_MAP
    category = WidgetCategory.GRIDS_SELECTORS
    value_type = "object"
    description = "Central node with orbiting rings; visualises team structure."


# ---------------------------------------------------------------------------
# Lists & toggles
# ---------------------------------------------------------------------------

class ToggleListProps(WidgetProps):
    widget_type = WidgetType.TOGGLE_LIST
    category = WidgetCategory.LISTS_TOGGLES
    value_type = "array"
    description = "Vertical list of yes/no toggles."

    items: list[Any]


class ChipCloudProps(WidgetProps):
    widget_type = WidgetType.CHIP_CLOUD
    category = WidgetCategory.LISTS_TOGGLES
    value_type = "array"
    description = "Grouped cloud of selectable chips (tech stack, skills)."

    groups: list[Any]


class SegmentedRowsProps(WidgetProps):
    widget_type = WidgetType.SEGMENTED_ROWS
    category = WidgetCategory.LISTS_TOGGLES
    value_type = "object"
    description = "Rows with a segmented frequency/intensity control each."

    rows: list[Any]


class ExpandableListProps(WidgetProps):
    widget_type = WidgetType.EXPANDABLE_LIST
    category = WidgetCategory.LISTS_TOGGLES
    value_type = "object"
    description = "Items that expand into a text box for supporting detail."

    items: list[Any]


class PerkRevealerProps(WidgetProps):
    widget_type = WidgetType.PERK_REVEALER
    category = WidgetCategory.LISTS_TOGGLES
    value_type = "object"
    description = "Category tabs with toggleable perks below."

    categories: list[Any]


class CounterStackProps(WidgetProps):
    widget_type = WidgetType.COUNTER_STACK
    category = WidgetCategory.LISTS_TOGGLES
    value_type = "object"
    description = "Items with +/- steppers and a running total (PTO calculator)."

    items: list[Any]


# ---------------------------------------------------------------------------
# Interactive & gamified
# ---------------------------------------------------------------------------

class TokenAllocatorProps(WidgetProps):
    widget_type = WidgetType.TOKEN_ALLOCATOR
    category = WidgetCategory.INTERACTIVE_GAMIFIED
    value_type = "object"
    description = "Fixed token pool distributed across categories."

    categories: list[Any]
    total_tokens: Optional[int] = Field(default=None, alias="totalTokens")


class SwipeDeckProps(WidgetProps):
    widget_type = WidgetType.SWIPE_DECK
    category = WidgetCategory.INTERACTIVE_GAMIFIED
    value_type = "object"
    description = "Swipeable cards for rapid yes/no sorting."

    cards: list[Any]


class ReactionScaleProps(WidgetProps):
    widget_type = WidgetType.REACTION_SCALE
    category = WidgetCategory.INTERACTIVE_GAMIFIED
    value_type = "string"
    description = "Large emoji buttons for a quick sentiment answer."


class ComparisonDuelProps(WidgetProps):
    widget_type = WidgetType.COMPARISON_DUEL
    category = WidgetCategory.INTERACTIVE_GAMIFIED
    value_type = "string"
    description = "Two side-by-side cards forcing an A vs B choice."

    option_a: dict[str, Any] = Field(alias="optionA")
    option_b: dict[str, Any] = Field(alias="optionB")
    vs_text: str = Field(default="VS", alias="vsText")


class HeatMapProps(WidgetProps):
    widget_type = WidgetType.HEAT_MAP
    category = WidgetCategory.INTERACTIVE_GAMIFIED
    value_type = "object"
    description = "Rows x columns grid of clickable intensity cells."

    rows: list[Any]
    columns: list[Any]


class WeekSchedulerProps(WidgetProps):
    widget_type = WidgetType.WEEK_SCHEDULER
    category = WidgetCategory.INTERACTIVE_GAMIFIED
    value_type = "object"
    description = "Seven-day grid with paintable hour slots."


# ---------------------------------------------------------------------------
# Rich input & text
# ---------------------------------------------------------------------------

class SmartTextareaProps(WidgetProps):
    widget_type = WidgetType.SMART_TEXTAREA
    category = WidgetCategory.TEXT_MEDIA
    value_type = "string"
    description = "Text area with rotating inspiration prompts."

    prompts: list[str] = []
    placeholder: Optional[str] = None


class TagInputProps(WidgetProps):
    widget_type = WidgetType.TAG_INPUT
    category = WidgetCategory.TEXT_MEDIA
    value_type = "string"
    description = "Centered short-form input with suggestion tags."

    suggestions: list[str] = []


class ChatSimulatorProps(WidgetProps):
    widget_type = WidgetType.CHAT_SIMULATOR
    category = WidgetCategory.TEXT_MEDIA
    value_type = "object"
    description = "Mini chat with quick replies."

    flow: list[Any]


class TimelineBuilderProps(WidgetProps):
    widget_type = WidgetType.TIMELINE_BUILDER
    category = WidgetCategory.TEXT_MEDIA
    value_type = "object"
    description = "Vertical timeline with an input at each milestone."

    points: list[Any]


class ComparisonTableProps(WidgetProps):
    widget_type = WidgetType.COMPARISON_TABLE
    category = WidgetCategory.TEXT_MEDIA
    value_type = "object"
    description = "Two-column expectation vs reality inputs."

    rows: list[Any]


class QAListProps(WidgetProps):
    widget_type = WidgetType.QA_LIST
    category = WidgetCategory.TEXT_MEDIA
    value_type = "object"
    description = "Expandable question/answer pairs."


class MediaUploadProps(WidgetProps):
    widget_type = WidgetType.MEDIA_UPLOAD
    category = WidgetCategory.TEXT_MEDIA
    value_type = "object"
    description = "Placeholder for audio, photo, or video capture."


# Maps widget type → props class.  Read-only; the catalog is fixed per release.
widget_mapper: Mapping[WidgetType, type[WidgetProps]] = MappingProxyType(
    {
        cls.widget_type: cls
        for cls in (
            CircularGaugeProps,
            StackedBarProps,
            EquityBuilderProps,
            GradientSliderProps,
            BipolarScaleProps,
            RadarChartProps,
            DialGroupProps,
            BrandMeterProps,
            IconGridProps,
            DetailedCardsProps,
            GradientCardsProps,
            SuperpowerGridProps,
            NodeMapProps,
            ToggleListProps,
            ChipCloudProps,
            SegmentedRowsProps,
            ExpandableListProps,
            PerkRevealerProps,
            CounterStackProps,
            TokenAllocatorProps,
            SwipeDeckProps,
            ReactionScaleProps,
            ComparisonDuelProps,
            HeatMapProps,
            WeekSchedulerProps,
            SmartTextareaProps,
            TagInputProps,
            ChatSimulatorProps,
            TimelineBuilderProps,
            ComparisonTableProps,
            QAListProps,
            MediaUploadProps,
        )
    }
)

_unmapped = set(WidgetType) - set(widget_mapper)
if _unmapped:
    raise RuntimeError(f"Widget types without a props model: {sorted(_unmapped)}")


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------

class WidgetSpec(BaseModel):
    """A proposed widget: catalog type name plus its props bag."""

    type: str
    props: dict[str, Any] = {}


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = []


class WidgetContract(BaseModel):
    """Public description of one catalog entry (reference endpoints, prompts)."""

    type: WidgetType
    category: WidgetCategory
    value_type: str
    description: str
    required_props: list[str]
