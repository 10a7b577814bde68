"""Penny Pydantic schemas for request/response validation.

Field names are snake_case in Python and camelCase on the wire
(``richContent``, ``followUp``, ``amountColumnIndex``...).
"""
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnswerKind(str, Enum):
    """Shape of an answer, used by the synthesizer and the presentation layer."""
    SINGLE_VALUE = "single-value"
    ENTITY_PROFILE = "entity-profile"
    RANKED_LIST = "ranked-list"
    COMPARISON = "comparison"
    NOT_FOUND = "not-found"
    DISAMBIGUATION = "disambiguation"


class ActionType(str, Enum):
    """What the UI should do when an action button is pressed."""
    NAVIGATE = "navigate"
    DOWNLOAD = "download"
    QUERY = "query"


class Action(CamelModel):
    """An action button to show under an answer."""
    label: str = Field(..., description="Button label text")
    type: ActionType = Field(..., description="Action type")
    target: Optional[str] = Field(None, description="Page path, download URL or query text")


# ============================================================================
# RICH CONTENT
# ============================================================================

class CardField(CamelModel):
    label: str
    value: str


class DataCard(CamelModel):
    """A headline figure with an optional detail line."""
    label: str = Field(..., description="What the figure measures")
    value: str = Field(..., description="Formatted headline value")
    detail: Optional[str] = Field(None, description="Secondary line, e.g. '12 employees'")
    fields: Optional[List[CardField]] = Field(None, description="Extra labelled values")


class TableData(CamelModel):
    headers: List[str] = Field(..., description="Column headers")
    rows: List[List[str]] = Field(default_factory=list, description="Formatted cell values")
    employee_names: Optional[List[str]] = Field(None, description="Employee name per row, when rows are employees")


class Table(CamelModel):
    """A table with an optional total over an amount column."""
    title: Optional[str] = Field(None, description="Table caption")
    data: TableData
    amount_column_index: Optional[int] = Field(None, description="Column summed into the total")
    total_label: Optional[str] = Field(None, description="Label for the total row")
    total_amount: Optional[str] = Field(None, description="Formatted total over every row in view")
    row_count: int = Field(0, description="Rows in view, including rows beyond the displayed cap")


class CompanyStats(CamelModel):
    """Company profile figures. Missing counts are None, never zero."""
    company: str
    partnership: Optional[str] = None
    model: Optional[str] = None
    launch_date: Optional[str] = None
    eligible: Optional[int] = None
    adopted: Optional[int] = None
    adoption_rate: Optional[str] = None
    active: Optional[int] = None
    active_percent: Optional[str] = None
    transfers: Optional[int] = None
    total_transfer_amount: Optional[str] = None
    outstanding_total: Optional[str] = None
    admins: List[str] = Field(default_factory=list)


class ReportEntry(CamelModel):
    id: str
    name: str
    description: str


class EmployeeOption(CamelModel):
    name: str
    company: Optional[str] = None


class CompanyOption(CamelModel):
    name: str
    partnership: Optional[str] = None


class DidYouMean(CamelModel):
    employees: List[EmployeeOption] = Field(default_factory=list)
    companies: List[CompanyOption] = Field(default_factory=list)


class SummaryWithList(CamelModel):
    summary: DataCard
    list: Table


class DataCardContent(CamelModel):
    type: Literal["data-card"] = "data-card"
    data: DataCard
    expand_list: Optional[Table] = Field(None, description="Full itemized set behind the headline")


class TableContent(CamelModel):
    type: Literal["table"] = "table"
    data: Table
    expand_list: Optional[Table] = Field(None, description="Every row when the display is capped")


class CompanyStatsContent(CamelModel):
    type: Literal["company-stats-card"] = "company-stats-card"
    data: CompanyStats


class SummaryWithListContent(CamelModel):
    type: Literal["summary-with-list"] = "summary-with-list"
    data: SummaryWithList
    expand_list: Optional[Table] = Field(None, description="Every row when the display is capped")


class ReportListContent(CamelModel):
    type: Literal["report-list"] = "report-list"
    data: List[ReportEntry]


class DidYouMeanContent(CamelModel):
    type: Literal["did-you-mean"] = "did-you-mean"
    data: DidYouMean


RichContent = Annotated[
    Union[
        DataCardContent,
        TableContent,
        CompanyStatsContent,
        SummaryWithListContent,
        ReportListContent,
        DidYouMeanContent,
    ],
    Field(discriminator="type"),
]


# ============================================================================
# ANSWER (internal) AND RESPONSE (external)
# ============================================================================

class EntityName(CamelModel):
    """A name the answer refers to, for span marking."""
    name: str
    entity: str


class Answer(CamelModel):
    """What an answer builder produces."""
    kind: AnswerKind
    text: str
    rich_content: Optional[RichContent] = None
    suggestions: List[str] = Field(default_factory=list)
    actions: List[Action] = Field(default_factory=list)
    follow_up: Optional[str] = None
    entities: List[EntityName] = Field(default_factory=list, description="Names to mark in the text")


class Span(CamelModel):
    """An entity name located in the answer text (character offsets)."""
    start: int
    end: int
    name: str
    entity: str


class ChatMessage(BaseModel):
    """A single chat message."""
    role: Literal["user", "assistant", "system"] = Field(..., description="Message role")
    content: str = Field(..., description="Message content")


class ChatRequest(CamelModel):
    """Request to ask Penny a question."""
    message: str = Field(..., description="The admin's question")
    conversation_id: Optional[str] = Field(None, description="Omit to start a new conversation")
    conversation_history: List[ChatMessage] = Field(
        default_factory=list,
        description="Previous messages in this conversation"
    )


class PennyResponse(CamelModel):
    """Penny's reply, as consumed by the chat UI."""
    text: str = Field(..., description="Markdown answer text")
    rich_content: Optional[RichContent] = Field(None, description="Structured payload")
    suggestions: Optional[List[str]] = Field(None, description="Follow-up questions")
    actions: Optional[List[Action]] = Field(None, description="Action buttons")
    follow_up: Optional[str] = Field(None, description="One-line nudge shown under the answer")
    kind: AnswerKind = Field(..., description="Answer shape")
    spans: List[Span] = Field(default_factory=list, description="Entity names located in text")
    conversation_id: str = Field(..., description="Pass back to continue the conversation")


class ResetRequest(CamelModel):
    conversation_id: str = Field(..., description="Conversation to clear")


class ExamplePrompt(CamelModel):
    text: str
    display_text: Optional[str] = None
    icon: str = ""
