from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from typing import List, Optional

from errors import ErrorKind, user_message


# Draft typed by the user; the controller snapshots it when analysis starts
class SubmissionDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    resume_text: str = ""
    job_description_text: str = ""


# What gets sent for one attempt
class AnalysisRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_instruction: str
    user_prompt: str
    prompt_version: str
    temperature: float = 0.2


# Validated model output. Keys on the wire are camelCase.
class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    match_score: StrictInt = Field(alias="matchScore", ge=0, le=100)
    executive_summary: StrictStr = Field(alias="executiveSummary", min_length=1)
    strengths: List[StrictStr] = Field(default_factory=list)
    gaps: List[StrictStr] = Field(default_factory=list)
    keywords_found: List[StrictStr] = Field(default_factory=list, alias="keywordsFound")
    keywords_missing: List[StrictStr] = Field(default_factory=list, alias="keywordsMissing")
    suggestions: List[StrictStr] = Field(default_factory=list)
    interview_prep: List[StrictStr] = Field(default_factory=list, alias="interviewPrep")

    @field_validator("executive_summary")
    @classmethod
    def _summary_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("executiveSummary must not be blank")
        return v

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)

    def as_report(self) -> str:
        """Plain-text report for copying; empty sections are left out."""
        lines = [f"Match Score: {self.match_score}%", "", self.executive_summary]
        sections = [
            ("Strengths", self.strengths),
            ("Gaps", self.gaps),
            ("Keywords Found", self.keywords_found),
            ("Keywords Missing", self.keywords_missing),
            ("Suggestions", self.suggestions),
            ("Interview Prep", self.interview_prep),
        ]
        for title, items in sections:
            if not items:
                continue
            lines.append("")
            lines.append(f"{title}:")
            lines.extend(f"- {item}" for item in items)
        return "\n".join(lines)


# One pass through the retry loop
class AttemptOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    retryable: bool = True
    raw_text: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""


class AnalysisOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: Optional[AnalysisResult] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, result: AnalysisResult) -> "AnalysisOutcome":
        return cls(result=result)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str = "") -> "AnalysisOutcome":
        return cls(error_kind=kind, message=message)

    def user_message(self) -> str:
        return user_message(self.error_kind, self.message) if self.error_kind else ""


# HTTP API bodies
class AnalyzeIn(BaseModel):
    resume_text: str
    job_description_text: str


class ErrorOut(BaseModel):
    error: ErrorKind
    message: str
