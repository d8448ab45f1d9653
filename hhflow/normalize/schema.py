"""
Data model for search runs.

The dataclasses below are the typed form of the platform's JSON
records.  Optional fields stay ``None`` when the platform omits them;
filling in placeholders is the output formatter's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..errors import ValidationError

STATUS_COMPLETE = "complete"
STATUS_PARTIAL = "partial"


@dataclass
class SearchQuery:
    text: str
    companies: List[str]
    total_limit: int = 100
    per_company_limit: Optional[int] = None

    def validate(self, *, require_text: bool = False) -> None:
        """Raise `ValidationError` if the query cannot be run.

        Blank company names are dropped in place.  Nothing here touches
        the network.
        """
        self.text = (self.text or "").strip()
        self.companies = [c.strip() for c in self.companies if c and c.strip()]
        if require_text and not self.text:
            raise ValidationError("Search text is required")
        if not self.companies:
            raise ValidationError("Company list is empty")
        if self.total_limit < 1:
            raise ValidationError(f"total_limit must be positive, got {self.total_limit}")
        if self.per_company_limit is not None and self.per_company_limit < 1:
            raise ValidationError(
                f"per_company_limit must be positive, got {self.per_company_limit}"
            )


@dataclass
class Experience:
    company: Optional[str] = None
    position: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None        # None means current job
    description: Optional[str] = None


@dataclass
class ResumeItem:
    id: str
    title: Optional[str] = None
    experience: List[Experience] = field(default_factory=list)
    age: Optional[int] = None
    area: Optional[str] = None
    salary_amount: Optional[float] = None
    salary_currency: Optional[str] = None
    total_experience_months: Optional[int] = None
    last_visit: Optional[str] = None
    updated_at: Optional[str] = None
    alternate_url: Optional[str] = None
    matched_company: Optional[str] = None
    # Filled in by the enricher.
    status: Optional[str] = None
    last_job_description: Optional[str] = None

    @property
    def last_job(self) -> Optional[Experience]:
        return self.experience[0] if self.experience else None

    @property
    def link(self) -> str:
        return self.alternate_url or f"https://hh.ru/resume/{self.id}"


@dataclass
class VacancyItem:
    id: str
    name: Optional[str] = None
    employer_id: Optional[str] = None
    employer_name: Optional[str] = None
    salary_from: Optional[float] = None
    salary_to: Optional[float] = None
    salary_currency: Optional[str] = None
    area: Optional[str] = None
    published_at: Optional[str] = None
    alternate_url: Optional[str] = None
    matched_company: Optional[str] = None
    # Filled in by the enricher.
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_comment: Optional[str] = None

    @property
    def link(self) -> str:
        return self.alternate_url or f"https://hh.ru/vacancy/{self.id}"


@dataclass
class EmployerMatch:
    original_name: str
    hh_name: Optional[str] = None
    hh_id: Optional[str] = None
    url: Optional[str] = None
    found: bool = False
    error: Optional[str] = None


@dataclass
class ContactRecord:
    """A link taken from an input table and the contacts found behind it.

    `company` and `inn` are copied from the input row as given.  `id` is
    the vacancy or resume id the link resolved to.
    """

    link: str
    company: Optional[str] = None
    inn: Optional[str] = None
    id: str = ""
    full_name: Optional[str] = None
    title: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    phone_comment: Optional[str] = None


Item = Union[ResumeItem, VacancyItem, ContactRecord]


@dataclass
class SearchResult:
    items: List[Item] = field(default_factory=list)
    status: str = STATUS_COMPLETE
    message: str = ""
    errors: List[str] = field(default_factory=list)
    company_counts: Dict[str, int] = field(default_factory=dict)
    elapsed: float = 0.0

    @property
    def partial(self) -> bool:
        return self.status == STATUS_PARTIAL
