"""
hh.ru API adapter.

This module speaks to the public hh.ru REST API (https://api.hh.ru).
It knows the endpoint paths, the fixed search parameters and the JSON
shapes, and turns raw records into the dataclasses in
`hhflow.normalize.schema`.  All requests go through a
`RateLimitedFetcher`, so retries, timeouts and the bearer token are
handled there.

Search methods return ``{"items": [...], "found": N}`` with parsed
items, which is the page shape `collect_pages` expects.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional

from ..collect.clock import Deadline
from ..collect.fetcher import RateLimitedFetcher
from ..errors import FetchError, SearchError
from ..normalize.schema import ContactRecord, EmployerMatch, Experience, ResumeItem, VacancyItem

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.hh.ru"

RESUME_FIELDS = (
    "last_name,first_name,middle_name,age,area,salary,title,experience,"
    "total_experience,last_visit,updated_at"
)

PHONE_CONTACT_TYPES = ("cell", "phone", "home", "work")

RESUME_SEARCH_PARAMS: Dict[str, str] = {
    "search_field": "company_name,position,skill_set",
    "period": "365",
    "area": "113",
    "relocation": "living_or_relocation",
    "order_by": "relevance",
    "clusters": "true",
    "no_magic": "true",
    "fields": RESUME_FIELDS,
}


def _name(value: Any) -> Optional[str]:
    """Pull ``name`` out of ``{"id": .., "name": ..}`` reference objects."""
    if isinstance(value, Mapping):
        return value.get("name")
    return None


def parse_experience(raw: Mapping[str, Any]) -> Experience:
    return Experience(
        company=raw.get("company"),
        position=raw.get("position"),
        start=raw.get("start"),
        end=raw.get("end"),
        description=raw.get("description"),
    )


def parse_resume(raw: Mapping[str, Any]) -> ResumeItem:
    salary = raw.get("salary") or {}
    total = raw.get("total_experience") or {}
    return ResumeItem(
        id=str(raw.get("id", "")),
        title=raw.get("title"),
        experience=[parse_experience(e) for e in raw.get("experience") or [] if isinstance(e, Mapping)],
        age=raw.get("age"),
        area=_name(raw.get("area")),
        salary_amount=salary.get("amount"),
        salary_currency=salary.get("currency"),
        total_experience_months=total.get("months"),
        last_visit=raw.get("last_visit"),
        updated_at=raw.get("updated_at"),
        alternate_url=raw.get("alternate_url"),
    )


def parse_vacancy(raw: Mapping[str, Any]) -> VacancyItem:
    salary = raw.get("salary") or {}
    employer = raw.get("employer") or {}
    return VacancyItem(
        id=str(raw.get("id", "")),
        name=raw.get("name"),
        employer_id=str(employer["id"]) if employer.get("id") is not None else None,
        employer_name=employer.get("name"),
        salary_from=salary.get("from"),
        salary_to=salary.get("to"),
        salary_currency=salary.get("currency"),
        area=_name(raw.get("area")),
        published_at=raw.get("published_at"),
        alternate_url=raw.get("alternate_url"),
    )


def apply_resume_details(item: ResumeItem, detail: Mapping[str, Any]) -> ResumeItem:
    """Merge a resume detail record into `item`.

    Only the enrichment fields change; everything else is left as
    returned by the search endpoint.
    """
    experience = detail.get("experience") or []
    first = experience[0] if experience and isinstance(experience[0], Mapping) else {}
    return replace(
        item,
        status=_name(detail.get("job_search_status")),
        last_job_description=first.get("description"),
    )


def _vacancy_contacts(detail: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    contacts = detail.get("contacts") or {}
    phones = contacts.get("phones") or []
    phone = phones[0] if phones and isinstance(phones[0], Mapping) else {}
    return {
        "name": contacts.get("name"),
        "email": contacts.get("email"),
        "phone": phone.get("formatted"),
        "comment": phone.get("comment"),
    }


def apply_vacancy_contacts(item: VacancyItem, detail: Mapping[str, Any]) -> VacancyItem:
    contacts = _vacancy_contacts(detail)
    return replace(
        item,
        contact_name=contacts["name"],
        contact_email=contacts["email"],
        contact_phone=contacts["phone"],
        contact_comment=contacts["comment"],
        alternate_url=item.alternate_url or detail.get("alternate_url"),
    )


def apply_vacancy_contact_record(record: ContactRecord, detail: Mapping[str, Any]) -> ContactRecord:
    contacts = _vacancy_contacts(detail)
    return replace(
        record,
        title=detail.get("name") or record.title,
        full_name=contacts["name"],
        email=contacts["email"],
        phone=contacts["phone"],
        phone_comment=contacts["comment"],
        link=detail.get("alternate_url") or record.link,
    )


def _resume_contacts(entries: Any) -> Dict[str, Optional[str]]:
    """Pick the first phone and the first e-mail out of a resume ``contact`` list."""
    found: Dict[str, Optional[str]] = {"phone": None, "phone_comment": None, "email": None}
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, Mapping):
            continue
        kind = (entry.get("type") or {}).get("id")
        value = entry.get("value")
        if kind in PHONE_CONTACT_TYPES and found["phone"] is None:
            if isinstance(value, Mapping):
                value = value.get("formatted") or value.get("number")
            found["phone"] = str(value) if value else None
            found["phone_comment"] = entry.get("comment")
        elif kind == "email" and found["email"] is None:
            found["email"] = value if isinstance(value, str) else None
    return found


def apply_resume_contact_record(record: ContactRecord, detail: Mapping[str, Any]) -> ContactRecord:
    """Merge a resume record into `record`.

    Values `detail` lacks keep whatever the record already has.
    """
    parts = (detail.get("last_name"), detail.get("first_name"), detail.get("middle_name"))
    name = " ".join(str(part) for part in parts if part)
    contacts = _resume_contacts(detail.get("contact"))
    return replace(
        record,
        full_name=name or record.full_name,
        title=detail.get("title") or record.title,
        phone=contacts["phone"] or record.phone,
        phone_comment=contacts["phone_comment"] or record.phone_comment,
        email=contacts["email"] or record.email,
    )


class HHApi:
    """Thin client over the hh.ru endpoints used by the pipeline."""

    def __init__(self, fetcher: RateLimitedFetcher, base_url: str = API_BASE_URL) -> None:
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")

    def _get(self, path: str, params: Optional[Mapping[str, Any]] = None,
             deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        return self.fetcher.get_json(f"{self.base_url}{path}", params, deadline=deadline)

    # -- resumes -------------------------------------------------------

    def search_resumes_page(self, text: str, page: int, per_page: int,
                            deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        params = dict(RESUME_SEARCH_PARAMS, text=text, page=str(page), per_page=str(per_page))
        data = self._get("/resumes", params, deadline)
        return {
            "items": [parse_resume(r) for r in data.get("items") or [] if isinstance(r, Mapping)],
            "found": data.get("found"),
        }

    def resume_details(self, item: ResumeItem, deadline: Optional[Deadline] = None) -> ResumeItem:
        detail = self._get(f"/resumes/{item.id}", {"with_job_search_status": "true"}, deadline)
        return apply_resume_details(item, detail)

    # -- vacancies -----------------------------------------------------

    def search_vacancies_page(self, employer_id: str, text: str, page: int, per_page: int,
                              deadline: Optional[Deadline] = None) -> Dict[str, Any]:
        params: Dict[str, str] = {"employer_id": employer_id, "page": str(page), "per_page": str(per_page)}
        if text:
            params["text"] = text
        data = self._get("/vacancies", params, deadline)
        return {
            "items": [parse_vacancy(v) for v in data.get("items") or [] if isinstance(v, Mapping)],
            "found": data.get("found"),
        }

    def vacancy_details(self, item: VacancyItem, deadline: Optional[Deadline] = None) -> VacancyItem:
        detail = self._get(f"/vacancies/{item.id}", None, deadline)
        return apply_vacancy_contacts(item, detail)

    def vacancy_contact(self, record: ContactRecord, deadline: Optional[Deadline] = None) -> ContactRecord:
        detail = self._get(f"/vacancies/{record.id}", None, deadline)
        return apply_vacancy_contact_record(record, detail)

    def resume_contact(self, record: ContactRecord, deadline: Optional[Deadline] = None, *,
                       open_contacts: bool = True) -> ContactRecord:
        """Fill `record` from the resume and, if allowed, its paid contact view.

        When the resume hides its contacts the platform offers a
        ``get_with_contact`` action; following it spends one paid action
        of the account, so it is skipped unless `open_contacts` is set.
        """
        detail = self._get(f"/resumes/{record.id}", None, deadline)
        record = apply_resume_contact_record(record, detail)
        action = ((detail.get("actions") or {}).get("get_with_contact") or {}).get("url")
        if action and open_contacts:
            logger.info("Opening contacts of resume %s", record.id)
            record = apply_resume_contact_record(record, self.fetcher.get_json(action, deadline=deadline))
        return record

    # -- employers and account ----------------------------------------

    def find_employers(self, company: str, deadline: Optional[Deadline] = None) -> List[EmployerMatch]:
        data = self._get("/employers", {"text": company}, deadline)
        matches = [
            EmployerMatch(
                original_name=company,
                hh_name=e.get("name"),
                hh_id=str(e.get("id")),
                url=e.get("alternate_url"),
                found=True,
            )
            for e in data.get("items") or []
            if isinstance(e, Mapping) and e.get("id") is not None
        ]
        logger.debug("Employers for %r: %s", company, [m.hh_id for m in matches])
        return matches

    def me(self) -> Dict[str, Any]:
        return self._get("/me")

    def payable_api_actions(self, employer_id: str, manager_id: Optional[str] = None) -> Dict[str, Any]:
        path = f"/employers/{employer_id}"
        if manager_id:
            path += f"/managers/{manager_id}"
        return self._get(path + "/services/payable_api_actions/active")


def _action(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": raw.get("id"),
        "service_type": raw.get("service_type"),
        "activated_at": raw.get("activated_at"),
        "expires_at": raw.get("expires_at"),
        "balance": raw.get("balance"),
    }


def api_limits(api: HHApi, manager_id: Optional[str] = None) -> Dict[str, Any]:
    """Report the active paid API packs of the token's employer.

    The manager-level report is optional: if it cannot be fetched the
    employer report is still returned.
    """
    employer = (api.me().get("employer") or {}).get("id")
    if not employer:
        raise SearchError("No employer ID found in user data")
    employer_data = api.payable_api_actions(str(employer))
    actions = [_action(a) for a in employer_data.get("items") or []]
    if not actions:
        return {"actions": [], "message": "No active API packs found for this employer."}

    report: Dict[str, Any] = {"actions": actions}
    manager_actions = None
    if manager_id:
        try:
            manager_data = api.payable_api_actions(str(employer), manager_id)
            manager_actions = [_action(a) for a in manager_data.get("items") or []]
        except FetchError as exc:
            logger.warning("Manager API call failed: %s", exc)
    if manager_actions is not None:
        report["manager_actions"] = manager_actions
        report["message"] = "API limit information retrieved for employer and manager."
    else:
        report["message"] = "API limit information retrieved for employer. Manager data not available."
    return report
