"""Tests for contact lookup from link tables."""

from __future__ import annotations

from hhflow.collect.clock import Deadline
from hhflow.collect.contacts import clamp_vacancy_limit, run_resume_contacts, run_vacancy_contacts
from hhflow.normalize.schema import ContactRecord
from hhflow.normalize.write_csv import PLACEHOLDER, VACANCY_CONTACT_HEADERS, contact_table

from conftest import FakeResponse

API = "https://api.hh.ru"


def vacancy_handler(url, params):
    if url == f"{API}/vacancies":
        eid = params["employer_id"]
        return {
            "items": [
                {"id": str(n), "name": f"Job {n}", "employer": {"id": eid, "name": "Акме"},
                 "alternate_url": f"https://hh.ru/vacancy/{n}"}
                for n in (2, 3, 4)
            ],
            "found": 3,
        }
    vid = url.rsplit("/", 1)[-1]
    if vid == "3":
        return FakeResponse(404, text="not found")
    return {
        "name": f"Job {vid}",
        "alternate_url": f"https://hh.ru/vacancy/{vid}",
        "contacts": {"name": f"Contact {vid}", "email": f"c{vid}@example.com",
                     "phones": [{"formatted": "+7 999 000-00-00", "comment": "after 10"}]},
    }


def test_vacancy_links_resolve_and_enrich(make_api, clock) -> None:
    api, session = make_api(vacancy_handler)
    records = [
        ContactRecord(link="https://hh.ru/vacancy/1?from=list", company="Ромашка", inn="7701"),
        ContactRecord(link="https://hh.ru/employer/9", company="Акме"),
        ContactRecord(link="https://example.com/careers"),
        ContactRecord(link="https://hh.ru/vacancy/2"),
    ]

    result = run_vacancy_contacts(api, records, clock=clock, deadline=Deadline(clock, 50), vacancy_limit=2)

    # the employer link stands for its first two vacancies; vacancy 2 is kept once
    assert [r.id for r in result.items] == ["1", "2", "3"]
    first, second, third = result.items
    assert (first.company, first.inn, first.full_name) == ("Ромашка", "7701", "Contact 1")
    assert first.link == "https://hh.ru/vacancy/1"
    assert first.phone_comment == "after 10"
    assert (second.company, second.title, second.email) == ("Акме", "Job 2", "c2@example.com")
    assert third.full_name is None
    assert result.status == "complete"
    assert any("example.com" in e for e in result.errors)
    assert "Contacts unavailable for 1 records" in result.errors

    list_call = next(c for c in session.calls if c["url"] == f"{API}/vacancies")
    assert list_call["params"]["employer_id"] == "9"
    assert list_call["params"]["per_page"] == "2"

    table = contact_table(result.items)
    assert table[0] == VACANCY_CONTACT_HEADERS
    assert table[1] == ["Ромашка", "7701", "Job 1", "Contact 1", "c1@example.com",
                        "+7 999 000-00-00", "after 10", "https://hh.ru/vacancy/1"]
    assert table[3][3] == PLACEHOLDER


def test_vacancy_links_stop_at_deadline(make_api, clock) -> None:
    api, session = make_api(vacancy_handler)
    records = [ContactRecord(link="https://hh.ru/vacancy/1")]
    result = run_vacancy_contacts(api, records, clock=clock, deadline=Deadline(clock, 0))
    assert result.partial
    assert result.items == []
    assert session.calls == []


def test_clamp_vacancy_limit() -> None:
    assert clamp_vacancy_limit(None) == 3
    assert clamp_vacancy_limit(0) == 3
    assert clamp_vacancy_limit(-5) == 1
    assert clamp_vacancy_limit(50) == 20


def resume_handler(url, params):
    if url == f"{API}/resumes/abc":
        return {"last_name": "Иванова", "first_name": "Анна", "title": "PR",
                "contact": [{"type": {"id": "email"}, "value": "anna@example.com"}]}
    if url == f"{API}/resumes/def":
        return {"last_name": "Петров", "first_name": "Пётр", "title": "Dev", "contact": [],
                "actions": {"get_with_contact": {"url": f"{API}/resumes/def/with_contact"}}}
    if url == f"{API}/resumes/def/with_contact":
        return {"last_name": "Петров", "first_name": "Пётр",
                "contact": [{"type": {"id": "cell"}, "comment": "вечером",
                             "value": {"formatted": "+7 900 111-22-33", "number": "79001112233"}}]}
    return FakeResponse(404)


RESUME_RECORDS = [
    ContactRecord(link="https://hh.ru/resume/abc"),
    ContactRecord(link="https://hh.ru/resume/def?hhtmFrom=resume_search"),
    ContactRecord(link="https://hh.ru/vacancy/1"),
]


def test_resume_links_open_hidden_contacts(make_api, clock) -> None:
    api, session = make_api(resume_handler)
    result = run_resume_contacts(api, RESUME_RECORDS, clock=clock, deadline=Deadline(clock, 50))

    assert [r.id for r in result.items] == ["abc", "def"]
    anna, petr = result.items
    assert (anna.full_name, anna.title, anna.email) == ("Иванова Анна", "PR", "anna@example.com")
    assert anna.phone is None
    assert (petr.full_name, petr.phone) == ("Петров Пётр", "+7 900 111-22-33")
    assert petr.phone_comment == "вечером"
    assert session.urls("with_contact") == [f"{API}/resumes/def/with_contact"]
    assert result.errors == ["https://hh.ru/vacancy/1: not a resume link"]

    table = contact_table(result.items, kind="resume")
    assert table[2] == ["Петров Пётр", "Dev", "+7 900 111-22-33", PLACEHOLDER,
                        "https://hh.ru/resume/def?hhtmFrom=resume_search"]


def test_resume_links_without_paid_contacts(make_api, clock) -> None:
    api, session = make_api(resume_handler)
    result = run_resume_contacts(api, RESUME_RECORDS, clock=clock, open_contacts=False)
    assert session.urls("with_contact") == []
    assert result.items[1].phone is None
