"""Seed script for the sponsorship dataset.

Populates the configured store (``STORAGE_BACKEND``) with realistic demo data
for development and testing.  The script is idempotent: a program that
already has students is left alone, and so is its registry.

Usage (from the project root):
    python seed_data.py
"""

from __future__ import annotations

from datetime import date, timedelta

from app.config import get_settings
from app.schemas.dataset import Dataset
from app.services import dataset_service
from app.services.storage import get_repository

# ---------------------------------------------------------------------------
# Demo records
# ---------------------------------------------------------------------------

# (name, package, termly fees, food, medical, transport, admin, cash EUR)
_STUDENTS: dict[str, list[tuple[str, str, float, float, float, float, float, float]]] = {
    "CH": [
        ("Akello Grace", "Day", 150000, 60000, 10000, 15000, 5000, 70),
        ("Okello Brian", "Boarding", 450000, 90000, 15000, 20000, 5000, 95),
        ("Nakato Sarah", "Day", 120000, 60000, 10000, 10000, 5000, 0),
    ],
    "YSP": [
        ("Mugisha Daniel", "Vocational", 300000, 75000, 12000, 25000, 8000, 80),
        ("Atim Esther", "Day", 180000, 60000, 10000, 15000, 5000, 65),
    ],
    "ICCSP": [
        ("Ssempala Joseph", "Boarding", 520000, 95000, 20000, 20000, 6000, 110),
        ("Namubiru Ruth", "Day", 135000, 55000, 8000, 12000, 5000, 50),
    ],
    "OTM_GA": [
        ("Opio Samuel", "Day", 160000, 65000, 10000, 18000, 5000, 60),
    ],
}

# (program, student, sponsor, amount EUR, status, category)
_SPONSORS: list[tuple[str, str, str, float, str, str]] = [
    ("CH", "Akello Grace", "Anna Müller", 70, "active", "Individual"),
    ("CH", "Okello Brian", "St. Mark's Parish", 95, "active", "Church"),
    ("CH", "Nakato Sarah", "Peter Jansen", 40, "inactive", "Individual"),
    ("YSP", "Mugisha Daniel", "Helping Hands e.V.", 80, "active", "Organization"),
    ("YSP", "Atim Esther", "Greenfield School", 65, "active", "School"),
    ("ICCSP", "Ssempala Joseph", "Maria Rossi", 110, "active", "Individual"),
    ("ICCSP", "Namubiru Ruth", "Jan de Vries", 50, "active", "Individual"),
    ("OTM_GA", "Opio Samuel", "Lena Schmidt", 60, "active", "Individual"),
]

_EXPENSES: list[tuple[str, str, float, str]] = [
    ("Akello Grace", "school", 150000, "Term III school fees"),
    ("Okello Brian", "medical", 35000, "Clinic visit and malaria treatment"),
    ("Mugisha Daniel", "transport", 20000, "Bus fare to workshop placement"),
    ("", "admin", 45000, "Office utilities"),
]

_EVENTS: list[tuple[str, int, str]] = [
    ("Sponsor visit", 14, "Visit of the Helping Hands delegation"),
    ("Term III report cards", 30, "Collect and send report cards to sponsors"),
]


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


def seed_students(dataset: Dataset, rate: float) -> int:
    added = 0
    for code, rows in _STUDENTS.items():
        program = dataset.sponsorship_programs.get(code)
        if program is not None and program.students:
            print(f"  [skip] {code} already has {len(program.students)} students")
            continue
        dataset_service.upsert_program(dataset, code, {})
        for name, package, fees, food, medical, transport, admin, cash in rows:
            dataset_service.add_student(
                dataset,
                code,
                {
                    "full_name": name,
                    "sponsorship_package": package,
                    "financial_data": {
                        "termly_school_fees": fees,
                        "direct_spending_school_fees_ugx_monthly": 0,
                        "food": food,
                        "average_medical": medical,
                        "school_personal_requirements_transport": transport,
                        "admin_utilities": admin,
                        "cash_received_euro": cash,
                    },
                },
                rate,
            )
            added += 1
    return added


def seed_sponsors(dataset: Dataset) -> int:
    added = 0
    start = date.today().replace(day=1).isoformat()
    for code, student, sponsor, amount, status, category in _SPONSORS:
        program = dataset.sponsorship_programs.get(code)
        if program is None or all(s.full_name != student for s in program.students):
            print(f"  [skip] {student} is not enrolled in {code}")
            continue
        registry = dataset.sponsorship_registry.get(code)
        if registry is not None and any(s.full_name == student for s in registry.sponsors):
            continue
        dataset_service.add_sponsor(
            dataset,
            code,
            {
                "full_name": student,
                "sponsor": sponsor,
                "amount": amount,
                "sponsorship_status": status,
                "category": category,
                "start_date": start,
            },
        )
        added += 1
    return added


def seed_expenses_and_events(dataset: Dataset) -> int:
    if dataset.daily_expenses or dataset.events:
        print("  [skip] expenses/events already present")
        return 0
    today = date.today()
    for offset, (student, category, amount, description) in enumerate(_EXPENSES):
        dataset_service.add_expense(
            dataset,
            {
                "date": (today - timedelta(days=offset * 3)).isoformat(),
                "studentName": student,
                "category": category,
                "amount": amount,
                "description": description,
            },
        )
    for title, days_ahead, description in _EVENTS:
        dataset_service.add_event(
            dataset,
            {
                "title": title,
                "date": (today + timedelta(days=days_ahead)).isoformat(),
                "description": description,
            },
        )
    return len(_EXPENSES) + len(_EVENTS)


def main() -> None:
    settings = get_settings()
    repository = get_repository()
    print("=" * 60)
    print(f"  Seeding demo data ({settings.STORAGE_BACKEND} backend)")
    print("=" * 60)

    dataset = repository.load()

    print("\n[1/3] Students...")
    print(f"  {seed_students(dataset, repository.rate)} students added")
    print("\n[2/3] Sponsors...")
    print(f"  {seed_sponsors(dataset)} sponsors added")
    print("\n[3/3] Expenses and events...")
    print(f"  {seed_expenses_and_events(dataset)} records added")

    if not repository.save(dataset):
        raise SystemExit("[ERROR] Seed failed: the dataset could not be saved.")

    summary = repository.load().metadata.programs_summary
    print("\n" + "=" * 60)
    print(
        f"  Seed complete: {summary.total_students_across_all_programs} students, "
        f"{summary.total_active_sponsorships} active sponsorships, "
        f"{summary.total_monthly_funding_euros:.2f} EUR/month."
    )
    print("=" * 60)


if __name__ == "__main__":
    main()
