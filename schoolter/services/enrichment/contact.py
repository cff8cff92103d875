"""Synthetic contact details: phone, email, headteacher, website."""

from __future__ import annotations

import re

from schoolter.schemas.school import Contact, SchoolRecord
from schoolter.services.enrichment.covariates import Covariates, is_kent_area
from schoolter.services.enrichment.prng import SeededRandom

FIRST_NAMES = ("Sarah", "John", "Emma", "Michael", "Rachel", "David", "Claire", "James", "Helen", "Richard")
LAST_NAMES = ("Smith", "Johnson", "Williams", "Brown", "Jones", "Taylor", "Davies", "Wilson", "Evans", "Thomas")
TITLES = ("Mr", "Mrs", "Ms", "Dr")

# Kent STD codes by district
KENT_DIALLING_CODES = {
    "Maidstone": "01622",
    "Tunbridge Wells": "01892",
    "Tonbridge and Malling": "01732",
    "Sevenoaks": "01732",
    "Canterbury": "01227",
    "Dover": "01304",
    "Folkestone and Hythe": "01303",
    "Thanet": "01843",
    "Ashford": "01233",
    "Swale": "01795",
    "Dartford": "01322",
    "Gravesham": "01474",
    "Medway": "01634",
}
DEFAULT_KENT_CODE = "01622"

MAX_SLUG_LENGTH = 25

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def website_domain(website: str | None) -> str | None:
    """Bare host of *website* (``https://www.abc.sch.uk/x`` -> ``abc.sch.uk``)."""
    if not website:
        return None
    host = re.sub(r"^[a-z]+://", "", website.strip().lower())
    host = host.split("/", 1)[0].split("?", 1)[0].split(":", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    return host or None


def slugify_name(name: str) -> str:
    return _NON_ALNUM.sub("", name.lower())[:MAX_SLUG_LENGTH] or "school"


def _phone(school: SchoolRecord, rng: SeededRandom) -> str:
    if is_kent_area(school.borough) or school.region == "Kent":
        code = KENT_DIALLING_CODES.get(school.borough, DEFAULT_KENT_CODE)
        return f"{code} {rng.next_int(100000, 999999)}"
    return f"020 {rng.next_int(7000, 8999)} {rng.next_int(1000, 9999)}"


def generate_contact(school: SchoolRecord, rng: SeededRandom, covariates: Covariates) -> Contact:
    """Generate a contact block for *school*.

    State schools get ``office@<slug>.sch.uk``, private schools
    ``admissions@<slug>.org.uk``; a known website domain replaces the
    synthesised one.
    """
    first = rng.pick(FIRST_NAMES)
    last = rng.pick(LAST_NAMES)
    title = rng.pick(TITLES)
    phone = _phone(school, rng)

    mailbox = "admissions" if school.is_private else "office"
    domain = website_domain(school.website)
    if domain is None:
        suffix = "org.uk" if school.is_private else "sch.uk"
        domain = f"{slugify_name(school.name)}.{suffix}"
        website = f"https://www.{domain}"
    else:
        website = school.website

    return Contact(
        phone=phone,
        email=f"{mailbox}@{domain}",
        headteacher=f"{title} {first} {last}",
        website=website,
    )
