"""Static covariate tables used by the synthetic generators.

The tables are plain read-only mappings bundled into a frozen
:class:`Covariates` object that is passed explicitly into every generator.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from schoolter.schemas.school import Phase

# ---------------------------------------------------------------------------
# Target areas
# ---------------------------------------------------------------------------

LONDON_BOROUGHS: tuple[str, ...] = (
    "Barking and Dagenham", "Barnet", "Bexley", "Brent", "Bromley", "Camden",
    "City of London", "Croydon", "Ealing", "Enfield", "Greenwich", "Hackney",
    "Hammersmith and Fulham", "Haringey", "Harrow", "Havering", "Hillingdon",
    "Hounslow", "Islington", "Kensington and Chelsea", "Kingston upon Thames",
    "Lambeth", "Lewisham", "Merton", "Newham", "Redbridge",
    "Richmond upon Thames", "Southwark", "Sutton", "Tower Hamlets",
    "Waltham Forest", "Wandsworth", "Westminster",
)

KENT_DISTRICTS: tuple[str, ...] = (
    "Ashford", "Canterbury", "Dartford", "Dover", "Folkestone and Hythe",
    "Gravesham", "Maidstone", "Sevenoaks", "Swale", "Thanet",
    "Tonbridge and Malling", "Tunbridge Wells", "Medway",
)

# ---------------------------------------------------------------------------
# Affluence tiers (1 = most affluent, 4 = least)
# ---------------------------------------------------------------------------

DEFAULT_TIER = 3

_AREA_TIER = {
    # London
    "Westminster": 1, "Kensington and Chelsea": 1, "Camden": 1, "Richmond upon Thames": 1,
    "City of London": 1,
    "Wandsworth": 2, "Hammersmith and Fulham": 2, "Islington": 2, "Southwark": 2, "Lambeth": 2,
    "Barnet": 2, "Bromley": 2, "Kingston upon Thames": 2, "Merton": 2, "Sutton": 2,
    "Greenwich": 3, "Lewisham": 3, "Hackney": 3, "Tower Hamlets": 3, "Newham": 3,
    "Brent": 3, "Ealing": 3, "Haringey": 3, "Hounslow": 3, "Enfield": 3,
    "Redbridge": 3, "Waltham Forest": 3, "Croydon": 3, "Harrow": 3, "Hillingdon": 3,
    "Bexley": 3, "Havering": 3, "Barking and Dagenham": 4,
    # Kent
    "Sevenoaks": 1, "Tonbridge and Malling": 2, "Tunbridge Wells": 2, "Canterbury": 2,
    "Maidstone": 3, "Dartford": 3, "Gravesham": 3, "Medway": 3, "Dover": 3,
    "Folkestone and Hythe": 3, "Ashford": 3, "Swale": 3, "Kent": 3, "Thanet": 4,
}

# ---------------------------------------------------------------------------
# Ofsted rating -> quality multiplier
# ---------------------------------------------------------------------------

DEFAULT_MULTIPLIER = 1.0

_RATING_MULTIPLIER = {
    "Outstanding": 1.15,
    "Good": 1.05,
    "N/A": 1.00,
    "Requires Improvement": 0.90,
    "Inadequate": 0.80,
}

# ---------------------------------------------------------------------------
# Area categories for demographics
# ---------------------------------------------------------------------------

INNER_DIVERSE = "inner_diverse"
CENTRAL_AFFLUENT = "central_affluent"
OUTER_SUBURBAN = "outer_suburban"
KENT = "kent"
DEFAULT_CATEGORY = "default"

_AREA_CATEGORY = {
    **{
        area: INNER_DIVERSE
        for area in (
            "Tower Hamlets", "Newham", "Hackney", "Brent", "Haringey", "Lambeth",
            "Southwark", "Lewisham", "Waltham Forest", "Barking and Dagenham",
            "Ealing", "Hounslow", "Redbridge", "Greenwich",
        )
    },
    **{
        area: CENTRAL_AFFLUENT
        for area in (
            "Westminster", "Kensington and Chelsea", "Camden", "Islington",
            "Hammersmith and Fulham", "Wandsworth", "City of London", "Richmond upon Thames",
        )
    },
    **{
        area: OUTER_SUBURBAN
        for area in (
            "Bromley", "Bexley", "Havering", "Sutton", "Kingston upon Thames",
            "Merton", "Barnet", "Harrow", "Hillingdon", "Enfield", "Croydon",
        )
    },
    **{area: KENT for area in KENT_DISTRICTS},
    "Kent": KENT,
}

# Typical roll used when a school's pupil count is unknown
DEFAULT_PUPILS: Mapping[Phase, int] = MappingProxyType(
    {
        Phase.NURSERY: 60,
        Phase.PRIMARY: 420,
        Phase.SECONDARY: 1000,
        Phase.ALL_THROUGH: 1400,
        Phase.SPECIAL: 120,
        Phase.SIXTEEN_PLUS: 400,
    }
)


@dataclass(frozen=True)
class Covariates:
    """Read-only lookup context shared by all generators."""

    area_tiers: Mapping[str, int] = field(default_factory=lambda: MappingProxyType(dict(_AREA_TIER)))
    rating_multipliers: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(_RATING_MULTIPLIER))
    )
    area_categories: Mapping[str, str] = field(default_factory=lambda: MappingProxyType(dict(_AREA_CATEGORY)))
    reference_year: int = 2023

    def area_tier(self, area: str | None) -> int:
        """Return the affluence tier for *area*, defaulting to tier 3."""
        if not area:
            return DEFAULT_TIER
        return self.area_tiers.get(area, DEFAULT_TIER)

    def rating_multiplier(self, rating: str | None) -> float:
        if not rating:
            return DEFAULT_MULTIPLIER
        return self.rating_multipliers.get(rating, DEFAULT_MULTIPLIER)

    def area_category(self, area: str | None) -> str:
        if not area:
            return DEFAULT_CATEGORY
        return self.area_categories.get(area, DEFAULT_CATEGORY)

    @staticmethod
    def tier_bonus(tier: int) -> int:
        """Additive score bonus: 15 for tier 1 down to 0 for tier 4."""
        return (4 - tier) * 5

    @property
    def data_year(self) -> str:
        return str(self.reference_year)


def is_kent_area(area: str | None) -> bool:
    return area == "Kent" or area in KENT_DISTRICTS
