"""Niche catalog shared by categorization, forecasts and the signup/settings UI."""

UNCATEGORIZED = "Uncategorized"

NICHES = [
    "Fashion",
    "Beauty",
    "Fitness",
    "Food",
    "Travel",
    "Tech",
    "Gaming",
    "Finance",
    "Education",
    "DIY",
    "Comedy",
    "Dance",
    "Music",
    "Art",
    "Pets",
    "Parenting",
    "Lifestyle",
    "Business",
]


def match_niche(label: str, niches: list[str]) -> str | None:
    """Return the catalog spelling of `label`, or None if it is not in the catalog."""
    wanted = label.strip().casefold()
    for niche in niches:
        if niche.casefold() == wanted:
            return niche
    return None
