import csv
import logging
from dataclasses import asdict, dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Reference sheet headers are long and occasionally reworded; match on prefix
COLUMN_PREFIXES = {
    "name": "profile",
    "description": "short description",
    "examples": "example creators",
    "audience_scale": "audience scale",
    "rationale": "why",
}


@dataclass
class IdealProfile:
    name: str
    description: str = ""
    examples: str = ""
    audience_scale: str = ""
    rationale: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def _resolve_columns(headers: list[str]) -> dict[str, Optional[str]]:
    resolved: dict[str, Optional[str]] = {}
    for field_name, prefix in COLUMN_PREFIXES.items():
        resolved[field_name] = next(
            (h for h in headers if h and h.strip().lower().startswith(prefix)),
            None,
        )
    return resolved


def load_ideal_profiles(csv_path: str) -> list[IdealProfile]:
    """Read the ideal creator profiles sheet, in the order it declares them."""
    with open(csv_path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        columns = _resolve_columns(reader.fieldnames or [])
        if not columns["name"]:
            raise ValueError(f"{csv_path} has no 'Profile' column")

        profiles = []
        for row in reader:
            values = {
                field_name: (row.get(column) or "").strip() if column else ""
                for field_name, column in columns.items()
            }
            if not values["name"]:
                continue
            profiles.append(IdealProfile(**values))

    logger.info("Loaded %d ideal profiles from %s", len(profiles), csv_path)
    return profiles


def build_profile_descriptions(profiles: list[IdealProfile]) -> str:
    return "\n".join(
        f"{i}. {p.name}: {p.description}. Examples: {p.examples}. "
        f"Scale: {p.audience_scale}. Why: {p.rationale}"
        for i, p in enumerate(profiles, start=1)
    )
