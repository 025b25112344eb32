import unicodedata
from typing import List, Sequence, Tuple

from .models import ASC, DESC, SORT_SPECS, Record


def collation_key(text: str) -> Tuple[str, str, str]:
    """
    Sort key approximating a locale compare.

    Letters compare ignoring accents and case first, then accents break
    ties, then lowercase sorts before uppercase.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), decomposed.casefold(), text.swapcase())


def sort_records(
    records: Sequence[Record], field: str, direction: str = ASC
) -> List[Record]:
    # "no" is rank-in-response, which is not meaningful to order by, so both
    # columns order by name.
    if field not in SORT_SPECS:
        raise ValueError(f"Unknown sort field: {field!r}")
    if direction not in (ASC, DESC):
        raise ValueError(f"Unknown sort direction: {direction!r}")
    return sorted(
        records,
        key=lambda record: collation_key(record.name),
        reverse=direction == DESC,
    )


def toggle_direction(direction: str) -> str:
    return DESC if direction == ASC else ASC
