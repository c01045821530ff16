"""Reference sheet of known wheel specs, used to prefill the admin form.

The sheet is a ``;``-separated export with Portuguese headers (modelo, aro,
furação, offset, acabamento). Exports from different spreadsheet tools
disagree on accents and encoding, so headers are normalized before use.
"""

import unicodedata
from pathlib import Path
from typing import Optional

import pandas as pd
from pydantic import BaseModel

from rim_catalog.core.logging import logger
from rim_catalog.utils.converters import safe_int, unique_in_order

REQUIRED_COLUMNS = ("modelo", "aro", "furacao")


class ReferenceSpec(BaseModel):
    model: str
    size: str
    bolt_pattern: str
    offset: Optional[int] = None
    finish: str = ""


def normalize_header(header: str) -> str:
    """Lowercase and strip accents: "Furação" -> "furacao"."""
    decomposed = unicodedata.normalize("NFD", str(header))
    plain = "".join(c for c in decomposed if not unicodedata.combining(c))
    plain = plain.strip().lower()
    # Latin-1 exports read as UTF-8 leave replacement chars where "çã" was
    if plain.startswith("fura"):
        return "furacao"
    return plain


def load_reference_specs(csv_path: str) -> list[ReferenceSpec]:
    """Read the reference sheet, dropping rows without model, size or bolt pattern."""
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(csv_path)

    df = pd.read_csv(path, sep=";", dtype=str, encoding_errors="replace")
    df = df.rename(columns=normalize_header).fillna("")

    specs: list[ReferenceSpec] = []
    skipped = 0
    for _, row in df.iterrows():
        row_dict = {k: str(v).strip() for k, v in row.to_dict().items()}
        if not all(row_dict.get(col) for col in REQUIRED_COLUMNS):
            skipped += 1
            continue
        specs.append(
            ReferenceSpec(
                model=row_dict["modelo"],
                size=row_dict["aro"],
                bolt_pattern=row_dict["furacao"],
                offset=safe_int(row_dict.get("offset")),
                finish=row_dict.get("acabamento", ""),
            )
        )

    logger.info(f"Loaded {len(specs)} reference specs from {path.name} skipped={skipped}")
    return specs


def reference_models(specs: list[ReferenceSpec]) -> list[str]:
    """Distinct model names in sheet order."""
    return unique_in_order([spec.model for spec in specs])
