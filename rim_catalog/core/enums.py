"""Enums and constants for the catalog engine."""

from enum import Enum


class FilterField(str, Enum):
    """Filterable catalog fields."""

    SEARCH = "search"
    MODEL = "model"
    SIZE = "size"
    BOLT_PATTERN = "bolt_pattern"
    FINISH = "finish"
    DEFECT_TYPE = "defect_type"

    @classmethod
    def from_string(cls, value: str | None) -> "FilterField | None":
        """Convert string to enum, accepting camelCase aliases."""
        if not value:
            return None
        aliases = {
            "boltpattern": cls.BOLT_PATTERN,
            "defecttype": cls.DEFECT_TYPE,
        }
        normalized = value.strip().lower()
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return None


class CatalogStatus(str, Enum):
    """Controller states."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    LOADING_MORE = "loading_more"
    ERROR = "error"


class FetchKind(str, Enum):
    """Whether a fetch replaces the buffer or extends it."""

    INITIAL = "initial"
    APPEND = "append"


class CatalogMode(str, Enum):
    """Which side of the soft-delete line a query looks at."""

    ACTIVE = "active"
    TRASH = "trash"


# Inspection defect tags offered by the admin form and the defect filter
DEFECT_TYPES: list[str] = [
    "Amassado Externo",
    "Amassado Interno",
    "Batida de Pedra",
    "Bicho do verniz",
    "Corrosão por Solupan",
    "Defeito na pintura",
    "Deformação Térmica",
    "Desbalanceamento Crônico",
    "Descascamento de Verniz",
    "Desgaste de Assentamento",
    "Empeno Lateral",
    "Empeno Radial",
    "Furação errada",
    "Furo de Fixação Ovalado",
    "Microfissura de Fadiga",
    "Obsoleta",
    "Oxidação",
    "Perda de Alinhamento",
    "Porosidade no Alumínio",
    "Ralado de Guia",
    "Risco no Diamantado",
    "Roda batida",
    "Roda montada",
    "Solda Anterior Trincada",
    "Trinca na Borda",
    "Trinca no Cubo",
]

# Size chips shown by the storefront ("Aro" = rim diameter in inches)
SIZES: list[str] = [
    "Aro 13",
    "Aro 14",
    "Aro 15",
    "Aro 16",
    "Aro 17",
    "Aro 18",
    "Aro 19",
    "Aro 20",
    "Aro 22",
]

SIZE_LABEL_PREFIX = "Aro "

# Columns read by the facet projection
FACET_COLUMNS: list[str] = ["model", "bolt_pattern", "finish"]

# A sellable group is every unit sharing these
GROUP_COLUMNS: list[str] = ["model", "size", "bolt_pattern", "finish"]

MAX_PHOTOS = 3
