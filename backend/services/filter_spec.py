"""FilterSpec value object: canonical, comparable saved-search criteria.

Two specs built from the same values compare equal regardless of the order or
container type the values arrived in, which is what lets the store tell an
edited search from a re-saved one.
"""

from dataclasses import dataclass, field, fields

from backend.services.errors import ValidationError

_SET_FIELDS = ("brands", "fuel_types", "transmissions", "locations", "condition")
_RANGE_FIELDS = ("price_range", "year_range", "mileage_range")

# Accepted spellings coming from the web client
_CAMEL_KEYS = {
    "searchQuery": "search_query",
    "priceRange": "price_range",
    "yearRange": "year_range",
    "mileageRange": "mileage_range",
    "fuelTypes": "fuel_types",
}


@dataclass(frozen=True)
class NumericRange:
    """Inclusive [min, max] bound on one listing dimension."""

    min: float
    max: float

    def contains(self, value) -> bool:
        return value is not None and self.min <= value <= self.max

    def to_list(self) -> list:
        return [self.min, self.max]


def _to_range(name: str, value) -> NumericRange | None:
    if value is None or isinstance(value, NumericRange):
        return value
    if isinstance(value, dict):
        value = (value.get("min"), value.get("max"))
    try:
        low, high = value
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a (min, max) pair")
    for bound in (low, high):
        if isinstance(bound, bool) or not isinstance(bound, (int, float)):
            raise ValidationError(f"{name} bounds must be numbers")
    return NumericRange(low, high)


def _to_frozenset(name: str, value) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        raise ValidationError(f"{name} must be a collection of strings, not a string")
    try:
        items = list(value)
    except TypeError:
        raise ValidationError(f"{name} must be a collection of strings")
    cleaned = set()
    for item in items:
        if not isinstance(item, str):
            raise ValidationError(f"{name} must contain only strings")
        item = item.strip()
        if item:
            cleaned.add(item)
    return frozenset(cleaned)


@dataclass(frozen=True)
class FilterSpec:
    """Immutable saved-search criteria.

    Empty collections and missing ranges mean "no constraint" on that
    dimension. Construction normalises and validates; an invalid spec cannot
    exist, so ``ValidationError`` is raised here rather than at match time.
    """

    search_query: str | None = None
    brands: frozenset = field(default_factory=frozenset)
    price_range: NumericRange | None = None
    year_range: NumericRange | None = None
    mileage_range: NumericRange | None = None
    fuel_types: frozenset = field(default_factory=frozenset)
    transmissions: frozenset = field(default_factory=frozenset)
    locations: frozenset = field(default_factory=frozenset)
    condition: frozenset = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        query = self.search_query
        if query is not None:
            if not isinstance(query, str):
                raise ValidationError("search_query must be a string")
            query = query.strip() or None
        object.__setattr__(self, "search_query", query)

        for name in _SET_FIELDS:
            object.__setattr__(self, name, _to_frozenset(name, getattr(self, name)))
        for name in _RANGE_FIELDS:
            object.__setattr__(self, name, _to_range(name, getattr(self, name)))

        self._validate_ranges()

    def _validate_ranges(self) -> None:
        for name in _RANGE_FIELDS:
            bound = getattr(self, name)
            if bound is None:
                continue
            if bound.min > bound.max:
                raise ValidationError(f"{name} min must be <= max")
            if name != "year_range" and bound.min < 0:
                raise ValidationError(f"{name} bounds must be >= 0")
        if self.year_range is not None:
            if int(self.year_range.min) != self.year_range.min or int(self.year_range.max) != self.year_range.max:
                raise ValidationError("year_range bounds must be whole years")
            object.__setattr__(
                self, "year_range", NumericRange(int(self.year_range.min), int(self.year_range.max))
            )

    @property
    def is_unconstrained(self) -> bool:
        """True when no dimension restricts the listing set."""
        return all(not getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> dict:
        """Convert to the JSON shape stored on the saved search row."""
        data = {"search_query": self.search_query}
        for name in _SET_FIELDS:
            data[name] = sorted(getattr(self, name))
        for name in _RANGE_FIELDS:
            bound = getattr(self, name)
            data[name] = bound.to_list() if bound is not None else None
        return data

    @classmethod
    def from_dict(cls, data: dict | None) -> "FilterSpec":
        """Build a spec from stored JSON or a client payload (snake or camel case keys)."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValidationError("filters must be an object")
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            key = _CAMEL_KEYS.get(key, key)
            if key not in known:
                raise ValidationError(f"Unknown filter field: {key}")
            kwargs[key] = value
        return cls(**kwargs)

    def describe(self) -> list[str]:
        """Short human-readable chips summarising the active constraints."""
        parts = []
        if self.search_query:
            parts.append(f'Search: "{self.search_query}"')
        if self.brands:
            parts.append(f"{len(self.brands)} brand(s)")
        if self.price_range is not None:
            parts.append(f"Price: {self.price_range.min:g}-{self.price_range.max:g}")
        if self.year_range is not None:
            parts.append(f"Year: {self.year_range.min}-{self.year_range.max}")
        if self.mileage_range is not None:
            parts.append(f"Mileage: {self.mileage_range.min:g}-{self.mileage_range.max:g}")
        if self.fuel_types:
            parts.append(f"{len(self.fuel_types)} fuel type(s)")
        if self.transmissions:
            parts.append(f"{len(self.transmissions)} transmission(s)")
        if self.locations:
            parts.append(f"{len(self.locations)} location(s)")
        if self.condition:
            parts.append(f"{len(self.condition)} condition(s)")
        return parts
