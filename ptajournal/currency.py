import json
import logging
import os

from ptajournal.errors import CurrencyError

logger = logging.getLogger(__name__)

DEFAULT_CURRENCIES_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)),
    "resources", "iso-4217-currencies.json")

def _to_int(value) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    value = str(value).strip()
    return int(value) if value.isdigit() else 0

class Currency():
    """One row of the ISO-4217 table.

    The alphabetic code is the identity of a currency. The symbol, where the
    table has one, is what journals usually write ("$ 1.00" rather than
    "1.00 USD"). The minor unit is the number of decimal places a plain
    amount of this currency is stored with.
    """
    def __init__(self, entity: str, currency: str, alphabetic_code: str,
                 numeric_code: int, minor_unit: int,
                 symbol: str | None = None):
        self._entity = entity
        self._currency = currency
        self._alphabetic_code = alphabetic_code
        self._numeric_code = _to_int(numeric_code)
        self._minor_unit = _to_int(minor_unit)
        self._symbol = symbol or None
        if not self.is_valid():
            raise CurrencyError(f"Unable to parse currency entry: {self!r}")
    @property
    def entity(self):
        return self._entity
    @property
    def currency(self):
        return self._currency
    @property
    def alphabetic_code(self):
        return self._alphabetic_code
    @property
    def numeric_code(self):
        return self._numeric_code
    @property
    def minor_unit(self):
        return self._minor_unit
    @property
    def symbol(self):
        return self._symbol
    def is_valid(self) -> bool:
        return (bool(self._entity) and bool(self._currency) and
                bool(self._alphabetic_code) and
                self._numeric_code is not None and
                self._minor_unit is not None)
    def to_commodity(self, quantity: int):
        from ptajournal.commodity import Commodity
        return Commodity(self._symbol or self._alphabetic_code,
                         self._alphabetic_code, quantity, self._minor_unit)
    def __eq__(self, other):
        if not isinstance(other, Currency):
            return NotImplemented
        return (self.alphabetic_code == other.alphabetic_code and
                self.numeric_code == other.numeric_code and
                self.minor_unit == other.minor_unit and
                self.symbol == other.symbol)
    def __hash__(self):
        return hash((self._alphabetic_code, self._numeric_code))
    def __repr__(self):
        return (f"Currency({self._entity!r}, {self._currency!r}, "
                f"{self._alphabetic_code!r}, {self._numeric_code!r}, "
                f"{self._minor_unit!r}, {self._symbol!r})")

    @classmethod
    def from_row(cls, row: dict) -> "Currency":
        fields = {k.lower().replace(" ", "_"): v for k, v in row.items()}
        return cls(fields.get("entity"),
                   fields.get("currency"),
                   fields.get("alphabetic_code"),
                   fields.get("numeric_code"),
                   fields.get("minor_unit"),
                   fields.get("symbol"))

class CurrencyRegistry():
    def __init__(self, path: str | None = None,
                 currencies: list[Currency] | None = None):
        self.path = path
        self._currencies = currencies

    @property
    def currencies(self) -> list[Currency]:
        if self._currencies is None:
            self._currencies = self._load()
        return self._currencies

    def _load(self) -> list[Currency]:
        if not self.path or not os.access(self.path, os.R_OK):
            raise CurrencyError(
                f"Missing currency table: {self.path!r}")
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                rows = json.load(f)
            except json.JSONDecodeError as e:
                raise CurrencyError(
                    f"Malformed currency table: {self.path!r}") from e
        currencies = [Currency.from_row(row) for row in rows]
        logger.debug(f"Loaded {len(currencies)} currencies from {self.path}.")
        return currencies

    def from_code_or_symbol(self, code: str | None) -> Currency | None:
        for c in self.currencies:
            if c.alphabetic_code and c.alphabetic_code == code:
                return c
            if c.symbol and c.symbol == code:
                return c
        return None

    def alphabetic_code(self, code: str) -> str:
        """The ISO code for `code`, or `code` itself if it isn't a currency."""
        currency = self.from_code_or_symbol(code)
        return currency.alphabetic_code if currency else code

_default_registry: CurrencyRegistry | None = None

def default_registry() -> CurrencyRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = CurrencyRegistry(DEFAULT_CURRENCIES_PATH)
    return _default_registry

def set_default_registry(registry: CurrencyRegistry | None) -> None:
    global _default_registry
    _default_registry = registry
