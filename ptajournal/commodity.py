from typing import Union
from decimal import Decimal, Context, ROUND_HALF_UP
import re

from ptajournal import currency as currency_table
from ptajournal.currency import CurrencyRegistry
from ptajournal.errors import ConversionError, UnimplementedError, \
    CommodityParseError

MATCH_AMOUNT = r'([-]?[ ]*?[\d,]+(?:\.[\d]+|))'
MATCH_CODE = r'(?:(?<!\\)"(.+)(?<!\\)"|([^ \-\d]+))'
MATCH_COMMODITY = (r'\A(?:' + MATCH_CODE + r'[ ]*?' + MATCH_AMOUNT + '|' +
                   MATCH_AMOUNT + r'[ ]*?' + MATCH_CODE)

RE_COMMODITY = re.compile(MATCH_COMMODITY + r')\Z')
RE_COMMODITY_WITH_REMAINDER = re.compile(MATCH_COMMODITY + r')(.*?)\Z')
RE_TRAILING_ZEROS = re.compile(r'\A.+?(0+)\Z')
RE_DIGIT = re.compile(r"\d")

# Results of "*" and "/" are rounded to this many decimal places.
MAX_DECIMAL_DIGITS = 17

# Wide enough that quantities are never rounded before the
# MAX_DECIMAL_DIGITS step.
DECIMAL_CONTEXT = Context(prec=200, rounding=ROUND_HALF_UP)

Numeric = Union[int, float, Decimal]

def _to_decimal(value: Numeric) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)

def quantize(value: Decimal, digits: int = MAX_DECIMAL_DIGITS) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP,
                          context=DECIMAL_CONTEXT)

def decimal_as_str(value: Decimal) -> str:
    """Plain notation, trailing zeros dropped, one fractional digit kept.

    decimal_as_str(Decimal("17.000")) == "17.0"
    """
    s = format(value, "f")
    if "." not in s:
        return s + ".0"
    s = s.rstrip("0")
    if s.endswith("."):
        s += "0"
    return s

def _precision_and_quantity(amount) -> tuple[int, int]:
    s = str(amount)
    precision = len(s) - s.index(".") - 1 if "." in s else 0
    return (precision, int(s.replace(".", "")))

class Commodity():
    """A fixed point quantity of some currency or commodity.

    The value is quantity / 10 ** precision. `code` is what gets written
    ("$", "AAPL", "crab apples") and `alphabetic_code` is the identity used
    to decide whether two commodities can be compared, added or converted.
    For a known currency that is its ISO-4217 code, otherwise the code
    itself.
    """
    def __init__(self, code: str | None, alphabetic_code: str | None,
                 quantity: int, precision: int,
                 registry: CurrencyRegistry | None = None):
        self.code = code
        self.alphabetic_code = alphabetic_code
        self.quantity = int(quantity)
        self.precision = int(precision)
        self._registry = registry
    @property
    def registry(self) -> CurrencyRegistry:
        return self._registry or currency_table.default_registry()
    def _derive(self, quantity: int, precision: int) -> "Commodity":
        return Commodity(self.code, self.alphabetic_code, quantity, precision,
                         self._registry)
    def copy(self) -> "Commodity":
        return self._derive(self.quantity, self.precision)
    def quantity_as_decimal_pair(self) -> tuple[int, int]:
        """(characteristic, mantissa) of the absolute value."""
        characteristic = abs(self.quantity) // (10 ** self.precision)
        return (characteristic,
                abs(self.quantity) - characteristic * (10 ** self.precision))
    def quantity_as_str(self, precision: int | None = None,
                        commatize: bool = False) -> str:
        if precision is not None:
            characteristic, mantissa = \
                self.round(precision).quantity_as_decimal_pair()
        else:
            characteristic, mantissa = self.quantity_as_decimal_pair()
            precision = self.precision
        characteristic = str(characteristic)
        if commatize:
            characteristic = re.sub(
                r"(\d{3})(?=\d)", r"\1,", characteristic[::-1])[::-1]
        ret = "-" if self.is_negative() else ""
        ret += characteristic
        if precision > 0:
            ret += "." + str(mantissa).rjust(precision, "0")
        return ret
    def to_str(self, precision: int | None = None, commatize: bool = False,
               no_code: bool = False) -> str:
        quantity = self.quantity_as_str(precision, commatize)
        if not self.code or no_code:
            return quantity
        code = f'"{self.code}"' if " " in self.code else self.code
        if len(self.code) == 1:
            return f"{code} {quantity}"
        return f"{quantity} {code}"
    def __str__(self):
        return self.to_str()
    def __repr__(self):
        return (f"Commodity({self.code!r}, {self.alphabetic_code!r}, "
                f"{self.quantity}, {self.precision})")
    def to_decimal(self) -> Decimal:
        return Decimal(self.quantity).scaleb(-self.precision,
                                             context=DECIMAL_CONTEXT)
    def to_float(self) -> float:
        return float(self.quantity_as_str())
    def __float__(self):
        return self.to_float()
    def is_positive(self) -> bool:
        return self.quantity > 0
    def is_negative(self) -> bool:
        return self.quantity < 0
    def invert(self) -> "Commodity":
        """Negate in place."""
        self.quantity *= -1
        return self
    def abs(self) -> "Commodity":
        return self._derive(abs(self.quantity), self.precision)
    def __abs__(self):
        return self.abs()
    def __neg__(self):
        return self._derive(-self.quantity, self.precision)
    def _round_or_floor(self, digit: int, round_up: bool) -> "Commodity":
        if digit < 0:
            raise UnimplementedError(
                f"Unable to round {self} to {digit} digits")
        characteristic, mantissa = self.quantity_as_decimal_pair()
        quantity = characteristic * (10 ** digit)
        if self.precision >= digit:
            quantity += mantissa // (10 ** (self.precision - digit))
        else:
            quantity += mantissa * (10 ** (digit - self.precision))
        if round_up and mantissa > 0 and self.precision > digit:
            # The first digit that was dropped.
            if (mantissa // (10 ** (self.precision - digit - 1))) % 10 >= 5:
                quantity += 1
        return self._derive(quantity if self.is_positive() else -quantity,
                            digit)
    def round(self, digit: int) -> "Commodity":
        return self._round_or_floor(digit, True)
    def floor(self, digit: int) -> "Commodity":
        return self._round_or_floor(digit, False)

    def assert_commodity(self, other: "Commodity") -> None:
        if other.alphabetic_code not in (self.alphabetic_code, self.code):
            raise ConversionError(
                f"Provided commodity {other!r} does not match "
                f"{[self.alphabetic_code, self.code]!r}")

    def _denominated_against(self, other: "Commodity") -> tuple[int, int, int]:
        """Both quantities expressed at the larger of the two precisions."""
        if self.precision > other.precision:
            return (self.quantity,
                    other.quantity * 10 ** (self.precision - other.precision),
                    self.precision)
        if self.precision < other.precision:
            return (self.quantity * 10 ** (other.precision - self.precision),
                    other.quantity,
                    other.precision)
        return (self.quantity, other.quantity, self.precision)

    def compare(self, other: "Commodity") -> int:
        self.assert_commodity(other)
        lquantity, rquantity, _ = self._denominated_against(other)
        return (lquantity > rquantity) - (lquantity < rquantity)

    def __eq__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self.compare(other) == 0
    def __lt__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self.compare(other) < 0
    def __le__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self.compare(other) <= 0
    def __gt__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self.compare(other) > 0
    def __ge__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self.compare(other) >= 0

    # Mutable through invert().
    __hash__ = None

    def _scale(self, other, divide: bool) -> "Commodity":
        if isinstance(other, Commodity):
            self.assert_commodity(other)
            raise UnimplementedError(
                f"Unable to {'divide' if divide else 'multiply'} "
                f"{self} by another commodity {other}")
        if not isinstance(other, (int, float, Decimal)):
            return NotImplemented
        lvalue = Decimal(self.quantity_as_str())
        if divide:
            result = DECIMAL_CONTEXT.divide(lvalue, _to_decimal(other))
        else:
            result = DECIMAL_CONTEXT.multiply(lvalue, _to_decimal(other))
        return Commodity.from_symbol_and_amount(
            self.code, decimal_as_str(quantize(result)), self._registry)

    def __mul__(self, other):
        return self._scale(other, False)
    def __rmul__(self, other):
        if isinstance(other, Commodity):
            return NotImplemented
        return self._scale(other, False)
    def __truediv__(self, other):
        return self._scale(other, True)

    def _add_or_sub(self, other: "Commodity", subtract: bool) -> "Commodity":
        self.assert_commodity(other)
        lquantity, rquantity, precision = self._denominated_against(other)
        result = lquantity - rquantity if subtract else lquantity + rquantity

        currency = self.registry.from_code_or_symbol(self.code)
        if result == 0:
            return self._derive(
                0, currency.minor_unit if currency else precision)

        # Trim trailing zeros that were only there because of the wider
        # operand, but never below the currency's minor unit.
        m = RE_TRAILING_ZEROS.match(str(result))
        if currency and precision > currency.minor_unit and m:
            trim = len(m.group(1))
            precision -= trim
            if precision < currency.minor_unit:
                trim -= currency.minor_unit - precision
                precision = currency.minor_unit
            result //= 10 ** trim
        return self._derive(result, precision)

    def __add__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self._add_or_sub(other, False)
    def __radd__(self, other):
        # sum() starts from 0.
        if isinstance(other, int) and not isinstance(other, bool):
            return self._derive(other, self.precision) + self
        return NotImplemented
    def __sub__(self, other):
        if not isinstance(other, Commodity):
            return NotImplemented
        return self._add_or_sub(other, True)

    @classmethod
    def from_symbol_and_amount(cls, symbol: str | None, amount=0,
                               registry: CurrencyRegistry | None = None) \
            -> "Commodity":
        """Build a commodity from a code and an amount like "12.50" or 3.

        A known currency never gets fewer decimal places than its minor
        unit, so "$ 1" is stored as 100 at precision 2. Larger precisions
        are kept, for fractions of a cent.
        """
        currency = (registry or currency_table.default_registry()) \
            .from_code_or_symbol(symbol)
        precision, quantity = _precision_and_quantity(amount)
        if currency and currency.minor_unit > precision:
            quantity *= 10 ** (currency.minor_unit - precision)
            precision = currency.minor_unit
        return cls(symbol, currency.alphabetic_code if currency else symbol,
                   quantity, precision, registry)

    @classmethod
    def _from_match(cls, m: re.Match | None, string: str,
                    registry: CurrencyRegistry | None) -> "Commodity":
        code = None
        amount = None
        if m and (m.group(1) or m.group(2)):
            code = m.group(1) or m.group(2)
            amount = m.group(3)
        elif m and m.group(4):
            code = m.group(5) or m.group(6)
            amount = m.group(4)
        if not code or not amount:
            raise CommodityParseError(
                f"Unimplemented Commodity from_str. Against: {string!r}",
                context=string)
        amount = amount.replace(",", "").replace(" ", "")
        if not RE_DIGIT.search(amount):
            raise CommodityParseError(
                f"No digits in Commodity from_str. Against: {string!r}",
                context=string)
        return cls.from_symbol_and_amount(code, amount, registry)

    @classmethod
    def from_str(cls, string: str,
                 registry: CurrencyRegistry | None = None) -> "Commodity":
        return cls._from_match(RE_COMMODITY.match(string), string, registry)

    @classmethod
    def from_str_with_remainder(cls, string: str,
                                registry: CurrencyRegistry | None = None) \
            -> tuple["Commodity", str]:
        """Parse a commodity off the front of `string`.

        Returns the commodity and whatever text follows it.
        """
        m = RE_COMMODITY_WITH_REMAINDER.match(string)
        return (cls._from_match(m, string, registry), m.group(7))
