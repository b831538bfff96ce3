from datetime import date
import re

from ptajournal.commodity import Commodity
from ptajournal.currency import CurrencyRegistry
from ptajournal.errors import UnimplementedError, CommodityParseError, \
    ComplexCommodityError, TooManyComponentsError, UnrecognizedOperatorError

PER_UNIT = "per_unit"
PER_LOT = "per_lot"

RE_WHITESPACE = re.compile(r"[ \t]+")
RE_EQUAL = re.compile(r"=")
RE_LOT = re.compile(r"(\{+) *(=?) *([^}]+)\}+")
RE_LAMBDA = re.compile(r"\(\((.+)\)\)")
RE_DATE = re.compile(r"\[(\d{4})-(\d{1,2})-(\d{1,2})\]")
RE_OPERATION = re.compile(r"(@{1,2})")
RE_EXPRESSION = re.compile(r"\(([^)]+)\)")

MSG_TOO_MANY = "Too many {} in ComplexCommodity from_str. Against: {!r}"
MSG_UNPARSEABLE = "The ComplexCommodity {!r} appears to be unparseable"

def to_operator(token: str) -> str:
    if token in ("@", "{"):
        return PER_UNIT
    if token in ("@@", "{{"):
        return PER_LOT
    raise UnrecognizedOperatorError(f"Unrecognized operator {token!r}")

class Cursor():
    """A position in the string being parsed.

    Each match() is tried at the current position only, and advances past
    the matched text when it succeeds.
    """
    def __init__(self, line: str, begin: int = 0):
        self.line = line
        self.consumed = begin
    def at_end(self) -> bool:
        return self.consumed >= len(self.line)
    def remainder(self) -> str:
        return self.line[self.consumed:]
    def match(self, pattern: re.Pattern) -> re.Match | None:
        m = pattern.match(self.line, self.consumed)
        if m:
            self.consumed = m.end()
        return m

class ComplexCommodity():
    """A ledger cost expression, such as "-10 AAPL {{$500.00}} @@ $750.00".

    `left` is the commodity being moved, `right` is what it was priced at,
    and `operation` says whether that price is per unit ("@") or for the
    whole lot ("@@"). The lot price, lot date, parenthesised expressions
    and lambda are kept as written so they can be serialized back.
    """
    def __init__(self, left: Commodity | None = None,
                 right: Commodity | None = None,
                 operation: str | None = None,
                 left_date: date | None = None,
                 left_lot: Commodity | None = None,
                 left_lot_operation: str | None = None,
                 left_lot_is_equal: bool = False,
                 left_expression: str | None = None,
                 right_expression: str | None = None,
                 left_lambda: str | None = None,
                 left_is_equal: bool = False,
                 right_is_equal: bool = False):
        self.left = left
        self.right = right
        self.operation = operation
        self.left_date = left_date
        self.left_lot = left_lot
        self.left_lot_operation = left_lot_operation
        self.left_lot_is_equal = left_lot_is_equal
        self.left_expression = left_expression
        self.right_expression = right_expression
        self.left_lambda = left_lambda
        self.left_is_equal = left_is_equal
        self.right_is_equal = right_is_equal

    def _assert_left(self):
        if self.left is None:
            raise UnimplementedError(
                f"No left commodity in {self}, unable to determine its sign")

    def is_positive(self) -> bool:
        self._assert_left()
        return self.left.is_positive()

    def invert(self) -> "ComplexCommodity":
        self._assert_left()
        self.left.invert()
        return self

    def to_str(self) -> str:
        parts = []
        if self.left_is_equal:
            parts.append("=")
        if self.left:
            parts.append(str(self.left))
        if self.left_lot_operation and self.left_lot:
            lot = ("=" if self.left_lot_is_equal else "") + str(self.left_lot)
            if self.left_lot_operation == PER_UNIT:
                parts.append("{" + lot + "}")
            else:
                parts.append("{{" + lot + "}}")
        if self.left_date:
            parts.append(f"[{self.left_date.isoformat()}]")
        if self.left_expression:
            parts.append(f"({self.left_expression})")
        if self.left_lambda:
            parts.append(f"(({self.left_lambda}))")
        if self.operation:
            parts.append("@" if self.operation == PER_UNIT else "@@")
        if self.right_is_equal:
            parts.append("=")
        if self.right:
            parts.append(str(self.right))
        if self.right_expression:
            parts.append(f"({self.right_expression})")
        return " ".join(parts)

    def __str__(self):
        return self.to_str()

    def __repr__(self):
        return f"ComplexCommodity({self.to_str()!r})"

    @classmethod
    def from_str(cls, string: str,
                 registry: CurrencyRegistry | None = None) \
            -> "ComplexCommodity":
        fields = {}

        def set_once(key, value):
            if key in fields:
                raise TooManyComponentsError(MSG_TOO_MANY.format(key, string))
            fields[key] = value

        cursor = Cursor(string)
        while not cursor.at_end():
            if cursor.match(RE_WHITESPACE):
                continue
            if cursor.match(RE_EQUAL):
                set_once("right_is_equal" if "operation" in fields
                         else "left_is_equal", True)
                continue
            m = cursor.match(RE_LOT)
            if m:
                try:
                    lot = Commodity.from_str(m.group(3).strip(), registry)
                except CommodityParseError as e:
                    raise ComplexCommodityError(
                        MSG_UNPARSEABLE.format(string)) from e
                set_once("left_lot", lot)
                fields["left_lot_operation"] = to_operator(m.group(1))
                fields["left_lot_is_equal"] = m.group(2) == "="
                continue
            m = cursor.match(RE_LAMBDA)
            if m:
                set_once("left_lambda", m.group(1))
                continue
            m = cursor.match(RE_DATE)
            if m:
                try:
                    left_date = date(int(m.group(1)), int(m.group(2)),
                                     int(m.group(3)))
                except ValueError as e:
                    raise ComplexCommodityError(
                        f"Invalid lot date {m.group(0)!r} in {string!r}") \
                        from e
                set_once("left_date", left_date)
                continue
            m = cursor.match(RE_OPERATION)
            if m:
                set_once("operation", to_operator(m.group(1)))
                continue
            m = cursor.match(RE_EXPRESSION)
            if m:
                set_once("right_expression" if "operation" in fields
                         else "left_expression", m.group(1))
                continue
            try:
                commodity, remainder = Commodity.from_str_with_remainder(
                    cursor.remainder(), registry)
            except CommodityParseError as e:
                raise ComplexCommodityError(
                    MSG_UNPARSEABLE.format(string)) from e
            set_once("right" if "operation" in fields else "left", commodity)
            cursor.consumed = len(string) - len(remainder)
        return cls(**fields)
