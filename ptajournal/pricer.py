from typing import NamedTuple, Callable
from datetime import date, datetime
from decimal import Decimal
import logging
import re

from ptajournal import currency as currency_table
from ptajournal.commodity import Commodity, DECIMAL_CONTEXT, quantize, \
    decimal_as_str
from ptajournal.currency import CurrencyRegistry
from ptajournal.errors import NoPriceError, PriceParseError, Position, \
    CommodityParseError

logger = logging.getLogger(__name__)

RE_PRICE = re.compile(
    r"\AP[ ]+(\d{4}[-/]\d{1,2}[-/]\d{1,2})"
    r"(?:[ ]+(\d{1,2}:\d{1,2}:\d{1,2})|)"
    r"[ ]+([^ ]+)"
    r"[ ]+(.+?)[ ]*\Z")
RE_PRICE_COMMENT = re.compile(r"(?<!\\);.*\Z")
RE_BLANK = re.compile(r"\A[ \t]*\Z")

MSG_UNEXPECTED_LINE = "Unexpected at line {}"
MSG_INVALID_PRICE = "Missing one or more required elements at line {}"
MSG_INVALID_DATETIME = "Invalid datetime at line {}"

BeforePriceAdd = Callable[[datetime, str, Commodity], None]

def price_key(code1: str, code2: str) -> str:
    """The same key whichever way round the pair is given."""
    return " ".join(sorted([code1, code2]))

def to_datetime(at: date | datetime) -> datetime:
    if isinstance(at, datetime):
        return at
    return datetime(at.year, at.month, at.day)

class Price(NamedTuple):
    """One unit of `lcode` was worth `amount` (in `rcode`) at `at`."""
    at: datetime
    lcode: str
    rcode: str
    amount: Commodity
    def to_key(self) -> str:
        return price_key(self.lcode, self.rcode)

class Pricer():
    def __init__(self, contents: str | None = None,
                 before_price_add: BeforePriceAdd | None = None,
                 registry: CurrencyRegistry | None = None):
        self._registry = registry
        self.before_price_add = before_price_add
        self.prices_db: dict[str, list[Price]] = \
            self._parse(contents) if contents else dict()

    @property
    def registry(self) -> CurrencyRegistry:
        return self._registry or currency_table.default_registry()

    def _no_price(self, at: datetime, from_code: str, to_code: str):
        return NoPriceError(
            f"Unable to convert {from_code} to {to_code} at {at}")

    def price(self, at: date | datetime, from_code: str, to_code: str) \
            -> Commodity:
        """What one unit of `from_code` was worth in `to_code` at `at`.

        The latest price recorded no later than `at` is used, in whichever
        direction it was recorded. A price recorded the other way round is
        inverted.
        """
        at = to_datetime(at)
        if not self.prices_db:
            raise self._no_price(at, from_code, to_code)

        from_alpha = self.registry.alphabetic_code(from_code)
        to_alpha = self.registry.alphabetic_code(to_code)

        prices = self.prices_db.get(price_key(from_alpha, to_alpha))
        if not prices or at < prices[0].at:
            raise self._no_price(at, from_code, to_code)

        price = None
        for i in range(1, len(prices)):
            if prices[i].at > at:
                price = prices[i - 1]
                break
        if price is None and prices[-1].at <= at:
            price = prices[-1]
        if price is None:
            raise self._no_price(at, from_code, to_code)

        if price.lcode == from_alpha and \
                price.amount.alphabetic_code == to_alpha:
            return price.amount.copy()

        rate = price.amount.to_decimal()
        if rate == 0:
            raise NoPriceError(
                f"Unable to invert a zero price of {price.amount} "
                f"for {price.lcode} at {price.at}")
        inverse = quantize(DECIMAL_CONTEXT.divide(Decimal(1), rate))
        return Commodity.from_symbol_and_amount(
            to_code, decimal_as_str(inverse), self._registry)

    def convert(self, at: date | datetime, from_commodity: Commodity,
                to_code: str) -> Commodity:
        rate = self.price(at, from_commodity.code, to_code)
        value = DECIMAL_CONTEXT.multiply(from_commodity.to_decimal(),
                                         rate.to_decimal())
        return Commodity.from_symbol_and_amount(
            to_code, decimal_as_str(value), self._registry)

    def add(self, time: date | datetime, from_code: str,
            to: Commodity) -> Price:
        """Record a price, unless it repeats the price in effect at `time`.

        `before_price_add` is called for every price that gets recorded.
        """
        price = Price(to_datetime(time),
                      self.registry.alphabetic_code(from_code),
                      to.alphabetic_code or to.code,
                      to)
        key = price.to_key()
        prices = self.prices_db.get(key)
        if not prices:
            self._before_price_add(time, from_code, to)
            self.prices_db[key] = [price]
            return price

        i = None
        for n, p in enumerate(prices):
            if p.at > price.at:
                i = n
                break
        if i is None:
            preceding = prices[-1]
        elif i > 0:
            preceding = prices[i - 1]
        else:
            preceding = None

        if preceding and _same_rate(preceding, price):
            return price

        self._before_price_add(time, from_code, to)
        if i is None:
            prices.append(price)
        else:
            prices.insert(i, price)
        return price

    def _before_price_add(self, time, from_code: str, to: Commodity) -> None:
        if self.before_price_add:
            self.before_price_add(time, from_code, to)

    def _parse(self, contents: str) -> dict[str, list[Price]]:
        prices = []
        for n, raw in enumerate(contents.split("\n"), start=1):
            raw = raw.rstrip("\r")
            position = Position(n, 0)
            line = RE_PRICE_COMMENT.sub("", raw)
            if RE_BLANK.match(line):
                continue
            m = RE_PRICE.match(line)
            if not m:
                raise PriceParseError(
                    MSG_UNEXPECTED_LINE.format(n), position, raw)
            try:
                fields = [int(i) for i in re.split("[-/]", m.group(1))]
                if m.group(2):
                    fields += [int(i) for i in m.group(2).split(":")]
                at = datetime(*fields)
            except ValueError as e:
                raise PriceParseError(
                    MSG_INVALID_DATETIME.format(n), position, raw) from e
            try:
                amount = Commodity.from_str(m.group(4), self._registry)
            except CommodityParseError as e:
                raise PriceParseError(
                    MSG_INVALID_PRICE.format(n), position, raw) from e
            prices.append(Price(at,
                                self.registry.alphabetic_code(m.group(3)),
                                amount.alphabetic_code or amount.code,
                                amount))

        prices_db: dict[str, list[Price]] = dict()
        for price in sorted(prices, key=lambda p: p.at):
            prices_db.setdefault(price.to_key(), []).append(price)
        logger.debug(f"Parsed {len(prices)} prices "
                     f"for {len(prices_db)} pairs.")
        return prices_db

def _same_rate(before: Price, price: Price) -> bool:
    """Whether `price` just repeats `before`."""
    if before.lcode != price.lcode:
        return False
    if price.amount.alphabetic_code not in (before.amount.alphabetic_code,
                                            before.amount.code):
        return False
    return before.amount == price.amount
