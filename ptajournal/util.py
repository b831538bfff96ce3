from ptajournal.commodity import Commodity
from ptajournal.complex_commodity import ComplexCommodity, PER_UNIT
from ptajournal.currency import CurrencyRegistry
from ptajournal.journal import Journal, Parser
from ptajournal.posting import Posting
from ptajournal.pricer import Pricer, BeforePriceAdd

def read_journal(path: str, registry: CurrencyRegistry | None = None) \
        -> Journal:
    p = Parser(registry)
    with open(path, "r", encoding="utf-8") as journal:
        for line in journal:
            p.parse_line(line)
    return p.finish()

def read_pricer(path: str, before_price_add: BeforePriceAdd | None = None,
                registry: CurrencyRegistry | None = None) -> Pricer:
    with open(path, "r", encoding="utf-8") as prices:
        contents = prices.read()
    return Pricer(contents, before_price_add, registry)

def unit_price(cc: ComplexCommodity) -> Commodity | None:
    """The price of one unit of `cc.left`, if it has an "@" or "@@" price."""
    if not (cc.left and cc.right and cc.operation):
        return None
    if cc.operation == PER_UNIT:
        return cc.right.abs()
    if cc.left.quantity == 0:
        return None
    return cc.right.abs() / cc.left.abs().to_decimal()

def record_prices(posting: Posting, pricer: Pricer) -> int:
    """Add the conversions written in `posting` to `pricer`.

    Returns how many transfers carried a price.
    """
    count = 0
    for t in posting.transfers:
        if not t.complex_commodity:
            continue
        rate = unit_price(t.complex_commodity)
        if rate is None:
            continue
        when = t.effective_date or posting.date
        pricer.add(when, t.complex_commodity.left.code, rate)
        count += 1
    return count
