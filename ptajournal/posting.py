from typing import NamedTuple
from datetime import date
import re

from ptajournal.commodity import Commodity
from ptajournal.complex_commodity import ComplexCommodity
from ptajournal.currency import CurrencyRegistry
from ptajournal.errors import UnimplementedError

RE_TAG = re.compile(r"\A(.+) *: *(.+)\Z")

class Tag(NamedTuple):
    key: str
    value: str | None = None
    def __str__(self):
        return f"{self.key}: {self.value}" if self.value else self.key
    def to_ledger(self) -> str:
        """As written in a comment. A bare key is written as ":key:"."""
        return str(self) if self.value else f":{self.key}:"
    @classmethod
    def from_str(cls, string: str) -> "Tag":
        m = RE_TAG.match(string)
        if m:
            return cls(m.group(1), m.group(2))
        return cls(string)

class Transfer():
    def __init__(self, account: str,
                 commodity: Commodity | None = None,
                 complex_commodity: ComplexCommodity | None = None,
                 effective_date: date | None = None,
                 tags: list[Tag] | None = None):
        self.account = account
        self.commodity = commodity
        self.complex_commodity = complex_commodity
        self.effective_date = effective_date
        self.tags = tags if tags is not None else []
    @property
    def amount(self) -> Commodity | ComplexCommodity | None:
        return self.commodity or self.complex_commodity
    def __repr__(self):
        return (f"Transfer({self.account!r}, {self.commodity!r}, "
                f"{self.complex_commodity!r})")

class Posting():
    """One dated entry of a journal and its indented transfer lines."""
    def __init__(self, date: date, description: str,
                 transfers: list[Transfer] | None = None,
                 tags: list[Tag] | None = None,
                 line_number: int | None = None):
        self.date = date
        self.description = description
        self.transfers = transfers if transfers is not None else []
        self.tags = tags if tags is not None else []
        self.line_number = line_number

    def is_valid(self) -> bool:
        return bool(self.date and self.description and self.transfers and
                    any(t.account and t.amount for t in self.transfers))

    def to_ledger(self) -> str:
        width = max((len(t.account) for t in self.transfers if t.amount),
                    default=0)
        lines = [f"{self.date.isoformat()} {self.description}"]
        if self.tags:
            lines.append("  ; " + ", ".join(t.to_ledger() for t in self.tags))
        for t in self.transfers:
            if t.amount:
                line = f"  {t.account:<{width}}    {t.amount}"
                if t.effective_date:
                    line += f"  ; [={t.effective_date.isoformat()}]"
                lines.append(line)
            else:
                lines.append(f"  {t.account}")
            for tag in t.tags:
                lines.append(f"  ; {tag.to_ledger()}")
        return "\n".join(lines)

    def append_transfer(self, account: str, amount: str | None,
                        registry: CurrencyRegistry | None = None) -> Transfer:
        """Append a transfer, parsing `amount` if one was written.

        A plain commodity is tried first. Anything it can't express is
        parsed as a cost expression instead.
        """
        transfer = Transfer(account)
        if amount:
            try:
                transfer.commodity = Commodity.from_str(amount, registry)
            except UnimplementedError:
                transfer.complex_commodity = ComplexCommodity.from_str(
                    amount, registry)
        self.transfers.append(transfer)
        return transfer

    def append_tag(self, string: str) -> Tag:
        tag = Tag.from_str(string)
        if self.transfers:
            self.transfers[-1].tags.append(tag)
        else:
            self.tags.append(tag)
        return tag
