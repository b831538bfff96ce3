from typing import Iterable
from datetime import date
import logging
import re

from ptajournal.currency import CurrencyRegistry
from ptajournal.errors import ParseError, ValidationError, Position, \
    CommodityParseError, ComplexCommodityError
from ptajournal.posting import Posting

logger = logging.getLogger(__name__)

RE_SEMICOLON = re.compile(r"(?<!\\);")
RE_COMMENT = re.compile(r"\A( *.*?) *(?<!\\);[ \t]*(.*)\Z")
RE_HEADER = re.compile(r"\A([^ \t].*)\Z")
RE_POSTING_START = re.compile(r"\A(\d{4})[/-](\d{2})[/-](\d{2}) +(.+?) *\Z")
RE_TRANSFER = re.compile(r"\A[ \t]+([^ ].+)\Z")
RE_TRANSFER_PARTS = re.compile(r"\A(.+?)(?: {2,}([^ ].+)| *)\Z")
RE_BLANK = re.compile(r"\A[ \t]*\Z")
RE_TAG_DECLARATION = re.compile(r"(?:[^ ]+: *[^,]*|:[^ \t]+:)")
RE_TAG_LIST = re.compile(r"\A:?(.+):\Z")
RE_EFFECTIVE_DATE = re.compile(r"\[=(\d{4})-(\d{1,2})-(\d{1,2})\]")

MSG_MISSING_POSTING_SEPARATOR = "Missing a blank line before line {}"
MSG_UNRECOGNIZED_HEADER = "Unrecognized posting header at line {}"
MSG_INVALID_DATE = "Invalid posting date at line {}"
MSG_INVALID_EFFECTIVE_DATE = "Invalid effective date at line {}"
MSG_UNEXPECTED_TRANSFER = "Unexpected transfer at line {}"
MSG_UNEXPECTED_LINE = "Unexpected at line {}"
MSG_INVALID_TRANSFER_COMMODITY = \
    "Unparseable or unimplemented commodity-parse in transfer at line {}"
MSG_INVALID_POSTING = "Invalid Posting at separator line {}"
MSG_TOO_MANY_SEMICOLONS = "Too many semicolons at line {}. Are these comments?"
MSG_UNPARSEABLE_TRANSFER = "Something is wrong with this transfer at line {}"

class Journal():
    def __init__(self, postings: list[Posting] | None = None):
        self.postings = postings if postings is not None else []
    def __str__(self):
        return "\n\n".join(p.to_ledger() for p in self.postings)
    @classmethod
    def parse(cls, contents: str,
              registry: CurrencyRegistry | None = None) -> "Journal":
        parser = Parser(registry)
        lines = contents.split("\n")
        # A final newline ends the last line rather than starting another.
        if lines[-1] == "":
            lines.pop()
        parser.parse_lines(lines)
        return parser.finish()

def parse_tags(comment: str) -> list[str]:
    """Tag declarations in a comment.

    "key: value" pairs are returned as written, and ":a:b:" lists are
    split into their names.
    """
    tags = []
    for declaration in RE_TAG_DECLARATION.findall(comment):
        m = RE_TAG_LIST.match(declaration)
        if m:
            tags.extend(m.group(1).split(":"))
        else:
            tags.append(declaration)
    return tags

class Parser():
    def __init__(self, registry: CurrencyRegistry | None = None):
        self.registry = registry
        self.postings: list[Posting] = []
        self._posting: Posting | None = None
        self._current_line_number = 0
        self._current_line = ""

    def _error(self, template: str, cls=ParseError, details: str = ""):
        return cls(template.format(self._current_line_number) + details,
                   Position(self._current_line_number, 0),
                   self._current_line)

    def _close_posting(self) -> None:
        posting = self._posting
        if not posting.is_valid():
            details = ""
            for t in posting.transfers:
                detail = (f"  - Not valid. account {t.account!r} "
                          f"commodity: {t.commodity!r} "
                          f"complex_commodity: {t.complex_commodity!r}")
                logger.warning(detail)
                details += "\n" + detail
            raise self._error(MSG_INVALID_POSTING, ValidationError, details)
        self.postings.append(posting)
        self._posting = None

    def _parse_posting_start(self, line: str) -> None:
        if self._posting:
            raise self._error(MSG_MISSING_POSTING_SEPARATOR, ValidationError)
        m = RE_POSTING_START.match(line)
        if not m:
            raise self._error(MSG_UNRECOGNIZED_HEADER)
        try:
            d = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError as e:
            raise self._error(MSG_INVALID_DATE) from e
        self._posting = Posting(d, m.group(4),
                                line_number=self._current_line_number)

    def _parse_transfer(self, line: str) -> None:
        if not self._posting:
            raise self._error(MSG_UNEXPECTED_TRANSFER, ValidationError)
        # Two or more spaces separate the account from its amount.
        m = RE_TRANSFER_PARTS.match(line)
        if not m:
            raise self._error(MSG_UNPARSEABLE_TRANSFER)
        try:
            self._posting.append_transfer(m.group(1), m.group(2),
                                          self.registry)
        except (CommodityParseError, ComplexCommodityError) as e:
            raise self._error(MSG_INVALID_TRANSFER_COMMODITY,
                              details=f"\n{e.message}") from e

    def _parse_comment(self, comment: str) -> None:
        m = RE_EFFECTIVE_DATE.search(comment)
        if m and self._posting.transfers:
            try:
                self._posting.transfers[-1].effective_date = date(
                    int(m.group(1)), int(m.group(2)), int(m.group(3)))
            except ValueError as e:
                raise self._error(MSG_INVALID_EFFECTIVE_DATE) from e
            comment = comment[:m.start()] + comment[m.end():]
        for tag in parse_tags(comment):
            self._posting.append_tag(tag)

    def parse_line(self, line: str) -> None:
        self._current_line_number += 1
        line = line.rstrip("\r\n")
        self._current_line = line

        # Comments at the top of the file.
        if self._posting is None and not self.postings and \
                line.startswith(";"):
            return None

        comment = None
        if len(RE_SEMICOLON.findall(line)) > 1:
            raise self._error(MSG_TOO_MANY_SEMICOLONS)
        m = RE_COMMENT.match(line)
        if m:
            line, comment = m.group(1), m.group(2)

        header = RE_HEADER.match(line)
        transfer = RE_TRANSFER.match(line)
        if header:
            self._parse_posting_start(header.group(1))
        elif transfer:
            self._parse_transfer(transfer.group(1))
        elif RE_BLANK.match(line):
            if comment is None and self._posting:
                self._close_posting()
        elif not self._posting:
            raise self._error(MSG_UNEXPECTED_LINE)

        if comment is not None and self._posting:
            self._parse_comment(comment)

    def parse_lines(self, lines: Iterable[str]) -> None:
        for i in lines:
            self.parse_line(i)

    def finish(self) -> Journal:
        """Flush a posting left open at the end of input."""
        if self._posting:
            self._close_posting()
        return Journal(self.postings)
