#! /usr/bin/env python3

import argparse
import logging
import sys

from ptajournal.commodity import Commodity
from ptajournal.currency import CurrencyRegistry, set_default_registry
from ptajournal.errors import JournalError, NoPriceError
from ptajournal.journal import Journal
from ptajournal.pricer import Pricer
from ptajournal.util import read_journal, read_pricer, record_prices

logger = logging.getLogger(__name__)

def parse_args(argv: list[str] | None = None):
    argparser = argparse.ArgumentParser(
        description="Parse journals and report problems.")
    argparser.add_argument("journals", type=str, nargs="+",
                           help="journal files")
    argparser.add_argument("--prices", type=str,
                           help="prices file")
    argparser.add_argument("--exchange", type=str,
                           help="convert every amount to this currency")
    argparser.add_argument("--currencies", type=str,
                           help="ISO-4217 currency table (JSON)")
    argparser.add_argument("--log-file", type=str,
                           help="Log file")
    return argparser.parse_args(argv)

def log_price_add(time, from_code: str, to: Commodity) -> None:
    logger.info(f"Adding: P {time} {from_code} {to}")

def exchange_journal(journal: Journal, pricer: Pricer, code: str) -> int:
    """Convert every amount in `journal` to `code`.

    Returns how many amounts could not be converted.
    """
    missing = 0
    for posting in journal.postings:
        for t in posting.transfers:
            amount = t.commodity
            if t.complex_commodity:
                amount = t.complex_commodity.left
            if not amount:
                continue
            when = t.effective_date or posting.date
            if amount.alphabetic_code == pricer.registry.alphabetic_code(code):
                continue
            try:
                x = pricer.convert(when, amount, code)
            except NoPriceError as e:
                logger.warning(f"Line {posting.line_number}: {e}")
                missing += 1
                continue
            logger.info(f"Converted {amount} to {x} on {when}.")
    return missing

def verify(paths: list[str], pricer: Pricer,
           exchange: str | None = None) -> list[Journal]:
    journals = []
    for path in paths:
        journal = read_journal(path)
        for posting in journal.postings:
            record_prices(posting, pricer)
        print(f"{path}: {len(journal.postings)} postings.")
        if exchange:
            missing = exchange_journal(journal, pricer, exchange)
            if missing:
                print(f"{path}: {missing} amounts without a price in "
                      f"{exchange}.")
        journals.append(journal)
    return journals

def main(argv: list[str] | None = None):
    args = parse_args(argv)

    if args.log_file:
        logging.basicConfig(filename=args.log_file,
                            filemode="w",
                            format='[%(name)s:%(levelname)s] %(message)s',
                            datefmt='%m/%d/%Y %I:%M:%S %p',
                            level=logging.INFO)

    try:
        if args.currencies:
            set_default_registry(CurrencyRegistry(args.currencies))
        if args.prices:
            pricer = read_pricer(args.prices, log_price_add)
        else:
            pricer = Pricer(before_price_add=log_price_add)
        verify(args.journals, pricer, args.exchange)
    except (JournalError, OSError) as e:
        print(e, file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
