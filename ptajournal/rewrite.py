#! /usr/bin/env python3

import argparse
import sys

from ptajournal.errors import JournalError
from ptajournal.util import read_journal

def parse_args(argv: list[str] | None = None):
    argparser = argparse.ArgumentParser(
        description="Print a journal back in canonical form.")
    argparser.add_argument("journal", type=str,
                           help="journal file")
    return argparser.parse_args(argv)

def main(argv: list[str] | None = None):
    args = parse_args(argv)
    try:
        journal = read_journal(args.journal)
    except (JournalError, OSError) as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    if journal.postings:
        print(journal)

if __name__ == "__main__":
    main()
