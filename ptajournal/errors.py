from typing import NamedTuple
from typing import Union

class Position(NamedTuple):
    line: int
    column: int = 0

class JournalError(Exception):
    pass

class ParseError(JournalError):
    def __init__(self, message: str,
                 position: Union[Position, None] = None,
                 context: str = ""):
        self.message = message
        self.position = position
        self.context = context
        if not position:
            super().__init__(message)
        elif context:
            super().__init__(
                f"{message}\n"
                f"line: {position.line}, column: {position.column}\n"
                f"{context}\n" + (position.column * " ") + "^"
            )
        else:
            super().__init__(
                f"{message}\n"
                f"line: {position.line}, column: {position.column}\n"
            )

class ValidationError(ParseError):
    pass

class ConversionError(JournalError):
    pass

class UnimplementedError(JournalError):
    pass

class CommodityParseError(ParseError, UnimplementedError):
    pass

class ComplexCommodityError(ParseError):
    pass

class TooManyComponentsError(ComplexCommodityError):
    pass

class UnrecognizedOperatorError(ComplexCommodityError):
    pass

class NoPriceError(JournalError):
    pass

class PriceParseError(ParseError):
    pass

class CurrencyError(JournalError):
    pass
