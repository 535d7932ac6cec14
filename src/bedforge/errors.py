"""Exception types raised by bedforge.

All failures are typed and recoverable; operations that legitimately
produce nothing (e.g. the CDS fraction of a non-coding transcript) return
``None`` instead of raising.

Example:
    >>> from bedforge.errors import ParseError
    >>> try:
    ...     parse_bed_line("chr1\\tAAA\\t100")
    ... except ParseError as e:
    ...     print(e)
"""


class BedForgeError(Exception):
    """Base class for all bedforge errors."""


class ParseError(BedForgeError, ValueError):
    """Malformed BED input or a record violating coordinate invariants."""


class MissingTraitError(BedForgeError, AttributeError):
    """A field was requested that is not populated for the record."""


class FormattingError(BedForgeError, ValueError):
    """A record cannot be rendered in the requested BED format."""


class GraftError(BedForgeError, ValueError):
    """Block splicing was refused for the given record and addition."""
