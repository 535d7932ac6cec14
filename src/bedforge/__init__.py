"""bedforge: interval algebra and transcript fractioning for BED annotations.

bedforge parses BED3-BED12 records and derives new features from them:
coding/untranslated fractions, exon or intron blocks, merged and
discretized interval sets, and grafted transcript models.

Example:
    >>> import bedforge
    >>> bedforge.__version__
    '0.1.0'

Modules:
    core: Record model, interval algebra, fraction extraction, grafting
    io: BED reading, parsing and formatting
    parallel: Record-level parallel execution
    utils: Logging configuration
"""

__version__ = "0.1.0"
__author__ = "bedforge developers"

__all__ = [
    "__version__",
    "__author__",
]
