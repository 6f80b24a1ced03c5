"""Error taxonomy for the assembly pipeline.

Failures are recovered at the narrowest scope possible
(item > page > folder > run). Only AssemblyError and
ConfigurationError cross the folder boundary.
"""


class Scan2DocError(Exception):
    """Base class for all pipeline errors."""

    kind = "error"


class ExtractionError(Scan2DocError):
    """A source file produced no usable page rasters."""

    kind = "extraction"


class AnalysisError(Scan2DocError):
    """The layout analysis service failed for one page."""

    kind = "analysis"


class ReorderHintInvalid(Scan2DocError):
    """The ranking service returned something other than a permutation."""

    kind = "reorder_hint"


class CropError(Scan2DocError):
    """A region could not be decoded or extracted from a page raster."""

    kind = "crop"


class AssemblyError(Scan2DocError):
    """The output document could not be serialized."""

    kind = "assembly"


class ConfigurationError(Scan2DocError):
    """A required credential or endpoint is missing."""

    kind = "configuration"


class PipelineCancelled(Scan2DocError):
    """The run was cancelled between items."""

    kind = "cancelled"
