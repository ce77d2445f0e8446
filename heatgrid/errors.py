"""Exception hierarchy for heatmap runs.

Every failure is fatal for the current run. Each error carries the stage it
came from so the command line can report where the run stopped.
"""


class HeatgridError(Exception):
    """Base class for all heatgrid failures."""

    stage = "heatgrid"

    def __str__(self) -> str:
        return f"{self.stage}: {super().__str__()}"


class IngestionError(HeatgridError):
    """A point record is missing a required field or has a malformed number."""

    stage = "ingestion"


class ConfigurationError(HeatgridError):
    """The run configuration cannot produce a raster."""

    stage = "configuration"


class SinkError(HeatgridError):
    """The output destination could not be opened or written."""

    stage = "sink"
