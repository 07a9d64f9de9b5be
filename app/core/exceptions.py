class AnalysisError(Exception):
    """Fatal failure of a single article analysis."""


class ArchivalError(Exception):
    """The archival job could not select its batch."""


class IngestionError(Exception):
    """The ingestion job could not load its news categories."""


class MediaNotFoundError(Exception):
    """A media id that does not name a live article."""
