"""Exceptions raised by the log parsing and trace analysis pipeline."""


class LogTraceError(Exception):
    """Base exception for all logtrace errors."""

    pass


class NoInputFilesError(LogTraceError):
    """No readable log files were resolved from the requested paths."""

    def __init__(self, paths: list[str]):
        self.paths = paths
        super().__init__(f"No log files found in: {', '.join(paths) or '(none)'}")


class UnsupportedFormatError(LogTraceError):
    """Requested log or graph format is not supported."""

    def __init__(self, fmt: str, supported: list[str]):
        self.format = fmt
        self.supported = supported
        super().__init__(
            f"Unsupported format '{fmt}'. Must be one of: {', '.join(supported)}"
        )


class InvalidTimeZoneError(LogTraceError):
    """Target time zone name is unknown."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown time zone: {name}")


class OutputWriteError(LogTraceError):
    """Processed output could not be written."""

    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to write output to {path}: {cause}")


class ProcessedLogError(LogTraceError):
    """A processed log file could not be loaded."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Cannot load processed logs from {path}: {message}")


class TraceNotFoundError(LogTraceError):
    """Requested trace id is not present in the data."""

    def __init__(self, trace_id: str):
        self.trace_id = trace_id
        super().__init__(f"Trace ID {trace_id} not found in logs")
