"""convert_errors.py

Exception hierarchy for the conversion stage. Every failure in the core aborts
the current file; the per-year driver decides whether the run continues.
"""


class ConversionError(Exception):
    """Base exception for all conversion errors."""

    pass


class SourceVariableNotFound(ConversionError):
    """A required raw variable is absent from the source file."""

    def __init__(self, variable: str, path: str | None = None):
        self.variable = variable
        self.path = path
        where = f" in {path}" if path else ""
        super().__init__(f"Source variable '{variable}' not found{where}")


class UnitError(ConversionError):
    """A unit string cannot be converted to the requested unit."""

    def __init__(self, from_units: str, to_units: str):
        self.from_units = from_units
        self.to_units = to_units
        super().__init__(f"Cannot convert from '{from_units}' to '{to_units}'")


class GeolocationUnresolved(ConversionError):
    """No usable site location (or timezone for it) could be determined."""

    pass


class DuplicateVariable(ConversionError):
    """A destination variable with the same name already exists."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"Variable '{variable}' already exists in destination")


class DegenerateTimeAxis(ConversionError):
    """The time axis is too short (or irregular) to derive a native timestep."""

    def __init__(self, n_samples: int, reason: str = "fewer than 2 time samples"):
        self.n_samples = n_samples
        super().__init__(
            f"Cannot compute native timestep from {n_samples} time sample(s): {reason}"
        )


class FileConversionError(ConversionError):
    """Wraps a failure with the file and conversion step that caused it."""

    def __init__(self, path: str, step: str, cause: Exception):
        self.path = path
        self.step = step
        self.cause = cause
        super().__init__(f"{path}: failed during '{step}': {cause}")
