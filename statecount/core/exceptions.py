"""Custom exception hierarchy for statecount."""


class StateCountError(Exception):
    """Base exception for all statecount errors."""
    pass


class ConfigurationError(StateCountError):
    """Raised when model input is malformed or physically inconsistent."""

    def __init__(self, message: str, key: str = None, path: str = None):
        if path:
            message = f"{path}: {message}"
        super().__init__(message)
        self.key = key
        self.path = path


class LogicError(StateCountError):
    """Raised when a model is used in a way its contract forbids."""
    pass


class InitializationError(LogicError):
    """Raised when a model is queried before its one-time preparation."""
    pass


class ConvergenceError(StateCountError):
    """Raised when an iterative procedure fails to converge."""

    def __init__(self, message: str, iterations: int = None,
                 final_value: float = None, threshold: float = None):
        super().__init__(message)
        self.iterations = iterations
        self.final_value = final_value
        self.threshold = threshold


class IntegrationError(StateCountError):
    """Raised when numerical integration fails or doesn't converge."""

    def __init__(self, message: str, estimated_error: float = None,
                 tolerance: float = None, subdivisions: int = None):
        super().__init__(message)
        self.estimated_error = estimated_error
        self.tolerance = tolerance
        self.subdivisions = subdivisions


class GeometryError(StateCountError):
    """Raised when molecular geometry operations fail."""
    pass


class FileIOError(StateCountError):
    """Raised when file reading or writing fails."""

    def __init__(self, message: str, filepath: str = None):
        super().__init__(message)
        self.filepath = filepath


class ModelBuildError(StateCountError):
    """Raised when a named component of a reaction network fails to build."""

    def __init__(self, message: str, component: str = None):
        super().__init__(message)
        self.component = component
