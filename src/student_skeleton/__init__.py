"""student_skeleton — derive student skeleton repositories from reference solutions."""

__all__ = [
    "__version__",
    "convert_repository",
    "run_conversion",
    "ConvertConfig",
    # Failures
    "ConversionError",
    "ConfigurationError",
    "ParseError",
    "EmissionError",
]
__version__ = "0.1.0"

# Programmatic entrypoints (build-host use).
from student_skeleton.api import convert_repository  # noqa: E402, F401
from student_skeleton.core.config import ConvertConfig  # noqa: E402, F401
from student_skeleton.core.runner import run_conversion  # noqa: E402, F401
from student_skeleton.errors import (  # noqa: E402, F401
    ConfigurationError,
    ConversionError,
    EmissionError,
    ParseError,
)
