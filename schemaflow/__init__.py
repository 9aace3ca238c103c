"""schemaflow: runtime validation and schema composition."""
__version__ = "0.1.0"

from schemaflow.logging import configure_logging, get_logger, bind_context, clear_context
from schemaflow.validation import *  # noqa: F401,F403
from schemaflow.validation import __all__ as _validation_all

__all__ = [
    "__version__",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    *_validation_all,
]
