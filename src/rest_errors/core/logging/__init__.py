# src/rest_errors/core/logging/
# ├─ __init__.py       # public API: setup_logging, correlation id helpers, CorrelationIdMiddleware
# ├─ builder.py        # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py     # JsonFormatter, ColorFormatter
# ├─ filters.py        # CorrelationIdFilter, RedactFilter (+ contextvar helpers)
# ├─ handlers.py       # handler config factories (console/file)
# └─ middleware.py     # Starlette middleware that sets the correlation id


from .builder import make_dict_config, setup_logging
from .filters import CorrelationIdFilter, RedactFilter, get_correlation_id, reset_correlation_id, set_correlation_id
from .middleware import CorrelationIdMiddleware

__all__ = [
    "CorrelationIdFilter",
    "CorrelationIdMiddleware",
    "RedactFilter",
    "get_correlation_id",
    "make_dict_config",
    "reset_correlation_id",
    "set_correlation_id",
    "setup_logging",
]
