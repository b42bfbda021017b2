# Hook specs must be registered before any hook is invoked.
from . import hooks  # noqa: F401
