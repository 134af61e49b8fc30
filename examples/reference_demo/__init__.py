from .demo import bootstrap_factory, run_demo  # noqa: F401
from .models import User  # noqa: F401
from .service import Observation, UserService  # noqa: F401

__all__ = [
    "Observation",
    "User",
    "UserService",
    "bootstrap_factory",
    "run_demo",
]
