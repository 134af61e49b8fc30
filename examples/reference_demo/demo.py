"""
Reference demo: the six lookup orders against one freshly created user.
"""

from __future__ import annotations

import os
from typing import List

from identitylab.adapters.base import DATABASE_URL_ENV
from identitylab.persistence import SessionFactory
from identitylab.utils import configure_logging, set_correlation_id

from .models import User
from .service import Observation, UserService


def bootstrap_factory(dsn: str = "sqlite:///:memory:") -> SessionFactory:
    return SessionFactory.from_dsn(dsn, models=[User])


def run_demo(dsn: str = "sqlite:///:memory:") -> List[Observation]:
    factory = bootstrap_factory(dsn)
    try:
        service = UserService(factory)
        user_id = service.create()
        try:
            return service.run_all(user_id)
        finally:
            service.delete(user_id)
    finally:
        factory.dispose()


if __name__ == "__main__":
    configure_logging()
    set_correlation_id("reference-demo")
    for observation in run_demo(os.getenv(DATABASE_URL_ENV, "sqlite:///:memory:")):
        print(observation.summary())
