"""
User service running each lookup-order scenario in its own unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Tuple

from identitylab.persistence import RepresentativeKind, Session, SessionFactory, describe, kind_of
from identitylab.repository import Repository
from identitylab.utils import get_logger

from .models import User


@dataclass(frozen=True)
class Observation:
    scenario: str
    steps: Tuple[str, ...]
    first: RepresentativeKind
    second: RepresentativeKind
    same_instance: bool

    def summary(self) -> str:
        return f"{self.scenario}: " + "; ".join(self.steps)


class UserService:
    def __init__(self, factory: SessionFactory) -> None:
        self.factory = factory
        self.logger = get_logger("demo.user_service")

    def create(self, user: User | None = None) -> int:
        with self.factory.session() as session:
            saved = Repository(session, User).save(user or User())
            return saved.pk

    def delete(self, user_id: int) -> None:
        with self.factory.session() as session:
            Repository(session, User).delete_by_id(user_id)

    # get_one first -------------------------------------------------------
    def get_one_find_by_id(self, user_id: int) -> Observation:
        """
        ``find_by_id`` hands back the reference cached by ``get_one``.
        """
        return self._run("get_one_find_by_id", user_id, reference_first=True)

    def get_one_clear_find_by_id(self, user_id: int) -> Observation:
        return self._run(
            "get_one_clear_find_by_id",
            user_id,
            reference_first=True,
            between=("clear()", lambda session, first: session.clear()),
        )

    def get_one_detach_find_by_id(self, user_id: int) -> Observation:
        return self._run(
            "get_one_detach_find_by_id",
            user_id,
            reference_first=True,
            between=("detach(first)", lambda session, first: session.detach(first)),
        )

    # find_by_id first ----------------------------------------------------
    def find_by_id_get_one(self, user_id: int) -> Observation:
        """
        ``get_one`` hands back the loaded instance cached by ``find_by_id``.
        """
        return self._run("find_by_id_get_one", user_id, reference_first=False)

    def find_by_id_clear_get_one(self, user_id: int) -> Observation:
        return self._run(
            "find_by_id_clear_get_one",
            user_id,
            reference_first=False,
            between=("clear()", lambda session, first: session.clear()),
        )

    def find_by_id_detach_get_one(self, user_id: int) -> Observation:
        return self._run(
            "find_by_id_detach_get_one",
            user_id,
            reference_first=False,
            between=("detach(first)", lambda session, first: session.detach(first)),
        )

    def run_all(self, user_id: int) -> List[Observation]:
        return [
            self.get_one_find_by_id(user_id),
            self.get_one_detach_find_by_id(user_id),
            self.get_one_clear_find_by_id(user_id),
            self.find_by_id_get_one(user_id),
            self.find_by_id_detach_get_one(user_id),
            self.find_by_id_clear_get_one(user_id),
        ]

    # ------------------------------------------------------------------ #
    def _run(
        self,
        scenario: str,
        user_id: int,
        *,
        reference_first: bool,
        between: Tuple[str, Callable[[Session, object], None]] | None = None,
    ) -> Observation:
        with self.factory.session() as session:
            repository = Repository(session, User)
            lookups = [("get_one()", repository.get_one), ("find_by_id()", repository.get_by_id)]
            if not reference_first:
                lookups.reverse()

            (first_label, first_lookup), (second_label, second_lookup) = lookups
            first = first_lookup(user_id)
            steps = [f"{first_label} -> {describe(first)}"]
            if between is not None:
                label, action = between
                action(session, first)
                steps.append(label)
            second = second_lookup(user_id)
            steps.append(f"{second_label} -> {describe(second)}")

            observation = Observation(
                scenario=scenario,
                steps=tuple(steps),
                first=kind_of(first),
                second=kind_of(second),
                same_instance=first is second,
            )
        self.logger.info("\n%s\n\t%s", scenario, "\n\t".join(observation.steps))
        return observation
