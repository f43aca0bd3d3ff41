"""Per-archive outcome records returned by the publishers."""

from __future__ import annotations

import dataclasses
import typing as typ

__all__ = ["ArchiveOutcome", "OutcomeKind", "PublishReport"]

OutcomeKind = typ.Literal["uploaded", "pushed", "skipped", "failed", "planned"]


@dataclasses.dataclass(frozen=True, slots=True)
class ArchiveOutcome:
    """What happened to one archive during a publishing stage."""

    archive: str
    kind: OutcomeKind
    detail: str = ""


@dataclasses.dataclass(slots=True)
class PublishReport:
    """Ordered outcomes of a publishing stage."""

    outcomes: list[ArchiveOutcome] = dataclasses.field(default_factory=list)

    def record(self, archive: str, kind: OutcomeKind, detail: str = "") -> None:
        self.outcomes.append(ArchiveOutcome(archive, kind, detail))

    def names(self, kind: OutcomeKind) -> list[str]:
        """Return the archive names that ended with ``kind``."""
        return [outcome.archive for outcome in self.outcomes if outcome.kind == kind]

    @property
    def failed(self) -> bool:
        return any(outcome.kind == "failed" for outcome in self.outcomes)

    def rows(self) -> list[tuple[str, str, str]]:
        return [
            (outcome.archive, outcome.kind, outcome.detail)
            for outcome in self.outcomes
        ]
