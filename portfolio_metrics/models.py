"""Data model for portfolio epics.

Epics and their nested structures are plain dataclasses owned by
:class:`portfolio_metrics.epic_store.EpicStore`. Snapshot payloads are frozen
dataclasses built by explicit field-by-field copies so that a captured
snapshot can never be mutated through a live epic.

``to_dict``/``from_dict`` produce and consume the plain data export shape
(camelCase keys) used for portfolio files.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .common_constants import (
    DEFAULT_DURATION_UNIT,
    DEFAULT_SPRINT_END,
    DEFAULT_SPRINT_START,
    DEFAULT_STATUS,
    DURATION_UNITS,
)
from .utils import format_timestamp, parse_timestamp

# Legacy integer `duration` field: 0 weeks, 1 months, 2 quarters, 3+ years
LEGACY_DURATION_UNITS = ["weeks", "months", "quarters", "years"]


@dataclass(frozen=True)
class Bounds:
    """A min/max pair of numbers."""

    min: float
    max: float

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class HistoryEntry:
    value: Any
    at: datetime.datetime

    def to_dict(self):
        return {"value": self.value, "at": format_timestamp(self.at)}

    @classmethod
    def from_dict(cls, data):
        return cls(value=data.get("value"), at=parse_timestamp(data.get("at")))


@dataclass(frozen=True)
class SprintRangeHistoryEntry:
    start_sprint_id: Optional[str]
    end_sprint_id: Optional[str]
    at: datetime.datetime

    def to_dict(self):
        return {
            "startSprintId": self.start_sprint_id,
            "endSprintId": self.end_sprint_id,
            "at": format_timestamp(self.at),
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            start_sprint_id=data.get("startSprintId"),
            end_sprint_id=data.get("endSprintId"),
            at=parse_timestamp(data.get("at")),
        )


@dataclass(frozen=True)
class Note:
    text: str
    at: datetime.datetime

    def to_dict(self):
        return {"text": self.text, "at": format_timestamp(self.at)}

    @classmethod
    def from_dict(cls, data):
        return cls(text=data.get("text", ""), at=parse_timestamp(data.get("at")))


@dataclass(frozen=True)
class Todo:
    text: str
    risk: str

    def to_dict(self):
        return {"text": self.text, "risk": self.risk}

    @classmethod
    def from_dict(cls, data):
        return cls(text=data.get("text", ""), risk=data.get("risk", "medium"))


@dataclass
class EbitdaRange:
    """Financial range in slider units, with logs of every committed edge."""

    min: int = 0
    max: int = 0
    min_history: List[HistoryEntry] = field(default_factory=list)
    max_history: List[HistoryEntry] = field(default_factory=list)

    @classmethod
    def create(cls, min_value: int, max_value: int, at: datetime.datetime):
        """A range whose history logs hold a single entry for each edge."""
        return cls(
            min=min_value,
            max=max_value,
            min_history=[HistoryEntry(min_value, at)],
            max_history=[HistoryEntry(max_value, at)],
        )

    def to_dict(self):
        return {
            "min": self.min,
            "max": self.max,
            "minHistory": [h.to_dict() for h in self.min_history],
            "maxHistory": [h.to_dict() for h in self.max_history],
        }

    @classmethod
    def from_dict(cls, data, now):
        if not data:
            return cls.create(0, 0, now)
        return cls(
            min=data.get("min", 0),
            max=data.get("max", 0),
            min_history=[HistoryEntry.from_dict(h) for h in data.get("minHistory", [])],
            max_history=[HistoryEntry.from_dict(h) for h in data.get("maxHistory", [])],
        )


@dataclass
class SprintRange:
    """Start and end sprint ids. ``None`` means unset."""

    start_sprint_id: Optional[str] = DEFAULT_SPRINT_START
    end_sprint_id: Optional[str] = DEFAULT_SPRINT_END
    history: List[SprintRangeHistoryEntry] = field(default_factory=list)

    def to_dict(self):
        return {
            "startSprintId": self.start_sprint_id,
            "endSprintId": self.end_sprint_id,
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, data, default_start, default_end):
        # Legacy {start, end} shapes and fully unset ranges fall back to defaults
        if not data or "start" in data:
            return cls(default_start, default_end)
        start = data.get("startSprintId")
        end = data.get("endSprintId")
        if start is None and end is None:
            start, end = default_start, default_end
        return cls(
            start_sprint_id=start,
            end_sprint_id=end,
            history=[SprintRangeHistoryEntry.from_dict(h) for h in data.get("history", [])],
        )


@dataclass
class TeamAssignment:
    """One team's participation in an epic."""

    team_id: str
    involvement: int = 0
    involvement_history: List[HistoryEntry] = field(default_factory=list)
    duration_unit: str = DEFAULT_DURATION_UNIT
    duration_min: int = 1
    duration_max: int = 1
    notes: List[Note] = field(default_factory=list)
    todos: List[Todo] = field(default_factory=list)

    def to_dict(self):
        return {
            "teamId": self.team_id,
            "involvement": self.involvement,
            "involvementHistory": [h.to_dict() for h in self.involvement_history],
            "durationUnit": self.duration_unit,
            "durationMin": self.duration_min,
            "durationMax": self.duration_max,
            "notes": [n.to_dict() for n in self.notes],
            "todos": [t.to_dict() for t in self.todos],
        }

    @classmethod
    def from_dict(cls, data):
        unit = data.get("durationUnit")
        duration_min = data.get("durationMin")
        duration_max = data.get("durationMax")
        legacy_duration = data.get("duration")
        if legacy_duration is not None and unit is None:
            unit = LEGACY_DURATION_UNITS[max(0, min(int(legacy_duration), 3))]
            duration_min = duration_max = 1
        return cls(
            team_id=data["teamId"],
            involvement=data.get("involvement", 0),
            involvement_history=[
                HistoryEntry.from_dict(h) for h in data.get("involvementHistory", [])
            ],
            duration_unit=unit if unit in DURATION_UNITS else DEFAULT_DURATION_UNIT,
            duration_min=duration_min if duration_min is not None else 1,
            duration_max=duration_max if duration_max is not None else 1,
            notes=[Note.from_dict(n) for n in data.get("notes") or []],
            todos=[Todo.from_dict(t) for t in data.get("todos") or []],
        )


@dataclass(frozen=True)
class AssignmentData:
    """Restorable fields of a team assignment."""

    team_id: str
    involvement: int
    duration_unit: str
    duration_min: int
    duration_max: int
    notes: Tuple[Note, ...] = ()
    todos: Tuple[Todo, ...] = ()

    def to_dict(self):
        return {
            "teamId": self.team_id,
            "involvement": self.involvement,
            "durationUnit": self.duration_unit,
            "durationMin": self.duration_min,
            "durationMax": self.duration_max,
            "notes": [n.to_dict() for n in self.notes],
            "todos": [t.to_dict() for t in self.todos],
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            team_id=data["teamId"],
            involvement=data.get("involvement", 0),
            duration_unit=data.get("durationUnit") or DEFAULT_DURATION_UNIT,
            duration_min=data.get("durationMin") or 1,
            duration_max=data.get("durationMax") or 1,
            notes=tuple(Note.from_dict(n) for n in data.get("notes") or []),
            todos=tuple(Todo.from_dict(t) for t in data.get("todos") or []),
        )


@dataclass(frozen=True)
class EpicData:
    """Restorable fields of an epic, as captured in a snapshot."""

    name: str
    status: str
    team_assignments: Tuple[AssignmentData, ...]
    annualized_ebitda: Bounds
    in_year_ebitda: Bounds
    in_year_ebitda_set: bool
    expected_delivery_start: Tuple[Optional[str], Optional[str]]
    value_delivery_date: Tuple[Optional[str], Optional[str]]
    dependency_environment: int
    value_delivery_linked: bool
    initiative_objective: str
    metrics: Tuple[str, ...]

    def to_dict(self):
        return {
            "name": self.name,
            "status": self.status,
            "teamAssignments": [a.to_dict() for a in self.team_assignments],
            "annualizedEbitda": self.annualized_ebitda.to_dict(),
            "inYearEbitda": self.in_year_ebitda.to_dict(),
            "inYearEbitdaSet": self.in_year_ebitda_set,
            "expectedDeliveryStart": {
                "startSprintId": self.expected_delivery_start[0],
                "endSprintId": self.expected_delivery_start[1],
            },
            "valueDeliveryDate": {
                "startSprintId": self.value_delivery_date[0],
                "endSprintId": self.value_delivery_date[1],
            },
            "dependencyEnvironment": self.dependency_environment,
            "valueDeliveryLinked": self.value_delivery_linked,
            "initiativeObjective": self.initiative_objective,
            "metrics": list(self.metrics),
        }

    @classmethod
    def from_dict(cls, data):
        annualized = data.get("annualizedEbitda") or {}
        in_year = data.get("inYearEbitda") or {}
        expected = data.get("expectedDeliveryStart") or {}
        value = data.get("valueDeliveryDate") or {}
        linked = data.get("valueDeliveryLinked")
        return cls(
            name=data.get("name", ""),
            status=data.get("status", DEFAULT_STATUS),
            team_assignments=tuple(
                AssignmentData.from_dict(a) for a in data.get("teamAssignments") or []
            ),
            annualized_ebitda=Bounds(annualized.get("min", 0), annualized.get("max", 0)),
            in_year_ebitda=Bounds(in_year.get("min", 0), in_year.get("max", 0)),
            in_year_ebitda_set=bool(data.get("inYearEbitdaSet")),
            expected_delivery_start=(
                expected.get("startSprintId"),
                expected.get("endSprintId"),
            ),
            value_delivery_date=(value.get("startSprintId"), value.get("endSprintId")),
            dependency_environment=data.get("dependencyEnvironment", 0),
            value_delivery_linked=True if linked is None else bool(linked),
            initiative_objective=data.get("initiativeObjective", ""),
            metrics=tuple(data.get("metrics") or []),
        )


@dataclass(frozen=True)
class Snapshot:
    version: int
    date: Optional[datetime.date]
    notes: str
    data: EpicData

    def to_dict(self):
        return {
            "version": self.version,
            "date": self.date.isoformat() if self.date else None,
            "notes": self.notes,
            "data": self.data.to_dict(),
        }

    @classmethod
    def from_dict(cls, data):
        captured = parse_timestamp(data.get("date"))
        return cls(
            version=data["version"],
            date=captured.date() if captured else None,
            notes=str(data.get("notes") or ""),
            data=EpicData.from_dict(data.get("data") or {}),
        )


@dataclass
class Epic:
    """One portfolio initiative."""

    id: int
    name: str
    status: str = DEFAULT_STATUS
    team_assignments: List[TeamAssignment] = field(default_factory=list)
    annualized_ebitda: EbitdaRange = field(default_factory=EbitdaRange)
    in_year_ebitda: EbitdaRange = field(default_factory=EbitdaRange)
    in_year_ebitda_set: bool = False
    dependency_environment: int = 0
    expected_delivery_start: SprintRange = field(default_factory=SprintRange)
    value_delivery_date: SprintRange = field(default_factory=SprintRange)
    value_delivery_linked: bool = True
    initiative_objective: str = ""
    metrics: List[str] = field(default_factory=list)
    snapshots: List[Snapshot] = field(default_factory=list)

    def find_assignment(self, team_id) -> Optional[TeamAssignment]:
        for assignment in self.team_assignments:
            if assignment.team_id == team_id:
                return assignment
        return None

    def to_data(self) -> EpicData:
        """Copy the restorable fields into an immutable record."""
        return EpicData(
            name=self.name,
            status=self.status,
            team_assignments=tuple(
                AssignmentData(
                    team_id=a.team_id,
                    involvement=a.involvement,
                    duration_unit=a.duration_unit,
                    duration_min=a.duration_min,
                    duration_max=a.duration_max,
                    notes=tuple(a.notes),
                    todos=tuple(a.todos),
                )
                for a in self.team_assignments
            ),
            annualized_ebitda=Bounds(self.annualized_ebitda.min, self.annualized_ebitda.max),
            in_year_ebitda=Bounds(self.in_year_ebitda.min, self.in_year_ebitda.max),
            in_year_ebitda_set=self.in_year_ebitda_set,
            expected_delivery_start=(
                self.expected_delivery_start.start_sprint_id,
                self.expected_delivery_start.end_sprint_id,
            ),
            value_delivery_date=(
                self.value_delivery_date.start_sprint_id,
                self.value_delivery_date.end_sprint_id,
            ),
            dependency_environment=self.dependency_environment,
            value_delivery_linked=self.value_delivery_linked,
            initiative_objective=self.initiative_objective,
            metrics=tuple(self.metrics),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "teamAssignments": [a.to_dict() for a in self.team_assignments],
            "annualizedEbitda": self.annualized_ebitda.to_dict(),
            "inYearEbitda": self.in_year_ebitda.to_dict(),
            "inYearEbitdaSet": self.in_year_ebitda_set,
            "dependencyEnvironment": self.dependency_environment,
            "expectedDeliveryStart": self.expected_delivery_start.to_dict(),
            "valueDeliveryDate": self.value_delivery_date.to_dict(),
            "valueDeliveryLinked": self.value_delivery_linked,
            "initiativeObjective": self.initiative_objective,
            "metrics": list(self.metrics),
            "snapshots": [s.to_dict() for s in self.snapshots],
        }

    @classmethod
    def from_dict(
        cls,
        data,
        now,
        default_start=DEFAULT_SPRINT_START,
        default_end=DEFAULT_SPRINT_END,
    ):
        """Build an epic from exported data, filling in missing fields."""
        dependency_environment = data.get("dependencyEnvironment")
        linked = data.get("valueDeliveryLinked")
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            status=data.get("status") or DEFAULT_STATUS,
            team_assignments=[
                TeamAssignment.from_dict(a) for a in data.get("teamAssignments") or []
            ],
            annualized_ebitda=EbitdaRange.from_dict(data.get("annualizedEbitda"), now),
            in_year_ebitda=EbitdaRange.from_dict(data.get("inYearEbitda"), now),
            in_year_ebitda_set=bool(data.get("inYearEbitdaSet")),
            dependency_environment=(
                0 if dependency_environment is None else dependency_environment
            ),
            expected_delivery_start=SprintRange.from_dict(
                data.get("expectedDeliveryStart"), default_start, default_end
            ),
            value_delivery_date=SprintRange.from_dict(
                data.get("valueDeliveryDate"), default_start, default_end
            ),
            value_delivery_linked=True if linked is None else bool(linked),
            initiative_objective=data.get("initiativeObjective") or "",
            metrics=list(data.get("metrics") or []),
            snapshots=[Snapshot.from_dict(s) for s in data.get("snapshots") or []],
        )
