"""Status lifecycles for appointments and queue entries.

Each lifecycle is a closed enum plus a table of legal ``from -> to`` moves,
checked in one place by :class:`StatusMachine`.
"""

from enum import Enum

from frontdesk.core.errors import IllegalTransitionError, ValidationError


class AppointmentStatus(str, Enum):
    SCHEDULED = 'scheduled'
    CONFIRMED = 'confirmed'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class QueueStatus(str, Enum):
    WAITING = 'waiting'
    WITH_DOCTOR = 'with_doctor'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class QueuePriority(str, Enum):
    NORMAL = 'normal'
    URGENT = 'urgent'
    EMERGENCY = 'emergency'

    @property
    def rank(self) -> int:
        return _PRIORITY_RANKS[self]


_PRIORITY_RANKS = {
    QueuePriority.NORMAL: 1,
    QueuePriority.URGENT: 2,
    QueuePriority.EMERGENCY: 3,
}


class StatusMachine:
    def __init__(self, status_type: type[Enum], initial: Enum, transitions: dict[Enum, set[Enum]]):
        self.status_type = status_type
        self.initial = initial
        self._transitions = {source: frozenset(targets) for source, targets in transitions.items()}

    def parse(self, value: str | Enum) -> Enum:
        try:
            return self.status_type(value)
        except ValueError as exc:
            choices = ', '.join(member.value for member in self.status_type)
            raise ValidationError(f'Unknown status {value!r}. Expected one of: {choices}.') from exc

    def allowed_from(self, current: str | Enum) -> list[str]:
        source = self.parse(current)
        return sorted(target.value for target in self._transitions.get(source, ()))

    def is_terminal(self, status: str | Enum) -> bool:
        return not self._transitions.get(self.parse(status))

    def can_transition(self, current: str | Enum, target: str | Enum) -> bool:
        return self.parse(target) in self._transitions.get(self.parse(current), ())

    def transition(self, current: str | Enum, target: str | Enum) -> Enum:
        source = self.parse(current)
        destination = self.parse(target)

        if destination not in self._transitions.get(source, ()):
            raise IllegalTransitionError(
                current_status=source.value,
                requested_status=destination.value,
                allowed_transitions=self.allowed_from(source),
            )

        return destination


appointment_status_machine = StatusMachine(
    AppointmentStatus,
    initial=AppointmentStatus.SCHEDULED,
    transitions={
        AppointmentStatus.SCHEDULED: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
        AppointmentStatus.CONFIRMED: {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED},
        AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
        AppointmentStatus.COMPLETED: set(),
        AppointmentStatus.CANCELLED: set(),
    },
)

queue_status_machine = StatusMachine(
    QueueStatus,
    initial=QueueStatus.WAITING,
    transitions={
        QueueStatus.WAITING: {QueueStatus.WITH_DOCTOR, QueueStatus.CANCELLED},
        QueueStatus.WITH_DOCTOR: {QueueStatus.COMPLETED, QueueStatus.CANCELLED},
        QueueStatus.COMPLETED: set(),
        QueueStatus.CANCELLED: set(),
    },
)

ACTIVE_QUEUE_STATUSES = (QueueStatus.WAITING, QueueStatus.WITH_DOCTOR)
