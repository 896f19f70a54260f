"""
Six-field cron expressions with a leading seconds field.

Premade events are configured with expressions such as ``"0 30 20 * * FRI"``
(seconds, minutes, hours, day-of-month, month, day-of-week), evaluated against
naive local datetimes. Expressions follow the classic premade bot's grammar:

- numeric weekdays run 1-7 with Sunday = 1 (names SUN-SAT work as usual);
- a restricted day-of-month and a restricted day-of-week must BOTH match.

croniter expects the seconds field last, numbers weekdays 0-6 from Sunday and
ORs the two day fields by default, so expressions are translated once at parse
time and always evaluated with ``day_or=False``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from croniter import CroniterBadDateError, croniter

from premade_creator.datatypes.errors import ValidationError

FIELD_COUNT = 6
FIELD_NAMES = ("seconds", "minutes", "hours", "day-of-month", "month", "day-of-week")

_WEEKDAY_NUMBER = re.compile(r"\d+")


def _shift_weekday(match: re.Match) -> str:
    day = int(match.group())
    if not 1 <= day <= 7:
        raise ValidationError(f"day-of-week {day} is out of range (1-7, Sunday = 1)")
    return str(day - 1)


def translate_weekdays(field: str) -> str:
    """Renumber a day-of-week field from 1-7 (Sunday = 1) to croniter's 0-6 (Sunday = 0).

    Step values (``/2``) and nth-weekday suffixes (``#3``) are not weekdays and
    are left alone.
    """
    parts = []
    for part in field.split(","):
        values, slash, step = part.partition("/")
        days, hash_sign, nth = values.partition("#")
        parts.append(_WEEKDAY_NUMBER.sub(_shift_weekday, days) + hash_sign + nth + slash + step)
    return ",".join(parts)


@dataclass(frozen=True, slots=True)
class CronSchedule:
    """A validated cron expression."""

    expression: str
    croniter_expression: str

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        """
        Validate ``expression`` and build a schedule from it.

        Raises:
            ValidationError: If the expression does not have exactly six fields,
                a field is outside the grammar, or the expression can never
                fire (e.g. February 30th).
        """
        fields = (expression or "").split()
        if len(fields) != FIELD_COUNT:
            raise ValidationError(
                f"Invalid cron expression {expression!r}: expected {FIELD_COUNT} fields "
                f"({' '.join(FIELD_NAMES)}), got {len(fields)}"
            )

        seconds, rest = fields[0], fields[1:]
        try:
            weekdays = translate_weekdays(rest[-1])
        except ValidationError as exc:
            raise ValidationError(f"Invalid cron expression {expression!r}: {exc}") from None

        croniter_expression = " ".join(rest[:-1] + [weekdays, seconds])
        if not croniter.is_valid(croniter_expression):
            raise ValidationError(f"Invalid cron expression {expression!r}")

        schedule = cls(expression=" ".join(fields), croniter_expression=croniter_expression)
        try:
            schedule.next_after(datetime.now())
        except CroniterBadDateError:
            raise ValidationError(f"Cron expression {expression!r} never fires") from None
        return schedule

    def next_after(self, moment: datetime) -> datetime:
        """Return the first scheduled instant strictly after ``moment``.

        Raises:
            CroniterBadDateError: If no instant can be found.
        """
        return croniter(self.croniter_expression, moment, day_or=False).get_next(datetime)

    def fires_between(self, after: datetime, until: datetime) -> bool:
        """Return True if a scheduled instant falls in ``(after, until]``."""
        if until <= after:
            return False
        return self.next_after(after) <= until

    def __str__(self) -> str:
        return self.expression
