from datetime import datetime

import pytest

from premade_creator.datatypes.errors import ValidationError
from premade_creator.scheduler.cron import CronSchedule, translate_weekdays


def test_parse_reorders_seconds_last():
    schedule = CronSchedule.parse("30 0 20 * * FRI")
    assert schedule.expression == "30 0 20 * * FRI"
    assert schedule.croniter_expression == "0 20 * * FRI 30"
    assert str(schedule) == "30 0 20 * * FRI"


def test_parse_normalizes_whitespace():
    assert CronSchedule.parse("  0   *  * * * * ").expression == "0 * * * * *"


@pytest.mark.parametrize("expression", ["", "* * * * *", "* * * * * * *", "61 * * * * *", "a b c d e f"])
def test_parse_rejects_invalid(expression):
    with pytest.raises(ValidationError):
        CronSchedule.parse(expression)


def test_parse_rejects_expression_that_never_fires():
    with pytest.raises(ValidationError, match="never fires"):
        CronSchedule.parse("0 0 0 30 2 *")


@pytest.mark.parametrize("expression", ["0 0 20 * * 0", "0 0 20 * * 8", "0 0 20 * * 1-9"])
def test_parse_rejects_weekday_out_of_range(expression):
    with pytest.raises(ValidationError):
        CronSchedule.parse(expression)


@pytest.mark.parametrize("field, expected", [
    ("*", "*"),
    ("1", "0"),
    ("7", "6"),
    ("2-6", "1-5"),
    ("1,3,5", "0,2,4"),
    ("2/2", "1/2"),
    ("*/3", "*/3"),
    ("6#2", "5#2"),
    ("MON-FRI", "MON-FRI"),
])
def test_translate_weekdays(field, expected):
    assert translate_weekdays(field) == expected


def test_numeric_weekdays_start_on_sunday():
    friday = datetime(2024, 5, 3, 12, 0, 0)
    sunday_noon = datetime(2024, 5, 5, 12, 0, 0)
    assert CronSchedule.parse("0 0 12 * * 1").next_after(friday) == sunday_noon
    assert CronSchedule.parse("0 0 12 * * SUN").next_after(friday) == sunday_noon
    assert CronSchedule.parse("0 0 20 * * 6").next_after(friday) == datetime(2024, 5, 3, 20, 0, 0)


def test_day_of_month_and_weekday_must_both_match():
    # 1st of the month that is also a Thursday (5 = Thursday).
    schedule = CronSchedule.parse("0 0 20 1 * 5")
    assert schedule.next_after(datetime(2024, 5, 1, 21, 0, 0)) == datetime(2024, 8, 1, 20, 0, 0)


def test_next_after_honours_seconds():
    schedule = CronSchedule.parse("30 * * * * *")
    assert schedule.next_after(datetime(2024, 5, 3, 12, 0, 29)) == datetime(2024, 5, 3, 12, 0, 30)
    assert schedule.next_after(datetime(2024, 5, 3, 12, 0, 30)) == datetime(2024, 5, 3, 12, 1, 30)


def test_fires_between_is_half_open():
    schedule = CronSchedule.parse("30 * * * * *")
    start = datetime(2024, 5, 3, 12, 0, 29)
    assert schedule.fires_between(start, datetime(2024, 5, 3, 12, 0, 30))
    assert not schedule.fires_between(datetime(2024, 5, 3, 12, 0, 30), datetime(2024, 5, 3, 12, 1, 29))
    assert not schedule.fires_between(start, start)
