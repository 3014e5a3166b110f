"""Tests for the period and date options shared by listing commands."""

from datetime import date, timedelta

import click
import pytest

from rentledger.cli.date_filters import resolve_cli_date_range
from rentledger.utils.date_parser import get_date_range

PERIODS = ["this-month", "last-month", "this-year", "last-year"]


def resolve(start_date=None, end_date=None, **flags):
    ctx = click.Context(click.Command("list"))
    period_flags = {period: flags.get(period.replace("-", "_"), False) for period in PERIODS}
    return resolve_cli_date_range(ctx, start_date=start_date, end_date=end_date, period_flags=period_flags)


@pytest.mark.parametrize("period", PERIODS)
def test_period_flag_covers_whole_period(period):
    start, end = resolve(**{period.replace("-", "_"): True})
    assert (start, end) == get_date_range(period)
    assert start.day == 1
    assert (end + timedelta(days=1)).day == 1


def test_explicit_dates_mix_iso_and_day_first():
    """Test a Brazilian DD/MM/YYYY start with an ISO end."""
    assert resolve("05/01/2025", "2025-02-01") == (date(2025, 1, 5), date(2025, 2, 1))


def test_no_filters():
    assert resolve() == (None, None)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"this_month": True, "last_year": True}, "Only one period option"),
        ({"start_date": "2025-01-01", "this_year": True}, "cannot be combined"),
        ({"start_date": "someday"}, "Invalid start date"),
        ({"end_date": "31/02/2025"}, "Invalid end date"),
    ],
)
def test_invalid_options_exit(capsys, kwargs, message):
    with pytest.raises(click.exceptions.Exit) as excinfo:
        resolve(**kwargs)

    assert excinfo.value.exit_code == 1
    assert message in capsys.readouterr().err
