from datetime import datetime, timedelta, timezone

from pysolarnetwork.util.dates import floor_utc_day, http_date, iso8601_date, parse_date

TEST_DATE = datetime(2017, 4, 25, 14, 30, 0, tzinfo=timezone.utc)


def test_iso8601_date():
    assert iso8601_date(TEST_DATE) == "20170425"
    assert iso8601_date(TEST_DATE, True) == "20170425T143000Z"


def test_iso8601_date_converts_to_utc():
    local = TEST_DATE.astimezone(timezone(timedelta(hours=12)))
    assert iso8601_date(local) == "20170425"
    assert iso8601_date(local, True) == "20170425T143000Z"


def test_http_date():
    assert http_date(TEST_DATE) == "Tue, 25 Apr 2017 14:30:00 GMT"
    assert http_date(TEST_DATE.replace(microsecond=500000)) == "Tue, 25 Apr 2017 14:30:00 GMT"


def test_floor_utc_day():
    assert floor_utc_day(TEST_DATE) == datetime(2017, 4, 25, tzinfo=timezone.utc)


def test_parse_date():
    assert parse_date("2017-04-25 14:30:00.000Z") == TEST_DATE
    assert parse_date("2017-04-25T14:30:00Z") == TEST_DATE
    assert parse_date(1493130600000) == TEST_DATE
    assert parse_date(datetime(2017, 4, 25, 14, 30)) == TEST_DATE
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("not a date") is None
