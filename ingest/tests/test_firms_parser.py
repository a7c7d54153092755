from ingest.firms_client import is_error_body, parse_feed_text
from ingest.models import RawHotspotRow


def test_header_only_feed_yields_no_rows():
    assert parse_feed_text("latitude,longitude,acq_date,acq_time\n") == []
    assert parse_feed_text("") == []
    assert parse_feed_text("\n\n   \n") == []


def test_rows_are_zipped_against_header_names():
    text = (
        "latitude,longitude,brightness,acq_date,acq_time,satellite,confidence,frp\n"
        "14.1,99.5,331.2,2024-03-15,0630,N,n,4.5\n"
    )
    [row] = parse_feed_text(text)

    assert isinstance(row, RawHotspotRow)
    assert row.latitude == 14.1
    assert row.longitude == 99.5
    assert row.brightness == 331.2
    assert row.acq_date == "2024-03-15"
    assert row.acq_time == "0630"
    assert row.satellite == "N"
    assert row.confidence == "n"
    assert row.frp == 4.5


def test_short_rows_default_missing_fields():
    text = "latitude,longitude,acq_date,acq_time,satellite,frp\n14.2,99.1,2024-03-15\n"
    [row] = parse_feed_text(text)

    assert row.acq_date == "2024-03-15"
    assert row.acq_time == ""
    assert row.satellite == ""
    assert row.frp == 0.0


def test_unparseable_numeric_fields_fall_back_to_zero():
    text = "latitude,longitude,frp,scan,track\nabc,99.5,,nan,inf\n"
    [row] = parse_feed_text(text)

    assert row.latitude == 0.0
    assert row.longitude == 99.5
    assert row.frp == 0.0
    assert row.scan == 0.0
    assert row.track == 0.0


def test_unknown_columns_are_kept_as_extra_and_header_is_trimmed():
    text = "\ufefflatitude , longitude ,type\n14.1,99.5,0\n"
    [row] = parse_feed_text(text)

    assert row.latitude == 14.1
    assert row.longitude == 99.5
    assert row.extra == {"type": "0"}


def test_error_flagged_bodies():
    assert is_error_body("Invalid MAP_KEY.")
    assert is_error_body("Error: too many requests")
    assert not is_error_body("latitude,longitude\n14.1,99.5\n")
