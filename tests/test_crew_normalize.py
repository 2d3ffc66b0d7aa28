from datetime import datetime

import pytest

from crew_app.importer.pipeline import NormalizedPhone, normalize_phone, sql_timestamp


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_blank_phone_is_absent(raw):
    assert normalize_phone(raw) is None


def test_international_phone_keeps_form_and_reads_country_code():
    phone = normalize_phone("+442079460958")

    assert phone == NormalizedPhone(e164="+442079460958", country_code="44")
    assert phone.is_parsed


def test_ten_digit_phone_is_treated_as_domestic():
    assert normalize_phone("(555) 123-4567") == NormalizedPhone(e164="+15551234567", country_code="1")


def test_eleven_digit_phone_with_leading_one_gets_plus():
    assert normalize_phone("1-555-123-4567") == NormalizedPhone(e164="+15551234567", country_code="1")
    assert normalize_phone("+1 555 123 4567") == NormalizedPhone(e164="+15551234567", country_code="1")


def test_unrecognised_phone_passes_through_without_country():
    phone = normalize_phone(" ext. 12345 ")

    assert phone == NormalizedPhone(e164="ext. 12345", country_code=None)
    assert not phone.is_parsed


def test_spaced_international_number_is_not_reformatted():
    phone = normalize_phone("+44 20 7946 0958")

    assert phone.e164 == "+44 20 7946 0958"
    assert phone.country_code is None


def test_sql_timestamp_format():
    assert sql_timestamp(datetime(2024, 3, 5, 7, 8, 9)) == "2024-03-05 07:08:09"
    assert len(sql_timestamp()) == len("YYYY-MM-DD HH:MM:SS")
