from __future__ import annotations
from freelance_ingest.utils.rate import parse_rate_from_content


def test_maximaal_phrase_yields_max_only():
    assert parse_rate_from_content("Tarief: maximaal 86 euro per uur") == {"rate_max": 86}


def test_range_yields_min_and_max():
    assert parse_rate_from_content("€85–90 per uur") == {"rate_min": 85, "rate_max": 90}
    assert parse_rate_from_content("tussen 95 - 80 euro per uur") == {"rate_min": 80, "rate_max": 95}


def test_no_rate_information_returns_empty():
    assert parse_rate_from_content("geen tariefinformatie") == {}
    assert parse_rate_from_content("") == {}
    assert parse_rate_from_content(None) == {}


def test_tot_and_euro_per_uur_phrases():
    assert parse_rate_from_content("Wij bieden tot €95 aan") == {"rate_max": 95}
    assert parse_rate_from_content("Vergoeding: 70 euro per uur") == {"rate_max": 70}


def test_uurtarief_van_phrase():
    assert parse_rate_from_content("Een uurtarief van €88 is mogelijk") == {"rate_max": 88}


def test_bare_euro_per_uur():
    assert parse_rate_from_content("Je verdient €92 per uur") == {"rate_max": 92}


def test_html_is_stripped_before_matching():
    html = "<p>Tarief:</p><p><strong>maximaal 101</strong> euro</p>"
    assert parse_rate_from_content(html) == {"rate_max": 101}


def test_zero_values_are_ignored():
    assert parse_rate_from_content("maximaal 0 euro") == {}


def test_dates_are_not_mistaken_for_ranges():
    assert parse_rate_from_content("Start 14-03-2026, tarief €90 per uur") == {"rate_max": 90}


def test_hour_spans_are_not_mistaken_for_ranges():
    text = "Uren: 32-36 per week. Tarief: maximaal 86 euro per uur"
    assert parse_rate_from_content(text) == {"rate_max": 86}
    assert parse_rate_from_content("32 - 36 uur, €95 per uur") == {"rate_max": 95}
