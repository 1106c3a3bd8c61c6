"""Tests for booking ID, PNR and seat label generation."""

import random
import re

from railbook.identifiers import (
    RandomIdentifierGenerator,
    generate_booking_id,
    generate_pnr,
    generate_seat_number,
)

SEAT_PATTERN = re.compile(r"^(?P<cls>.+)(?P<coach>[A-H])-(?P<seat>\d+)$")


def test_booking_id_is_prefix_clock_and_random_suffix():
    ids = RandomIdentifierGenerator(rng=random.Random(7), clock_ms=lambda: 1704067200000)
    booking_id = ids.new_booking_id()
    assert booking_id.startswith("BK1704067200000")
    suffix = booking_id[len("BK1704067200000"):]
    assert suffix.isdigit()
    assert 0 <= int(suffix) < 1000


def test_default_booking_id_is_bk_plus_digits():
    assert re.fullmatch(r"BK\d+", generate_booking_id())


def test_pnr_is_ten_uppercase_alphanumerics():
    ids = RandomIdentifierGenerator(rng=random.Random(3))
    for _ in range(200):
        assert re.fullmatch(r"[A-Z0-9]{10}", ids.new_pnr())
    assert re.fullmatch(r"[A-Z0-9]{10}", generate_pnr())


def test_seat_number_coach_and_seat_ranges():
    ids = RandomIdentifierGenerator(rng=random.Random(11))
    coaches = set()
    for _ in range(500):
        match = SEAT_PATTERN.match(ids.new_seat_number("2A"))
        assert match is not None
        assert match.group("cls") == "2A"
        assert 1 <= int(match.group("seat")) <= 72
        coaches.add(match.group("coach"))
    assert coaches <= set("ABCDEFGH")
    assert len(coaches) > 1


def test_generation_does_not_depend_on_prior_output():
    # Same seed, same sequence: nothing remembers previously issued values
    first = RandomIdentifierGenerator(rng=random.Random(99), clock_ms=lambda: 1)
    second = RandomIdentifierGenerator(rng=random.Random(99), clock_ms=lambda: 1)
    assert [first.new_pnr() for _ in range(5)] == [second.new_pnr() for _ in range(5)]
    assert first.new_booking_id() == second.new_booking_id()


def test_module_level_seat_number():
    assert generate_seat_number("SL").startswith("SL")
