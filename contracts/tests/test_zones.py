"""
Tests for local <-> UTC conversion around daylight-saving transitions.
"""

from datetime import date, datetime, timedelta, timezone

from django.test import SimpleTestCase

from contracts.exceptions import UnknownZoneError
from contracts.zones import get_zone, overlaps, shift_window, to_local_display, to_utc


CHICAGO = 'America/Chicago'


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class ToUtcTests(SimpleTestCase):

    def test_standard_and_daylight_offsets(self):
        self.assertEqual(to_utc(date(2024, 1, 15), '07:00', CHICAGO), utc(2024, 1, 15, 13, 0))
        self.assertEqual(to_utc(date(2024, 7, 15), '07:00', CHICAGO), utc(2024, 7, 15, 12, 0))

    def test_same_clock_differs_across_transitions(self):
        spring = to_utc(date(2024, 3, 10), '07:00', CHICAGO)
        before_spring = to_utc(date(2024, 3, 9), '07:00', CHICAGO)
        self.assertEqual(spring - before_spring, timedelta(hours=23))

        fall = to_utc(date(2024, 11, 3), '07:00', CHICAGO)
        before_fall = to_utc(date(2024, 11, 2), '07:00', CHICAGO)
        self.assertEqual(fall - before_fall, timedelta(hours=25))

    def test_offset_differs_by_one_hour_across_the_year(self):
        spring = to_utc(date(2024, 3, 10), '07:00', CHICAGO)
        fall = to_utc(date(2024, 11, 3), '07:00', CHICAGO)

        self.assertEqual((spring.hour, fall.hour), (12, 13))

    def test_ambiguous_time_resolves_to_first_occurrence(self):
        # 01:30 happens twice on 2024-11-03; the first is still CDT (UTC-5).
        self.assertEqual(to_utc(date(2024, 11, 3), '01:30', CHICAGO), utc(2024, 11, 3, 6, 30))

    def test_unknown_zone(self):
        with self.assertRaises(UnknownZoneError):
            to_utc(date(2024, 1, 1), '07:00', 'Mars/Olympus_Mons')
        with self.assertRaises(UnknownZoneError):
            get_zone('')


class ToLocalDisplayTests(SimpleTestCase):

    def test_round_trip_outside_transitions(self):
        for local_date, clock in ((date(2024, 1, 15), '07:00'), (date(2024, 7, 4), '23:45')):
            with self.subTest(local_date=local_date, clock=clock):
                reading = to_local_display(to_utc(local_date, clock, CHICAGO), CHICAGO)
                self.assertEqual(reading.date, local_date)
                self.assertEqual(reading.time, clock)

    def test_rejects_naive_instant(self):
        with self.assertRaises(ValueError):
            to_local_display(datetime(2024, 1, 1, 12, 0), CHICAGO)


class ShiftWindowTests(SimpleTestCase):

    def test_day_shift(self):
        start, end = shift_window(date(2024, 1, 15), '07:00', '19:00', CHICAGO)
        self.assertEqual(end - start, timedelta(hours=12))

    def test_overnight_shift_ends_next_day(self):
        start, end = shift_window(date(2024, 1, 15), '19:00', '07:00', CHICAGO)
        self.assertEqual(start, utc(2024, 1, 16, 1, 0))
        self.assertEqual(end, utc(2024, 1, 16, 13, 0))

    def test_overnight_shift_over_spring_forward_is_shorter(self):
        start, end = shift_window(date(2024, 3, 9), '19:00', '07:00', CHICAGO)
        self.assertEqual(end - start, timedelta(hours=11))

    def test_overnight_shift_over_fall_back_is_longer(self):
        start, end = shift_window(date(2024, 11, 2), '19:00', '07:00', CHICAGO)
        self.assertEqual(end - start, timedelta(hours=13))

    def test_window_is_never_empty(self):
        start, end = shift_window(date(2024, 3, 10), '02:00', '02:30', CHICAGO)
        self.assertLess(start, end)


class OverlapsTests(SimpleTestCase):

    def setUp(self):
        self.a = (utc(2024, 1, 1, 8), utc(2024, 1, 1, 12))
        self.b = (utc(2024, 1, 1, 11), utc(2024, 1, 1, 15))
        self.c = (utc(2024, 1, 1, 12), utc(2024, 1, 1, 14))

    def test_overlap_is_symmetric(self):
        self.assertTrue(overlaps(*self.a, *self.b))
        self.assertTrue(overlaps(*self.b, *self.a))

    def test_touching_intervals_do_not_overlap(self):
        self.assertFalse(overlaps(*self.a, *self.c))
        self.assertFalse(overlaps(*self.c, *self.a))

    def test_empty_interval_overlaps_nothing(self):
        instant = utc(2024, 1, 1, 10)
        self.assertFalse(overlaps(instant, instant, *self.a))
