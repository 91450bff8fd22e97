"""
Unit tests for URL composition.

Covers:
- deep links for course sessions
- filtered URLs for programs/courses, including the embedded filters JSON
- encodeURI-compatible escaping
- joining the site URL with a registration path
"""

import unittest
from datetime import date, time

from regurl.compose import (
    compose_url,
    construct_base_url,
    decode_filters,
    encode_uri,
    filter_object,
    filter_string,
    query_params,
)
from regurl.filters import ALL_FACETS, Facet, FilterState
from regurl.object_types import COURSE, COURSE_SESSION, PROGRAM

BASE = "https://register.example.org"


class TestDeepLink(unittest.TestCase):
    def test_session_without_course_option(self) -> None:
        url = compose_url(BASE, COURSE_SESSION, "a01", "Swim 101", FilterState.empty())
        self.assertEqual(url, f"{BASE}?courseSessionId=a01")

    def test_session_with_course_option(self) -> None:
        filters = FilterState(course_option_id="opt1")
        url = compose_url(BASE, COURSE_SESSION, "a01", "Swim 101", filters)
        self.assertEqual(url, f"{BASE}?courseSessionId=a01&courseOptionId=opt1")

    def test_session_ignores_other_filters(self) -> None:
        filters = FilterState(location="Main Pool", age=8, day_of_week=["Monday"], grade="K")
        url = compose_url(BASE, COURSE_SESSION, "a01", "Swim 101", filters)
        self.assertEqual(url, f"{BASE}?courseSessionId=a01")

    def test_alias_selects_deep_link(self) -> None:
        url = compose_url(BASE, "course_session", "a01", None, FilterState.empty())
        self.assertEqual(url, f"{BASE}?courseSessionId=a01")


class TestFilteredUrl(unittest.TestCase):
    def test_program_with_location(self) -> None:
        filters = FilterState(location="Main Pool")
        url = compose_url(BASE, PROGRAM, "p01", "Swim Team", filters)
        self.assertEqual(url, f"{BASE}?program=Swim%20Team&Location=Main%20Pool")

    def test_course_with_age_and_days(self) -> None:
        filters = FilterState(age=8, day_of_week=["Monday", "Wednesday"])
        url = compose_url(BASE, COURSE, "c01", "Intro", filters)
        self.assertEqual(url, f'{BASE}?course=Intro&filters={{"dayOfWeek":["Monday","Wednesday"],"age":8}}')

    def test_age_zero_counts_as_unset(self) -> None:
        filters = FilterState(age=0)
        url = compose_url(BASE, COURSE, "c01", "Intro", filters)
        self.assertEqual(url, f"{BASE}?course=Intro")

    def test_empty_filters_have_no_filters_segment(self) -> None:
        url = compose_url(BASE, PROGRAM, "p01", "Swim Team", FilterState.empty())
        self.assertNotIn("&filters=", url)
        self.assertEqual(url, f"{BASE}?program=Swim%20Team")

    def test_course_option_never_affects_non_session_url(self) -> None:
        plain = compose_url(BASE, PROGRAM, "p01", "Swim Team", FilterState(location="East Gym"))
        with_option = compose_url(
            BASE, PROGRAM, "p01", "Swim Team", FilterState(location="East Gym", course_option_id="opt1")
        )
        self.assertEqual(plain, with_option)
        self.assertNotIn("courseOptionId", with_option)

    def test_location_alone_does_not_add_filters(self) -> None:
        url = compose_url(BASE, PROGRAM, "p01", "Swim Team", FilterState(location="Main Pool"))
        self.assertNotIn("filters", url)

    def test_instructor_and_grade_are_encoded_inside_json(self) -> None:
        filters = FilterState(instructor="Jo Smith", grade="1st Grade")
        self.assertEqual(filter_string(filters), '{"instructor":"Jo%20Smith","grade":"1st%20Grade"}')

    def test_open_ranges_use_null(self) -> None:
        filters = FilterState(start_date=date(2026, 6, 1), end_time="17:00")
        obj = filter_object(filters)
        self.assertEqual(obj["dateRange"], ["2026-06-01", None])
        self.assertEqual(obj["timeRange"], [None, "17:00"])
        self.assertIn('"dateRange":["2026-06-01",null]', filter_string(filters))

    def test_time_objects_serialize_as_iso(self) -> None:
        filters = FilterState(start_time=time(9, 30), end_time=time(11, 0))
        self.assertEqual(filter_object(filters)["timeRange"], ["09:30:00", "11:00:00"])

    def test_non_ascii_kept_in_json(self) -> None:
        filters = FilterState(session="Été 2026")
        self.assertEqual(filter_string(filters), '{"session":"Été 2026"}')

    def test_unknown_type_degrades(self) -> None:
        url = compose_url(BASE, "Account", "r1", "Someone", FilterState.empty())
        self.assertEqual(url, f"{BASE}?=Someone")

    def test_missing_base_and_name(self) -> None:
        url = compose_url(None, PROGRAM, "p01", None, FilterState.empty())
        self.assertEqual(url, "?program=")

    def test_disabled_facets_are_ignored(self) -> None:
        filters = FilterState(location="Main Pool", start_time="09:00", age=8)
        facets = ALL_FACETS - {Facet.TIME_RANGE, Facet.LOCATION}
        url = compose_url(BASE, PROGRAM, "p01", "Swim Team", filters, facets)
        self.assertEqual(url, f'{BASE}?program=Swim%20Team&filters={{"age":8}}')


class TestRoundTrip(unittest.TestCase):
    def test_decoded_filters_match_state_in_key_order(self) -> None:
        filters = FilterState(
            session="ses-summer",
            start_date="2026-06-01",
            end_date="2026-08-31",
            start_time="09:00",
            end_time="12:00",
            day_of_week=["Wednesday", "Monday"],
            age=10,
            instructor="Jo Smith",
            grade="K",
        )
        url = compose_url(BASE, PROGRAM, "p01", "Swim Team", filters)
        decoded = decode_filters(url)

        self.assertEqual(
            list(decoded.keys()),
            ["session", "dateRange", "timeRange", "dayOfWeek", "age", "instructor", "grade"],
        )
        self.assertEqual(decoded["dateRange"], ["2026-06-01", "2026-08-31"])
        self.assertEqual(decoded["dayOfWeek"], ["Wednesday", "Monday"])
        self.assertEqual(decoded["instructor"], "Jo%20Smith")

    def test_only_set_fields_come_back(self) -> None:
        url = compose_url(BASE, COURSE, "c01", "Intro", FilterState(grade="K"))
        self.assertEqual(decode_filters(url), {"grade": "K"})

    def test_no_filters_decodes_empty(self) -> None:
        self.assertEqual(decode_filters(f"{BASE}?course=Intro"), {})

    def test_query_params(self) -> None:
        url = compose_url(BASE, PROGRAM, "p01", "Swim Team", FilterState(location="Main Pool", age=3))
        self.assertEqual(query_params(url), {"program": "Swim Team", "Location": "Main Pool"})

    def test_name_containing_filters_marker(self) -> None:
        url = compose_url(BASE, PROGRAM, "p01", "Odd&filters=Name", FilterState(age=8))
        self.assertEqual(decode_filters(url), {"age": 8})

    def test_plus_in_name_is_kept(self) -> None:
        url = compose_url(BASE, PROGRAM, "p01", "Parent+Child Swim", FilterState(location="Main Pool"))
        self.assertEqual(query_params(url), {"program": "Parent+Child Swim", "Location": "Main Pool"})


class TestEncodeUri(unittest.TestCase):
    def test_spaces_and_unicode(self) -> None:
        self.assertEqual(encode_uri("Swim Team"), "Swim%20Team")
        self.assertEqual(encode_uri("é"), "%C3%A9")

    def test_reserved_characters_are_kept(self) -> None:
        self.assertEqual(encode_uri("a&b=c/d?e#f;g,h:i@j+k$l"), "a&b=c/d?e#f;g,h:i@j+k$l")
        self.assertEqual(encode_uri("-_.!~*'()"), "-_.!~*'()")

    def test_other_characters_are_escaped(self) -> None:
        self.assertEqual(encode_uri("100%"), "100%25")
        self.assertEqual(encode_uri('[x] "y"'), "%5Bx%5D%20%22y%22")

    def test_none_is_empty(self) -> None:
        self.assertEqual(encode_uri(None), "")


class TestConstructBaseUrl(unittest.TestCase):
    def test_no_path(self) -> None:
        self.assertEqual(construct_base_url(BASE), BASE)
        self.assertEqual(construct_base_url(None), "")

    def test_relative_path_is_absolutized(self) -> None:
        self.assertEqual(construct_base_url(BASE, "registration"), f"{BASE}/registration")

    def test_site_prefix_is_stripped(self) -> None:
        self.assertEqual(construct_base_url(BASE, "/s/registration"), f"{BASE}/registration")
        self.assertEqual(construct_base_url(BASE, "s/registration"), f"{BASE}/registration")

    def test_other_prefix_is_kept(self) -> None:
        self.assertEqual(construct_base_url(BASE, "/sign-up"), f"{BASE}/sign-up")

    def test_full_url_replaces_base(self) -> None:
        self.assertEqual(construct_base_url(BASE, "https://other.org/reg"), "https://other.org/reg")
        self.assertEqual(construct_base_url(BASE, "HTTP://Other.org"), "HTTP://Other.org")
        self.assertEqual(construct_base_url(BASE, "//cdn.example.org/reg"), "//cdn.example.org/reg")

    def test_missing_site_url(self) -> None:
        self.assertEqual(construct_base_url(None, "/reg"), "/reg")


if __name__ == "__main__":
    unittest.main()
