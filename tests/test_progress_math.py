from types import SimpleNamespace

import pytest

from learnify.services.progress import (
    completion_percentage,
    count_completed,
    derive,
    is_course_completed,
)


def entry(lecture_id, done):
    return SimpleNamespace(lecture_id=lecture_id, is_completed=done)


@pytest.mark.parametrize(
    "completed,total,expected",
    [
        (0, 3, 0),
        (1, 3, 33),
        (2, 3, 67),
        (3, 3, 100),
        (1, 8, 13),  # 12.5 rounds up
        (3, 8, 38),  # 37.5 rounds up
        (1, 6, 17),
        (5, 7, 71),
    ],
)
def test_completion_percentage_rounds_half_up(completed, total, expected):
    assert completion_percentage(completed, total) == expected


def test_completion_percentage_matches_rounding_for_every_count():
    for total in range(1, 41):
        for completed in range(total + 1):
            exact = 100 * completed / total
            assert abs(completion_percentage(completed, total) - exact) <= 0.5


def test_empty_course_is_zero_and_never_completed():
    assert completion_percentage(0, 0) == 0
    assert is_course_completed(0, 0) is False


def test_completion_flag_requires_every_lecture():
    assert is_course_completed(3, 3) is True
    assert is_course_completed(2, 3) is False


def test_entries_for_removed_lectures_are_ignored():
    entries = [entry(1, True), entry(99, True), entry(2, False)]
    assert count_completed(entries, [1, 2, 3]) == 1


def test_two_entries_against_three_lectures():
    assert derive([entry(1, True), entry(2, False)], [1, 2, 3]) == (33, False)
