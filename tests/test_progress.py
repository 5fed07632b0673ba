import pytest

from conftest import API, add_lecture, create_course

from learnify.core.exceptions import ConflictError
from learnify.models.course_progress import CourseProgress
from learnify.models.user import User
from learnify.services.progress import ProgressService


def mark(client, headers, course_id, lecture_id):
    return client.patch(f"{API}/progress/{course_id}/lectures/{lecture_id}", headers=headers)


def get_progress(client, headers, course_id):
    response = client.get(f"{API}/progress/{course_id}", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_progress_without_tracker_reads_as_zero(client, student, course_with_lectures, db_session):
    course, _ = course_with_lectures

    data = get_progress(client, student["headers"], course["id"])

    assert data["progress"] == []
    assert data["completionPercentage"] == 0
    assert data["isCompleted"] is False
    assert data["courseDetails"]["id"] == course["id"]
    assert db_session.query(CourseProgress).count() == 0


def test_progress_for_unknown_course(client, student):
    response = client.get(f"{API}/progress/999", headers=student["headers"])
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_progress_requires_authentication(client, course_with_lectures):
    course, _ = course_with_lectures
    assert client.get(f"{API}/progress/{course['id']}").status_code == 401


def test_marking_lectures_updates_percentage(client, student, course_with_lectures):
    course, lectures = course_with_lectures

    response = mark(client, student["headers"], course["id"], lectures[0]["id"])
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["completionPercentage"] == 33
    assert data["isCompleted"] is False
    assert [p["lectureId"] for p in data["lectureProgress"]] == [lectures[0]["id"]]

    mark(client, student["headers"], course["id"], lectures[1]["id"])
    data = mark(client, student["headers"], course["id"], lectures[2]["id"]).json()["data"]
    assert data["completionPercentage"] == 100
    assert data["isCompleted"] is True


def test_marking_same_lecture_twice_is_idempotent(client, student, course_with_lectures):
    course, lectures = course_with_lectures

    first = mark(client, student["headers"], course["id"], lectures[1]["id"]).json()["data"]
    second = mark(client, student["headers"], course["id"], lectures[1]["id"]).json()["data"]

    assert first["completionPercentage"] == second["completionPercentage"] == 33
    assert len(second["lectureProgress"]) == 1


def test_lecture_from_another_course_is_rejected(client, instructor, student, course_with_lectures):
    course, _ = course_with_lectures
    other = create_course(client, instructor["headers"], title="Other")
    foreign = add_lecture(client, instructor["headers"], other["id"], "Elsewhere")

    response = mark(client, student["headers"], course["id"], foreign["id"])

    assert response.status_code == 404


def test_percentage_follows_current_lecture_count(client, instructor, student, course_with_lectures):
    course, lectures = course_with_lectures
    for lecture in lectures:
        mark(client, student["headers"], course["id"], lecture["id"])

    add_lecture(client, instructor["headers"], course["id"], "Classes")
    data = get_progress(client, student["headers"], course["id"])

    assert data["completionPercentage"] == 75
    assert data["isCompleted"] is False


def test_complete_requires_existing_tracker(client, student, course_with_lectures):
    course, _ = course_with_lectures

    response = client.patch(f"{API}/progress/{course['id']}/complete", headers=student["headers"])

    assert response.status_code == 404
    assert response.json()["message"] == "Course progress not found"


def test_reset_requires_existing_tracker(client, student, course_with_lectures):
    course, _ = course_with_lectures

    response = client.patch(f"{API}/progress/{course['id']}/reset", headers=student["headers"])

    assert response.status_code == 404


def test_complete_marks_every_lecture(client, student, course_with_lectures):
    course, lectures = course_with_lectures
    mark(client, student["headers"], course["id"], lectures[0]["id"])

    response = client.patch(f"{API}/progress/{course['id']}/complete", headers=student["headers"])

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["isCompleted"] is True
    assert data["completionPercentage"] == 100
    assert sorted(p["lectureId"] for p in data["lectureProgress"]) == sorted(l["id"] for l in lectures)
    assert all(p["isCompleted"] for p in data["lectureProgress"])


def test_reset_recomputes_derived_fields(client, student, course_with_lectures):
    course, lectures = course_with_lectures
    mark(client, student["headers"], course["id"], lectures[0]["id"])
    client.patch(f"{API}/progress/{course['id']}/complete", headers=student["headers"])

    response = client.patch(f"{API}/progress/{course['id']}/reset", headers=student["headers"])

    data = response.json()["data"]
    assert data["isCompleted"] is False
    assert data["completionPercentage"] == 0
    assert not any(p["isCompleted"] for p in data["lectureProgress"])


def test_reset_then_remark_everything_completes_again(client, student, course_with_lectures):
    course, lectures = course_with_lectures
    for lecture in lectures:
        mark(client, student["headers"], course["id"], lecture["id"])
    client.patch(f"{API}/progress/{course['id']}/reset", headers=student["headers"])

    for lecture in lectures:
        data = mark(client, student["headers"], course["id"], lecture["id"]).json()["data"]

    assert data["isCompleted"] is True
    assert data["completionPercentage"] == 100


def test_trackers_are_per_user(client, student, other_student, course_with_lectures):
    course, lectures = course_with_lectures
    mark(client, student["headers"], course["id"], lectures[0]["id"])

    data = get_progress(client, other_student["headers"], course["id"])

    assert data["completionPercentage"] == 0
    assert data["progress"] == []


def test_tracker_version_increments_on_each_write(client, student, course_with_lectures, db_session):
    course, lectures = course_with_lectures
    mark(client, student["headers"], course["id"], lectures[0]["id"])
    first = db_session.query(CourseProgress).one().version
    db_session.expire_all()

    mark(client, student["headers"], course["id"], lectures[1]["id"])
    second = db_session.query(CourseProgress).one().version

    assert second > first


def test_concurrent_update_of_a_stale_tracker_conflicts(client, student, course_with_lectures, database):
    course, lectures = course_with_lectures
    mark(client, student["headers"], course["id"], lectures[0]["id"])

    first = database.SessionLocal()
    second = database.SessionLocal()
    try:
        stale = second.query(CourseProgress).one()
        loaded_version = stale.version

        ProgressService(first).mark_lecture_completed(
            course["id"], lectures[1]["id"], first.get(User, student["user"]["id"])
        )

        with pytest.raises(ConflictError):
            ProgressService(second).mark_lecture_completed(
                course["id"], lectures[2]["id"], second.get(User, student["user"]["id"])
            )
        assert first.get(CourseProgress, stale.id).version > loaded_version
    finally:
        first.close()
        second.close()

    data = get_progress(client, student["headers"], course["id"])
    assert sorted(p["lectureId"] for p in data["progress"]) == [lectures[0]["id"], lectures[1]["id"]]
    assert data["completionPercentage"] == 67
