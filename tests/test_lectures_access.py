from conftest import API, add_lecture, create_course, purchase, signup


def list_lectures(client, course_id, headers=None):
    response = client.get(f"{API}/courses/{course_id}/lectures", headers=headers or {})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_anonymous_sees_only_previews(client, course_with_lectures):
    course, lectures = course_with_lectures

    data = list_lectures(client, course["id"])

    assert [l["id"] for l in data["lectures"]] == [lectures[0]["id"]]
    assert data["isEnrolled"] is False
    assert data["isInstructor"] is False


def test_non_enrolled_student_sees_only_previews(client, student, course_with_lectures):
    course, lectures = course_with_lectures

    data = list_lectures(client, course["id"], student["headers"])

    assert [l["title"] for l in data["lectures"]] == ["Intro"]
    assert data["isEnrolled"] is False


def test_enrolled_student_sees_all_in_order(client, student, course_with_lectures):
    course, lectures = course_with_lectures
    purchase(client, student["headers"], course["id"])

    data = list_lectures(client, course["id"], student["headers"])

    assert [l["id"] for l in data["lectures"]] == [l["id"] for l in lectures]
    assert [l["order"] for l in data["lectures"]] == [1, 2, 3]
    assert data["isEnrolled"] is True


def test_owner_sees_all(client, instructor, course_with_lectures):
    course, lectures = course_with_lectures

    data = list_lectures(client, course["id"], instructor["headers"])

    assert len(data["lectures"]) == 3
    assert data["isInstructor"] is True


def test_other_instructor_is_not_the_owner(client, course_with_lectures):
    course, _ = course_with_lectures
    other = signup(client, "Grace Other", "grace@example.com", role="instructor")

    data = list_lectures(client, course["id"], other["headers"])

    assert len(data["lectures"]) == 1
    assert data["isInstructor"] is False


def test_course_without_lectures_returns_empty_list(client, instructor):
    course = create_course(client, instructor["headers"])

    data = list_lectures(client, course["id"], instructor["headers"])

    assert data["lectures"] == []


def test_unknown_course_lectures(client):
    response = client.get(f"{API}/courses/4242/lectures")
    assert response.status_code == 404


def test_invalid_token_is_treated_as_anonymous(client, course_with_lectures):
    course, _ = course_with_lectures

    data = list_lectures(client, course["id"], {"Authorization": "Bearer not-a-jwt"})

    assert len(data["lectures"]) == 1


def test_lecture_order_is_appended(client, instructor):
    course = create_course(client, instructor["headers"])

    orders = [
        add_lecture(client, instructor["headers"], course["id"], f"Lecture {i}")["order"]
        for i in range(4)
    ]

    assert orders == [1, 2, 3, 4]


def test_only_owner_can_add_lectures(client, instructor, student):
    course = create_course(client, instructor["headers"])

    response = client.post(
        f"{API}/courses/{course['id']}/lectures",
        data={"title": "Sneaky"},
        files={"video": ("sneaky.mp4", b"bytes", "video/mp4")},
        headers=student["headers"],
    )

    assert response.status_code == 403


def test_lecture_requires_a_video(client, instructor):
    course = create_course(client, instructor["headers"])

    response = client.post(
        f"{API}/courses/{course['id']}/lectures",
        data={"title": "No video"},
        headers=instructor["headers"],
    )

    assert response.status_code == 400


def test_lecture_video_type_is_checked(client, instructor):
    course = create_course(client, instructor["headers"])

    response = client.post(
        f"{API}/courses/{course['id']}/lectures",
        data={"title": "Wrong type"},
        files={"video": ("notes.txt", b"text", "text/plain")},
        headers=instructor["headers"],
    )

    assert response.status_code == 400
    assert "Invalid file type" in response.json()["message"]


def test_uploaded_video_is_served_from_storage(client, instructor):
    course = create_course(client, instructor["headers"])
    lecture = add_lecture(client, instructor["headers"], course["id"], "Served")

    response = client.get(f"/storage/{lecture['publicId']}")

    assert lecture["videoUrl"].endswith(f"/storage/{lecture['publicId']}")
    assert response.status_code == 200
    assert response.content == b"fake video bytes"


def test_course_detail_withholds_locked_video_urls(client, student, course_with_lectures):
    course, _ = course_with_lectures

    detail = client.get(f"{API}/courses/{course['id']}", headers=student["headers"]).json()["data"]

    urls = {l["title"]: l["videoUrl"] for l in detail["lectures"]}
    assert urls["Intro"] is not None
    assert urls["Variables"] is None
    assert urls["Functions"] is None
    assert detail["totalLectures"] == 3


def test_course_detail_shows_videos_after_purchase(client, student, course_with_lectures):
    course, _ = course_with_lectures
    purchase(client, student["headers"], course["id"])

    detail = client.get(f"{API}/courses/{course['id']}", headers=student["headers"]).json()["data"]

    assert all(l["videoUrl"] for l in detail["lectures"])
    assert detail["enrolledCount"] == 1
