from pathlib import Path

from conftest import API, add_lecture, create_course

from learnify.models.course import Course
from learnify.services.course import escape_like


def publish(client, headers, course_id):
    response = client.patch(f"{API}/courses/{course_id}", json={"isPublished": True}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def published_course(client, headers, **fields):
    course = create_course(client, headers, **fields)
    add_lecture(client, headers, course["id"], "Lecture")
    return publish(client, headers, course["id"])


def test_instructor_creates_unpublished_course(client, instructor):
    course = create_course(client, instructor["headers"], level="advanced", subtitle="Deep dive")

    assert course["title"] == "Python Basics"
    assert course["price"] == 49.99
    assert course["level"] == "advanced"
    assert course["isPublished"] is False
    assert course["instructorId"] == instructor["user"]["id"]


def test_student_cannot_create_course(client, student):
    response = client.post(
        f"{API}/courses",
        json={"title": "Nope", "category": "Misc", "price": 0},
        headers=student["headers"],
    )
    assert response.status_code == 403


def test_course_creation_requires_authentication(client):
    response = client.post(f"{API}/courses", json={"title": "X", "category": "Y", "price": 1})
    assert response.status_code == 401


def test_missing_required_fields_persist_nothing(client, instructor, db_session):
    for body in (
        {"category": "Programming", "price": 10},
        {"title": "No price", "category": "Programming"},
        {"title": "No category", "price": 10},
    ):
        response = client.post(f"{API}/courses", json=body, headers=instructor["headers"])
        assert response.status_code == 400
        assert response.json()["success"] is False

    assert db_session.query(Course).count() == 0


def test_negative_price_is_rejected(client, instructor):
    response = client.post(
        f"{API}/courses",
        json={"title": "Cheap", "category": "Misc", "price": -1},
        headers=instructor["headers"],
    )
    assert response.status_code == 400


def test_only_owner_can_update(client, instructor, student):
    course = create_course(client, instructor["headers"])

    response = client.patch(
        f"{API}/courses/{course['id']}", json={"title": "Hijacked"}, headers=student["headers"]
    )

    assert response.status_code == 403


def test_update_course_fields(client, instructor):
    course = create_course(client, instructor["headers"])

    response = client.patch(
        f"{API}/courses/{course['id']}",
        json={"title": "Python Advanced", "price": 99},
        headers=instructor["headers"],
    )

    data = response.json()["data"]
    assert data["title"] == "Python Advanced"
    assert data["price"] == 99
    assert data["category"] == "Programming"


def test_publishing_requires_a_lecture(client, instructor):
    course = create_course(client, instructor["headers"])

    response = client.patch(
        f"{API}/courses/{course['id']}", json={"isPublished": True}, headers=instructor["headers"]
    )

    assert response.status_code == 400


def test_search_returns_only_published(client, instructor):
    published_course(client, instructor["headers"], title="Published Python")
    create_course(client, instructor["headers"], title="Draft Python")

    body = client.get(f"{API}/courses/search", params={"query": "python"}).json()

    assert body["success"] is True
    assert body["count"] == 1
    assert body["total"] == 1
    assert body["data"][0]["title"] == "Published Python"
    assert body["data"][0]["instructor"]["name"] == "Ada Instructor"


def test_search_matches_description(client, instructor):
    published_course(
        client, instructor["headers"], title="Web Backends", description="Build APIs with Django"
    )

    body = client.get(f"{API}/courses/search", params={"query": "django"}).json()

    assert [c["title"] for c in body["data"]] == ["Web Backends"]


def test_search_treats_wildcards_literally(client, instructor):
    published_course(client, instructor["headers"], title="Web Backends")
    published_course(client, instructor["headers"], title="100% Python")

    percent = client.get(f"{API}/courses/search", params={"query": "%"}).json()
    underscore = client.get(f"{API}/courses/search", params={"query": "_"}).json()

    assert [c["title"] for c in percent["data"]] == ["100% Python"]
    assert underscore["count"] == 0


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_search_filters_and_sorting(client, instructor):
    headers = instructor["headers"]
    published_course(client, headers, title="Cheap Design", category="Design", price=10)
    published_course(client, headers, title="Mid Code", category="Programming", price=50)
    published_course(client, headers, title="Pricey Code", category="Programming", price=200, level="advanced")

    by_category = client.get(f"{API}/courses/search", params={"categories": "Programming"}).json()
    assert {c["title"] for c in by_category["data"]} == {"Mid Code", "Pricey Code"}

    multi = client.get(
        f"{API}/courses/search", params=[("categories", "Design"), ("categories", "Programming")]
    ).json()
    assert multi["count"] == 3

    priced = client.get(f"{API}/courses/search", params={"priceRange": "20-100"}).json()
    assert [c["title"] for c in priced["data"]] == ["Mid Code"]

    levelled = client.get(f"{API}/courses/search", params={"level": "advanced"}).json()
    assert [c["title"] for c in levelled["data"]] == ["Pricey Code"]

    low = client.get(f"{API}/courses/search", params={"sortBy": "price-low"}).json()
    assert [c["price"] for c in low["data"]] == [10, 50, 200]

    high = client.get(f"{API}/courses/search", params={"sortBy": "price-high"}).json()
    assert [c["price"] for c in high["data"]] == [200, 50, 10]


def test_search_pagination(client, instructor):
    for i in range(3):
        published_course(client, instructor["headers"], title=f"Course {i}")

    body = client.get(f"{API}/courses/search", params={"page": 2, "size": 2}).json()

    assert body["total"] == 3
    assert body["count"] == 1
    assert body["totalPages"] == 2


def test_malformed_price_range(client):
    response = client.get(f"{API}/courses/search", params={"priceRange": "cheap"})
    assert response.status_code == 400


def test_published_and_my_courses(client, instructor):
    published_course(client, instructor["headers"], title="Live")
    create_course(client, instructor["headers"], title="Draft")

    published = client.get(f"{API}/courses/published").json()
    mine = client.get(f"{API}/courses/my-courses", headers=instructor["headers"]).json()

    assert [c["title"] for c in published["data"]] == ["Live"]
    assert {c["title"] for c in mine["data"]} == {"Live", "Draft"}


def test_course_detail(client, instructor, course_with_lectures):
    course, _ = course_with_lectures

    body = client.get(f"{API}/courses/{course['id']}").json()

    assert body["data"]["instructor"]["id"] == instructor["user"]["id"]
    assert [l["order"] for l in body["data"]["lectures"]] == [1, 2, 3]


def test_thumbnail_upload_replaces_previous(client, instructor, settings):
    course = create_course(client, instructor["headers"])

    def upload(name):
        response = client.post(
            f"{API}/courses/{course['id']}/thumbnail",
            files={"thumbnail": (name, b"\x89PNG image", "image/png")},
            headers=instructor["headers"],
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]["thumbnail"]

    first = upload("one.png")
    second = upload("two.png")

    storage = Path(settings.upload_dir)
    first_path = storage / first.split("/storage/", 1)[1]
    second_path = storage / second.split("/storage/", 1)[1]
    assert not first_path.exists()
    assert second_path.exists()
