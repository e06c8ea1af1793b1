def test_create_and_fetch_project(client, auth_headers, seller):
    r = client.post(
        "/projects",
        json={"title": "Mobile app UI", "description": "Figma screens", "category": "design", "price": "1200.50"},
        headers=auth_headers(seller),
    )

    assert r.status_code == 201
    project = r.json()
    assert project["authorId"] == seller.id
    assert project["price"] == 1200.5
    assert project["isActive"] is True

    r = client.get(f"/projects/{project['id']}")
    assert r.status_code == 200
    assert r.json()["title"] == "Mobile app UI"


def test_create_project_validates_price(client, auth_headers, seller):
    r = client.post(
        "/projects",
        json={"title": "Free work", "price": "0"},
        headers=auth_headers(seller),
    )
    assert r.status_code == 422


def test_list_projects_filters(client, seller, make_project):
    make_project(seller, title="Logo design")
    make_project(seller, title="API backend")
    make_project(seller, title="Hidden", is_active=False)

    r = client.get("/projects")
    assert r.json()["pagination"]["total"] == 2

    r = client.get("/projects", params={"search": "logo"})
    assert [p["title"] for p in r.json()["projects"]] == ["Logo design"]

    r = client.get("/projects", params={"category": "writing"})
    assert r.json()["projects"] == []


def test_inactive_project_is_not_found(client, seller, make_project):
    hidden = make_project(seller, is_active=False)

    r = client.get(f"/projects/{hidden.id}")

    assert r.status_code == 404
    assert r.json() == {"detail": "Project not found", "code": "NOT_FOUND"}


def test_health_check(client):
    r = client.get("/health/check")

    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["database"] == "ok"
