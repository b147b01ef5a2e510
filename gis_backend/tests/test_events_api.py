"""
Event lifecycle over the REST API, including poster files on disk.

Given/When/Then is spelled out in the longer scenarios so the binding between
a row and its uploaded poster can be followed step by step.
"""

from datetime import datetime, timedelta, timezone

from gis_backend.models.event import Event
from gis_backend.services import events_repo
from gis_backend.tests.conftest import JPEG_BYTES, PNG_BYTES, asset_file


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def _create(client, **fields):
    body = {"title": "Kickoff", "date": "2030-01-01", "location": "Hall A", "description": "intro"}
    body.update(fields)
    r = client.post("/api/events", json=body)
    assert r.status_code == 200, r.text
    return r.json()


def test_kickoff_scenario_create_attach_poster_delete(client, app):
    # Given: an event created without a file
    r = client.post(
        "/api/events",
        json={"title": "Kickoff", "date": "2030-01-01", "location": "Hall A", "description": "intro"},
    )
    assert r.status_code == 200
    ev = r.json()
    assert isinstance(ev["id"], int)
    assert ev["time"] == "00:00"
    assert ev["type"] == "Webinar"
    assert ev["participants"] == "-"
    assert ev["poster"] is None

    # When: a poster is attached with PUT
    r = client.put(
        f"/api/events/{ev['id']}",
        data={"title": "Kickoff"},
        files={"poster": ("kickoff.png", PNG_BYTES, "image/png")},
    )

    # Then: the poster is a store path and the file exists
    assert r.status_code == 200, r.text
    poster = r.json()["poster"]
    assert poster.startswith("/uploads/events/")
    assert poster.endswith(".png")
    path = asset_file(app, poster)
    assert path.is_file()
    assert path.read_bytes() == PNG_BYTES

    # And: the file is served under /uploads
    assert client.get(poster).content == PNG_BYTES

    # When: the event is deleted
    r = client.delete(f"/api/events/{ev['id']}")

    # Then: success, file removed, event gone
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert not path.exists()
    r = client.get(f"/api/events/{ev['id']}")
    assert r.status_code == 404
    assert r.json() == {"error": "Event not found"}


def test_create_then_get_returns_same_values(client):
    created = _create(
        client,
        title="Global Talk",
        date="2031-05-06T09:30:00Z",
        time="16:30",
        location="Auditorium",
        type="Seminar",
        participants="120",
        description="<p>Rich</p>",
        registrationLink="https://forms.example.org/reg",
    )

    fetched = client.get(f"/api/events/{created['id']}").json()

    assert fetched == created
    assert fetched["date"].startswith("2031-05-06T09:30:00")
    assert fetched["registrationLink"] == "https://forms.example.org/reg"
    assert fetched["type"] == "Seminar"


def test_date_with_offset_is_normalized_to_utc(client):
    created = _create(client, date="2030-01-01T07:00:00+07:00")
    assert created["date"].startswith("2030-01-01T00:00:00")


def test_blank_defaulted_fields_get_defaults(client):
    created = _create(client, time="", type="", participants="")
    assert (created["time"], created["type"], created["participants"]) == ("00:00", "Webinar", "-")


def test_create_with_poster_upload(client, app):
    r = client.post(
        "/api/events",
        data={"title": "Poster day", "date": "2030-02-02", "location": "Hall B", "description": "x"},
        files={"poster": ("p.JPG", JPEG_BYTES, "image/jpeg")},
    )
    assert r.status_code == 200, r.text
    poster = r.json()["poster"]
    assert poster.startswith("/uploads/events/")
    assert poster.endswith(".jpg")
    assert asset_file(app, poster).is_file()


def test_missing_title_or_date_is_400_and_nothing_stored(client, db):
    r = client.post("/api/events", json={"date": "2030-01-01"})
    assert r.status_code == 400
    assert r.json() == {"error": "title is required"}

    r = client.post("/api/events", json={"title": "No date"})
    assert r.status_code == 400
    assert "date" in r.json()["error"]

    assert db.query(Event).count() == 0


def test_invalid_date_is_400(client):
    r = client.post("/api/events", json={"title": "Bad", "date": "next tuesday"})
    assert r.status_code == 400
    assert "ISO 8601" in r.json()["error"]


def test_upcoming_and_previous_filtering_and_order(client):
    now = datetime.now(timezone.utc)
    dates = {
        "past-far": now - timedelta(days=30),
        "past-near": now - timedelta(days=1),
        "future-near": now + timedelta(days=1),
        "future-far": now + timedelta(days=30),
    }
    # insert out of order
    for title in ("future-far", "past-near", "future-near", "past-far"):
        _create(client, title=title, date=_iso(dates[title]))

    upcoming = [e["title"] for e in client.get("/api/events", params={"type": "upcoming"}).json()]
    previous = [e["title"] for e in client.get("/api/events", params={"type": "previous"}).json()]
    everything = [e["title"] for e in client.get("/api/events").json()]

    assert upcoming == ["future-near", "future-far"]
    assert previous == ["past-near", "past-far"]
    assert everything == ["past-far", "past-near", "future-near", "future-far"]


def test_unknown_type_filter_is_400(client):
    r = client.get("/api/events", params={"type": "someday"})
    assert r.status_code == 400
    assert "upcoming" in r.json()["error"]


def test_search_and_pagination(client):
    for i in range(5):
        _create(client, title=f"Talk {i}", date=f"2030-01-0{i + 1}", location="Jakarta" if i % 2 else "Bandung")

    r = client.get("/api/events", params={"q": "jakarta"})
    assert [e["title"] for e in r.json()] == ["Talk 1", "Talk 3"]
    assert "X-Total-Count" not in r.headers

    r = client.get("/api/events", params={"page": 2, "page_size": 2})
    assert [e["title"] for e in r.json()] == ["Talk 2", "Talk 3"]
    assert r.headers["X-Total-Count"] == "5"
    assert r.headers["X-Total-Pages"] == "3"


def test_partial_update_keeps_other_fields_and_poster(client, app):
    r = client.post(
        "/api/events",
        data={"title": "Before", "date": "2030-03-03", "location": "Room 1", "description": "d"},
        files={"poster": ("a.png", PNG_BYTES, "image/png")},
    )
    ev = r.json()

    r = client.put(f"/api/events/{ev['id']}", json={"title": "After"})

    assert r.status_code == 200
    updated = r.json()
    assert updated["title"] == "After"
    assert updated["location"] == "Room 1"
    assert updated["poster"] == ev["poster"]
    assert asset_file(app, ev["poster"]).is_file()


def test_replacing_poster_deletes_old_file(client, app):
    # Given: an event with a stored poster
    r = client.post(
        "/api/events",
        data={"title": "Swap", "date": "2030-04-04"},
        files={"poster": ("old.png", PNG_BYTES, "image/png")},
    )
    old = r.json()["poster"]
    old_file = asset_file(app, old)
    assert old_file.is_file()

    # When: a new poster is uploaded
    r = client.put(
        f"/api/events/{r.json()['id']}",
        data={"title": "Swap"},
        files={"poster": ("new.webp", b"RIFF....WEBP", "image/webp")},
    )

    # Then: record points at the new file, old is gone, new exists
    new = r.json()["poster"]
    assert new != old
    assert new.endswith(".webp")
    assert not old_file.exists()
    assert asset_file(app, new).is_file()


def test_clearing_poster_removes_file(client, app):
    r = client.post(
        "/api/events",
        data={"title": "Clear", "date": "2030-04-04"},
        files={"poster": ("old.png", PNG_BYTES, "image/png")},
    )
    ev = r.json()
    old_file = asset_file(app, ev["poster"])

    r = client.put(f"/api/events/{ev['id']}", json={"poster": None})

    assert r.status_code == 200
    assert r.json()["poster"] is None
    assert not old_file.exists()


def test_external_poster_url_is_kept_and_never_deleted(client, app, monkeypatch):
    calls = []
    monkeypatch.setattr(app.state.assets, "delete", lambda path: calls.append(path))

    ev = _create(client, poster="https://cdn.example.org/poster.png")
    assert ev["poster"] == "https://cdn.example.org/poster.png"

    r = client.delete(f"/api/events/{ev['id']}")

    assert r.status_code == 200
    assert calls == []


def test_delete_event_without_poster_does_not_touch_store(client, app, monkeypatch):
    calls = []
    monkeypatch.setattr(app.state.assets, "delete", lambda path: calls.append(path))

    ev = _create(client)
    assert client.delete(f"/api/events/{ev['id']}").status_code == 200
    assert calls == []


def test_poster_pointing_at_missing_upload_is_rejected(client):
    r = client.post(
        "/api/events",
        json={"title": "Ghost", "date": "2030-01-01", "poster": "/uploads/events/nope.png"},
    )
    assert r.status_code == 400
    assert "missing upload" in r.json()["error"]


def test_poster_from_standalone_upload_can_be_attached(client, app):
    url = client.post("/api/upload", files={"image": ("x.png", PNG_BYTES, "image/png")}).json()["url"]

    ev = _create(client, poster=url)

    assert ev["poster"] == url
    client.delete(f"/api/events/{ev['id']}")
    assert not asset_file(app, url).exists()


def test_file_delete_failure_does_not_block_row_delete(client, app, monkeypatch):
    r = client.post(
        "/api/events",
        data={"title": "Stuck", "date": "2030-01-01"},
        files={"poster": ("s.png", PNG_BYTES, "image/png")},
    )
    ev = r.json()

    def _boom(path):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(app.state.assets, "delete", _boom)

    r = client.delete(f"/api/events/{ev['id']}")

    assert r.status_code == 200
    assert client.get(f"/api/events/{ev['id']}").status_code == 404


def test_file_delete_failure_does_not_block_update(client, app, monkeypatch):
    r = client.post(
        "/api/events",
        data={"title": "Stuck", "date": "2030-01-01"},
        files={"poster": ("s.png", PNG_BYTES, "image/png")},
    )
    ev = r.json()

    def _boom(path):
        raise OSError("busy")

    monkeypatch.setattr(app.state.assets, "delete", _boom)

    r = client.put(
        f"/api/events/{ev['id']}",
        data={"title": "Stuck"},
        files={"poster": ("t.png", PNG_BYTES, "image/png")},
    )

    assert r.status_code == 200
    assert r.json()["poster"] != ev["poster"]


def test_not_found_put_delete_get(client, app, upload_root):
    r = client.put(
        "/api/events/999",
        data={"title": "x"},
        files={"poster": ("p.png", PNG_BYTES, "image/png")},
    )
    assert r.status_code == 404
    assert r.json() == {"error": "Event not found"}

    r = client.delete("/api/events/999")
    assert r.status_code == 404
    assert r.json() == {"error": "Event not found"}

    r = client.get("/api/events/999")
    assert r.status_code == 404

    # no file was written for the rejected PUT
    events_dir = upload_root / "events"
    assert not events_dir.exists() or list(events_dir.iterdir()) == []


def test_non_integer_id_is_400_envelope(client):
    r = client.get("/api/events/abc")
    assert r.status_code == 400
    assert "error" in r.json()


def test_poster_already_bound_to_another_event_is_rejected(client, app):
    # Given: event A owning an uploaded poster
    r = client.post(
        "/api/events",
        data={"title": "A", "date": "2030-01-01"},
        files={"poster": ("a.png", PNG_BYTES, "image/png")},
    )
    a = r.json()
    b = _create(client, title="B")

    # When: another event tries to take the same store path
    r_create = client.post("/api/events", json={"title": "C", "date": "2030-01-02", "poster": a["poster"]})
    r_update = client.put(f"/api/events/{b['id']}", json={"poster": a["poster"]})

    # Then: both are rejected and B stays unbound
    assert r_create.status_code == 400
    assert "already used" in r_create.json()["error"]
    assert r_update.status_code == 400
    assert client.get(f"/api/events/{b['id']}").json()["poster"] is None

    # A may still re-send its own path
    r = client.put(f"/api/events/{a['id']}", json={"poster": a["poster"], "title": "A2"})
    assert r.status_code == 200
    assert r.json()["poster"] == a["poster"]

    # and deleting B never touches A's file
    client.delete(f"/api/events/{b['id']}")
    assert asset_file(app, a["poster"]).is_file()


def test_shared_poster_left_in_db_survives_delete_of_one_row(client, app, db):
    # Given: two rows already sharing one file (written around the API)
    r = client.post(
        "/api/events",
        data={"title": "A", "date": "2030-01-01"},
        files={"poster": ("a.png", PNG_BYTES, "image/png")},
    )
    a = r.json()
    b = events_repo.create_event(db, title="B", date=datetime(2030, 1, 2), poster=a["poster"])

    # When: A is deleted
    assert client.delete(f"/api/events/{a['id']}").status_code == 200

    # Then: the file stays while B points at it, and goes with B
    assert asset_file(app, a["poster"]).is_file()
    assert client.delete(f"/api/events/{b.id}").status_code == 200
    assert not asset_file(app, a["poster"]).exists()


def test_date_pushed_outside_supported_range_is_400(client, db):
    for raw in ("0001-01-01T00:00:00+01:00", "9999-12-31T23:30:00-01:00"):
        r = client.post("/api/events", json={"title": "Edge", "date": raw})
        assert r.status_code == 400, raw
        assert "date" in r.json()["error"]

    assert db.query(Event).count() == 0


def test_malformed_store_paths_are_400(client):
    for poster in ("/uploads/events/a\x00b.png", "/uploads/events/" + "a" * 5000 + ".png"):
        r = client.post("/api/events", json={"title": "Odd", "date": "2030-01-01", "poster": poster})
        assert r.status_code == 400
        assert "missing upload" in r.json()["error"]


def test_over_long_fields_are_400_and_nothing_stored(client, db):
    r = client.post("/api/events", json={"title": "x" * 301, "date": "2030-01-01"})
    assert r.status_code == 400
    assert r.json() == {"error": "title must be at most 300 characters"}

    r = client.post("/api/events", json={"title": "ok", "date": "2030-01-01", "location": "L" * 301})
    assert r.status_code == 400
    assert "location" in r.json()["error"]

    assert db.query(Event).count() == 0

    ev = _create(client, title="x" * 300)
    r = client.put(f"/api/events/{ev['id']}", json={"type": "T" * 51})
    assert r.status_code == 400
    assert client.get(f"/api/events/{ev['id']}").json()["type"] == "Webinar"


def test_data_url_poster_is_stored_whole(client):
    poster = "data:image/png;base64," + "A" * 20000

    ev = _create(client, poster=poster)

    assert client.get(f"/api/events/{ev['id']}").json()["poster"] == poster
