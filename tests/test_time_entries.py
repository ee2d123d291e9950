"""
Time Entry API Tests

Tests cover:
  - create / validation / duration derivation
  - tag resolution (reuse, create, restore, colour)
  - list filters, ordering and pagination clamping
  - owner scoping (cross-user → 404), full-replacement update, soft delete
"""

from datetime import timedelta

import pytest

from timekeeper.models import db
from timekeeper.models.time_entry import COLOR_PALETTE, Tag, TimeEntry
from timekeeper.services.time_service import tag_color
from timekeeper.utils.helpers import isoformat, utcnow


BASE = "/api/v1/time-entries"


def _entry(**overrides):
    data = {
        "description": "Write report",
        "start_time": "2024-03-01T10:00:00Z",
        "end_time": "2024-03-01T11:30:00Z",
        "category": "Work",
    }
    data.update(overrides)
    return data


@pytest.fixture()
def create_entry(client, auth_headers):
    def _create(headers=None, **overrides):
        res = client.post(BASE, json=_entry(**overrides), headers=headers or auth_headers)
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _create


# ═══════════════════════════════════════════════════════════════
# CREATE
# ═══════════════════════════════════════════════════════════════

class TestCreateTimeEntry:
    def test_duration_is_end_minus_start(self, create_entry):
        entry = create_entry()
        assert entry["duration"] == 5400
        assert entry["start_time"] == "2024-03-01T10:00:00Z"
        assert entry["end_time"] == "2024-03-01T11:30:00Z"
        assert entry["category"] == "Work"
        assert entry["tags"] == []

    def test_running_entry_has_no_duration(self, create_entry):
        entry = create_entry(end_time=None)
        assert entry["end_time"] is None
        assert entry["duration"] is None

    def test_zero_length_entry(self, create_entry):
        entry = create_entry(end_time="2024-03-01T10:00:00Z")
        assert entry["duration"] == 0

    def test_offset_is_converted_to_utc(self, create_entry):
        entry = create_entry(start_time="2024-03-01T12:00:00+02:00", end_time="2024-03-01T12:30:00+02:00")
        assert entry["start_time"] == "2024-03-01T10:00:00Z"
        assert entry["duration"] == 1800

    def test_end_before_start_rejected(self, client, auth_headers):
        res = client.post(BASE, json=_entry(end_time="2024-03-01T09:00:00Z"), headers=auth_headers)
        assert res.status_code == 400
        assert "end_time" in res.get_json()["details"]

    @pytest.mark.parametrize("field", ["description", "start_time", "category"])
    def test_required_fields(self, client, auth_headers, field):
        res = client.post(BASE, json=_entry(**{field: None}), headers=auth_headers)
        assert res.status_code == 400

    def test_bad_timestamp_rejected(self, client, auth_headers):
        res = client.post(BASE, json=_entry(start_time="yesterday"), headers=auth_headers)
        assert res.status_code == 400

    def test_requires_auth(self, client):
        res = client.post(BASE, json=_entry())
        assert res.status_code == 401


# ═══════════════════════════════════════════════════════════════
# TAGS
# ═══════════════════════════════════════════════════════════════

class TestTags:
    def test_seeded_tag_is_reused(self, create_entry):
        entry = create_entry(tags=["Work"])
        assert entry["tags"][0]["name"] == "Work"
        assert entry["tags"][0]["color"] == "#3b82f6"
        assert Tag.query.filter_by(name="Work").count() == 1

    def test_new_tag_created_with_palette_colour(self, create_entry):
        entry = create_entry(tags=["deep-focus"])
        tag = entry["tags"][0]
        assert tag["name"] == "deep-focus"
        assert tag["color"] == tag_color("deep-focus")
        assert tag["color"] in COLOR_PALETTE

    def test_tag_match_is_case_sensitive(self, create_entry):
        create_entry(tags=["work"])
        assert Tag.query.filter_by(name="work").count() == 1
        assert Tag.query.filter_by(name="Work").count() == 1

    def test_duplicate_names_collapsed(self, create_entry):
        entry = create_entry(tags=["alpha", "alpha", " "])
        assert [t["name"] for t in entry["tags"]] == ["alpha"]

    def test_soft_deleted_tag_restored(self, create_entry):
        tag = Tag.query.filter_by(name="Meeting").first()
        tag.soft_delete()
        db.session.commit()
        create_entry(tags=["Meeting"])
        tag = Tag.query.filter_by(name="Meeting").first()
        assert tag.deleted_at is None
        assert Tag.query.filter_by(name="Meeting").count() == 1

    def test_tag_colour_is_deterministic(self):
        assert tag_color("Reading") == tag_color("Reading")
        assert tag_color("a" * 500) in COLOR_PALETTE

    def test_tags_must_be_list(self, client, auth_headers):
        res = client.post(BASE, json=_entry(tags="Work"), headers=auth_headers)
        assert res.status_code == 400


# ═══════════════════════════════════════════════════════════════
# LIST
# ═══════════════════════════════════════════════════════════════

class TestListTimeEntries:
    def test_ordered_by_start_desc(self, client, auth_headers, create_entry):
        create_entry(description="first", start_time="2024-03-01T08:00:00Z", end_time=None)
        create_entry(description="second", start_time="2024-03-02T08:00:00Z", end_time=None)
        res = client.get(BASE, headers=auth_headers)
        data = res.get_json()
        assert res.status_code == 200
        assert [e["description"] for e in data["entries"]] == ["second", "first"]
        assert data["total"] == 2
        assert data["page"] == 1
        assert data["limit"] == 20

    def test_filter_category(self, client, auth_headers, create_entry):
        create_entry(category="Work")
        create_entry(category="Learning")
        res = client.get(f"{BASE}?category=Learning", headers=auth_headers)
        assert [e["category"] for e in res.get_json()["entries"]] == ["Learning"]

    def test_filter_date_range_inclusive(self, client, auth_headers, create_entry):
        create_entry(start_time="2024-03-01T23:30:00Z", end_time=None)
        create_entry(start_time="2024-03-02T00:00:00Z", end_time=None)
        create_entry(start_time="2024-03-03T09:00:00Z", end_time=None)
        res = client.get(f"{BASE}?date_from=2024-03-01&date_to=2024-03-02", headers=auth_headers)
        assert res.get_json()["total"] == 2

    def test_filter_bad_date(self, client, auth_headers):
        res = client.get(f"{BASE}?date_from=03/01/2024", headers=auth_headers)
        assert res.status_code == 400

    def test_search_case_insensitive(self, client, auth_headers, create_entry):
        create_entry(description="Quarterly REPORT review")
        create_entry(description="Gym")
        res = client.get(f"{BASE}?search=report", headers=auth_headers)
        entries = res.get_json()["entries"]
        assert len(entries) == 1
        assert entries[0]["description"] == "Quarterly REPORT review"

    @pytest.mark.parametrize("term, expected", [
        ("%", ["100% done"]),
        ("_", ["snake_case rename"]),
        ("\\", []),
    ])
    def test_search_wildcards_are_literal(self, client, auth_headers, create_entry, term, expected):
        create_entry(description="x")
        create_entry(description="100% done")
        create_entry(description="snake_case rename")
        res = client.get(BASE, query_string={"search": term}, headers=auth_headers)
        data = res.get_json()
        assert data["total"] == len(expected)
        assert [e["description"] for e in data["entries"]] == expected

    def test_pagination(self, client, auth_headers, create_entry):
        for day in range(1, 6):
            create_entry(start_time=f"2024-03-0{day}T08:00:00Z", end_time=None)
        res = client.get(f"{BASE}?page=2&limit=2", headers=auth_headers)
        data = res.get_json()
        assert data["total"] == 5
        assert data["page"] == 2
        assert data["limit"] == 2
        assert [e["start_time"][:10] for e in data["entries"]] == ["2024-03-03", "2024-03-02"]

    @pytest.mark.parametrize("query, page, limit", [
        ("limit=0", 1, 20),
        ("limit=101", 1, 20),
        ("limit=100", 1, 100),
        ("page=0", 1, 20),
        ("page=-4&limit=abc", 1, 20),
    ])
    def test_pagination_clamping(self, client, auth_headers, query, page, limit):
        data = client.get(f"{BASE}?{query}", headers=auth_headers).get_json()
        assert data["page"] == page
        assert data["limit"] == limit

    def test_only_own_entries(self, client, auth_headers, other_headers, create_entry):
        create_entry(headers=other_headers)
        res = client.get(BASE, headers=auth_headers)
        assert res.get_json()["total"] == 0


# ═══════════════════════════════════════════════════════════════
# GET / UPDATE / DELETE
# ═══════════════════════════════════════════════════════════════

class TestTimeEntryDetail:
    def test_get(self, client, auth_headers, create_entry):
        entry = create_entry()
        res = client.get(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert res.status_code == 200
        assert res.get_json()["id"] == entry["id"]

    def test_get_missing(self, client, auth_headers):
        res = client.get(f"{BASE}/does-not-exist", headers=auth_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_cross_user_is_not_found(self, client, other_headers, create_entry):
        entry = create_entry()
        assert client.get(f"{BASE}/{entry['id']}", headers=other_headers).status_code == 404
        assert client.put(f"{BASE}/{entry['id']}", json=_entry(), headers=other_headers).status_code == 404
        assert client.delete(f"{BASE}/{entry['id']}", headers=other_headers).status_code == 404

    def test_update_replaces_fields_and_recomputes_duration(self, client, auth_headers, create_entry):
        entry = create_entry(tags=["one", "two"])
        res = client.put(f"{BASE}/{entry['id']}", json=_entry(
            description="Edited",
            start_time="2024-03-01T09:00:00Z",
            end_time="2024-03-01T09:45:00Z",
            category="Learning",
            tags=["three"],
        ), headers=auth_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert data["description"] == "Edited"
        assert data["category"] == "Learning"
        assert data["duration"] == 2700
        assert [t["name"] for t in data["tags"]] == ["three"]

    def test_update_without_tags_clears_them(self, client, auth_headers, create_entry):
        entry = create_entry(tags=["one"])
        res = client.put(f"{BASE}/{entry['id']}", json=_entry(), headers=auth_headers)
        assert res.get_json()["tags"] == []

    def test_update_end_before_start_rejected(self, client, auth_headers, create_entry):
        entry = create_entry()
        res = client.put(f"{BASE}/{entry['id']}", json=_entry(end_time="2024-03-01T08:00:00Z"),
                         headers=auth_headers)
        assert res.status_code == 400

    def test_delete_is_soft(self, client, auth_headers, create_entry):
        entry = create_entry()
        res = client.delete(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert res.status_code == 200
        assert client.get(f"{BASE}/{entry['id']}", headers=auth_headers).status_code == 404
        assert client.get(BASE, headers=auth_headers).get_json()["total"] == 0
        row = db.session.get(TimeEntry, entry["id"])
        assert row is not None
        assert row.deleted_at is not None

    def test_delete_twice_is_not_found(self, client, auth_headers, create_entry):
        entry = create_entry()
        client.delete(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert client.delete(f"{BASE}/{entry['id']}", headers=auth_headers).status_code == 404


class TestTimeEntryStats:
    def test_stats_window(self, client, auth_headers):
        start = utcnow() - timedelta(hours=3)
        client.post(BASE, json=_entry(
            start_time=isoformat(start), end_time=isoformat(start + timedelta(hours=1)),
        ), headers=auth_headers)
        client.post(BASE, json=_entry(start_time=isoformat(start), end_time=None),
                    headers=auth_headers)
        res = client.get(f"{BASE}/stats?days=7", headers=auth_headers)
        assert res.status_code == 200
        data = res.get_json()
        assert data["days"] == 7
        assert data["total_time"] == 3600
        assert data["entry_count"] == 2
        assert data["running_entries"] == 1
        assert data["category_stats"][0]["category"] == "Work"
