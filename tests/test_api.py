import pytest
from fastapi.testclient import TestClient

from safe_route import main
from safe_route.config import RiskSettings

from conftest import DESTINATION, MIDPOINT, ORIGIN, make_incident


def latlngs(path):
    return [{"lat": lat, "lng": lon} for lat, lon in path]


@pytest.fixture()
def client(monkeypatch, midpoint_incident, far_incident):
    monkeypatch.setattr(main, "INCIDENTS", (
        midpoint_incident,
        far_incident,
        make_incident(4.70, -74.05, id="suba", area="Suba"),
    ))
    monkeypatch.setattr(main, "settings", RiskSettings(alert_cooldown_ms=0))
    monkeypatch.setattr(main, "ADVISORS", {})
    return TestClient(main.app)


def test_root(client):
    assert client.get("/").status_code == 200


def test_health(client):
    data = client.get("/api/health").json()
    assert data == {"status": "ok", "incidents": 3}


def test_startup_loads_missing_csv_as_empty(monkeypatch):
    monkeypatch.setattr(main, "INCIDENTS", (make_incident(4.6, -74.1),))
    with TestClient(main.app) as c:
        assert c.get("/api/health").json()["incidents"] == 0


def test_incidents_area_filter(client):
    all_items = client.get("/api/incidents").json()
    assert len(all_items) == 3

    items = client.get("/api/incidents", params={"area": "chapi"}).json()
    assert [i["id"] for i in items] == ["far"]
    assert items[0]["lng"] == -74.08


class TestAssess:
    def test_high_risk_route(self, client, straight_path):
        r = client.post("/api/risk/assess", json={"path": latlngs(straight_path)})
        assert r.status_code == 200
        data = r.json()

        assert data["level"] == "HIGH"
        assert data["nearest"]["id"] == "mid"
        assert data["distance_m"] < 100
        assert data["score"] > 0
        assert data["nearby"]
        assert data["nearby"][0]["category"] == "hurto a personas"
        assert {m["level"] for m in data["nearby"]} == {"HIGH", "MEDIUM"}
        assert data["alert"] is None

    def test_area_filter_drops_risk(self, client, straight_path):
        data = client.post("/api/risk/assess",
                           json={"path": latlngs(straight_path), "area": "suba"}).json()
        assert data["level"] == "LOW"
        assert data["nearest"] is None
        assert data["distance_text"] == "—"

    def test_stream_alerts_once(self, client, straight_path):
        body = {"path": latlngs(straight_path), "stream": "active"}

        first = client.post("/api/risk/assess", json=body).json()
        second = client.post("/api/risk/assess", json=body).json()

        assert first["alert"] == {"level": "HIGH", "stream": "active"}
        assert second["alert"] is None

    def test_unknown_stream(self, client, straight_path):
        r = client.post("/api/risk/assess", json={"path": latlngs(straight_path), "stream": "replay"})
        assert r.status_code == 400

    def test_path_too_short(self, client):
        r = client.post("/api/risk/assess", json={"path": latlngs([ORIGIN])})
        assert r.status_code == 400

    def test_radius_out_of_range(self, client, straight_path):
        r = client.post("/api/risk/assess",
                        json={"path": latlngs(straight_path), "proximity_radius": 10})
        assert r.status_code == 422


class TestDetour:
    def body(self, path, **extra):
        return {
            "path": latlngs(path),
            "origin": {"lat": ORIGIN.lat, "lng": ORIGIN.lon},
            "destination": {"lat": DESTINATION.lat, "lng": DESTINATION.lon},
            **extra,
        }

    def test_detour_found(self, client, straight_path):
        r = client.post("/api/route/detour", json=self.body(straight_path))
        assert r.status_code == 200
        data = r.json()
        assert data["via_points"] == [data["waypoint"]]
        assert main.ADVISORS[main.DEFAULT_CLIENT].waypoint is not None

    def test_no_alternative(self, client, straight_path, monkeypatch):
        monkeypatch.setattr(main, "INCIDENTS", ())
        r = client.post("/api/route/detour", json=self.body(straight_path))
        assert r.status_code == 404
        assert r.json()["detail"] == "No safer alternative found"

    def test_clear(self, client, straight_path):
        client.post("/api/route/detour", json=self.body(straight_path))
        assert client.post("/api/route/clear").status_code == 200
        assert main.ADVISORS[main.DEFAULT_CLIENT].via_points == []


class TestClientIsolation:
    def detour_body(self, path):
        return {
            "path": latlngs(path),
            "origin": {"lat": ORIGIN.lat, "lng": ORIGIN.lon},
            "destination": {"lat": DESTINATION.lat, "lng": DESTINATION.lon},
        }

    def test_each_client_gets_its_own_alert(self, client, straight_path):
        body = {"path": latlngs(straight_path), "stream": "active"}

        alert_a = client.post("/api/risk/assess", json=body, headers={"X-Client-Id": "a"}).json()["alert"]
        alert_b = client.post("/api/risk/assess", json=body, headers={"X-Client-Id": "b"}).json()["alert"]

        assert alert_a == {"level": "HIGH", "stream": "active"}
        assert alert_b == {"level": "HIGH", "stream": "active"}

    def test_clear_keeps_other_clients_waypoint(self, client, straight_path):
        r = client.post("/api/route/detour", json=self.detour_body(straight_path),
                        headers={"X-Client-Id": "a"})
        assert r.status_code == 200

        client.post("/api/route/clear", headers={"X-Client-Id": "b"})

        assert main.ADVISORS["a"].waypoint is not None
        assert main.ADVISORS["b"].waypoint is None

    def test_missing_header_uses_default_client(self, client, straight_path):
        client.post("/api/risk/assess", json={"path": latlngs(straight_path), "stream": "preview"})
        assert list(main.ADVISORS) == [main.DEFAULT_CLIENT]
        assert main.get_advisor(None) is main.ADVISORS[main.DEFAULT_CLIENT]


class TestProgress:
    def body(self, path, position, count):
        return {
            "path": latlngs(path),
            "position": {"lat": position[0], "lng": position[1]},
            "instruction_count": count,
        }

    def test_index_follows_position(self, client, straight_path):
        for position, expected in ((ORIGIN, 0), (MIDPOINT, 2), (DESTINATION, 4)):
            r = client.post("/api/route/progress", json=self.body(straight_path, position, 5))
            assert r.status_code == 200
            assert r.json() == {"instruction_index": expected}

    def test_no_instructions(self, client, straight_path):
        data = client.post("/api/route/progress", json=self.body(straight_path, MIDPOINT, 0)).json()
        assert data["instruction_index"] is None

    def test_empty_path(self, client):
        data = client.post("/api/route/progress", json=self.body([], MIDPOINT, 5)).json()
        assert data["instruction_index"] is None


def test_estimate(client):
    r = client.post("/api/route/estimate",
                    json={"distance_m": 14000, "mode": "drive", "at": "2026-10-19T12:00:00"})
    data = r.json()
    assert data["duration_seconds"] == 1800
    assert data["duration_text"] == "30 min"
    assert data["distance_text"] == "14 km"


def test_estimate_walk_floor(client):
    data = client.post("/api/route/estimate", json={"distance_m": 10, "mode": "walk"}).json()
    assert data["duration_seconds"] == 60
    assert data["duration_text"] == "1 min"
