"""
Tests for FastAPI endpoints
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from api import create_app
from exceptions import FetchError, UpstreamError


@pytest.fixture
def client(dashboard_app):
    return TestClient(create_app(dashboard_app))


class TestServiceEndpoints:
    """Test class for service-level endpoints"""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "SEO Dashboard API"
        assert data["version"] == "1.0.0"
        assert "/docs" in data["docs"]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["components"]["database"]["status"] == "healthy"

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.json()["audits_run"] == 0

    def test_unknown_route_uses_message_body(self, client):
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json() == {"message": "Not Found"}

    def test_uninitialized_app(self):
        """Without a context and without startup every route fails with 500"""
        response = TestClient(create_app()).get("/api/websites")
        assert response.status_code == 500
        assert response.json() == {"message": "Dashboard app not initialized"}


class TestWebsitesAndKeywords:
    """Website and keyword routes"""

    def test_create_and_list_website(self, client):
        response = client.post("/api/websites", json={"userId": 1, "domain": "ex.com", "name": "Ex"})
        assert response.status_code == 200
        website = response.json()
        assert website["domain"] == "ex.com"
        assert website["isActive"] is True

        listed = client.get("/api/websites").json()
        assert website["id"] in [w["id"] for w in listed]

    @pytest.mark.parametrize("body", [
        {"domain": "ex.com", "name": "Ex"},
        {"userId": "one", "domain": "ex.com", "name": "Ex"},
        {"userId": 1, "domain": "", "name": "Ex"},
    ])
    def test_invalid_website(self, client, body):
        response = client.post("/api/websites", json=body)
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid website data"}

    def test_create_keyword(self, client, website):
        response = client.post("/api/keywords", json={
            "websiteId": website.id, "keyword": "widgets", "targetUrl": "https://example.com/w",
            "searchVolume": 1200
        })
        assert response.status_code == 200
        data = response.json()
        assert data["keyword"] == "widgets"
        assert data["searchVolume"] == 1200
        assert data["currentPosition"] is None

        listed = client.get(f"/api/keywords/{website.id}").json()
        assert [k["keyword"] for k in listed] == ["widgets"]

    def test_keyword_for_missing_website(self, client):
        response = client.post("/api/keywords", json={"websiteId": 999, "keyword": "widgets"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid keyword data"}

    def test_bad_path_parameter(self, client):
        response = client.get("/api/keywords/abc")
        assert response.status_code == 400
        assert "message" in response.json()

    def test_reads_for_unknown_website_are_empty(self, client):
        assert client.get("/api/keywords/999").json() == []
        assert client.get("/api/backlinks/999").json() == []
        assert client.get("/api/content/999").json() == []
        assert client.get("/api/competitors/999").json() == []
        assert client.get("/api/audit/999/latest").json() is None
        assert client.get("/api/local-seo/999").json() is None

    def test_dashboard_stats(self, client, db_manager, website):
        db_manager.create_keyword(website.id, "widgets", current_position=3, search_volume=100)
        data = client.get(f"/api/dashboard/stats/{website.id}").json()
        assert data == {"totalKeywords": 1, "avgPosition": 3.0, "totalBacklinks": 0, "organicTraffic": 11}


class TestBacklinkRoutes:
    """Backlink review and discovery routes"""

    def test_status_update(self, client, db_manager, website):
        backlink = db_manager.create_backlink(website.id, "https://a.com", "https://example.com")

        response = client.patch(f"/api/backlinks/{backlink.id}/status", json={"status": "approved"})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get(f"/api/backlinks/{website.id}/pending").json() == []
        assert client.get(f"/api/backlinks/{website.id}").json()[0]["approvedAt"] is not None

    def test_invalid_status_is_rejected(self, client, db_manager, website):
        backlink = db_manager.create_backlink(website.id, "https://a.com", "https://example.com")

        response = client.patch(f"/api/backlinks/{backlink.id}/status", json={"status": "maybe"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid status"}
        assert db_manager.get_backlink(backlink.id).status == "pending"

    def test_missing_status(self, client, db_manager, website):
        backlink = db_manager.create_backlink(website.id, "https://a.com", "https://example.com")
        response = client.patch(f"/api/backlinks/{backlink.id}/status", json={})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid status"}

    def test_illegal_transition(self, client, db_manager, website):
        backlink = db_manager.create_backlink(website.id, "https://a.com", "https://example.com",
                                              status="rejected")
        response = client.patch(f"/api/backlinks/{backlink.id}/status", json={"status": "approved"})
        assert response.status_code == 400

    def test_unknown_backlink(self, client):
        response = client.patch("/api/backlinks/999/status", json={"status": "approved"})
        assert response.status_code == 400

    def test_discover(self, client):
        response = client.post("/api/backlinks/discover", json={
            "domain": "example.com", "targetKeywords": ["widgets"], "niche": "retail"
        })
        assert response.status_code == 200
        opportunities = response.json()["opportunities"]
        assert opportunities[0]["contactEmail"] == "hi@one.com"

    def test_discover_and_save(self, client, website):
        response = client.post(f"/api/backlinks/{website.id}/discover", json={
            "domain": "example.com", "keywords": ["widgets"], "industry": "retail"
        })
        assert response.status_code == 200
        saved = response.json()
        assert len(saved) == 3
        assert saved[0]["status"] == "pending"
        assert len(client.get(f"/api/backlinks/{website.id}/pending").json()) == 3

    def test_discover_failure(self, client, dashboard_app):
        dashboard_app.content_relay.find_backlink_opportunities = AsyncMock(
            side_effect=UpstreamError("Backlink opportunity discovery", "rate limited")
        )
        response = client.post("/api/backlinks/discover", json={"domain": "example.com"})
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to discover backlink opportunities"}


class TestContentRoutes:
    """Content analysis, generation and optimization"""

    def test_analyze(self, client, website):
        response = client.post("/api/content/analyze", json={
            "websiteId": website.id, "content": "Widgets", "targetKeywords": ["widgets"]
        })
        assert response.status_code == 200
        data = response.json()
        assert data["seoScore"] == 82.0
        assert data["keywordDensity"] == 2.5
        assert data["websiteId"] == website.id

        assert len(client.get(f"/api/content/{website.id}").json()) == 1

    def test_analyze_upstream_failure(self, client, dashboard_app, website):
        dashboard_app.content_relay.analyze_content = AsyncMock(
            side_effect=UpstreamError("Content analysis", "bad reply")
        )
        response = client.post("/api/content/analyze", json={"websiteId": website.id, "content": "x"})
        assert response.status_code == 500
        assert response.json() == {"message": "Failed to analyze content"}

    def test_analyze_without_content(self, client, website):
        response = client.post("/api/content/analyze", json={"websiteId": website.id})
        assert response.status_code == 400

    def test_generate(self, client, dashboard_app):
        response = client.post("/api/content/generate", json={"topic": "Widgets", "targetKeywords": ["w"]})
        assert response.status_code == 200
        assert response.json() == {"content": "Generated content"}
        dashboard_app.content_relay.generate_content.assert_awaited_once_with("blog_post", "Widgets", ["w"], 800)

    def test_generate_rejects_unknown_type(self, client):
        response = client.post("/api/content/generate", json={"topic": "Widgets", "contentType": "poem"})
        assert response.status_code == 400

    def test_optimize(self, client):
        response = client.post("/api/content/optimize", json={"content": "Text", "targetKeywords": []})
        assert response.json() == {"optimizedContent": "Optimized content"}

    def test_onpage(self, client):
        response = client.post("/api/onpage/analyze", json={
            "url": "https://example.com", "content": "Text", "targetKeywords": ["w"]
        })
        assert response.status_code == 200
        assert response.json()["titleOptimization"] == ["Shorten the title"]


class TestAuditRoutes:
    """Technical audit routes"""

    def test_audit_and_latest(self, client, website):
        assert client.get(f"/api/audit/{website.id}/latest").json() is None

        response = client.post(f"/api/audit/{website.id}", json={"domain": "example.com"})
        assert response.status_code == 200
        audit = response.json()
        assert audit["pageSpeed"] == 88
        assert audit["mobileScore"] == 85

        latest = client.get(f"/api/audit/{website.id}/latest").json()
        assert latest["id"] == audit["id"]

    def test_audit_fetch_failure(self, client, dashboard_app, website):
        dashboard_app.page_fetcher.fetch = AsyncMock(side_effect=FetchError("https://example.com", "timed out"))

        response = client.post(f"/api/audit/{website.id}", json={"domain": "example.com"})

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to perform technical audit"}

    def test_audit_requires_domain(self, client, website):
        assert client.post(f"/api/audit/{website.id}", json={}).status_code == 400


class TestCompetitorAndLocalRoutes:

    def test_competitor_analysis(self, client, website):
        response = client.post("/api/competitors/analyze", json={
            "yourDomain": "example.com", "competitorDomains": ["rival.com"], "niche": "retail",
            "websiteId": website.id
        })
        assert response.status_code == 200
        assert response.json()["analyses"][0]["competitor"] == "rival.com"
        assert client.get(f"/api/competitors/{website.id}").json()[0]["competitorDomain"] == "rival.com"

    def test_local_seo_tasks(self, client):
        response = client.post("/api/local-seo/generate-tasks", json={
            "businessName": "Widget Co", "location": "Austin", "businessType": "retail"
        })
        assert response.json()["tasks"][0]["priority"] == "high"

    def test_local_seo_upsert(self, client, website):
        response = client.put(f"/api/local-seo/{website.id}", json={"businessName": "Widget Co", "reviews": 3})
        assert response.status_code == 200
        client.put(f"/api/local-seo/{website.id}", json={"reviews": 5})

        data = client.get(f"/api/local-seo/{website.id}").json()
        assert data["businessName"] == "Widget Co"
        assert data["reviews"] == 5

    def test_local_seo_for_missing_website(self, client):
        response = client.put("/api/local-seo/999", json={"businessName": "Nobody"})
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid local SEO data"}

    def test_social_posts(self, client):
        response = client.post("/api/social-media/generate-posts", json={
            "content": "Text", "platforms": ["twitter"], "targetKeywords": ["seo"]
        })
        assert response.json()["posts"][0]["optimizedForSEO"] is True


class TestRankTrackingRoutes:

    def test_tracking_and_update(self, client, db_manager, website):
        keyword = db_manager.create_keyword(website.id, "widgets", current_position=10)

        response = client.post("/api/rank-tracking/update", json={"websiteId": website.id})
        assert response.status_code == 200
        assert response.json()["updates"][0] == {
            "keywordId": keyword.id, "keyword": "widgets", "newPosition": 4, "previousPosition": 10
        }

        tracked = client.get(f"/api/rank-tracking/{website.id}").json()["keywords"][0]
        assert tracked["currentPosition"] == 4
        assert tracked["previousPosition"] == 10

    def test_update_failure(self, client, dashboard_app, db_manager, website):
        db_manager.create_keyword(website.id, "widgets")
        dashboard_app.rank_checker.check_position = AsyncMock(side_effect=FetchError("https://google.com", "blocked"))

        response = client.post("/api/rank-tracking/update", json={"websiteId": website.id})

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to update rankings"}
