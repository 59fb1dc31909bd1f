"""
Pytest configuration and shared fixtures
"""
import pytest
import os
import tempfile
from unittest.mock import Mock, AsyncMock

# Add project root to path
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config import DashboardConfig
from database import DatabaseManager
from page_fetcher import extract_page_facts
from content_relay import (
    ContentScores, BacklinkOpportunity, CompetitorInsight, OnPageAnalysis,
    LocalSeoTask, SocialMediaPost
)
from app import SEODashboardApp


SAMPLE_HTML = """
<html>
    <head>
        <title>Test Page</title>
        <meta name="description" content="Test description">
        <meta name="viewport" content="width=device-width, initial-scale=1">
    </head>
    <body>
        <h1>Main Heading</h1>
        <h2>Sub Heading</h2>
        <p>Test content with some words for analysis.</p>
        <a href="/internal">Internal Link</a>
        <a href="https://external.com/page">External Link</a>
        <img src="test.jpg" alt="Test image">
        <script>var tracking = true;</script>
    </body>
</html>
"""

# Empty title, no description, no h1, three images without alt text
BROKEN_HTML = """
<html>
    <head><title></title></head>
    <body>
        <h2>Only a subheading</h2>
        <img src="a.jpg">
        <img src="b.jpg" alt="">
        <img src="c.jpg" alt="   ">
        <img src="d.jpg" alt="Described">
    </body>
</html>
"""


@pytest.fixture
def temp_db():
    """Create a temporary database for testing"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        db_path = f.name

    yield db_path

    # Cleanup
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def test_config(temp_db, tmp_path):
    """Test configuration with temporary database"""
    return DashboardConfig(
        database_url=f"sqlite:///{temp_db}",
        openai_api_key="test-key",
        navigation_timeout=5,
        log_dir=str(tmp_path / "logs")
    )


@pytest.fixture
def db_manager(temp_db):
    """Database manager with temporary database"""
    return DatabaseManager(temp_db)


@pytest.fixture
def website(db_manager):
    return db_manager.create_website(user_id=1, domain="example.com", name="Example")


@pytest.fixture
def sample_html():
    return SAMPLE_HTML


@pytest.fixture
def broken_html():
    return BROKEN_HTML


@pytest.fixture
def fake_page_fetcher():
    """Page fetcher that parses the sample HTML instead of launching a browser"""
    fetcher = Mock()

    async def fetch(url):
        return extract_page_facts(SAMPLE_HTML, url, load_time_ms=1200.0)

    fetcher.fetch = AsyncMock(side_effect=fetch)
    return fetcher


@pytest.fixture
def fake_content_relay():
    """Content relay returning canned typed replies"""
    relay = Mock()
    relay.analyze_content = AsyncMock(return_value=ContentScores(
        keyword_density=2.5, readability_score=70.0, structure_score=82.0,
        suggestions=["Add a meta description"]
    ))
    relay.optimize_content = AsyncMock(return_value="Optimized content")
    relay.generate_content = AsyncMock(return_value="Generated content")
    relay.find_backlink_opportunities = AsyncMock(return_value=[
        BacklinkOpportunity(domain="blog.one.com", relevance_score=85, authority_score=90,
                            contact_email="hi@one.com", reason="Niche blog"),
        BacklinkOpportunity(domain="two.org", relevance_score=70, authority_score=64.6),
        BacklinkOpportunity(domain="www.three.net", relevance_score=60, authority_score=50),
    ])
    relay.analyze_onpage_seo = AsyncMock(return_value=OnPageAnalysis(
        title_optimization=["Shorten the title"]
    ))
    relay.analyze_competitors = AsyncMock(return_value=[
        CompetitorInsight(competitor="rival.com", content_gaps=["pricing guide"],
                          keyword_opportunities=["cheap widgets", "widget reviews"]),
    ])
    relay.generate_local_seo_tasks = AsyncMock(return_value=[
        LocalSeoTask(task="Update Google My Business", priority="high"),
    ])
    relay.generate_social_media_posts = AsyncMock(return_value=[
        SocialMediaPost(platform="twitter", content="New post", hashtags=["#seo"]),
    ])
    return relay


@pytest.fixture
def fake_rank_checker():
    checker = Mock()
    checker.check_position = AsyncMock(return_value=4)
    return checker


@pytest.fixture
def dashboard_app(test_config, db_manager, fake_page_fetcher, fake_content_relay, fake_rank_checker):
    """Application context with every external service substituted"""
    return SEODashboardApp(
        test_config,
        db_manager=db_manager,
        page_fetcher=fake_page_fetcher,
        content_relay=fake_content_relay,
        rank_checker=fake_rank_checker
    )


@pytest.fixture
def mock_openai_client():
    client = Mock()
    client.chat.completions.create = AsyncMock()
    return client
