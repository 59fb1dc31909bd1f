"""
Main application for the SEO Dashboard - Orchestrates all components
"""
import argparse
import asyncio
import json
import math
import time
import logging
from typing import List, Dict, Any, Optional

from config import DashboardConfig, load_config
from database import DatabaseManager
from browser_utils import BrowserManager
from page_fetcher import PageFetcher
from audit_scorer import score_page
from link_checker import LinkChecker
from rank_checker import RankChecker
from content_relay import ContentRelay, dump_all
from traffic_estimator import estimate_organic_traffic
from exceptions import ValidationError
from models import AuditResult, Backlink, ContentAnalysis, CompetitorAnalysis, TechnicalAudit, Website
from monitoring import MetricsCollector, HealthChecker, setup_logging
from utils import normalize_url, normalize_domain, validate_url

logger = logging.getLogger(__name__)


class SEODashboardApp:
    """Application context shared by the HTTP layer and the CLI

    Collaborators are built from the config unless passed in, so tests can
    substitute fakes for the browser, the language model and the database.
    """

    def __init__(self, config: DashboardConfig,
                 db_manager: Optional[DatabaseManager] = None,
                 page_fetcher: Optional[PageFetcher] = None,
                 content_relay: Optional[ContentRelay] = None,
                 rank_checker: Optional[RankChecker] = None,
                 link_checker: Optional[LinkChecker] = None,
                 metrics_collector: Optional[MetricsCollector] = None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config.database_url)

        browser_manager = None
        if page_fetcher is None or rank_checker is None:
            browser_manager = BrowserManager(config)
        self.page_fetcher = page_fetcher or PageFetcher(browser_manager)
        self.rank_checker = rank_checker or RankChecker(browser_manager, config.serp_results)

        self.content_relay = content_relay or ContentRelay(config)

        if link_checker is None and config.check_links:
            link_checker = LinkChecker(config)
        self.link_checker = link_checker

        self.metrics_collector = metrics_collector or MetricsCollector()
        self.health_checker = HealthChecker(self.metrics_collector, self.db_manager)

        logger.info("SEO Dashboard application initialized")

    # Dashboard and websites

    def get_dashboard_stats(self, website_id: int) -> Dict[str, Any]:
        keywords = self.db_manager.get_keywords_by_website_id(website_id)
        backlinks = self.db_manager.get_backlinks_by_website_id(website_id)

        avg_position = 0.0
        if keywords:
            avg_position = sum(k.current_position or 0 for k in keywords) / len(keywords)

        return {
            "totalKeywords": len(keywords),
            # Half-up to one decimal
            "avgPosition": math.floor(avg_position * 10 + 0.5) / 10,
            "totalBacklinks": len(backlinks),
            "organicTraffic": estimate_organic_traffic(keywords)
        }

    def list_websites(self) -> List[Website]:
        return self.db_manager.get_websites_by_user_id(self.config.default_user_id)

    def create_website(self, user_id: int, domain: str, name: str, is_active: bool = True) -> Website:
        return self.db_manager.create_website(user_id, domain, name, is_active)

    # Technical audit

    async def audit_page(self, url: str) -> AuditResult:
        """Fetch and score one page without saving anything"""
        if not validate_url(normalize_url(url)):
            raise ValidationError(f"Cannot audit malformed URL: {url!r}")

        start_time = time.time()
        try:
            page = await self.page_fetcher.fetch(url)
            broken_links = 0
            if self.link_checker is not None:
                broken_links = await self.link_checker.count_broken_links(page.links)
            result = score_page(page, broken_links=broken_links)
        except Exception:
            self.metrics_collector.record_error()
            raise

        response_time = time.time() - start_time
        self.metrics_collector.record_audit(response_time)
        logger.info(f"Audited {url} in {response_time:.2f}s: {len(result.issues)} issues")
        return result

    async def perform_technical_audit(self, website_id: int, domain: str) -> TechnicalAudit:
        if not domain:
            raise ValidationError("A domain is required for a technical audit")

        result = await self.audit_page(domain)
        return self.db_manager.create_technical_audit(
            website_id=website_id,
            page_speed=result.page_speed,
            mobile_score=result.mobile_score,
            broken_links=result.broken_links,
            missing_alt_tags=result.missing_alt_tags,
            missing_meta_tags=result.missing_meta_tags,
            duplicate_content=result.duplicate_content,
            issues=[issue.to_dict() for issue in result.issues]
        )

    # Content

    async def _relay(self, operation, *args, **kwargs):
        start_time = time.time()
        try:
            result = await operation(*args, **kwargs)
        except Exception:
            self.metrics_collector.record_error()
            raise
        self.metrics_collector.record_relay_call(time.time() - start_time)
        return result

    async def analyze_content(self, website_id: int, url: Optional[str] = None,
                              content: Optional[str] = None, title: Optional[str] = None,
                              meta_description: Optional[str] = None,
                              keywords: Optional[List[str]] = None) -> ContentAnalysis:
        """Score content (fetched from url when given) and store the analysis"""
        if url:
            page = await self.page_fetcher.fetch(url)
            content = page.content
            title = page.title
            meta_description = page.meta_description
        elif not content:
            raise ValidationError("Either a url or content is required")

        scores = await self._relay(self.content_relay.analyze_content, content, keywords or [])

        return self.db_manager.create_content_analysis(
            website_id=website_id,
            url=url or "",
            title=title,
            meta_description=meta_description,
            content=content,
            keyword_density=scores.keyword_density,
            readability_score=scores.readability_score,
            seo_score=scores.structure_score,
            suggestions=scores.suggestions
        )

    def get_content_analyses(self, website_id: int) -> List[ContentAnalysis]:
        return self.db_manager.get_content_analysis_by_website_id(website_id)

    async def optimize_content(self, content: str, keywords: List[str]) -> str:
        return await self._relay(self.content_relay.optimize_content, content, keywords)

    async def generate_content(self, content_type: str, topic: str, keywords: List[str],
                               word_count: int = 800) -> str:
        return await self._relay(self.content_relay.generate_content,
                                 content_type, topic, keywords, word_count)

    async def analyze_onpage_seo(self, url: str, content: str, keywords: List[str]) -> Dict[str, Any]:
        result = await self._relay(self.content_relay.analyze_onpage_seo, url, content, keywords)
        return result.to_dict()

    # Backlinks

    async def discover_backlinks(self, domain: str, keywords: List[str], niche: str) -> List[Dict[str, Any]]:
        opportunities = await self._relay(self.content_relay.find_backlink_opportunities,
                                          domain, keywords, niche)
        return dump_all(opportunities)

    async def discover_and_save_backlinks(self, website_id: int, domain: str, keywords: List[str],
                                          industry: str) -> List[Backlink]:
        """Store each suggested opportunity as a pending backlink"""
        keywords = keywords or []
        opportunities = await self._relay(self.content_relay.find_backlink_opportunities,
                                          domain, keywords, industry)

        target_url = f"https://{normalize_domain(domain)}"
        saved = []
        for i, opportunity in enumerate(opportunities):
            saved.append(self.db_manager.create_backlink(
                website_id=website_id,
                source_url=f"https://{normalize_domain(opportunity.domain)}",
                target_url=target_url,
                anchor_text=keywords[i % len(keywords)] if keywords else None,
                domain_authority=int(round(opportunity.authority_score)),
                status="pending",
                is_nofollow=False
            ))

        logger.info(f"Saved {len(saved)} backlink opportunities for website {website_id}")
        return saved

    def update_backlink_status(self, backlink_id: int, status: str):
        self.db_manager.update_backlink_status(backlink_id, status)

    # Competitors and local SEO

    async def analyze_competitors(self, your_domain: str, competitor_domains: List[str], niche: str,
                                  website_id: Optional[int] = None) -> List[Dict[str, Any]]:
        insights = await self._relay(self.content_relay.analyze_competitors,
                                     your_domain, competitor_domains, niche)

        if website_id is not None:
            for insight in insights:
                self.db_manager.create_competitor_analysis(
                    website_id=website_id,
                    competitor_domain=insight.competitor,
                    shared_keywords=len(insight.keyword_opportunities),
                    content_gaps=insight.content_gaps
                )

        return dump_all(insights)

    def get_competitor_analyses(self, website_id: int) -> List[CompetitorAnalysis]:
        return self.db_manager.get_competitor_analysis_by_website_id(website_id)

    async def generate_local_seo_tasks(self, business_name: str, location: str,
                                       business_type: str) -> List[Dict[str, Any]]:
        tasks = await self._relay(self.content_relay.generate_local_seo_tasks,
                                  business_name, location, business_type)
        return dump_all(tasks)

    async def generate_social_media_posts(self, content: str, platforms: List[str],
                                          keywords: List[str]) -> List[Dict[str, Any]]:
        posts = await self._relay(self.content_relay.generate_social_media_posts,
                                  content, platforms, keywords)
        return dump_all(posts)

    # Rank tracking

    def get_rank_tracking(self, website_id: int) -> Dict[str, Any]:
        keywords = self.db_manager.get_keywords_by_website_id(website_id)
        return {
            "keywords": [
                {
                    "id": keyword.id,
                    "keyword": keyword.keyword,
                    "currentPosition": keyword.current_position,
                    "previousPosition": keyword.previous_position,
                    "searchVolume": keyword.search_volume,
                    "difficulty": keyword.difficulty,
                    "url": keyword.target_url,
                    "lastChecked": keyword.updated_at
                }
                for keyword in keywords
            ]
        }

    async def update_rankings(self, website_id: int) -> Dict[str, Any]:
        """Look up every keyword's SERP position one at a time; the first failure stops the run"""
        website = self.db_manager.get_website(website_id)
        updates = []
        if website is None:
            return {"message": "Rankings updated successfully", "updates": updates}

        for keyword in self.db_manager.get_keywords_by_website_id(website_id):
            start_time = time.time()
            try:
                position = await self.rank_checker.check_position(keyword.keyword, website.domain)
            except Exception:
                self.metrics_collector.record_error()
                raise
            self.metrics_collector.record_rank_check(time.time() - start_time)

            self.db_manager.update_keyword_position(keyword.id, position)
            updates.append({
                "keywordId": keyword.id,
                "keyword": keyword.keyword,
                "newPosition": position,
                "previousPosition": keyword.current_position
            })

        logger.info(f"Updated {len(updates)} keyword positions for website {website_id}")
        return {"message": "Rankings updated successfully", "updates": updates}

    # Status

    def get_system_status(self) -> Dict[str, Any]:
        health = self.health_checker.check_health()
        return {
            "timestamp": health["timestamp"],
            "health": health,
            "metrics": self.metrics_collector.get_metrics()
        }

    def shutdown(self):
        """Log final counters; browsers are already closed per operation"""
        logger.info(f"Shutting down SEO Dashboard application: {self.metrics_collector.get_metrics()}")


def create_cli():
    """Create command line interface"""
    parser = argparse.ArgumentParser(description="SEO Dashboard - SEO records, audits and content tools")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    server_parser = subparsers.add_parser("server", help="Run the HTTP API")
    server_parser.add_argument("--host", help="Bind address (defaults to HOST)")
    server_parser.add_argument("--port", type=int, help="Server port (defaults to PORT)")

    subparsers.add_parser("init-db", help="Create the database schema")

    audit_parser = subparsers.add_parser("audit", help="Audit a single page without saving it")
    audit_parser.add_argument("url", help="URL to audit")

    return parser


async def run_audit(app: SEODashboardApp, url: str):
    result = await app.audit_page(normalize_url(url))
    print(json.dumps(result.to_dict(), indent=2, default=str))


def main():
    """Main application entry point"""
    parser = create_cli()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    config = load_config()
    setup_logging(config.log_level, config.log_dir)

    if args.command == "server":
        import uvicorn
        uvicorn.run(
            "api:app",
            host=args.host or config.host,
            port=args.port or config.port,
            log_level=config.log_level.lower()
        )
        return

    if args.command == "init-db":
        DatabaseManager(config.database_url)
        print(f"Database ready at {config.database_url}")
        return

    app = SEODashboardApp(config)
    try:
        asyncio.run(run_audit(app, args.url))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    except Exception as e:
        logger.error(f"Application error: {e}")
        print(f"Error: {e}")
    finally:
        app.shutdown()


if __name__ == "__main__":
    main()
