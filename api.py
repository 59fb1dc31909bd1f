"""
FastAPI web application for the SEO Dashboard
"""
import os
import re
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Literal

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Depends, Request, APIRouter
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import SEODashboardApp
from config import load_config, parse_origins
from exceptions import ValidationError, NotFoundError
from monitoring import setup_logging

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Request bodies that fail validation get a route-specific message
VALIDATION_MESSAGES = [
    (re.compile(r"^/api/websites/?$"), "Invalid website data"),
    (re.compile(r"^/api/keywords/?$"), "Invalid keyword data"),
    (re.compile(r"^/api/backlinks/[^/]+/status/?$"), "Invalid status"),
    (re.compile(r"^/api/local-seo/(?!generate-tasks)[^/]+/?$"), "Invalid local SEO data"),
]


# Pydantic models for API requests

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebsiteCreate(CamelModel):
    user_id: int
    domain: str = Field(min_length=1)
    name: str = Field(min_length=1)
    is_active: bool = True


class KeywordCreate(CamelModel):
    website_id: int
    keyword: str = Field(min_length=1)
    target_url: Optional[str] = None
    current_position: Optional[int] = None
    previous_position: Optional[int] = None
    search_volume: Optional[int] = None
    difficulty: Optional[int] = None
    is_tracked: bool = True


class BacklinkDiscoverRequest(CamelModel):
    domain: str
    target_keywords: List[str] = []
    niche: str = ""


class BacklinkSaveRequest(CamelModel):
    domain: str
    keywords: List[str] = []
    industry: str = ""


class BacklinkStatusUpdate(CamelModel):
    status: str


class ContentAnalyzeRequest(CamelModel):
    website_id: int
    url: Optional[str] = None
    content: Optional[str] = None
    title: Optional[str] = None
    meta_description: Optional[str] = None
    target_keywords: List[str] = []


class ContentGenerateRequest(CamelModel):
    topic: str = Field(min_length=1)
    target_keywords: List[str] = []
    content_type: Literal["blog_post", "product_description", "landing_page"] = "blog_post"
    word_count: int = Field(default=800, gt=0)


class ContentOptimizeRequest(CamelModel):
    content: str
    target_keywords: List[str] = []


class AuditRequest(CamelModel):
    domain: str = Field(min_length=1)


class OnPageRequest(CamelModel):
    url: str
    content: str = ""
    target_keywords: List[str] = []


class CompetitorAnalyzeRequest(CamelModel):
    your_domain: str
    competitor_domains: List[str]
    niche: str = ""
    website_id: Optional[int] = None


class LocalSeoTasksRequest(CamelModel):
    business_name: str
    location: str
    business_type: str


class LocalSeoUpdate(CamelModel):
    business_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    gmb_score: Optional[int] = None
    citations: Optional[int] = None
    reviews: Optional[int] = None
    average_rating: Optional[float] = None


class SocialPostsRequest(CamelModel):
    content: str
    platforms: List[str]
    target_keywords: List[str] = []


class RankUpdateRequest(CamelModel):
    website_id: int


def get_dashboard_app(request: Request) -> SEODashboardApp:
    """Dependency to get the dashboard app instance"""
    dashboard_app = getattr(request.app.state, "dashboard_app", None)
    if dashboard_app is None:
        raise HTTPException(status_code=500, detail="Dashboard app not initialized")
    return dashboard_app


def _bad_request(message: str, exc: Exception) -> HTTPException:
    logger.warning(f"{message}: {exc}")
    return HTTPException(status_code=400, detail=message)


def _server_error(message: str, exc: Exception) -> HTTPException:
    logger.error(f"{message}: {exc}")
    return HTTPException(status_code=500, detail=message)


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "SEO Dashboard API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health"
    }


@router.get("/health")
async def health_check(app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return app.health_checker.check_health()
    except Exception as e:
        raise _server_error("Health check failed", e)


@router.get("/metrics")
async def get_metrics(app: SEODashboardApp = Depends(get_dashboard_app)):
    return app.metrics_collector.get_metrics()


# Dashboard

@router.get("/api/dashboard/stats/{website_id}")
async def get_dashboard_stats(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return app.get_dashboard_stats(website_id)
    except Exception as e:
        raise _server_error("Failed to fetch dashboard stats", e)


# Websites

@router.get("/api/websites")
async def list_websites(app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return [website.to_dict() for website in app.list_websites()]
    except Exception as e:
        raise _server_error("Failed to fetch websites", e)


@router.post("/api/websites")
async def create_website(request: WebsiteCreate, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        website = app.create_website(request.user_id, request.domain, request.name, request.is_active)
        return website.to_dict()
    except ValidationError as e:
        raise _bad_request("Invalid website data", e)
    except Exception as e:
        raise _server_error("Failed to create website", e)


# Keywords

@router.get("/api/keywords/{website_id}")
async def get_keywords(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return [keyword.to_dict() for keyword in app.db_manager.get_keywords_by_website_id(website_id)]
    except Exception as e:
        raise _server_error("Failed to fetch keywords", e)


@router.post("/api/keywords")
async def create_keyword(request: KeywordCreate, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        keyword = app.db_manager.create_keyword(**request.model_dump())
        return keyword.to_dict()
    except (ValidationError, NotFoundError) as e:
        raise _bad_request("Invalid keyword data", e)
    except Exception as e:
        raise _server_error("Failed to create keyword", e)


# Backlinks

@router.get("/api/backlinks/{website_id}")
async def get_backlinks(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return [backlink.to_dict() for backlink in app.db_manager.get_backlinks_by_website_id(website_id)]
    except Exception as e:
        raise _server_error("Failed to fetch backlinks", e)


@router.get("/api/backlinks/{website_id}/pending")
async def get_pending_backlinks(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return [backlink.to_dict() for backlink in app.db_manager.get_pending_backlinks(website_id)]
    except Exception as e:
        raise _server_error("Failed to fetch pending backlinks", e)


@router.post("/api/backlinks/discover")
async def discover_backlinks(request: BacklinkDiscoverRequest,
                             app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        opportunities = await app.discover_backlinks(request.domain, request.target_keywords, request.niche)
        return {"opportunities": opportunities}
    except Exception as e:
        raise _server_error("Failed to discover backlink opportunities", e)


@router.post("/api/backlinks/{website_id}/discover")
async def discover_and_save_backlinks(website_id: int, request: BacklinkSaveRequest,
                                      app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        saved = await app.discover_and_save_backlinks(
            website_id, request.domain, request.keywords, request.industry
        )
        return [backlink.to_dict() for backlink in saved]
    except NotFoundError as e:
        raise _bad_request("Invalid website", e)
    except Exception as e:
        raise _server_error("Failed to discover backlink opportunities", e)


@router.patch("/api/backlinks/{backlink_id}/status")
async def update_backlink_status(backlink_id: int, request: BacklinkStatusUpdate,
                                 app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        app.update_backlink_status(backlink_id, request.status)
        return {"success": True}
    except (ValidationError, NotFoundError) as e:
        raise _bad_request("Invalid status", e)
    except Exception as e:
        raise _server_error("Failed to update backlink status", e)


# Content

@router.post("/api/content/analyze")
async def analyze_content(request: ContentAnalyzeRequest, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        analysis = await app.analyze_content(
            website_id=request.website_id,
            url=request.url,
            content=request.content,
            title=request.title,
            meta_description=request.meta_description,
            keywords=request.target_keywords
        )
        return analysis.to_dict()
    except (ValidationError, NotFoundError) as e:
        raise _bad_request("Invalid content analysis request", e)
    except Exception as e:
        raise _server_error("Failed to analyze content", e)


@router.post("/api/content/generate")
async def generate_content(request: ContentGenerateRequest, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        content = await app.generate_content(
            request.content_type, request.topic, request.target_keywords, request.word_count
        )
        return {"content": content}
    except Exception as e:
        raise _server_error("Failed to generate content", e)


@router.post("/api/content/optimize")
async def optimize_content(request: ContentOptimizeRequest, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        optimized = await app.optimize_content(request.content, request.target_keywords)
        return {"optimizedContent": optimized}
    except Exception as e:
        raise _server_error("Failed to optimize content", e)


@router.get("/api/content/{website_id}")
async def get_content_analyses(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return [analysis.to_dict() for analysis in app.get_content_analyses(website_id)]
    except Exception as e:
        raise _server_error("Failed to fetch content analyses", e)


# Technical audit

@router.post("/api/audit/{website_id}")
async def perform_technical_audit(website_id: int, request: AuditRequest,
                                  app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        audit = await app.perform_technical_audit(website_id, request.domain)
        return audit.to_dict()
    except (ValidationError, NotFoundError) as e:
        raise _bad_request("Invalid audit request", e)
    except Exception as e:
        raise _server_error("Failed to perform technical audit", e)


@router.get("/api/audit/{website_id}/latest")
async def get_latest_audit(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        audit = app.db_manager.get_latest_technical_audit(website_id)
        return audit.to_dict() if audit else None
    except Exception as e:
        raise _server_error("Failed to fetch latest audit", e)


# On-page SEO

@router.post("/api/onpage/analyze")
async def analyze_onpage(request: OnPageRequest, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return await app.analyze_onpage_seo(request.url, request.content, request.target_keywords)
    except Exception as e:
        raise _server_error("Failed to analyze on-page SEO", e)


# Competitors

@router.post("/api/competitors/analyze")
async def analyze_competitors(request: CompetitorAnalyzeRequest,
                              app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        analyses = await app.analyze_competitors(
            request.your_domain, request.competitor_domains, request.niche, request.website_id
        )
        return {"analyses": analyses}
    except NotFoundError as e:
        raise _bad_request("Invalid website", e)
    except Exception as e:
        raise _server_error("Failed to analyze competitors", e)


@router.get("/api/competitors/{website_id}")
async def get_competitor_analyses(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return [analysis.to_dict() for analysis in app.get_competitor_analyses(website_id)]
    except Exception as e:
        raise _server_error("Failed to fetch competitor analyses", e)


# Local SEO

@router.post("/api/local-seo/generate-tasks")
async def generate_local_seo_tasks(request: LocalSeoTasksRequest,
                                   app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        tasks = await app.generate_local_seo_tasks(
            request.business_name, request.location, request.business_type
        )
        return {"tasks": tasks}
    except Exception as e:
        raise _server_error("Failed to generate local SEO tasks", e)


@router.get("/api/local-seo/{website_id}")
async def get_local_seo_data(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        data = app.db_manager.get_local_seo_data(website_id)
        return data.to_dict() if data else None
    except Exception as e:
        raise _server_error("Failed to fetch local SEO data", e)


@router.put("/api/local-seo/{website_id}")
async def update_local_seo_data(website_id: int, request: LocalSeoUpdate,
                                app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        data = app.db_manager.upsert_local_seo_data(website_id, **request.model_dump(exclude_unset=True))
        return data.to_dict()
    except (ValidationError, NotFoundError) as e:
        raise _bad_request("Invalid local SEO data", e)
    except Exception as e:
        raise _server_error("Failed to update local SEO data", e)


# Social media

@router.post("/api/social-media/generate-posts")
async def generate_social_media_posts(request: SocialPostsRequest,
                                      app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        posts = await app.generate_social_media_posts(
            request.content, request.platforms, request.target_keywords
        )
        return {"posts": posts}
    except Exception as e:
        raise _server_error("Failed to generate social media posts", e)


# Rank tracking

@router.get("/api/rank-tracking/{website_id}")
async def get_rank_tracking(website_id: int, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return app.get_rank_tracking(website_id)
    except Exception as e:
        raise _server_error("Failed to fetch rank tracking data", e)


@router.post("/api/rank-tracking/update")
async def update_rankings(request: RankUpdateRequest, app: SEODashboardApp = Depends(get_dashboard_app)):
    try:
        return await app.update_rankings(request.website_id)
    except Exception as e:
        raise _server_error("Failed to update rankings", e)


def _validation_message(path: str) -> str:
    for pattern, message in VALIDATION_MESSAGES:
        if pattern.match(path):
            return message
    return "Invalid request data"


def create_app(dashboard_app: Optional[SEODashboardApp] = None) -> FastAPI:
    """Build the API around an application context

    Without a context one is built from the environment at startup.
    """

    @asynccontextmanager
    async def lifespan(api: FastAPI):
        if getattr(api.state, "dashboard_app", None) is None:
            config = load_config()
            setup_logging(config.log_level, config.log_dir)
            api.state.dashboard_app = SEODashboardApp(config)
            logger.info("SEO Dashboard API started successfully")
        yield
        api.state.dashboard_app.shutdown()
        logger.info("SEO Dashboard API shut down successfully")

    api = FastAPI(
        title="SEO Dashboard API",
        description="SEO records, technical audits and AI content tools",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    api.state.dashboard_app = dashboard_app

    if dashboard_app is not None:
        origins = dashboard_app.config.cors_origins
    else:
        load_dotenv()
        origins = parse_origins(os.getenv("CORS_ORIGINS", "*"))

    api.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @api.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"message": _validation_message(request.url.path)})

    @api.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @api.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(f"Unhandled exception on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    api.include_router(router)
    return api


app = create_app()


if __name__ == "__main__":
    config = load_config()
    uvicorn.run(
        "api:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower()
    )
