"""
Data models for the SEO Dashboard
"""
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any, Optional

from utils import camelize_keys

BACKLINK_STATUSES = ("pending", "approved", "rejected")


class RecordMixin:
    """Renders a dataclass as the camelCase JSON object the API returns"""

    def to_dict(self) -> Dict[str, Any]:
        return camelize_keys(asdict(self))


@dataclass
class Website(RecordMixin):
    """A tracked website; root of all per-site data"""
    id: int
    user_id: int
    domain: str
    name: str
    is_active: bool = True
    created_at: Optional[str] = None


@dataclass
class Keyword(RecordMixin):
    """A tracked keyword with single-step position history"""
    id: int
    website_id: int
    keyword: str
    target_url: Optional[str] = None
    current_position: Optional[int] = None
    previous_position: Optional[int] = None
    search_volume: Optional[int] = None
    difficulty: Optional[int] = None
    is_tracked: bool = True
    updated_at: Optional[str] = None


@dataclass
class Backlink(RecordMixin):
    """A backlink or backlink opportunity awaiting review"""
    id: int
    website_id: int
    source_url: str
    target_url: str
    anchor_text: Optional[str] = None
    domain_authority: Optional[int] = None
    status: str = "pending"
    is_nofollow: bool = False
    found_at: Optional[str] = None
    approved_at: Optional[str] = None


@dataclass
class ContentAnalysis(RecordMixin):
    """Snapshot of one content analysis call"""
    id: int
    website_id: int
    url: str
    title: Optional[str] = None
    meta_description: Optional[str] = None
    content: Optional[str] = None
    keyword_density: Any = None
    readability_score: Optional[float] = None
    seo_score: Optional[float] = None
    suggestions: List[str] = field(default_factory=list)
    analyzed_at: Optional[str] = None


@dataclass
class TechnicalAudit(RecordMixin):
    """Stored technical audit of a website's page"""
    id: int
    website_id: int
    page_speed: Optional[int] = None
    mobile_score: Optional[int] = None
    broken_links: Optional[int] = None
    missing_alt_tags: Optional[int] = None
    missing_meta_tags: Optional[int] = None
    duplicate_content: Optional[int] = None
    issues: List[Dict[str, Any]] = field(default_factory=list)
    audited_at: Optional[str] = None


@dataclass
class LocalSeoData(RecordMixin):
    """Local listing data for a website (one live row per site)"""
    id: int
    website_id: int
    business_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    gmb_score: Optional[int] = None
    citations: Optional[int] = None
    reviews: Optional[int] = None
    average_rating: Optional[float] = None
    updated_at: Optional[str] = None


@dataclass
class CompetitorAnalysis(RecordMixin):
    """Stored comparison against one competitor domain"""
    id: int
    website_id: int
    competitor_domain: str
    shared_keywords: Optional[int] = None
    competitor_backlinks: Optional[int] = None
    content_gaps: List[str] = field(default_factory=list)
    analyzed_at: Optional[str] = None


# Page extraction results

@dataclass
class PageImage(RecordMixin):
    src: str
    alt: str
    has_alt: bool


@dataclass
class PageLink(RecordMixin):
    href: str
    text: str
    is_internal: bool


@dataclass
class PageHeading(RecordMixin):
    level: int
    text: str


@dataclass
class PageAnalysisResult(RecordMixin):
    """DOM facts extracted from a loaded page"""
    url: str
    title: str
    meta_description: str
    content: str
    images: List[PageImage] = field(default_factory=list)
    links: List[PageLink] = field(default_factory=list)
    headings: List[PageHeading] = field(default_factory=list)
    load_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = camelize_keys(asdict(self))
        data["images"] = [image.to_dict() for image in self.images]
        data["links"] = [link.to_dict() for link in self.links]
        data["headings"] = [heading.to_dict() for heading in self.headings]
        return data

    @property
    def h1_count(self) -> int:
        return len([h for h in self.headings if h.level == 1])


@dataclass
class AuditIssue(RecordMixin):
    type: str  # 'meta', 'structure', 'accessibility', 'performance'
    severity: str  # 'low', 'medium', 'high'
    message: str
    url: Optional[str] = None


@dataclass
class AuditResult(RecordMixin):
    """Scores and issues derived from a PageAnalysisResult"""
    page_speed: int
    mobile_score: int
    broken_links: int
    missing_alt_tags: int
    missing_meta_tags: int
    duplicate_content: int
    issues: List[AuditIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = camelize_keys(asdict(self))
        data["issues"] = [issue.to_dict() for issue in self.issues]
        return data
