"""
Technical audit scoring: turns extracted page facts into scores and issues
"""
import math
from typing import List, Optional

from models import AuditIssue, AuditResult, PageAnalysisResult
from utils import clamp

# No mobile emulation or similarity detection is run; these stay fixed.
MOBILE_SCORE_PLACEHOLDER = 85
DUPLICATE_CONTENT_PLACEHOLDER = 0

SLOW_PAGE_THRESHOLD_MS = 3000


def calculate_page_speed(load_time_ms: float) -> int:
    """100 at 0ms, minus one point per 100ms, clamped to [0, 100]"""
    return int(math.floor(clamp(100 - load_time_ms / 100, 0, 100) + 0.5))


def count_missing_alt_tags(page: PageAnalysisResult) -> int:
    return len([image for image in page.images if not image.has_alt])


def count_missing_meta_tags(page: PageAnalysisResult) -> int:
    return int(not page.title.strip()) + int(not page.meta_description.strip())


def find_issues(page: PageAnalysisResult, load_time_ms: float, broken_links: int = 0) -> List[AuditIssue]:
    issues = []
    url = page.url

    if not page.title.strip():
        issues.append(AuditIssue('meta', 'high', 'Missing page title', url))

    if not page.meta_description.strip():
        issues.append(AuditIssue('meta', 'medium', 'Missing meta description', url))

    h1_count = page.h1_count
    if h1_count == 0:
        issues.append(AuditIssue('structure', 'high', 'Missing H1 heading', url))
    elif h1_count > 1:
        issues.append(AuditIssue('structure', 'medium', 'Multiple H1 headings found', url))

    missing_alt = count_missing_alt_tags(page)
    if missing_alt > 0:
        issues.append(AuditIssue('accessibility', 'medium', f'{missing_alt} images missing alt text', url))

    if load_time_ms > SLOW_PAGE_THRESHOLD_MS:
        issues.append(AuditIssue('performance', 'high', 'Page load time exceeds 3 seconds', url))

    if broken_links > 0:
        issues.append(AuditIssue('structure', 'medium', f'{broken_links} broken links detected', url))

    return issues


def score_page(page: PageAnalysisResult, load_time_ms: Optional[float] = None,
               broken_links: int = 0) -> AuditResult:
    """Score a page; load time defaults to the one recorded during the fetch"""
    if load_time_ms is None:
        load_time_ms = page.load_time_ms

    return AuditResult(
        page_speed=calculate_page_speed(load_time_ms),
        mobile_score=MOBILE_SCORE_PLACEHOLDER,
        broken_links=broken_links,
        missing_alt_tags=count_missing_alt_tags(page),
        missing_meta_tags=count_missing_meta_tags(page),
        duplicate_content=DUPLICATE_CONTENT_PLACEHOLDER,
        issues=find_issues(page, load_time_ms, broken_links)
    )
