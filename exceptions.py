"""
Error types for the SEO Dashboard backend
"""


class SEODashboardError(Exception):
    """Base class for all dashboard errors"""


class ConfigError(SEODashboardError):
    """Required configuration is missing or malformed"""


class ValidationError(SEODashboardError):
    """A request or record failed validation (HTTP 400)"""


class NotFoundError(SEODashboardError):
    """A referenced row does not exist"""


class FetchError(SEODashboardError):
    """Page navigation failed, timed out or could not resolve the host"""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class UpstreamError(SEODashboardError):
    """The language model call failed or returned an unusable reply"""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")
