"""
Language-model relay for content scoring, generation and SEO suggestions
"""
import re
import logging
from typing import List, Optional, Type, TypeVar, Literal

import openai
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from config import DashboardConfig
from exceptions import UpstreamError

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("blog_post", "product_description", "landing_page")


class RelaySchema(BaseModel):
    """Model replies use camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ContentScores(RelaySchema):
    keyword_density: float
    readability_score: float
    structure_score: float
    suggestions: List[str] = []


class BacklinkOpportunity(RelaySchema):
    domain: str
    relevance_score: float
    authority_score: float
    contact_email: Optional[str] = None
    reason: str = ""


class BacklinkOpportunityList(RelaySchema):
    opportunities: List[BacklinkOpportunity]


class OnPageAnalysis(RelaySchema):
    title_optimization: List[str] = []
    meta_description_suggestions: List[str] = []
    header_optimization: List[str] = []
    internal_linking_suggestions: List[str] = []
    keyword_placement: List[str] = []


class StrengthsWeaknesses(RelaySchema):
    strengths: List[str] = []
    weaknesses: List[str] = []


class CompetitorInsight(RelaySchema):
    competitor: str
    content_gaps: List[str] = []
    keyword_opportunities: List[str] = []
    strengths_weaknesses: StrengthsWeaknesses = Field(default_factory=StrengthsWeaknesses)


class CompetitorInsightList(RelaySchema):
    analyses: List[CompetitorInsight]


class LocalSeoTask(RelaySchema):
    task: str
    priority: Literal["high", "medium", "low"]
    description: str = ""
    estimated_impact: str = ""


class LocalSeoTaskList(RelaySchema):
    tasks: List[LocalSeoTask]


class SocialMediaPost(RelaySchema):
    platform: str
    content: str
    hashtags: List[str] = []
    optimized_for_seo: bool = Field(default=True, alias="optimizedForSEO")


class SocialMediaPostList(RelaySchema):
    posts: List[SocialMediaPost]


SchemaT = TypeVar("SchemaT", bound=RelaySchema)


def strip_code_fences(text: str) -> str:
    """Drop markdown fences some models wrap JSON in"""
    cleaned = re.sub(r'```(?:json)?\s*', '', text or '').strip()
    return cleaned.rstrip('`').strip()


def decode_reply(text: str, schema: Type[SchemaT], operation: str) -> SchemaT:
    """Validate a model reply against schema; any mismatch raises UpstreamError"""
    try:
        return schema.model_validate_json(strip_code_fences(text))
    except PydanticValidationError as e:
        logger.error(f"{operation}: reply did not match {schema.__name__}: {e}")
        raise UpstreamError(operation, f"unexpected reply shape ({e.error_count()} errors)") from e


def _keywords(keywords: List[str]) -> str:
    return ", ".join(keywords) if keywords else "none specified"


class ContentRelay:
    """Forwards content to the OpenAI chat API and decodes typed results"""

    def __init__(self, config: DashboardConfig, client: Optional[openai.AsyncOpenAI] = None):
        self.model = config.openai_model
        self.client = client or openai.AsyncOpenAI(
            api_key=config.openai_api_key,
            timeout=config.openai_timeout,
            max_retries=0
        )

    async def _complete(self, operation: str, system_prompt: str, user_message: str,
                        json_mode: bool) -> str:
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info(f"Relaying {operation} to {self.model}")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message}
                ],
                **kwargs
            )
        except openai.OpenAIError as e:
            logger.error(f"{operation}: model call failed: {e}")
            raise UpstreamError(operation, str(e)) from e

        if not response.choices:
            raise UpstreamError(operation, "reply contained no choices")
        return response.choices[0].message.content or ""

    async def _complete_json(self, operation: str, system_prompt: str, user_message: str,
                             schema: Type[SchemaT]) -> SchemaT:
        text = await self._complete(operation, system_prompt, user_message, json_mode=True)
        return decode_reply(text, schema, operation)

    async def analyze_content(self, content: str, target_keywords: List[str]) -> ContentScores:
        """Score content for keyword density, readability and structure"""
        system_prompt = (
            "You are an SEO expert. Analyze the provided content for keyword density, "
            f"readability and structure. Target keywords: {_keywords(target_keywords)}. "
            'Respond with JSON: { "keywordDensity": number, "readabilityScore": number, '
            '"structureScore": number, "suggestions": ["suggestion1", "suggestion2"] }'
        )
        return await self._complete_json("Content analysis", system_prompt, content or "", ContentScores)

    async def optimize_content(self, content: str, target_keywords: List[str]) -> str:
        """Rewrite content for the target keywords; the input is returned if the reply is empty"""
        system_prompt = (
            "You are an expert SEO content optimizer. Improve the provided content for the "
            f"target keywords: {_keywords(target_keywords)}. Keep the original tone and facts "
            "while improving SEO performance, readability and structure."
        )
        optimized = await self._complete("Content optimization", system_prompt, content or "", json_mode=False)
        return optimized or content

    async def generate_content(self, content_type: str, topic: str, target_keywords: List[str],
                               word_count: int = 800) -> str:
        system_prompt = (
            f"You are an expert SEO content creator. Write a {content_type} about \"{topic}\" "
            f"of about {word_count} words, optimized for the keywords: {_keywords(target_keywords)}. "
            "Make it engaging, informative and SEO-friendly."
        )
        user_message = f"Create {content_type} content for: {topic}"
        return await self._complete("Content generation", system_prompt, user_message, json_mode=False)

    async def find_backlink_opportunities(self, domain: str, target_keywords: List[str],
                                          niche: str) -> List[BacklinkOpportunity]:
        system_prompt = (
            f"You are a backlink expert. Suggest backlink opportunities for the domain \"{domain}\" "
            f"in the \"{niche}\" niche for the keywords: {_keywords(target_keywords)}. "
            'Respond with JSON: { "opportunities": [{ "domain": "example.com", "relevanceScore": 85, '
            '"authorityScore": 90, "contactEmail": "contact@example.com", '
            '"reason": "High authority blog in your niche" }] }'
        )
        user_message = f"Find 10 high-quality backlink opportunities for {domain} in the {niche} niche"
        result = await self._complete_json("Backlink opportunity discovery", system_prompt,
                                           user_message, BacklinkOpportunityList)
        return result.opportunities

    async def analyze_onpage_seo(self, url: str, content: str, target_keywords: List[str]) -> OnPageAnalysis:
        system_prompt = (
            f"Analyze the on-page SEO of \"{url}\" for the target keywords: {_keywords(target_keywords)}. "
            'Respond with JSON: { "titleOptimization": [], "metaDescriptionSuggestions": [], '
            '"headerOptimization": [], "internalLinkingSuggestions": [], "keywordPlacement": [] }'
        )
        return await self._complete_json("On-page SEO analysis", system_prompt, content or "", OnPageAnalysis)

    async def analyze_competitors(self, your_domain: str, competitor_domains: List[str],
                                  niche: str) -> List[CompetitorInsight]:
        competitors = ", ".join(competitor_domains)
        system_prompt = (
            f"Compare the competitors {competitors} against {your_domain} in the {niche} niche. "
            "Identify content gaps and keyword opportunities. "
            'Respond with JSON: { "analyses": [{ "competitor": "domain.com", "contentGaps": [], '
            '"keywordOpportunities": [], "strengthsWeaknesses": { "strengths": [], "weaknesses": [] } }] }'
        )
        user_message = f"Provide a detailed competitor analysis for {your_domain} vs {competitors}"
        result = await self._complete_json("Competitor analysis", system_prompt, user_message,
                                           CompetitorInsightList)
        return result.analyses

    async def generate_local_seo_tasks(self, business_name: str, location: str,
                                       business_type: str) -> List[LocalSeoTask]:
        system_prompt = (
            f"Generate local SEO tasks for \"{business_name}\", a {business_type} business in {location}. "
            'Respond with JSON: { "tasks": [{ "task": "Update Google My Business", "priority": "high", '
            '"description": "...", "estimatedImpact": "..." }] } where priority is high, medium or low.'
        )
        user_message = f"Generate 15 local SEO optimization tasks for {business_name}"
        result = await self._complete_json("Local SEO task generation", system_prompt, user_message,
                                           LocalSeoTaskList)
        return result.tasks

    async def generate_social_media_posts(self, content: str, platforms: List[str],
                                          target_keywords: List[str]) -> List[SocialMediaPost]:
        system_prompt = (
            f"Create SEO-optimized social media posts for the platforms: {', '.join(platforms)} "
            "based on the provided content. Include relevant hashtags and optimize for the "
            f"keywords: {_keywords(target_keywords)}. "
            'Respond with JSON: { "posts": [{ "platform": "twitter", "content": "...", '
            '"hashtags": ["#seo", "#marketing"], "optimizedForSEO": true }] }'
        )
        result = await self._complete_json("Social media post generation", system_prompt,
                                           content or "", SocialMediaPostList)
        return result.posts


def dump_all(items: List[RelaySchema]) -> List[dict]:
    return [item.to_dict() for item in items]
