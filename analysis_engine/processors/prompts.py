"""
Prompt Templates for AI-Assisted Content Analysis

Each template is formatted with str.format and must be answered with a
single JSON object. Page text is truncated before formatting.
"""

MAX_PROMPT_CHARS = 6000


CONTENT_ANALYST_SYSTEM = """You are a Senior Content Strategist who audits web pages for search performance.

<behavioral_constraints>
You NEVER:
- Invent statistics that are not supported by the page text
- Return prose outside the JSON object

You ALWAYS:
- Score on a 0-100 scale where 100 is best
- Name content gaps as short topic labels (2-5 words)
</behavioral_constraints>"""


CONTENT_ANALYSIS_TEMPLATE = """# CONTENT QUALITY ANALYSIS

## PAGE
- Title: {title}
- Meta description: {meta_description}
- Focus keywords: {keywords}
- Heading outline:
{headings}

## CONTENT
{content}

## OUTPUT
Respond with JSON only:
{{
  "overall_score": <0-100 topic coverage and depth>,
  "content_structure_score": <0-100 heading and section structure>,
  "keyword_density": <percent density of the focus keywords>,
  "content_gaps": ["<missing topic>", ...],
  "topic_clusters": ["<topic covered>", ...]
}}"""


TOPIC_CLUSTER_TEMPLATE = """# TOPIC CLUSTERS

Group the topics covered by this page into clusters.

## FOCUS KEYWORDS
{keywords}

## CONTENT
{content}

## OUTPUT
Respond with JSON only:
{{
  "clusters": [
    {{"name": "<cluster label>", "keywords": ["<term>", ...]}}
  ]
}}"""


EAT_TEMPLATE = """# E-A-T ASSESSMENT

Rate the page's expertise, authoritativeness and trustworthiness.

## TITLE
{title}

## CONTENT
{content}

## OUTPUT
Respond with JSON only:
{{
  "expertise": <0-100>,
  "authoritativeness": <0-100>,
  "trustworthiness": <0-100>,
  "signals": {{"citations": <int>, "author_mentions": <int>, "expert_language": <int>}}
}}"""


def truncate(text: str, limit: int = MAX_PROMPT_CHARS) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + " ..."
