#!/usr/bin/env python3
"""
Single Job Runner

Runs one analysis job in-process and prints the JobResult as JSON.

Usage:
    # Content quality
    python scripts/run_analysis.py content https://example.com \
        --keywords "content marketing" "seo audit" \
        --competitor-url https://competitor.com/blog

    # SEO health
    python scripts/run_analysis.py seo https://example.com \
        --pages https://example.com/ https://example.com/pricing \
        --performance --mobile

    # Competitive analysis
    python scripts/run_analysis.py competitive example.com \
        --competitor-ids c1 c2 --types comprehensive --depth basic

    # Validate and estimate only
    python scripts/run_analysis.py seo https://example.com --pages https://example.com/ --estimate
"""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

from analysis_engine.database import init_db
from analysis_engine.jobs import Job, JobType, build_runner
from analysis_engine.utils import JobValidationError, get_settings

logger = logging.getLogger(__name__)


def build_job_data(args) -> dict:
    """Job data in the queue's wire format."""
    if args.command == "content":
        params = {
            "websiteUrl": args.target,
            "targetKeywords": args.keywords,
            "competitorUrls": args.competitor_url,
            "analysisDepth": args.depth,
        }
    elif args.command == "seo":
        params = {
            "websiteUrl": args.target,
            "pages": args.pages,
            "includePerformance": args.performance,
            "includeMobile": args.mobile,
        }
    else:
        params = {
            "targetDomain": args.target,
            "competitorIds": args.competitor_ids,
            "analysisTypes": args.types,
            "options": {
                "depth": args.depth,
                "includeHistorical": False,
                "alertsEnabled": not args.no_alerts,
                "customParameters": {"keywords": args.keywords} if args.keywords else {},
            },
        }
    return {
        "projectId": args.project_id,
        "userId": args.user_id,
        "teamId": args.team_id,
        "params": params,
    }


JOB_TYPES = {
    "content": JobType.CONTENT_ANALYSIS,
    "seo": JobType.SEO_HEALTH_CHECK,
    "competitive": JobType.COMPETITIVE_ANALYSIS,
}


async def run_job(args) -> int:
    settings = get_settings()
    runner = build_runner(settings)
    job_type = JOB_TYPES[args.command]
    data = build_job_data(args)

    try:
        estimate = runner.estimate(job_type, data)
    except JobValidationError as e:
        logger.error(e.user_message)
        await runner.close()
        return 2

    logger.info(f"Estimated processing time: {estimate}s")
    if args.estimate:
        print(json.dumps({"type": job_type.value, "estimated_seconds": estimate}, indent=2))
        await runner.close()
        return 0

    init_db()
    job = Job.create(job_type, data)
    try:
        result = await runner.run(job)
    finally:
        await runner.close()

    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0 if result.success else 1


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run a single analysis job")
    parser.add_argument("--project-id", default="local-project", help="Project id (default: local-project)")
    parser.add_argument("--user-id", default="local-user", help="User id (default: local-user)")
    parser.add_argument("--team-id", default="local-team", help="Team id (default: local-team)")
    parser.add_argument("--estimate", action="store_true", help="Validate and estimate only")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    content = commands.add_parser("content", help="Content quality analysis")
    content.add_argument("target", help="Page URL to analyze")
    content.add_argument("--keywords", nargs="+", required=True, help="Target keywords")
    content.add_argument("--competitor-url", nargs="*", default=[], help="Competitor page URLs")
    content.add_argument(
        "--depth",
        default="standard",
        choices=["basic", "standard", "comprehensive"],
        help="Analysis depth (default: standard)",
    )

    seo = commands.add_parser("seo", help="SEO health check")
    seo.add_argument("target", help="Website URL")
    seo.add_argument("--pages", nargs="+", required=True, help="Page URLs to sample")
    seo.add_argument("--performance", action="store_true", help="Include performance pillar")
    seo.add_argument("--mobile", action="store_true", help="Include mobile pillar")

    competitive = commands.add_parser("competitive", help="Competitive analysis")
    competitive.add_argument("target", help="Target domain (e.g., example.com)")
    competitive.add_argument("--competitor-ids", nargs="+", required=True, help="Competitor record ids")
    competitive.add_argument(
        "--types",
        nargs="+",
        default=["comprehensive"],
        choices=[
            "content-similarity",
            "seo-comparison",
            "performance-benchmark",
            "market-position",
            "content-gaps",
            "comprehensive",
        ],
        help="Analysis types (default: comprehensive)",
    )
    competitive.add_argument(
        "--depth",
        default="standard",
        choices=["basic", "standard", "comprehensive"],
        help="Analysis depth (default: standard)",
    )
    competitive.add_argument("--keywords", nargs="*", default=[], help="Keywords for SERP comparison")
    competitive.add_argument("--no-alerts", action="store_true", help="Disable alert generation")

    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    sys.exit(asyncio.run(run_job(args)))


if __name__ == "__main__":
    main()
