"""
Command-line entry point.

    python -m src.cli serve --port 8000
    python -m src.cli recommend --major "Computer Science" \\
        --keywords "machine learning, robotics" --education-level masters_student
"""

import argparse
import asyncio
import json
import os
import sys
from typing import Optional

import httpx
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from src.coordinator import RecommendationCoordinator
from src.models.config import AppConfig
from src.models.lab import LabRecommendation
from src.models.profile import UserProfile
from src.utils.errors import RecommendationPipelineError
from src.utils.logger import configure_logging

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lab-recommender",
        description="Research lab and mentor recommendations",
    )
    parser.add_argument(
        "--config", default=None, help="Path to system_params.json (optional)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    recommend = subparsers.add_parser("recommend", help="Run one recommendation")
    recommend.add_argument("--major", required=True)
    recommend.add_argument("--keywords", required=True)
    recommend.add_argument("--education-level", required=True)
    recommend.add_argument("--additional-info", default=None)
    recommend.add_argument(
        "--json", action="store_true", help="Print the raw JSON response"
    )
    return parser


def render_recommendations(labs: list[LabRecommendation]) -> Table:
    table = Table(title="Recommended Labs", show_lines=True)
    table.add_column("Match", justify="right", style="bold green")
    table.add_column("Lab", style="bold")
    table.add_column("Keywords")
    table.add_column("Mentors")
    table.add_column("Career Outlook")

    for lab in labs:
        mentors = "\n".join(f"{m.name} ({m.title})" for m in lab.mentors) or "-"
        table.add_row(
            f"{lab.match_rate}%",
            f"{lab.name}\n[dim]{lab.id}[/dim]",
            ", ".join(lab.keywords) or "-",
            mentors,
            lab.career_scenario,
        )
    return table


async def run_recommendation(config: AppConfig, profile: UserProfile) -> list[LabRecommendation]:
    async with httpx.AsyncClient(timeout=config.services.http_timeout) as client:
        coordinator = RecommendationCoordinator(config, client)
        return await coordinator.recommend(profile)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig.load(config_path=args.config)

    if args.command == "serve":
        import uvicorn

        from src.app import CONFIG_PATH_ENV, create_app

        configure_logging(log_file=config.log_file, log_level=config.log_level)
        if args.reload:
            # The reloader builds the app in a fresh process from the import string
            if args.config:
                os.environ[CONFIG_PATH_ENV] = str(args.config)
            uvicorn.run(
                "src.app:create_app",
                factory=True,
                host=args.host,
                port=args.port,
                reload=True,
            )
        else:
            uvicorn.run(create_app(config), host=args.host, port=args.port)
        return 0

    configure_logging(log_file=config.log_file, log_level="WARNING")

    try:
        profile = UserProfile(
            major=args.major,
            keywords=args.keywords,
            education_level=args.education_level,
            additional_info=args.additional_info,
        )
    except ValidationError as e:
        console.print(f"[red][X] Invalid input:[/red] {e}")
        return 2

    with console.status("[bold blue]Finding labs and mentors..."):
        try:
            labs = asyncio.run(run_recommendation(config, profile))
        except RecommendationPipelineError as e:
            console.print(f"[red][X] Recommendation failed:[/red] {e}")
            return 1

    if args.json:
        console.print_json(json.dumps([lab.to_response() for lab in labs], ensure_ascii=False))
    else:
        console.print(render_recommendations(labs))
    return 0


if __name__ == "__main__":
    sys.exit(main())
