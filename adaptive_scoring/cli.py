#!/usr/bin/env python3
"""Command line entry point for the adaptive scoring system.

Usage:
    adaptive-scoring init-db
    adaptive-scoring add-article https://example.com/post --title "A post" --summary "..."
    adaptive-scoring rate <article-id> relevant
    adaptive-scoring rate <article-id> not-relevant
    adaptive-scoring unrate <article-id>
    adaptive-scoring learn
    adaptive-scoring score <article-id>
    adaptive-scoring rerate
    adaptive-scoring profile show|status|delete
    adaptive-scoring profile edit --like "..." --dislike "..."
"""

import argparse
import sys
from typing import List, Optional

from adaptive_scoring import database
from adaptive_scoring.batch import process_new_articles, rerate_articles
from adaptive_scoring.config import Settings, load_settings
from adaptive_scoring.context import build_context
from adaptive_scoring.db_engine import configure_database
from adaptive_scoring.exceptions import AdaptiveScoringError
from adaptive_scoring.learner import run_learning
from adaptive_scoring.models import Article, LearningStatus
from adaptive_scoring.profile_management import (
    delete_profile,
    get_threshold_status,
    update_profile_manually,
)
from adaptive_scoring.scorer import ScoringOrchestrator


def _init_storage(settings: Settings) -> None:
    configure_database(settings.db_path)
    database.init_db()


def _require_topic(settings: Settings) -> str:
    if not settings.topic_description:
        raise AdaptiveScoringError("topic_description is not set in the settings file")
    return settings.topic_description


def cmd_init_db(args, settings: Settings) -> int:
    _init_storage(settings)
    print(f"Database ready at {settings.db_path}")
    return 0


def cmd_add_article(args, settings: Settings) -> int:
    article = Article(
        url=args.url,
        title=args.title,
        summary=args.summary or "",
        content=args.content or "",
        source_name=args.source or "",
    )
    if args.no_score:
        _init_storage(settings)
        if database.article_exists(article.id):
            print(f"Article already exists: {article.id}")
            return 0
        database.insert_article(article)
        print(f"Added {article.id}")
        return 0

    context = build_context(settings)
    result = process_new_articles([article], _require_topic(settings), context)
    if result.processed == 0:
        print(f"Article already exists: {article.id}")
        return 0
    stored = database.get_article_by_id(article.id)
    print(f"Added {article.id}: score={stored.ai_score} - {stored.ai_summary}")
    return 0


def cmd_rate(args, settings: Settings) -> int:
    _init_storage(settings)
    database.rate_article(args.article_id, args.verdict == "relevant")
    print(f"Rated {args.article_id} as {args.verdict}")
    return 0


def cmd_unrate(args, settings: Settings) -> int:
    _init_storage(settings)
    database.unrate_article(args.article_id)
    print(f"Removed rating from {args.article_id}")
    return 0


def cmd_learn(args, settings: Settings) -> int:
    context = build_context(settings)
    result = run_learning(context)
    print(f"{result.status.value}: {result.detail}")
    if result.status is LearningStatus.SAVED and result.profile is not None:
        print(f"Changelog: {result.profile.changelog}")
    return 1 if result.status is LearningStatus.FAILED else 0


def cmd_score(args, settings: Settings) -> int:
    context = build_context(settings)
    article = database.get_article_by_id(args.article_id)
    if article is None:
        print(f"Error: article {args.article_id} not found", file=sys.stderr)
        return 1
    result = ScoringOrchestrator(context).run(article, _require_topic(settings))
    scored = result.article
    print(f"{result.outcome.value}: score={scored.ai_score} - {scored.ai_summary}")
    if scored.scoring_error:
        print(f"Errors: {scored.scoring_error}", file=sys.stderr)
        return 1
    return 0


def cmd_rerate(args, settings: Settings) -> int:
    context = build_context(settings)

    def show_progress(current: int, total: int) -> None:
        print(f"Re-rating {current}/{total}...")

    result = rerate_articles(_require_topic(settings), context, on_progress=show_progress)
    print(f"Re-rated {result.processed} articles ({result.failed} failed): {result.outcomes}")
    return 0


def cmd_profile(args, settings: Settings) -> int:
    _init_storage(settings)

    if args.action == "status":
        status = get_threshold_status()
        print(f"{status.relevant_count} relevant, {status.not_relevant_count} not relevant - {status.message}")
        return 0

    if args.action == "delete":
        print("Profile deleted" if delete_profile() else "No profile found to delete")
        return 0

    if args.action == "edit":
        profile = update_profile_manually(args.like or [], args.dislike or [])
    else:
        profile = database.get_profile()
        if profile is None:
            print("No profile found")
            return 0

    print("Likes:")
    for like in profile.likes:
        print(f"  + {like}")
    print("Dislikes:")
    for dislike in profile.dislikes:
        print(f"  - {dislike}")
    print(f"Changelog: {profile.changelog}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Learn reading preferences from ratings and score new articles"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init-db", help="Create the database tables")
    init_parser.set_defaults(handler=cmd_init_db)

    add_parser = subparsers.add_parser("add-article", help="Store a new article and score it")
    add_parser.add_argument("url", help="Source URL of the article")
    add_parser.add_argument("--title", required=True)
    add_parser.add_argument("--summary", help="Feed excerpt")
    add_parser.add_argument("--content", help="Full article text")
    add_parser.add_argument("--source", help="Name of the feed the article came from")
    add_parser.add_argument("--no-score", action="store_true", help="Store without scoring")
    add_parser.set_defaults(handler=cmd_add_article)

    rate_parser = subparsers.add_parser("rate", help="Rate an article")
    rate_parser.add_argument("article_id")
    rate_parser.add_argument("verdict", choices=["relevant", "not-relevant"])
    rate_parser.set_defaults(handler=cmd_rate)

    unrate_parser = subparsers.add_parser("unrate", help="Remove an article's rating")
    unrate_parser.add_argument("article_id")
    unrate_parser.set_defaults(handler=cmd_unrate)

    learn_parser = subparsers.add_parser("learn", help="Build or evolve the profile from ratings")
    learn_parser.set_defaults(handler=cmd_learn)

    score_parser = subparsers.add_parser("score", help="Score a stored article")
    score_parser.add_argument("article_id")
    score_parser.set_defaults(handler=cmd_score)

    rerate_parser = subparsers.add_parser("rerate", help="Re-score every article that isn't topic-filtered")
    rerate_parser.set_defaults(handler=cmd_rerate)

    profile_parser = subparsers.add_parser("profile", help="Inspect or change the profile")
    profile_parser.add_argument("action", choices=["show", "status", "delete", "edit"])
    profile_parser.add_argument("--like", action="append", help="A liked theme (repeatable, for edit)")
    profile_parser.add_argument("--dislike", action="append", help="A disliked theme (repeatable, for edit)")
    profile_parser.set_defaults(handler=cmd_profile)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings()

    try:
        return args.handler(args, settings)
    except AdaptiveScoringError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
