#!/usr/bin/env python3
"""
Entrypoint for generating, reviewing and measuring AI flashcards.

Usage:
    python generate_flashcards.py generate --email me@example.com --file notes.txt
    python generate_flashcards.py review --email me@example.com --generation-id 3 --all
    python generate_flashcards.py review --email me@example.com --generation-id 3 \\
        --accept 0 --edit 2 "New question?" "New answer"
    python generate_flashcards.py stats
    python generate_flashcards.py stats --email me@example.com
"""

import argparse
import sys
from pathlib import Path

from generations.database import (
    create_user,
    get_generation,
    get_user_by_email,
    init_db,
)
from generations.errors import (
    AlreadyReviewedError,
    GenerationNotFoundError,
    InvalidSourceTextError,
    classify_generation_error,
)
from generations.generator import make_flashcard_generator
from generations.models import Selection
from generations.review import create_draft, review_all, review_selected
from generations import statistics
from llm.errors import CompletionError


def _get_or_create_user(email: str):
    user = get_user_by_email(email)
    if user is None:
        user = create_user(email)
    return user


def _read_source_file(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidSourceTextError(f"Could not read {path}: {e}") from e


def cmd_generate(args) -> int:
    source_text = _read_source_file(args.file)
    user = _get_or_create_user(args.email)

    generation = create_draft(user.id, source_text, make_flashcard_generator())

    print(f"Generation {generation.id}: {generation.generated_count} candidates "
          f"from {generation.model} in {generation.generation_duration}ms")
    for index, candidate in enumerate(generation.generated_flashcards):
        print(f"[{index}] Q: {candidate.front}")
        print(f"    A: {candidate.back}")
    return 0


def cmd_review(args) -> int:
    user = _get_or_create_user(args.email)

    if args.all:
        result = review_all(args.generation_id, user_id=user.id)
    else:
        generation = get_generation(args.generation_id, user_id=user.id)
        if generation is None:
            raise GenerationNotFoundError(f"No generation found with id {args.generation_id}")
        candidates = generation.generated_flashcards

        selections = {}
        for index in args.accept:
            if 0 <= index < len(candidates):
                candidate = candidates[index]
                selections[index] = Selection(True, candidate.front, candidate.back)
        for index, front, back in args.edit:
            selections[int(index)] = Selection(True, front, back)

        result = review_selected(args.generation_id, selections, user_id=user.id)

    print(f"Saved {result.saved_count} flashcards "
          f"({result.unedited_count} unedited, {result.edited_count} edited)")
    return 0


def cmd_stats(args) -> int:
    if args.email:
        user = get_user_by_email(args.email)
        if user is None:
            print(f"No user with email {args.email}")
            return 1
        print(f"Acceptance rate: {statistics.user_acceptance_rate(user.id)}%")
        print(f"AI-generated flashcards: {statistics.user_ai_share(user.id)}%")
    else:
        print(f"Acceptance rate: {statistics.system_acceptance_rate()}%")
        print(f"AI-generated flashcards: {statistics.system_ai_share()}%")
        print(f"Total flashcards: {statistics.system_total_flashcards()}")
        print(f"Total users: {statistics.system_total_users()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate and review AI flashcards")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a draft from a text file")
    generate.add_argument("--email", required=True, help="Owner of the generation")
    generate.add_argument("--file", required=True, help="Text file with the source text")
    generate.set_defaults(func=cmd_generate)

    review = subparsers.add_parser("review", help="Accept candidates of a draft")
    review.add_argument("--email", required=True, help="Owner of the generation")
    review.add_argument("--generation-id", type=int, required=True)
    review.add_argument("--all", action="store_true", help="Accept every candidate")
    review.add_argument("--accept", type=int, action="append", default=[],
                        help="Index of a candidate to accept unedited (repeatable)")
    review.add_argument("--edit", nargs=3, action="append", default=[],
                        metavar=("INDEX", "FRONT", "BACK"),
                        help="Accept a candidate with new front/back (repeatable)")
    review.set_defaults(func=cmd_review)

    stats = subparsers.add_parser("stats", help="Show acceptance statistics")
    stats.add_argument("--email", help="Limit to one user")
    stats.set_defaults(func=cmd_stats)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    init_db()
    try:
        return args.func(args)
    except (CompletionError, AlreadyReviewedError, LookupError, ValueError) as e:
        response = classify_generation_error(e)
        print(f"Error ({response.status}): {response.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
