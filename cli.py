import argparse

import uvicorn

from answer_engine.engine.answer_store import PersistedAnswerStore
from answer_engine.engine.resolver import AnswerKeyResolver
from answer_engine.logging_setup import setup_console_logging
from answer_engine.services.data_service import RemoteDataClient
from answer_engine.services.storage_service import build_storage
from answer_engine.utils import dump_answer_sheet, json_dump, validate_question_count

setup_console_logging()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Answer engine utilities")
    parser.add_argument(
        "--storage",
        choices=["sql", "json"],
        default=None,
        help="Storage backend (defaults to STORAGE_BACKEND)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve question count and options for a test")
    resolve.add_argument("test_id")
    resolve.add_argument(
        "--no-resync",
        action="store_true",
        help="Skip the answer key re-sync request",
    )

    answers = sub.add_parser("answers", help="Show saved answers for a test")
    answers.add_argument("test_id")

    clear = sub.add_parser("clear", help="Drop saved answers for a test")
    clear.add_argument("test_id")

    count = sub.add_parser("set-count", help="Confirm the question count for a test")
    count.add_argument("test_id")
    count.add_argument("count", type=int)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.command == "serve":
        uvicorn.run("answer_engine.app:app", host=args.host, port=args.port, log_level="info")
        return 0

    storage = build_storage(args.storage)

    if args.command == "resolve":
        client = RemoteDataClient()
        resolver = AnswerKeyResolver(client, storage, resync=None if args.no_resync else client)
        resolved = resolver.resolve(args.test_id)
        print(
            json_dump(
                {
                    "testId": args.test_id,
                    "questionCount": resolved.question_count,
                    "optionSet": list(resolved.option_set),
                    "source": resolved.source.value,
                }
            )
        )
        return 0

    if args.command == "set-count":
        try:
            validate_question_count(args.count)
        except ValueError as exc:
            print(f"error: {exc}")
            return 2
        resolver = AnswerKeyResolver(RemoteDataClient(), storage)
        resolver.confirm_question_count(args.test_id, args.count)
        print(f"Question count for {args.test_id} set to {args.count}")
        return 0

    store = PersistedAnswerStore(storage)
    saved = store.load(args.test_id)
    if args.command == "answers":
        print(dump_answer_sheet(saved))
        return 0

    store.clear()
    print(f"Cleared {len(saved)} saved answer(s) for {args.test_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
