#!/usr/bin/env python3
"""
Main entry point for PrepWise.
Allows running the package with: python -m prepwise <command>

Commands:
    serve [--host=HOST] [--port=PORT]        Run the web app
    feedback <interview_id> <user_id>        Print stored feedback for an interview
    interviews <user_id> [--latest] [--limit=N]
                                             List a user's (or the latest finalized) interviews
"""
import json
import sys

from .config import get_config
from .errors import PrepWiseError
from .utils import setup_logging


def _usage():
    print(__doc__.split("Commands:")[1].rstrip())


def _option(args, name, default=None):
    for arg in args:
        if arg.startswith(f"--{name}="):
            return arg.split("=", 1)[1]
    return default


def _serve(config, args):
    import uvicorn
    from .bootstrap import build_services
    from .presentation import create_app

    host = _option(args, "host", config.host)
    try:
        port = int(_option(args, "port", config.port))
    except ValueError:
        print("❌ Invalid port. Use --port=8000")
        sys.exit(1)

    app = create_app(build_services(config))
    print(f"🎙️  PrepWise listening on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)


def _feedback(config, args):
    from .bootstrap import build_services
    from .presentation import build_feedback_report

    positional = [a for a in args if not a.startswith("--")]
    if len(positional) < 2:
        print("❌ Usage: python -m prepwise feedback <interview_id> <user_id>")
        sys.exit(1)
    interview_id, user_id = positional[0], positional[1]

    repository = build_services(config).repository
    interview = repository.get_interview_by_id(interview_id)
    feedback = repository.get_feedback_by_interview_id(interview_id, user_id)
    if interview is None or feedback is None:
        print(f"❌ No feedback found for interview {interview_id}")
        sys.exit(1)

    report = build_feedback_report(interview, feedback)
    print(f"📝 Feedback on the {report.role} interview ({report.created_at})")
    print(f"⭐ Overall: {report.total_score}/100")
    for category in report.category_scores:
        print(f"   - {category.name}: {category.score}/100 - {category.comment}")
    print("✅ Strengths:")
    for item in report.strengths:
        print(f"   - {item}")
    print("🔧 Areas for improvement:")
    for item in report.areas_for_improvement:
        print(f"   - {item}")
    print(f"\n{report.final_assessment}")


def _interviews(config, args):
    from .bootstrap import build_services
    from .presentation import interview_card

    positional = [a for a in args if not a.startswith("--")]
    if not positional:
        print("❌ Usage: python -m prepwise interviews <user_id> [--latest] [--limit=N]")
        sys.exit(1)
    user_id = positional[0]

    repository = build_services(config).repository
    if "--latest" in args:
        try:
            limit = int(_option(args, "limit", 20))
        except ValueError:
            print("❌ Invalid limit. Use --limit=20")
            sys.exit(1)
        interviews = repository.get_latest_interviews(user_id, limit=limit)
    else:
        interviews = repository.get_interviews_by_user_id(user_id)

    print(json.dumps([interview_card(i) for i in interviews], indent=2))


COMMANDS = {
    "serve": _serve,
    "feedback": _feedback,
    "interviews": _interviews,
}


def main():
    """Command-line interface for PrepWise."""
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        _usage()
        return

    command = COMMANDS.get(sys.argv[1])
    if command is None:
        print(f"❌ Unknown command: {sys.argv[1]}")
        _usage()
        sys.exit(1)

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    log_path = setup_logging(config.log_file, config.log_level)
    print(f"🗂️  Logging to {log_path}")

    try:
        command(config, sys.argv[2:])
    except PrepWiseError as e:
        print(f"❌ {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
