"""Print an admin session token signed with ADMIN_SECRET.

Useful for scripting writes against a gated deployment, e.g.::

    curl -b "admin_session=$(python create_token.py)" -X DELETE .../api/listings/<id>
"""
import argparse
import sys

from centrum_api.app.core.config import settings
from centrum_api.app.core.security import create_session_token


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--secret",
        default=settings.admin_secret,
        help="signing secret (defaults to ADMIN_SECRET)",
    )
    args = parser.parse_args(argv)
    if not args.secret:
        print("ADMIN_SECRET is not set and --secret was not given", file=sys.stderr)
        return 1
    print(create_session_token(args.secret))
    return 0


if __name__ == "__main__":
    sys.exit(main())
