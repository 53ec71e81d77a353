from __future__ import annotations

import sys

from . import analysis_cli


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        p = analysis_cli._build_parser()
        print("usage: git-contributor-insights <command> [options]")
        print("")
        print("commands:")
        print("  analyze        Analyze vendor vs community contributions in a local git repository.")
        print("")
        p.print_help()
        return 0
    if argv[0] == "analyze":
        return analysis_cli.main(argv[1:])
    print(f"Unknown command: {argv[0]!r} (run `git-contributor-insights --help`)", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
