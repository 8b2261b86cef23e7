"""Entry point for `python -m claude_stats_exporter`."""

import sys


def main():
    from claude_stats_exporter.app import run
    sys.exit(run())


if __name__ == "__main__":
    main()
