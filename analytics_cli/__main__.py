"""Entry point for `python -m analytics_cli` and `analytics` console script."""

from __future__ import annotations

from analytics_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
