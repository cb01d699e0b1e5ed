from __future__ import annotations

from .main import app


def main() -> None:
    app(prog_name="timetracker")


if __name__ == "__main__":
    main()
