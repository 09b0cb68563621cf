"""Allow ``python -m claude_githooks`` (used by generated git hook scripts)."""

from claude_githooks.cli import app

if __name__ == "__main__":
    app()
