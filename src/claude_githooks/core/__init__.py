"""Core framework modules for claude-githooks."""
