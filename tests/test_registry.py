"""
Tests for HookRegistry.

Tests registration (including legacy wrapping and duplicate ids), bulk
setup and removal with per-hook isolation, config persistence, dependency
ordering, and running hooks.
"""

import json
from types import SimpleNamespace

import pytest

from claude_githooks.core.hooks.compat import EnhancedHookAdapter
from claude_githooks.core.hooks.discovery import PLUGIN_ENTRY_POINT_GROUP, discover_all_hooks
from claude_githooks.core.hooks.errors import HookNotFoundError
from claude_githooks.core.hooks.models import HookResult, HookResultStatus, Strictness
from claude_githooks.core.hooks.registry import HookRegistry
from conftest import FakeAnalysisService, FakeGitInspector, SampleHook, write_file


class PushHook(SampleHook):
    name = "Push Hook"
    git_hook_name = "pre-push"


class MergeHook(SampleHook):
    name = "Merge Hook"
    git_hook_name = "post-merge"


class FirstPluginHook(SampleHook):
    name = "First Plugin Hook"


class SecondPluginHook(SampleHook):
    name = "Second Plugin Hook"


class ExplodingSetupHook(SampleHook):
    name = "Exploding Hook"
    git_hook_name = "pre-commit"

    def setup(self):
        raise RuntimeError("disk on fire")


class LegacyCommitHook:
    """Hook written against the direct-call interface."""

    name = "Legacy Commit Hook"
    description = "Old style"
    git_hook_name = "commit-msg"

    def __init__(self, project_root, logger=None, dry_run=False, options=None):
        options = options or {}
        self.project_root = project_root
        self.enabled = bool(options.get("enabled"))
        self.strictness = options.get("strictness", "medium")
        self.blocking_mode = True
        self.calls = []

    def is_enabled(self):
        return self.enabled

    def enable(self):
        self.enabled = True

    def disable(self):
        self.enabled = False

    def setup(self):
        return True

    def remove(self):
        return True

    def generate_hook_script(self):
        return "#!/bin/sh\n"

    def execute(self, args):
        self.calls.append(args)
        if args == ["explode"]:
            raise RuntimeError("legacy failure")


@pytest.fixture
def registry(project_dir, recording_logger):
    return HookRegistry(
        project_dir,
        logger=recording_logger,
        git=FakeGitInspector(),
        service=FakeAnalysisService(reply=None),
    )


def read_hooks_json(project_dir):
    return json.loads((project_dir / ".claude" / "hooks.json").read_text())


# ==============================================================================
# Registration
# ==============================================================================


class TestRegistration:
    """Test registering hook classes."""

    def test_register_applies_schema_defaults_and_overrides(self, registry):
        hook = registry.register_hook("commit-msg", SampleHook, {"strictness": "high"})

        assert registry.get_hook("commit-msg") is hook
        assert hook.strictness is Strictness.HIGH
        assert hook.config["maxLength"] == {"subject": 72, "body": 100}
        assert not hook.is_enabled()

    def test_register_installs_common_middleware(self, registry):
        hook = registry.register_hook("commit-msg", SampleHook)

        assert hook.pipeline.phases()

    def test_common_middleware_can_be_disabled(self, project_dir, recording_logger):
        registry = HookRegistry(project_dir, logger=recording_logger, common_middleware=False)

        hook = registry.register_hook("commit-msg", SampleHook)

        assert hook.pipeline.phases() == []

    def test_duplicate_id_overwrites_with_one_warning(self, registry, recording_logger):
        registry.register_hook("commit-msg", SampleHook)
        second = registry.register_hook("commit-msg", PushHook)

        assert registry.get_hook("commit-msg") is second
        assert len(registry.get_all_hooks()) == 1
        warnings = recording_logger.messages("warn")
        assert warnings == ["Hook with ID commit-msg already registered, overwriting"]

    def test_legacy_class_is_wrapped(self, registry):
        hook = registry.register_hook("legacy", LegacyCommitHook, {"enabled": True})

        assert isinstance(hook, EnhancedHookAdapter)
        assert isinstance(registry.legacy_hooks["legacy"], LegacyCommitHook)
        assert hook.is_enabled()
        assert hook.name == "Legacy Commit Hook"

    def test_register_discovered_hooks(self, project_dir, registry):
        write_file(
            project_dir / ".claude" / "user-hooks" / "commit_msg_hook.py",
            "from claude_githooks.core.hooks.base_hook import BaseHook\n\n\n"
            "class ShadowHook(BaseHook):\n"
            "    name = 'Shadow'\n"
            "    git_hook_name = 'commit-msg'\n\n\n"
            "HOOK_CLASS = ShadowHook\n",
        )
        write_file(project_dir / ".claude" / "hooks" / "broken_hook.py", "import nonexistent_module\n")

        registered = registry.register_discovered_hooks(discover_all_hooks(project_dir))

        assert registered == ["commit-msg", "post-merge", "pre-commit", "pre-push", "commit-msg"]
        assert registry.get_hook("commit-msg").name == "Shadow"
        assert list(registry.get_all_hooks()) == ["commit-msg", "post-merge", "pre-commit", "pre-push"]

    def test_later_plugin_wins_duplicate_id(
        self, project_dir, tmp_path, registry, recording_logger
    ):
        write_file(
            project_dir / "pyproject.toml",
            '[project]\nname = "app"\ndependencies = ["first-claude-hook", "second-claude-hook"]\n',
        )
        plugins = {"first-claude-hook": FirstPluginHook, "second-claude-hook": SecondPluginHook}

        def loader(name):
            hook_class = plugins[name]
            entry_point = SimpleNamespace(
                name="commit-msg",
                value=f"{name}:Hook",
                group=PLUGIN_ENTRY_POINT_GROUP,
                load=lambda: hook_class,
            )
            return SimpleNamespace(entry_points=[entry_point], metadata={}, version="1.0.0")

        descriptors = discover_all_hooks(
            project_dir, core_dir=tmp_path / "no-core-hooks", distribution_loader=loader
        )
        registered = registry.register_discovered_hooks(descriptors)

        assert registered == ["commit-msg", "commit-msg"]
        assert isinstance(registry.get_hook("commit-msg"), SecondPluginHook)
        assert recording_logger.messages("warn") == [
            "Hook with ID commit-msg already registered, overwriting"
        ]

    def test_lookup_by_git_hook_name(self, registry):
        registry.register_hook("commit-msg", SampleHook)
        registry.register_hook("lint", SampleHook)
        registry.register_hook("pre-push", PushHook)

        assert registry.get_hook_by_git_hook_name("pre-push").name == "Push Hook"
        assert [hook_id for hook_id, _ in registry.get_hooks_for_git_hook("commit-msg")] == [
            "commit-msg",
            "lint",
        ]
        assert registry.get_hook_by_git_hook_name("pre-rebase") is None


# ==============================================================================
# Enable / disable
# ==============================================================================


class TestEnableDisable:
    def test_enable_and_disable(self, registry):
        registry.register_hook("commit-msg", SampleHook)

        assert registry.enable_hook("commit-msg")
        assert [h.name for h in registry.get_enabled_hooks()] == ["Sample Hook"]
        assert registry.disable_hook("commit-msg")
        assert registry.get_enabled_hooks() == []

    def test_unknown_id(self, registry):
        assert registry.enable_hook("missing") is False
        assert registry.disable_hooks(["missing"]) == []


# ==============================================================================
# Bulk operations
# ==============================================================================


class TestBulkOperations:
    """Test setup_hooks / remove_hooks."""

    def test_setup_isolates_failing_hook_and_saves_once(self, registry, monkeypatch):
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})
        registry.register_hook("pre-commit", ExplodingSetupHook, {"enabled": True})
        registry.register_hook("pre-push", PushHook, {"enabled": True})
        saves = []
        monkeypatch.setattr(registry, "save_config", lambda: saves.append(1) or True)

        result = registry.setup_hooks()

        assert result.success == ["Sample Hook", "Push Hook"]
        assert result.failed == ["Exploding Hook"]
        assert saves == [1]

    def test_setup_installs_scripts(self, project_dir, hooks_dir, registry):
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})
        registry.register_hook("post-merge", MergeHook)

        result = registry.setup_hooks()

        assert result.ok
        assert (hooks_dir / "commit-msg").exists()
        assert not (hooks_dir / "post-merge").exists()
        assert read_hooks_json(project_dir)["hooks"]["commit-msg"]["enabled"] is True

    def test_setup_with_nothing_enabled(self, project_dir, registry, recording_logger):
        registry.register_hook("commit-msg", SampleHook)

        result = registry.setup_hooks()

        assert result.success == [] and result.failed == []
        assert "No hooks enabled, skipping setup" in recording_logger.messages("info")
        assert not (project_dir / ".claude" / "hooks.json").exists()

    def test_setup_follows_dependencies(self, registry):
        order = []

        class Recording(SampleHook):
            def setup(self):
                order.append(self.id)
                return True

        for hook_id in ("a", "b", "c"):
            registry.register_hook(hook_id, Recording, {"enabled": True})
        registry.set_hook_dependencies("a", ["c"])

        registry.setup_hooks()

        assert order == ["c", "a", "b"]

    def test_remove_covers_all_hooks(self, hooks_dir, registry):
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})
        registry.register_hook("pre-push", PushHook)
        registry.setup_hooks()
        (hooks_dir / "pre-push").write_text("#!/bin/sh\necho mine\n")

        result = registry.remove_hooks()

        assert result.success == ["Sample Hook"]
        assert result.failed == ["Push Hook"]
        assert not (hooks_dir / "commit-msg").exists()
        assert (hooks_dir / "pre-push").read_text() == "#!/bin/sh\necho mine\n"


# ==============================================================================
# Dependencies
# ==============================================================================


class TestDependencyOrdering:
    def test_dependencies_first(self, registry):
        registry.set_hook_dependencies("deploy", ["lint", "test"])
        registry.set_hook_dependencies("test", ["lint"])

        assert registry.order_hooks_by_dependencies(["deploy", "test", "lint"]) == [
            "lint",
            "test",
            "deploy",
        ]

    def test_dependencies_outside_selection_are_ignored(self, registry):
        registry.set_hook_dependencies("a", ["not-selected"])

        assert registry.order_hooks_by_dependencies(["a"]) == ["a"]

    def test_cycle_is_reported_and_every_hook_kept(self, registry, recording_logger):
        registry.set_hook_dependencies("a", ["b"])
        registry.set_hook_dependencies("b", ["a"])

        ordered = registry.order_hooks_by_dependencies(["a", "b"])

        assert sorted(ordered) == ["a", "b"]
        assert any("Circular dependency" in m for m in recording_logger.messages("warn"))

    def test_get_dependencies_returns_copy(self, registry):
        registry.set_hook_dependencies("a", ["b"])
        registry.get_hook_dependencies("a").append("c")

        assert registry.get_hook_dependencies("a") == ["b"]


# ==============================================================================
# Persistence
# ==============================================================================


class TestPersistence:
    """Test save_config / load_config."""

    def test_save_then_load_round_trip(self, project_dir, recording_logger):
        first = HookRegistry(project_dir, logger=recording_logger)
        first.register_hook("commit-msg", SampleHook, {"enabled": True})
        first.register_hook("pre-push", PushHook)
        first.get_hook("pre-push").set_strictness("high")
        assert first.save_config()

        second = HookRegistry(project_dir, logger=recording_logger)
        second.register_hook("commit-msg", SampleHook)
        second.register_hook("pre-push", PushHook)
        second.load_config()

        assert second.get_hook("commit-msg").is_enabled()
        assert not second.get_hook("pre-push").is_enabled()
        assert second.get_hook("pre-push").strictness is Strictness.HIGH

    def test_saved_document_shape(self, project_dir, registry):
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})

        registry.save_config()

        document = read_hooks_json(project_dir)
        assert document["version"] == "1.0.0"
        assert document["timestamp"]
        assert document["hooks"]["commit-msg"] == {
            "name": "Sample Hook",
            "gitHookName": "commit-msg",
            "enabled": True,
            "strictness": "medium",
        }
        raw = (project_dir / ".claude" / "hooks.json").read_text()
        assert raw.endswith("}\n")

    def test_save_preserves_other_options_and_unknown_ids(self, project_dir, registry):
        write_file(
            project_dir / ".claude" / "hooks.json",
            json.dumps(
                {
                    "version": "1.0.0",
                    "hooks": {
                        "commit-msg": {"enabled": False, "blockingMode": "block"},
                        "retired-hook": {"enabled": True},
                    },
                }
            ),
        )
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})

        registry.save_config()

        hooks = read_hooks_json(project_dir)["hooks"]
        assert hooks["commit-msg"]["enabled"] is True
        assert hooks["commit-msg"]["blockingMode"] == "block"
        assert hooks["retired-hook"] == {"enabled": True}

    def test_load_ignores_unregistered_ids(self, project_dir, registry):
        write_file(
            project_dir / ".claude" / "hooks.json",
            json.dumps({"hooks": {"ghost": {"enabled": True}}}),
        )

        document = registry.load_config()

        assert registry.get_all_hooks() == {}
        assert "ghost" in document["hooks"]

    def test_load_with_malformed_file(self, project_dir, registry):
        write_file(project_dir / ".claude" / "hooks.json", "{not json")
        registry.register_hook("commit-msg", SampleHook)

        document = registry.load_config()

        assert document["hooks"] == {}
        assert not registry.get_hook("commit-msg").is_enabled()

    def test_invalid_stored_strictness_is_ignored(self, project_dir, registry, recording_logger):
        write_file(
            project_dir / ".claude" / "hooks.json",
            json.dumps({"hooks": {"commit-msg": {"enabled": True, "strictness": "extreme"}}}),
        )
        registry.register_hook("commit-msg", SampleHook)

        registry.load_config()

        hook = registry.get_hook("commit-msg")
        assert hook.is_enabled()
        assert hook.strictness is Strictness.MEDIUM
        assert recording_logger.messages("warn")

    def test_dry_run_does_not_write(self, project_dir, recording_logger):
        registry = HookRegistry(project_dir, logger=recording_logger, dry_run=True)
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})

        assert registry.save_config()
        assert not (project_dir / ".claude" / "hooks.json").exists()


# ==============================================================================
# Execution
# ==============================================================================


class TestRunHook:
    """Test run_hook / run_git_hook."""

    def test_unknown_hook_raises(self, registry):
        with pytest.raises(HookNotFoundError):
            registry.run_hook("missing")

    def test_disabled_hook_is_skipped(self, registry):
        hook = registry.register_hook("commit-msg", SampleHook)

        result = registry.run_hook("commit-msg", ["MSG"])

        assert result.status is HookResultStatus.SKIPPED
        assert hook.executed_with == []

    def test_enabled_hook_runs(self, registry):
        hook = registry.register_hook("commit-msg", SampleHook, {"enabled": True})

        result = registry.run_hook("commit-msg", ["MSG"])

        assert result.status is HookResultStatus.SUCCESS
        assert hook.executed_with == [["MSG"]]

    def test_escaping_exception_becomes_failure(self, project_dir, recording_logger):
        class Raising(SampleHook):
            def execute(self, args):
                raise RuntimeError("boom")

        registry = HookRegistry(project_dir, logger=recording_logger, common_middleware=False)
        registry.register_hook("commit-msg", Raising, {"enabled": True, "blockingMode": "block"})

        result = registry.run_hook("commit-msg")

        assert result.status is HookResultStatus.FAILURE
        assert result.should_block
        assert "boom" in result.message
        assert "Error executing hook Sample Hook: boom" in recording_logger.messages("error")

    def test_legacy_hook_runs_through_adapter(self, registry):
        registry.register_hook("legacy", LegacyCommitHook, {"enabled": True})

        ok = registry.run_hook("legacy", ["MSG"])
        failed = registry.run_hook("legacy", ["explode"])

        assert ok.status is HookResultStatus.SUCCESS
        assert registry.legacy_hooks["legacy"].calls == [["MSG"], ["explode"]]
        assert failed.status is HookResultStatus.FAILURE
        assert failed.should_block

    def test_run_git_hook_only_runs_enabled(self, registry):
        registry.register_hook("commit-msg", SampleHook, {"enabled": True})
        registry.register_hook("lint", SampleHook)
        registry.register_hook("pre-push", PushHook, {"enabled": True})

        results = registry.run_git_hook("commit-msg", ["MSG"])

        assert list(results) == ["commit-msg"]
        assert isinstance(results["commit-msg"], HookResult)
