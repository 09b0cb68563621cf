"""
Tests for the compatibility adapters between legacy and enhanced hooks.
"""

from claude_githooks.core.hooks.compat import (
    EnhancedHookAdapter,
    LegacyHookAdapter,
    ensure_enhanced,
    ensure_legacy,
    legacy_blocking_mode,
)
from claude_githooks.core.hooks.interfaces import is_enhanced
from claude_githooks.core.hooks.middleware import HookLifecycle
from claude_githooks.core.hooks.models import (
    BlockingMode,
    HookResult,
    HookResultStatus,
    Strictness,
)
from conftest import SampleHook


class OldHook:
    name = "Old"
    description = "Direct-call hook"
    git_hook_name = "pre-push"

    def __init__(self, blocking_mode=False, outcome=None):
        self.enabled = True
        self.strictness = "medium"
        self.blocking_mode = blocking_mode
        self.outcome = outcome

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
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class TestLegacyBlockingMode:
    def test_boolean_translation(self):
        assert legacy_blocking_mode(OldHook(blocking_mode=True)) is BlockingMode.BLOCK
        assert legacy_blocking_mode(OldHook(blocking_mode=False)) is BlockingMode.WARN

    def test_tri_state_passes_through(self):
        assert legacy_blocking_mode(OldHook(blocking_mode="none")) is BlockingMode.NONE

    def test_unknown_value_falls_back_to_warn(self):
        assert legacy_blocking_mode(OldHook(blocking_mode="sometimes")) is BlockingMode.WARN


class TestEnhancedHookAdapter:
    """Test running a legacy hook through a pipeline."""

    def test_identity_and_state_delegate(self, project_dir, recording_logger):
        legacy = OldHook()
        adapter = EnhancedHookAdapter(legacy, project_root=project_dir, logger=recording_logger)

        assert adapter.id == "pre-push"
        assert adapter.name == "Old"
        assert is_enhanced(adapter)
        adapter.disable()
        assert not legacy.is_enabled()

    def test_run_wraps_plain_return_in_success(self, project_dir, recording_logger):
        adapter = EnhancedHookAdapter(OldHook(outcome="ignored"), project_root=project_dir, logger=recording_logger)

        result = adapter.run([])

        assert result.status is HookResultStatus.SUCCESS

    def test_run_passes_hook_results_through(self, project_dir, recording_logger):
        outcome = HookResult.failure("nope")
        adapter = EnhancedHookAdapter(OldHook(outcome=outcome), project_root=project_dir, logger=recording_logger)

        assert adapter.run([]).message == "nope"

    def test_middleware_sees_legacy_hook(self, project_dir, recording_logger):
        legacy = OldHook()
        adapter = EnhancedHookAdapter(legacy, project_root=project_dir, logger=recording_logger)
        seen = []
        adapter.use(HookLifecycle.BEFORE_EXECUTION, lambda ctx, next: (seen.append(ctx.extras["legacy_hook"]), next()))

        adapter.run([])

        assert seen == [legacy]

    def test_exception_becomes_failure_blocking_per_mode(self, project_dir, recording_logger):
        blocking = EnhancedHookAdapter(
            OldHook(blocking_mode=True, outcome=RuntimeError("bad")),
            project_root=project_dir,
            logger=recording_logger,
        )
        warning = EnhancedHookAdapter(
            OldHook(blocking_mode=False, outcome=RuntimeError("bad")),
            project_root=project_dir,
            logger=recording_logger,
        )

        assert blocking.run([]).should_block
        assert not warning.run([]).should_block
        assert warning.run([]).status is HookResultStatus.FAILURE

    def test_configure_translates_onto_legacy(self, project_dir, recording_logger):
        legacy = OldHook()
        adapter = EnhancedHookAdapter(legacy, project_root=project_dir, logger=recording_logger)

        adapter.initialize({"enabled": False, "strictness": "high", "blockingMode": "block"})

        assert not legacy.enabled
        assert legacy.strictness == "high"
        assert adapter.strictness is Strictness.HIGH
        assert adapter.blocking_mode is BlockingMode.BLOCK


class TestLegacyHookAdapter:
    """Test presenting an enhanced hook through the direct-call interface."""

    def test_blocking_mode_is_boolean(self, project_dir, recording_logger):
        hook = SampleHook(project_dir, logger=recording_logger, options={"blockingMode": "block"})

        assert LegacyHookAdapter(hook).blocking_mode is True
        hook.configure({"blockingMode": "none"})
        assert LegacyHookAdapter(hook).blocking_mode is False

    def test_execute_runs_pipeline(self, project_dir, recording_logger):
        hook = SampleHook(project_dir, logger=recording_logger, options={"enabled": True})

        result = LegacyHookAdapter(hook).execute(["MSG"])

        assert result.message == "sample ran"
        assert hook.executed_with == [["MSG"]]

    def test_other_attributes_delegate(self, project_dir, recording_logger):
        hook = SampleHook(project_dir, logger=recording_logger)

        assert LegacyHookAdapter(hook).project_root == project_dir


class TestEnsureHelpers:
    def test_ensure_enhanced(self, project_dir, recording_logger):
        hook = SampleHook(project_dir, logger=recording_logger)
        legacy = OldHook()

        assert ensure_enhanced(hook) is hook
        wrapped = ensure_enhanced(legacy, "old")
        assert isinstance(wrapped, EnhancedHookAdapter)
        assert wrapped.id == "old"

    def test_ensure_legacy(self, project_dir, recording_logger):
        legacy = OldHook()
        hook = SampleHook(project_dir, logger=recording_logger)

        assert ensure_legacy(EnhancedHookAdapter(legacy)) is legacy
        assert isinstance(ensure_legacy(hook), LegacyHookAdapter)
        assert ensure_legacy(legacy) is legacy
