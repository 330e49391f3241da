"""Tests for write probes and best-effort remediation."""

from unittest.mock import MagicMock, patch

import pytest

from conftest import fail, ok, output_of
from stackboot.exceptions import PermissionDenied
from stackboot.permissions import (
    RemediationResult,
    clean_conflicting_lock_files,
    create_required_lock_files,
    ensure_writable,
    probe,
    remediate,
)


class TestProbe:

    def test_writable(self, make_context, executor):
        ctx = make_context()
        assert probe(ctx, ["Gemfile.lock"]) is True
        assert executor.commands == ["docker compose exec -T web touch Gemfile.lock"]

    def test_not_writable(self, make_context, executor):
        ctx = make_context()
        executor.on("web touch", fail(1, "touch: cannot touch 'Gemfile.lock': Permission denied"))
        assert probe(ctx, ["Gemfile.lock"]) is False

    def test_executor_error_counts_as_not_writable(self, make_context, executor):
        ctx = make_context()
        executor.on("web touch", FileNotFoundError("docker"))
        assert probe(ctx, ["Gemfile.lock"]) is False


class TestRemediate:

    def test_runs_as_root(self, make_context, executor):
        ctx = make_context()
        result = remediate(ctx, ["chmod", "666", "Gemfile.lock"])
        assert result == RemediationResult(attempted=True, succeeded=True)
        assert executor.commands == ["docker compose exec -T --user root web chmod 666 Gemfile.lock"]

    def test_failure_is_swallowed(self, make_context, executor):
        ctx = make_context()
        executor.on("--user root", fail(1, "chmod: Operation not permitted"))
        result = remediate(ctx, ["chmod", "666", "Gemfile.lock"])
        assert result.attempted is True
        assert result.succeeded is False
        assert "Operation not permitted" in result.detail

    def test_executor_error_is_swallowed(self, make_context, executor):
        ctx = make_context()
        executor.on("--user root", OSError("docker daemon gone"))
        result = remediate(ctx, ["mkdir", "-p", "x"])
        assert result.attempted is True
        assert result.succeeded is False

    def test_declined_confirmation_is_not_attempted(self, make_context, executor):
        ctx = make_context(answers=["n"], assume_yes=False)
        with patch("stackboot.console.sys.stdin", MagicMock(isatty=MagicMock(return_value=True))):
            result = remediate(ctx, ["rm", "-f", "Gemfile.lock"])
        assert result.attempted is False
        assert result.succeeded is False
        assert executor.commands == []

    def test_accepted_confirmation_runs(self, make_context, executor):
        ctx = make_context(answers=["y"], assume_yes=False)
        with patch("stackboot.console.sys.stdin", MagicMock(isatty=MagicMock(return_value=True))):
            result = remediate(ctx, ["rm", "-f", "Gemfile.lock"])
        assert result.succeeded is True
        assert len(ctx.console.asked) == 1

    def test_idempotent(self, make_context, executor):
        ctx = make_context()
        first = remediate(ctx, ["mkdir", "-p", "Gemfile.d"])
        second = remediate(ctx, ["mkdir", "-p", "Gemfile.d"])
        assert first == second


class TestEnsureWritable:

    def test_no_remediation_when_probe_passes(self, make_context, executor):
        ctx = make_context()
        fix = MagicMock()
        result = ensure_writable(ctx, ["a.lock"], fix, "need write access")
        fix.assert_not_called()
        assert result.attempted is False
        assert result.succeeded is True
        assert "need write access" not in output_of(ctx)

    def test_remediates_then_reprobes(self, make_context, executor):
        ctx = make_context()
        executor.on("web touch a.lock", fail(), ok())
        fix = MagicMock(return_value=RemediationResult(True, True))
        result = ensure_writable(ctx, ["a.lock"], fix, "need write access")
        fix.assert_called_once_with(ctx)
        assert result.succeeded is True
        assert executor.count("web touch a.lock") == 2
        assert "need write access" in output_of(ctx)

    def test_message_printed_before_remediation(self, make_context, executor):
        ctx = make_context()
        executor.on("web touch a.lock", fail(), ok())
        seen = []

        def _fix(c):
            seen.append(output_of(c))
            return RemediationResult(True, True)

        ensure_writable(ctx, ["a.lock"], _fix, "need write access")
        assert "need write access" in seen[0]

    def test_strict_raises_when_still_denied(self, make_context, executor):
        ctx = make_context()
        executor.on("web touch a.lock", fail())
        fix = MagicMock(return_value=RemediationResult(True, False))
        with pytest.raises(PermissionDenied) as exc:
            ensure_writable(ctx, ["a.lock"], fix, "need write access")
        assert exc.value.paths == ["a.lock"]
        fix.assert_called_once()

    def test_non_strict_reports_failure(self, make_context, executor):
        ctx = make_context()
        executor.on("web touch a.lock", fail())
        fix = MagicMock(return_value=RemediationResult(True, False, "denied"))
        result = ensure_writable(ctx, ["a.lock"], fix, "msg", strict=False)
        assert result.attempted is True
        assert result.succeeded is False


class TestLockFileHelpers:

    def test_create_required_lock_files(self, make_context, executor):
        ctx = make_context()
        result = create_required_lock_files(ctx)
        assert result.succeeded is True
        assert executor.ran("root web mkdir -p gems/tatl_tael")
        assert executor.ran("root web mkdir -p Gemfile.d")
        assert executor.ran("root web touch Gemfile.d/rubocop.rb.lock")
        assert executor.count("root web touch") == 6

    def test_create_required_lock_files_is_best_effort(self, make_context, executor):
        ctx = make_context()
        executor.on("root web touch gems/tatl_tael/Gemfile.lock", fail())
        result = create_required_lock_files(ctx)
        assert result.attempted is True
        assert result.succeeded is False
        assert "gems/tatl_tael/Gemfile.lock" in result.detail
        assert executor.count("root web touch") == 6

    def test_clean_removes_whole_set(self, make_context, executor):
        ctx = make_context()
        clean_conflicting_lock_files(ctx)
        assert executor.commands == [
            "docker compose exec -T --user root web rm -f Gemfile.lock Gemfile.rails72.plugins.lock "
            "Gemfile.rails80.lock Gemfile.rails80.plugins.lock Gemfile.d/rubocop.rb.lock "
            "gems/tatl_tael/Gemfile.lock"
        ]
