"""
Unit tests for on-host verification.
"""

import logging
from unittest.mock import patch

import pytest

from buildmatrix.execution import NOTICE, NoticeLogger
from buildmatrix.models.config import ProjectProperties
from buildmatrix.models.results import PhaseStatus
from buildmatrix.orchestration import HostVerifier, PhaseContext, Project, TestOrchestrator
from buildmatrix.orchestration.result_sink import BUILD_FAILED
from buildmatrix.system import HostCompiler
from buildmatrix.validation import CommandFailure, ConfigurationError

MODULE = "buildmatrix.orchestration.host_phase"


@pytest.fixture
def host_setup(fake_ndk, project_factory, options_factory, recording_sink, fake_supervisor_class, monkeypatch):
    monkeypatch.delenv("DISABLE_ONHOST_TESTING", raising=False)

    def create(files=None, properties=None, handler=None, platform="linux", **overrides):
        overrides.setdefault("disable_onhost_testing", False)
        project = Project(
            project_factory("hosty", properties=properties, files=files),
            fake_ndk,
            options_factory(**overrides),
        )
        supervisor = fake_supervisor_class(handler)
        context = PhaseContext(
            project=project,
            supervisor=supervisor,
            notices=NoticeLogger(logging.getLogger("buildmatrix.test.host")),
            sink=recording_sink,
        )
        return HostVerifier(context, platform=platform), supervisor

    return create


@pytest.fixture
def two_compilers():
    compilers = [HostCompiler("gcc", "gcc", "9.4.0"), HostCompiler("clang", "clang", "14.0.0")]
    with patch(f"{MODULE}.discover_host_compilers", return_value=compilers) as discover, \
            patch(f"{MODULE}.supports_onhost_testing", return_value=True):
        yield discover


HOST_MAKEFILE = {"host/GNUmakefile": "test:\n\t$(CC) -o t t.c && ./t\n"}


@pytest.mark.unit
class TestHostVerifierSkips:
    def test_no_descriptor(self, host_setup, two_compilers):
        verifier, supervisor = host_setup()

        result = verifier.run()

        assert result.status is PhaseStatus.SKIPPED
        assert supervisor.calls == []

    def test_disabled_by_option(self, host_setup, two_compilers):
        verifier, _ = host_setup(files=HOST_MAKEFILE, disable_onhost_testing=True)

        assert verifier.run().is_skipped

    def test_disabled_by_environment(self, host_setup, two_compilers, monkeypatch):
        verifier, _ = host_setup(files=HOST_MAKEFILE)
        monkeypatch.setenv("DISABLE_ONHOST_TESTING", "yes")

        assert verifier.run().is_skipped

    def test_disabled_for_host_os(self, host_setup, two_compilers):
        verifier, _ = host_setup(files=HOST_MAKEFILE, properties={"onhost-disabled-os": "dar"}, platform="darwin")

        assert verifier.run().reason == "on-host testing disabled for darwin"

    def test_invalid_host_os_pattern_rejected_at_load(self, host_setup, two_compilers):
        with pytest.raises(ConfigurationError):
            host_setup(files=HOST_MAKEFILE, properties={"onhost-disabled-os": "["})

    def test_invalid_host_os_pattern_is_configuration_error(self, host_setup, two_compilers):
        verifier, supervisor = host_setup(files=HOST_MAKEFILE)
        verifier.context.project.properties = ProjectProperties(onhost_disabled_os=["["])

        with pytest.raises(ConfigurationError, match="onhost-disabled-os"):
            verifier.run()
        assert supervisor.calls == []

    def test_unsupported_host(self, host_setup):
        verifier, _ = host_setup(files=HOST_MAKEFILE)

        with patch(f"{MODULE}.supports_onhost_testing", return_value=False):
            assert verifier.run().is_skipped


@pytest.mark.unit
class TestHostVerifierRuns:
    def test_runs_once_per_compiler(self, host_setup, two_compilers, caplog):
        verifier, supervisor = host_setup(files=HOST_MAKEFILE)
        project = verifier.context.project
        seen_scripts = []

        def capture(call):
            seen_scripts.append(call["command"][0])
            assert (call["cwd"] / "run.sh").read_text().startswith("#!/bin/sh\n")
            return 0

        supervisor.handler = capture
        with caplog.at_level(logging.INFO):
            result = verifier.run()

        assert result.status is PhaseStatus.SUCCEEDED
        assert seen_scripts == [
            str(project.tmpdir / "host-gcc" / "run.sh"),
            str(project.tmpdir / "host-clang" / "run.sh"),
        ]
        assert all(c["track_transient_failures"] for c in supervisor.calls)
        # Copies are removed after success.
        assert not (project.tmpdir / "host-gcc").exists()
        assert "== OK: all on-host tests PASSED" in caplog.messages
        assert [r.getMessage() for r in caplog.records if r.levelno == NOTICE] == ["HST device test [hosty]"]

    def test_disabled_compilers_are_dropped(self, host_setup, two_compilers):
        verifier, supervisor = host_setup(files=HOST_MAKEFILE, properties={"onhost-disabled-cc": "clang"})

        verifier.run()

        assert len(supervisor.calls) == 1
        assert "host-gcc" in supervisor.calls[0]["command"][0]

    def test_cmake_project_gets_testing_rules(self, host_setup, two_compilers):
        verifier, supervisor = host_setup(files={"CMakeLists.txt": "set(TARGET foo)\n"})
        contents = []
        supervisor.handler = lambda call: contents.append((call["cwd"] / "CMakeLists.txt").read_text())

        verifier.run()

        assert "enable_testing()" in contents[0]
        assert "cmake_minimum_required(VERSION 3.2 FATAL_ERROR)" in contents[0]

    def test_failure_reports_and_raises(self, host_setup, two_compilers, recording_sink, caplog):
        verifier, supervisor = host_setup(files=HOST_MAKEFILE, handler=lambda call: 1)

        with caplog.at_level(logging.INFO):
            with pytest.raises(CommandFailure, match="On-host test of hosty failed"):
                verifier.run()

        assert len(supervisor.calls) == 1
        assert recording_sink.records == [{"event": BUILD_FAILED, "path": str(verifier.context.project.path)}]
        assert "   ---> FAILURE: HOST TEST    [hosty]" in caplog.messages

    def test_transient_failure_retried_in_fresh_copy(self, host_setup, two_compilers):
        def handler(call):
            stale = call["cwd"] / "stale"
            assert not stale.exists()
            stale.write_text("x")
            if len(supervisor.calls) == 1:
                call["stderr"] = ["mkdir: cannot create directory"]
                return 1
            return 0

        verifier, supervisor = host_setup(files=HOST_MAKEFILE, properties={"onhost-disabled-cc": "clang"})
        supervisor.handler = handler

        verifier.run()

        assert len(supervisor.calls) == 2


@pytest.mark.unit
def test_host_failure_is_terminal_even_when_keeping_going(host_setup, two_compilers, fake_supervisor_class):
    verifier, _ = host_setup(files=HOST_MAKEFILE, keep_going=True)
    supervisor = fake_supervisor_class(lambda call: 1)
    orchestrator = TestOrchestrator(verifier.context.project, supervisor=supervisor)

    with pytest.raises(CommandFailure):
        orchestrator.test()

    # No build was attempted after the host failure.
    assert all(c["command"][0].endswith("run.sh") for c in supervisor.calls)
