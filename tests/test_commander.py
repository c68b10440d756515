"""Tests for NpmCommander orchestration."""

import asyncio
from unittest.mock import patch

from commander import CommandResult, NpmCommander
from constants import CommandKind, DependencyType
from events import LogSource
from models import ModuleCollection, Package, PackageModule, RootPackage


class FakeController:
    """Owning model that records everything the commander does to it."""

    def __init__(self, root_package=None):
        self.full_path_to_root_package_directory = "/work/project"
        self.path_to_npm = "/usr/bin/npm"
        self.use_fallback_if_npm_not_found = True
        self.root_package = root_package
        self.refresh_count = 0
        self.outputs = []
        self.errors = []
        self.exceptions = []

    def refresh(self):
        self.refresh_count += 1

    def log_output(self, sender, event):
        self.outputs.append(event)

    def log_error(self, sender, event):
        self.errors.append(event)

    def log_exception(self, sender, event):
        self.exceptions.append(event.exception)


class FakeCommand:
    """Execution primitive double with scripted results."""

    def __init__(self, descriptor, success=True, stdout="", stderr="", results=None, error=None):
        self.descriptor = descriptor
        self._success = success
        self.standard_output = stdout
        self.standard_error = stderr
        self.results = results or []
        self._error = error
        self.cancelled = False
        self.cancel_calls = 0

    def cancel_current_task(self):
        self.cancel_calls += 1
        self.cancelled = True

    async def execute(self):
        if self._error is not None:
            raise self._error
        return self._success


class FakeFactory:
    def __init__(self, **behaviour):
        self.behaviour = behaviour
        self.commands = []

    def __call__(self, descriptor):
        cmd = FakeCommand(descriptor, **self.behaviour)
        self.commands.append(cmd)
        return cmd

    @property
    def descriptor(self):
        return self.commands[-1].descriptor


def _root_with(*modules):
    return RootPackage(path="/work/project", name="app", modules=ModuleCollection(modules))


class TestInstall:
    """Tests for install operations."""

    def test_install_success_logs_and_refreshes(self):
        controller = FakeController()
        factory = FakeFactory(stdout="added 1 package")
        commander = NpmCommander(controller, command_factory=factory)

        ok = asyncio.run(commander.install_package("lodash", "^4.0.0", DependencyType.STANDARD))

        assert ok is True
        assert [e.text for e in controller.outputs] == ["added 1 package"]
        assert controller.outputs[0].source == LogSource.STANDARD_OUTPUT
        assert controller.errors == []
        assert controller.refresh_count == 1
        assert factory.descriptor.arguments() == ["install", "lodash@^4.0.0", "--save"]
        assert factory.descriptor.path_to_npm == "/usr/bin/npm"

    def test_install_failure_still_refreshes(self):
        controller = FakeController()
        factory = FakeFactory(success=False, stderr="npm ERR! 404")
        commander = NpmCommander(controller, command_factory=factory)

        ok = asyncio.run(commander.install_package("nope-not-here", None, DependencyType.DEVELOPMENT))

        assert ok is False
        assert [e.text for e in controller.errors] == ["npm ERR! 404"]
        assert controller.refresh_count == 1
        assert controller.exceptions == []

    def test_install_global_package(self):
        controller = FakeController()
        factory = FakeFactory()
        commander = NpmCommander(controller, command_factory=factory)

        asyncio.run(commander.install_global_package("typescript", "latest"))

        assert factory.descriptor.global_install is True
        assert factory.descriptor.dependency_type == DependencyType.STANDARD
        assert factory.descriptor.arguments() == ["install", "typescript@latest", "-g"]

    def test_invalid_range_reported_as_exception(self):
        controller = FakeController()
        factory = FakeFactory()
        commander = NpmCommander(controller, command_factory=factory)

        ok = asyncio.run(commander.install_package("lodash", "^^bad", DependencyType.STANDARD))

        assert ok is False
        assert len(controller.exceptions) == 1
        assert isinstance(controller.exceptions[0], ValueError)
        assert factory.commands == []
        assert controller.refresh_count == 0

    def test_failing_output_handler_still_refreshes(self):
        controller = FakeController()
        commander = NpmCommander(controller, command_factory=FakeFactory(stdout="added 1 package"))

        def broken(sender, event):
            raise RuntimeError("listener bug")

        commander.events.subscribe_output(broken)

        ok = asyncio.run(commander.install_package("lodash"))

        assert ok is False
        assert controller.refresh_count == 1
        assert len(controller.exceptions) == 1
        assert str(controller.exceptions[0]) == "listener bug"

    def test_execute_exception_is_caught(self):
        controller = FakeController()
        error = OSError("spawn failed")
        commander = NpmCommander(controller, command_factory=FakeFactory(error=error))

        ok = asyncio.run(commander.install_package("lodash"))

        assert ok is False
        assert controller.exceptions == [error]
        assert controller.outputs == []
        assert commander.last_result.error is error
        assert commander.last_result.kind == CommandKind.INSTALL


class TestUninstall:
    """Tests for uninstall classification and execution."""

    def test_dev_dependency_classified_as_development(self):
        root = _root_with(PackageModule(name="foo", is_dev_dependency=True))
        controller = FakeController(root_package=root)
        factory = FakeFactory()
        commander = NpmCommander(controller, command_factory=factory)

        ok = asyncio.run(commander.uninstall_package("foo"))

        assert ok is True
        assert factory.descriptor.dependency_type == DependencyType.DEVELOPMENT
        assert factory.descriptor.arguments() == ["uninstall", "foo", "--save-dev"]
        assert controller.refresh_count == 1

    def test_optional_dependency_classified_as_optional(self):
        root = _root_with(PackageModule(name="fsevents", is_optional_dependency=True))
        commander = NpmCommander(FakeController(root_package=root))
        assert commander.dependency_type_of("fsevents") == DependencyType.OPTIONAL

    def test_no_root_package_defaults_to_standard(self):
        commander = NpmCommander(FakeController(root_package=None))
        assert commander.dependency_type_of("foo") == DependencyType.STANDARD

    def test_unknown_module_defaults_to_standard(self):
        root = _root_with(PackageModule(name="bar", is_dev_dependency=True))
        commander = NpmCommander(FakeController(root_package=root))
        assert commander.dependency_type_of("foo") == DependencyType.STANDARD

    def test_uninstall_global_package(self):
        factory = FakeFactory()
        commander = NpmCommander(FakeController(), command_factory=factory)

        asyncio.run(commander.uninstall_global_package("typescript"))

        assert factory.descriptor.arguments() == ["uninstall", "typescript", "-g"]

    def test_uninstall_exception_is_caught(self):
        controller = FakeController()
        commander = NpmCommander(controller, command_factory=FakeFactory(error=RuntimeError("boom")))

        assert asyncio.run(commander.uninstall_package("foo")) is False
        assert len(controller.exceptions) == 1


class TestSearch:
    """Tests for search."""

    def test_search_returns_results_without_logging(self):
        controller = FakeController()
        results = [Package(name="react"), Package(name="react-dom"), Package(name="preact")]
        factory = FakeFactory(stdout="[...huge listing...]", stderr="npm WARN", results=results)
        commander = NpmCommander(controller, command_factory=factory)

        found = asyncio.run(commander.search("react"))

        assert found == results
        assert controller.outputs == []
        assert controller.errors == []
        assert controller.refresh_count == 0

    def test_search_failure_returns_empty_list(self):
        controller = FakeController()
        factory = FakeFactory(success=False, results=[Package(name="ignored")], stderr="npm ERR!")
        commander = NpmCommander(controller, command_factory=factory)

        found = asyncio.run(commander.search("react"))

        assert found == []
        assert controller.errors == []

    def test_search_exception_returns_empty_list(self):
        controller = FakeController()
        commander = NpmCommander(controller, command_factory=FakeFactory(error=ValueError("bad json")))

        found = asyncio.run(commander.search("react"))

        assert found == []
        assert len(controller.exceptions) == 1


class TestUpdate:
    """Tests for update."""

    def test_update_everything(self):
        controller = FakeController()
        factory = FakeFactory(stdout="updated 3 packages")
        commander = NpmCommander(controller, command_factory=factory)

        ok = asyncio.run(commander.update_packages())

        assert ok is True
        assert factory.descriptor.packages == ()
        assert controller.refresh_count == 1
        assert len(controller.outputs) == 1

    def test_update_subset(self):
        factory = FakeFactory()
        commander = NpmCommander(FakeController(), command_factory=factory)

        asyncio.run(commander.update_packages([Package(name="lodash")]))

        assert factory.descriptor.packages == ("lodash",)

    def test_update_exception_is_caught(self):
        controller = FakeController()
        commander = NpmCommander(controller, command_factory=FakeFactory(error=OSError("EACCES")))

        assert asyncio.run(commander.update_packages()) is False
        assert len(controller.exceptions) == 1


class TestCancellationAndDisposal:
    """Tests for the command handle and subscription lifecycle."""

    def test_cancel_without_command_is_noop(self):
        commander = NpmCommander(FakeController())
        commander.cancel_current_command()
        assert commander.current_command is None

    def test_cancel_targets_most_recent_command(self):
        factory = FakeFactory()
        commander = NpmCommander(FakeController(), command_factory=factory)

        asyncio.run(commander.update_packages())
        asyncio.run(commander.install_package("lodash"))
        commander.cancel_current_command()

        assert factory.commands[0].cancel_calls == 0
        assert factory.commands[1].cancel_calls == 1

    def test_cancelled_flag_recorded_in_result(self):
        class CancelledCommand(FakeCommand):
            async def execute(self):
                self.cancelled = True
                return False

        commander = NpmCommander(FakeController(), command_factory=CancelledCommand)

        asyncio.run(commander.update_packages())

        assert commander.last_result == CommandResult(
            success=False, kind=CommandKind.UPDATE, cancelled=True
        )

    def test_dispose_unsubscribes_controller(self):
        controller = FakeController()
        commander = NpmCommander(controller, command_factory=FakeFactory(stdout="hi"))

        commander.dispose()
        asyncio.run(commander.install_package("lodash"))

        assert controller.outputs == []
        assert not commander.events.has_subscribers()

    def test_dispose_twice_unsubscribes_once(self):
        commander = NpmCommander(FakeController())
        events = commander.events

        with patch.object(events, "unsubscribe_output", wraps=events.unsubscribe_output) as unsub:
            commander.dispose()
            commander.dispose()

        assert unsub.call_count == 1
        assert commander.disposed is True

    def test_context_manager_disposes(self):
        with NpmCommander(FakeController()) as commander:
            assert commander.events.has_subscribers()
        assert commander.disposed is True
        assert not commander.events.has_subscribers()

    def test_failing_exception_handler_does_not_escape(self):
        controller = FakeController()
        commander = NpmCommander(controller, command_factory=FakeFactory(error=OSError("x")))

        def broken(sender, event):
            raise RuntimeError("handler bug")

        commander.events.subscribe_exception(broken)

        assert asyncio.run(commander.install_package("lodash")) is False
        assert len(controller.exceptions) == 1
