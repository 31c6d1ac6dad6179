"""Tests for the Swallower registry."""

import pytest
from unittest.mock import MagicMock, call

from swallower import (
    LocalRuntime,
    NamedGlobSet,
    Plugin,
    PluginDependencyError,
    Swallower,
    TaskDefinition,
    TaskSetOrderError,
    task_template,
)


@task_template
def read_globs(globs, options):
    """Return the glob set named by options['glob_set']."""
    return globs.get_glob_set(options["glob_set"])


def make_runtime():
    """Create a mock runtime whose combinators are recognisable."""
    runtime = MagicMock()
    runtime.series.side_effect = lambda names: ("series", tuple(names))
    runtime.parallel.side_effect = lambda names: ("parallel", tuple(names))
    return runtime


class TestRegisterTask:
    """Tests for register_task and define_tasks."""

    def test_callable_template_receives_getter_and_options(self):
        swallower = Swallower()
        unit = MagicMock()
        template = MagicMock(return_value=unit)

        swallower.register_task("build", template, {"x": 1})

        template.assert_called_once_with(swallower.glob_set_getter, {"x": 1})
        assert swallower.get_task("build") is unit

    def test_default_options(self):
        swallower = Swallower()
        template = MagicMock()
        swallower.register_task("build", template)
        template.assert_called_once_with(swallower.glob_set_getter, {})

    def test_template_cannot_read_globs_at_registration(self):
        """Test templates see a closed gate while tasks are registered."""
        swallower = Swallower()
        swallower.register_glob_set("js", "src/*.js")
        seen = []
        swallower.register_task(
            "build", lambda globs, options: seen.append(globs.get_glob_set("js"))
        )
        assert seen == [None]

    def test_reregistering_keeps_position(self):
        swallower = Swallower()
        swallower.register_task("a", MagicMock())
        swallower.register_task("b", MagicMock())
        replacement = MagicMock()
        swallower.register_task("a", MagicMock(return_value=replacement))
        assert list(swallower.tasks) == ["a", "b"]
        assert swallower.get_task("a") is replacement

    def test_define_tasks_list(self):
        swallower = Swallower()
        template = MagicMock()

        def definitions(options):
            return [
                {"name": f"copy:{name}", "options": {"src": name}}
                for name in options["names"]
            ]

        names = swallower.define_tasks(template, definitions, {"names": ["js", "css"]})

        assert names == ["copy:js", "copy:css"]
        assert list(swallower.tasks) == ["copy:js", "copy:css"]
        assert template.call_args_list == [
            call(swallower.glob_set_getter, {"src": "js"}),
            call(swallower.glob_set_getter, {"src": "css"}),
        ]

    def test_define_tasks_single(self):
        swallower = Swallower()
        constructor = MagicMock(return_value=TaskDefinition("clean", {"dir": "build"}))

        names = swallower.define_tasks(read_globs, constructor, {"any": True})

        constructor.assert_called_once_with({"any": True})
        assert names == ["clean"]
        assert swallower.get_task("clean").options == {"dir": "build"}


class TestGlobSets:
    """Tests for glob set registration through the Swallower."""

    def test_register_and_extend(self):
        swallower = Swallower()
        swallower.register_glob_set("js", ["a", ["b", "a"]])
        swallower.extend_glob_set("js", ["c", "b"])
        assert swallower.get_glob_set("js") == ["a", "b", "c"]

    def test_extend_missing_creates(self):
        swallower = Swallower()
        swallower.extend_glob_set("js", ["b", ["a", "b"]])
        assert swallower.get_glob_set("js") == ["b", "a"]

    def test_named_glob_sets(self):
        swallower = Swallower()
        swallower.register_named_glob_sets([
            NamedGlobSet("js", "a"),
            {"name": "css", "glob_set": ["b"]},
        ])
        swallower.extend_named_glob_sets([{"name": "js", "glob_set": ["c"]}])
        swallower.extend_named_glob_set(NamedGlobSet("css", "d"))
        swallower.register_named_glob_set({"name": "img", "glob_set": "e"})

        assert swallower.get_glob_set("js") == ["a", "c"]
        assert swallower.get_glob_set("css") == ["b", "d"]
        assert swallower.get_glob_set("img") == ["e"]

    def test_getter_gated_until_run(self):
        swallower = Swallower(make_runtime())
        swallower.register_glob_set("js", "a")
        getter = swallower.glob_set_getter

        assert getter.get_glob_set("js") is None
        assert getter.get_glob_set("missing") is None

        swallower.run()

        assert getter.get_glob_set("js") == ["a"]
        assert getter.get_glob_set("missing") is None


class TestTaskSets:

    def test_extend_and_get(self):
        swallower = Swallower()
        swallower.extend_task_set("build", "series", "a")
        swallower.extend_task_set("build", "series", "b", after=["a"])
        assert swallower.get_task_set("build") == ["b", "a"]
        assert swallower.get_task_set("missing") is None

    def test_error_callback(self):
        swallower = Swallower()
        error_cb = MagicMock()
        assert swallower.extend_task_set("build", "series", "a", error_cb, before=["x"]) is False
        error_cb.assert_called_once_with()

    def test_error_without_callback_skips_insertion(self):
        swallower = Swallower()
        assert swallower.extend_task_set("build", "series", "a", before=["x"]) is False
        assert swallower.get_task_set("build") is None

    def test_error_raises_when_strict(self):
        swallower = Swallower()
        with pytest.raises(TaskSetOrderError):
            swallower.extend_task_set("build", "series", "a", before=["x"], strict=True)


class TestPlugins:
    """Tests for plugin registration and running."""

    def test_factory_receives_swallower_and_options(self):
        swallower = Swallower()
        factory = MagicMock()
        plugin = swallower.register_plugin(factory, {"a": 1})
        factory.assert_called_once_with(swallower, {"a": 1})
        assert swallower.pending_plugins == [plugin]

    def test_default_options(self):
        swallower = Swallower()
        factory = MagicMock()
        swallower.register_plugin(factory)
        factory.assert_called_once_with(swallower, {})

    def test_plugins_extend_before_materialize(self):
        """Test plugins can add globs and tasks that then reach the runtime."""
        class Scripts(Plugin):
            id = "scripts"

            def run(self):
                self.swallower.register_glob_set("js", self.options["globs"])
                self.swallower.register_task("build:js", read_globs, {"glob_set": "js"})
                self.swallower.extend_task_set("default", "series", "build:js")

        class Vendor(Plugin):
            id = "vendor"
            requires = ("scripts",)

            def run(self):
                self.swallower.extend_glob_set("js", "vendor/*.js")

        runtime = LocalRuntime()
        swallower = Swallower(runtime)
        swallower.register_plugin(Vendor)
        swallower.register_plugin(Scripts, {"globs": ["src/*.js"]})

        swallower.run()

        assert swallower.pending_plugins == []
        assert runtime.run("default") == [["src/*.js", "vendor/*.js"]]

    def test_plugin_registered_by_plugin_runs(self):
        log = []

        class Child(Plugin):
            id = "child"
            requires = ("parent",)

            def run(self):
                log.append("child")

        class Parent(Plugin):
            id = "parent"

            def run(self):
                log.append("parent")
                self.swallower.register_plugin(Child)

        swallower = Swallower(make_runtime())
        swallower.register_plugin(Parent)
        swallower.run()

        assert log == ["parent", "child"]
        assert swallower.pending_plugins == []

    def test_stuck_plugins_call_error_cb_once_and_stay_pending(self):
        log = []

        class Orphan(Plugin):
            id = "orphan"
            requires = ("missing",)

            def run(self):
                log.append("orphan")

        class Fine(Plugin):
            id = "fine"

            def run(self):
                log.append("fine")

        runtime = make_runtime()
        swallower = Swallower(runtime)
        orphan = swallower.register_plugin(Orphan)
        swallower.register_plugin(Fine)
        error_cb = MagicMock()

        swallower.run(error_cb)

        assert log == ["fine"]
        error_cb.assert_called_once_with()
        assert swallower.pending_plugins == [orphan]
        assert swallower.glob_set_getter.get_state() is True

    def test_stuck_plugins_without_callback_still_materialize(self):
        """Test a blocked plugin does not stop globs or tasks reaching the runtime."""
        class Orphan(Plugin):
            id = "X"
            requires = ("Y",)

            def run(self):
                raise AssertionError("blocked plugin ran")

        runtime = LocalRuntime()
        swallower = Swallower(runtime)
        swallower.register_glob_set("js", "a.js")
        swallower.register_task("t", read_globs, {"glob_set": "js"})
        orphan = swallower.register_plugin(Orphan)

        swallower.run()

        assert swallower.glob_set_getter.get_state() is True
        assert "t" in runtime
        assert runtime.run("t") == ["a.js"]
        assert swallower.pending_plugins == [orphan]

    def test_stuck_plugins_raise_when_strict(self):
        class Orphan(Plugin):
            requires = ("missing",)

            def run(self):
                pass

        runtime = make_runtime()
        swallower = Swallower(runtime)
        swallower.register_plugin(Orphan)

        with pytest.raises(PluginDependencyError) as exc_info:
            swallower.run(strict=True)

        assert exc_info.value.missing == ["missing"]
        assert swallower.glob_set_getter.get_state() is False
        runtime.task.assert_not_called()

    def test_repeated_ids_first_completion_satisfies(self):
        """Test a requirement is met by the first plugin with that id to run."""
        log = []

        def make(plugin_id, requires=()):
            class Recorder(Plugin):
                id = plugin_id

                def run(self):
                    log.append(self.id)
            Recorder.requires = tuple(requires)
            return Recorder

        swallower = Swallower(make_runtime())
        swallower.register_plugin(make("X"))
        swallower.register_plugin(make("Y", ["X"]))
        swallower.register_plugin(make("X", ["Y"]))
        error_cb = MagicMock()

        swallower.run(error_cb)

        assert log == ["X", "Y", "X"]
        error_cb.assert_not_called()
        assert swallower.pending_plugins == []

    def test_second_run_does_not_rerun_plugins(self):
        plugin = MagicMock()
        plugin.get_id.return_value = "p"
        plugin.get_requirements.return_value = []
        swallower = Swallower(make_runtime())
        swallower.register_plugin(lambda s, o: plugin)

        swallower.run()
        swallower.run()

        plugin.run.assert_called_once_with()


class TestMaterialize:
    """Tests for materialize and run."""

    def test_tasks_then_sets_in_order(self):
        runtime = make_runtime()
        swallower = Swallower(runtime)
        units = {}
        for name in ("clean", "build", "test"):
            units[name] = MagicMock()
            swallower.register_task(name, MagicMock(return_value=units[name]))
        swallower.extend_task_set("ci", "parallel", "build")
        swallower.extend_task_set("ci", "parallel", "test")
        swallower.extend_task_set("default", "series", "clean")
        swallower.extend_task_set("default", "series", "ci")

        swallower.run()

        assert runtime.task.call_args_list == [
            call("clean", units["clean"]),
            call("build", units["build"]),
            call("test", units["test"]),
            call("ci", ("parallel", ("build", "test"))),
            call("default", ("series", ("clean", "ci"))),
        ]
        runtime.parallel.assert_called_once_with(["build", "test"])
        runtime.series.assert_called_once_with(["clean", "ci"])

    def test_each_task_registered_once(self):
        runtime = make_runtime()
        swallower = Swallower(runtime)
        swallower.register_task("a", MagicMock())
        swallower.register_task("a", MagicMock())
        swallower.materialize()
        assert [c.args[0] for c in runtime.task.call_args_list] == ["a"]

    def test_runtime_override(self):
        default = make_runtime()
        override = make_runtime()
        swallower = Swallower(default)
        swallower.register_task("a", MagicMock())

        swallower.run(runtime=override)

        default.task.assert_not_called()
        override.task.assert_called_once()

    def test_no_runtime(self):
        with pytest.raises(ValueError, match="No build runtime"):
            Swallower().run()

    def test_end_to_end_local_runtime(self):
        runtime = LocalRuntime()
        swallower = Swallower(runtime)
        swallower.register_glob_set("js", ["src/*.js", ["lib/*.js", "src/*.js"]])
        swallower.register_task("show", read_globs, {"glob_set": "js"})
        swallower.extend_task_set("default", "series", "show")

        swallower.run()

        assert runtime.run("show") == ["src/*.js", "lib/*.js"]
        assert runtime.run("default") == [["src/*.js", "lib/*.js"]]
