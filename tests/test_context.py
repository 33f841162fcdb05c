"""Tests for ReactiveContext — field declaration and top-level field access."""

import gc
import weakref

import pytest

from reactive_context import ChangeEvent, FieldCollisionError, ReactiveContext, ReactiveContextError
from reactive_context import _anchor


class AppContext(ReactiveContext):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.declare_fields({
            "state": {"count": 0, "user": {"name": "", "authenticated": False}},
            "items": [],
        })

    def increment(self):
        self.state.count += 1


class TestScenarios:
    def test_counter(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"state": {"count": 0}})
        changes, reads = [], []
        ctx.on("state:count:change", lambda e, c: changes.append(e))
        ctx.on("state:count:read", lambda e, c: reads.append(e))

        ctx.state.count = 5
        assert (changes[0].prop, changes[0].old_value, changes[0].new_value) == ("count", 0, 5)

        assert ctx.state.count == 5
        assert (reads[0].prop, reads[0].value) == ("count", 5)

    def test_items(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"items": []})
        log = []
        ctx.on("items:change", lambda e, c: log.append(e))
        ctx.items.push("a")
        ctx.items.push("b")
        assert [(e.method, e.length, e.args) for e in log] == [
            ("push", 1, ("a",)),
            ("push", 2, ("b",)),
        ]

    def test_nested(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"a": {"b": {"c": 1}}})
        specific, root = [], []
        ctx.on("a.b:c:change", lambda e, c: specific.append(e))
        ctx.on("a:change", lambda e, c: root.append(e))
        ctx.a.b.c = 2
        assert len(specific) == 1
        assert root == []

    def test_subclass(self):
        ctx = AppContext()
        log = []
        ctx.on("state:change", lambda e, c: log.append((e.prop, e.new_value)))
        ctx.increment()
        ctx.increment()
        assert log == [("count", 1), ("count", 2)]

    def test_listener_receives_context(self):
        ctx = AppContext()
        owners = []
        ctx.on("state:count:change", lambda e, c: owners.append(c))
        ctx.state.count = 1
        assert owners == [ctx]


class TestDeclareFields:
    def test_fields_listed_in_order(self):
        ctx = AppContext()
        assert ctx.get_field_names() == ["state", "items"]
        assert "state" in dir(ctx)

    def test_redeclare_fails(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"x": 1})
        with pytest.raises(FieldCollisionError, match="Field 'x' already exists"):
            ctx.declare_fields({"x": 2})
        assert ctx.x == 1

    def test_collision_is_a_type_error(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"x": 1})
        with pytest.raises(TypeError):
            ctx.declare_fields({"x": 2})
        with pytest.raises(ReactiveContextError):
            ctx.declare_fields({"x": 2})

    def test_method_names_collide(self):
        ctx = ReactiveContext()
        with pytest.raises(FieldCollisionError):
            ctx.declare_fields({"on": 1})
        with pytest.raises(FieldCollisionError):
            AppContext().declare_fields({"increment": 1})

    def test_instance_attributes_collide(self):
        ctx = ReactiveContext()
        ctx.plain = 1
        with pytest.raises(FieldCollisionError):
            ctx.declare_fields({"plain": 2})

    def test_all_or_nothing(self):
        """A failing call installs none of its fields."""
        ctx = ReactiveContext()
        ctx.declare_fields({"a": 1})
        with pytest.raises(FieldCollisionError):
            ctx.declare_fields({"b": 2, "a": 3, "c": 4})
        assert ctx.get_field_names() == ["a"]
        assert not hasattr(ctx, "b")
        assert not hasattr(ctx, "c")

    @pytest.mark.parametrize("name", ["a.b", "a:b", "", "1x", "class", 3])
    def test_invalid_names(self, name):
        ctx = ReactiveContext()
        with pytest.raises(ValueError):
            ctx.declare_fields({name: 1})
        assert ctx.get_field_names() == []

    def test_initial_node_is_unwrapped(self):
        source = ReactiveContext()
        source.declare_fields({"cfg": {"debug": True}})
        ctx = ReactiveContext()
        ctx.declare_fields({"cfg": source.cfg})
        assert ctx.cfg.target is source.cfg.target
        assert ctx.cfg is not source.cfg


class TestFieldAccess:
    def test_field_read_emits_nothing(self):
        ctx = AppContext()
        log = []
        ctx.on("state:read", lambda e, c: log.append(e))
        ctx.on("state:state:read", lambda e, c: log.append(e))
        ctx.state
        ctx.items
        assert log == []

    def test_primitive_field(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"count": 0})
        log = []
        ctx.on("count:change", lambda e, c: log.append(e))
        ctx.on("count:count:change", lambda e, c: log.append(e))
        assert ctx.count == 0
        ctx.count = 1
        assert len(log) == 1
        assert isinstance(log[0], ChangeEvent)
        assert (log[0].prop, log[0].old_value, log[0].new_value) == ("count", 0, 1)
        assert ctx.count == 1

    def test_field_write_wraps_new_value(self):
        ctx = ReactiveContext()
        ctx.declare_fields({"count": 0})
        ctx.count = {"n": 1}
        assert ctx.count.namespace == "count"
        log = []
        ctx.on("count:n:change", lambda e, c: log.append(e))
        ctx.count.n = 2
        assert len(log) == 1

    def test_root_reassignment(self, sink):
        ctx = AppContext(diagnostics=sink)
        old = ctx.state
        old_raw = old.target
        field_log, nested_log = [], []
        ctx.on("state:change", lambda e, c: field_log.append(e))

        ctx.state = {"count": 10}

        assert sink.reassignments == [(None, "state", old_raw)]
        assert len(field_log) == 1
        assert field_log[0].old_value is old
        assert field_log[0].new_value == {"count": 10}
        assert old.detached

        ctx.on("state:count:change", lambda e, c: nested_log.append(e))
        old.count = 99
        assert nested_log == []
        ctx.state.count = 11
        assert [e.new_value for e in nested_log] == [11]

    def test_same_value_reassignment_rewraps(self, sink):
        ctx = AppContext(diagnostics=sink)
        old = ctx.state
        ctx.state = ctx.state
        assert ctx.state is not old
        assert ctx.state.target is old.target
        assert len(sink.reassignments) == 1

    def test_default_root_warning(self, caplog):
        ctx = AppContext()
        with caplog.at_level("WARNING", logger="reactive_context.diagnostics"):
            ctx.items = []
        assert "Reassigning root list 'items' removes its reactivity" in caplog.text

    def test_fields_cannot_be_deleted(self):
        ctx = AppContext()
        with pytest.raises(AttributeError):
            del ctx.state

    def test_plain_attributes_still_work(self):
        ctx = AppContext()
        ctx.label = "x"
        assert ctx.label == "x"
        del ctx.label
        assert not hasattr(ctx, "label")

    def test_undeclared_attribute_raises(self):
        ctx = ReactiveContext()
        with pytest.raises(AttributeError):
            ctx.nope

    def test_repr(self):
        assert "['state', 'items']" in repr(AppContext())


class TestLifetime:
    def test_state_released_with_host(self):
        ctx = AppContext()
        ctx.once("state:change", lambda e, c: None)
        host_id = ctx._id
        ref = weakref.ref(ctx)
        del ctx
        gc.collect()
        assert ref() is None
        assert host_id not in _anchor.fields
        assert host_id not in _anchor.nodes

    def test_host_with_bound_method_listener_is_collected(self):
        class Counter(AppContext):
            def __init__(self):
                super().__init__()
                self.seen = []
                self.on("state:count:change", self._on_count)

            def _on_count(self, event, ctx):
                self.seen.append(event.new_value)

        ctx = Counter()
        ctx.increment()
        assert ctx.seen == [1]
        host_id = ctx._id
        ref = weakref.ref(ctx)
        del ctx
        gc.collect()
        assert ref() is None
        assert host_id not in _anchor.fields
        assert host_id not in _anchor.nodes

    def test_nodes_go_quiet_after_host(self):
        ctx = AppContext()
        state = ctx.state
        del ctx
        gc.collect()
        state.count = 3  # no host left to notify
        assert state.target["count"] == 3
