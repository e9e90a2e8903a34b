"""
Тесты для списка директив и порядка их выполнения.
"""

import pytest

from gridreport.diagnostics import TemplateErrors
from gridreport.directives import Directive, DirectiveList, ProcessingContext
from gridreport.errors import DirectiveExecutionError, ExpressionRuntimeError
from gridreport.grid import CellAddress

from tests.infrastructure import make_workbook


class RecordingDirective(Directive):
    """Записывает своё имя в общий журнал при выполнении."""

    def __init__(self, name, journal, priority=0, cell="A1", action=None):
        super().__init__(name)
        self.journal = journal
        self.priority = priority
        self.cell = CellAddress.from_a1(cell)
        self.action = action

    def execute(self, context):
        self.journal.append(self.name)
        if self.action is not None:
            self.action(self)


class TestDirectiveList:

    def setup_method(self):
        self.errors = TemplateErrors()
        self.list = DirectiveList(self.errors)
        self.journal = []
        workbook = make_workbook([["x", "y"], ["z", "w"]])
        self.range = workbook.sheet("Sheet1").range("A1:B2")

    def _directive(self, name, **kwargs):
        directive = RecordingDirective(name, self.journal, **kwargs)
        directive.range = self.range
        return directive

    def test_order_by_priority_then_position(self):
        """Тест: приоритет по убыванию, затем строка, колонка и порядок добавления"""
        self.list.add_range([
            self._directive("low", priority=1, cell="A1"),
            self._directive("b2", priority=5, cell="B2"),
            self._directive("a2", priority=5, cell="A2"),
            self._directive("b1", priority=5, cell="B1"),
            self._directive("b1-again", priority=5, cell="B1"),
            self._directive("high", priority=9, cell="B2"),
        ])
        assert [d.name for d in self.list] == ["high", "b1", "b1-again", "a2", "b2", "low"]
        assert len(self.list) == 6

    def test_execute_runs_each_directive_once(self):
        self.list.add(self._directive("one"))
        self.list.add(self._directive("two", cell="B1"))
        self.list.execute(ProcessingContext(self.range))
        assert self.journal == ["one", "two"]
        assert all(not d.enabled for d in self.list)

    def test_directive_can_disable_others(self):
        def disable_rest(directive):
            for other in directive.list.get_all(RecordingDirective):
                other.enabled = False

        self.list.add(self._directive("first", priority=2, action=disable_rest))
        self.list.add(self._directive("second"))
        self.list.execute(ProcessingContext(self.range))
        assert self.journal == ["first"]

    def test_directive_errors_are_recorded(self):
        def fail(directive):
            raise DirectiveExecutionError("bad directive")

        def fail_expression(directive):
            raise ExpressionRuntimeError("bad expression")

        self.list.add(self._directive("broken", priority=3, action=fail))
        self.list.add(self._directive("expr", priority=2, action=fail_expression))
        self.list.add(self._directive("fine", priority=1))
        self.list.execute(ProcessingContext(self.range))

        assert self.journal == ["broken", "expr", "fine"]
        assert self.errors.messages == ["bad directive", "bad expression"]
        assert self.errors[0].range is self.range

    def test_other_exceptions_propagate(self):
        def crash(directive):
            raise RuntimeError("boom")

        crashing = self._directive("crash", action=crash)
        self.list.add(crashing)
        with pytest.raises(RuntimeError):
            self.list.execute(ProcessingContext(self.range))
        assert not crashing.enabled
        assert len(self.errors) == 0

    def test_get_all_returns_enabled_only(self):
        a, b = self._directive("a"), self._directive("b")
        self.list.add_range([a, b])
        b.enabled = False
        assert self.list.get_all(RecordingDirective) == [a]

    def test_lookup_by_name(self):
        a, b, c = self._directive("Sort"), self._directive("desc"), self._directive("other")
        self.list.add_range([a, b, c])
        assert self.list.has_tag("SORT")
        assert not self.list.has_tag("group")
        assert self.list.get_all_named(["sort", "DESC"]) == [a, b]
        assert self.list.get_all_except(a, ["sort", "desc"]) == [b]

    def test_reset(self):
        self.list.add(self._directive("a"))
        self.list.execute(ProcessingContext(self.range))
        self.list.reset()
        assert all(d.enabled for d in self.list)

    def test_copy_to(self):
        original = self._directive("a", cell="B2")
        self.list.add(original)
        target = self.range.sheet.range("C5:D6")

        copied = self.list.copy_to(target)

        clone = list(copied)[0]
        assert clone is not original
        assert clone.range is target
        assert clone.list is copied
        assert clone.cell == original.cell
        assert original.range is self.range
        assert original.list is self.list
        assert copied.errors is self.errors
