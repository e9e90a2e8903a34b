"""
Тесты развёртывания связанных регионов интерпретатором.
"""

from datetime import date

from gridreport.config import ReportConfig
from gridreport.diagnostics import TemplateErrors
from gridreport.grid import CellKind, Hyperlink
from gridreport.interpreter import RegionInterpreter

from tests.infrastructure import CountingCache, cell_values, make_workbook, name_refs


ORDERS_TEMPLATE = [
    ["Header", None],
    ["{{item.No}}", "{{item.Amount}}"],
    ["Total", "{{items.Sum(i => i.Amount)}}"],
    [None, None],
    ["end", None],
]


class TestRegionExpansion:

    def setup_method(self):
        self.errors = TemplateErrors()
        self.interpreter = RegionInterpreter(None, self.errors)

    def _render(self, rows, names, ref=None, **variables):
        workbook = make_workbook(rows, names=names)
        sheet = workbook.sheet("Sheet1")
        for name, value in variables.items():
            self.interpreter.add_variable(name, value)
        shape = self.interpreter.evaluate(sheet.range(ref) if ref else sheet.used_range())
        return workbook, sheet, shape

    def test_block_per_item_with_options_row(self, orders):
        """Тест: по строке на элемент, строка опций видит всю коллекцию"""
        workbook, sheet, shape = self._render(ORDERS_TEMPLATE, {"Orders": "A2:B3"}, Orders=orders)

        assert cell_values(sheet, "A1:B7") == [
            ["Header", None],
            [1, 10],
            [2, 30],
            [3, 20],
            ["Total", 60],
            [None, None],
            ["end", None],
        ]
        assert name_refs(workbook, "Orders") == ["A2:B5"]
        assert shape.key == "Sheet1!A1:B7"
        assert len(self.errors) == 0

    def test_sort_directive_in_options_row(self, orders):
        rows = [
            ["{{item.No}}", "{{item.Amount}}"],
            [None, "<<desc>>"],
            ["end", None],
        ]
        workbook, sheet, shape = self._render(rows, {"Orders": "A1:B2"}, Orders=orders)

        assert cell_values(sheet, "A1:B4") == [[2, 30], [3, 20], [1, 10], ["end", None]]
        # пустая строка опций удалена
        assert name_refs(workbook, "Orders") == ["A1:B3"]
        assert shape.key == "Sheet1!A1:B4"

    def test_sort_by_several_columns(self, orders):
        rows = [
            ["{{item.Amount > 15}}", "{{item.No}}"],
            ["<<sort num=1>>", "<<desc num=2>>"],
        ]
        _, sheet, _ = self._render(rows, {"Orders": "A1:B2"}, Orders=orders)
        assert cell_values(sheet, "A1:B3") == [[False, 1], [True, 3], [True, 2]]

    def test_empty_collection_with_empty_options_row(self):
        rows = [
            ["Header", None],
            ["{{item.No}}", "{{item.Amount}}"],
            [None, None],
            [None, None],
            ["end", None],
        ]
        workbook, sheet, shape = self._render(rows, {"Orders": "A2:B3"}, Orders=[])

        assert cell_values(sheet, "A1:A3") == [["Header"], [None], ["end"]]
        assert name_refs(workbook, "Orders") == []
        assert shape.key == "Sheet1!A1:B3"

    def test_empty_collection_keeps_options_row(self):
        rows = [
            ["{{item.No}}"],
            ["Count: {{items.Count()}}"],
            ["end"],
        ]
        workbook, sheet, _ = self._render(rows, {"Orders": "A1:A2"}, Orders=[])

        assert cell_values(sheet, "A1:A2") == [["Count: 0"], ["end"]]
        assert name_refs(workbook, "Orders") == ["A1"]

    def test_single_row_region(self, orders):
        rows = [["{{item.No}}"], ["end"]]
        workbook, sheet, _ = self._render(rows, {"Orders": "A1"}, Orders=orders)
        assert cell_values(sheet, "A1:A4") == [[1], [2], [3], ["end"]]
        assert name_refs(workbook, "Orders") == ["A1:A3"]

    def test_shift_only_in_region_columns(self, orders):
        """Тест: ячейки справа от региона не сдвигаются"""
        rows = [
            ["{{item.No}}", "side"],
            [None, "side2"],
            ["end", None],
        ]
        _, sheet, _ = self._render(rows, {"Orders": "A1:A2"}, Orders=orders)
        assert cell_values(sheet, "A1:B4") == [[1, "side"], [2, "side2"], [3, None], ["end", None]]

    def test_shape_grows_by_largest_column_delta(self, orders, customers):
        rows = [
            ["{{item.No}}", None, "{{item.Name}}"],
            [None, None, None],
            ["endA", None, "endC"],
        ]
        names = {"Orders": "A1:A2", "Customers": "C1:C2"}
        _, sheet, shape = self._render(rows, names, Orders=orders, Customers=customers)

        assert cell_values(sheet, "A1:C4") == [
            [1, None, "Alice"],
            [2, None, "Bob"],
            [3, None, "endC"],
            ["endA", None, None],
        ]
        assert shape.key == "Sheet1!A1:C4"

    def test_region_bound_through_member_path(self, orders):
        """Тест: имя Data_Orders связывается с выражением Data.Orders"""
        rows = [["{{item.No}}"], [None]]
        workbook, sheet, _ = self._render(rows, {"Data_Orders": "A1:A2"}, Data={"Orders": orders})
        assert cell_values(sheet, "A1:A3") == [[1], [2], [3]]
        assert name_refs(workbook, "Data_Orders") == ["A1:A3"]

    def test_non_enumerable_value_is_not_bound(self):
        rows = [["{{Orders}}"]]
        _, sheet, _ = self._render(rows, {"Orders": "A1"}, Orders="flat")
        assert sheet.value("A1") == "flat"

    def test_nested_regions(self, customers):
        rows = [
            ["Name", "No"],
            ["{{item.Name}}", None],
            [None, "{{item.No}}"],
            [None, None],
            ["end", None],
        ]
        names = {"Customers": "A2:B4", "Customers_Orders": "A3:B3"}
        workbook, sheet, _ = self._render(rows, names, Customers=customers)

        assert cell_values(sheet, "A1:B7") == [
            ["Name", "No"],
            ["Alice", None],
            [None, 11],
            [None, 12],
            ["Bob", None],
            [None, 21],
            ["end", None],
        ]
        assert name_refs(workbook, "Customers") == ["A2:B6"]
        assert name_refs(workbook, "Customers_Orders") == ["A3:B4", "A6:B6"]
        assert len(self.errors) == 0

    def test_derived_caches_refreshed(self, orders):
        workbook = make_workbook([["{{item.No}}"]], names={"Orders": "A1"})
        cache = CountingCache()
        workbook.register_cache(cache)
        self.interpreter.add_variable("Orders", orders)
        self.interpreter.evaluate(workbook.sheet("Sheet1").used_range())
        assert cache.refreshed == 1

    def test_cache_refresh_can_be_disabled(self, orders):
        workbook = make_workbook([["{{item.No}}"]], names={"Orders": "A1"})
        cache = CountingCache()
        workbook.register_cache(cache)
        interpreter = RegionInterpreter(None, self.errors, ReportConfig(refresh_caches=False))
        interpreter.add_variable("Orders", orders)
        interpreter.evaluate(workbook.sheet("Sheet1").used_range())
        assert cache.refreshed == 0

    def test_merged_cells_grow_the_area(self, orders):
        workbook = make_workbook([["{{item.No}}", None], ["end", None]], names={"Orders": "A1"})
        sheet = workbook.sheet("Sheet1")
        sheet.merge("A1:B1")
        self.interpreter.add_variable("Orders", orders)
        self.interpreter.evaluate(sheet.used_range())
        assert cell_values(sheet, "A1:A4") == [[1], [2], [3], ["end"]]
        assert len(sheet.merged) == 3

    def test_merged_area_keeps_options_row_directives(self, orders):
        """Тест: область, расширенная объединением, всё равно разбирает строку опций"""
        rows = [["{{item.No}}", None], ["<<desc>>", None], ["end", None]]
        workbook = make_workbook(rows, names={"Orders": "A1:A2"})
        sheet = workbook.sheet("Sheet1")
        sheet.merge("A1:B1")
        self.interpreter.add_variable("Orders", orders)
        self.interpreter.evaluate(sheet.used_range())

        assert cell_values(sheet, "A1:B4") == [[3, None], [2, None], [1, None], ["end", None]]
        assert sorted(m.to_a1() for m in sheet.merged) == ["A1:B1", "A2:B2", "A3:B3"]
        assert name_refs(workbook, "Orders") == ["A1:B3"]
        assert len(self.errors) == 0

    def test_region_past_written_cells(self, orders):
        """Тест: пустая строка опций в конце листа входит в обрабатываемый диапазон"""
        workbook, sheet, _ = self._render([["Header"], ["{{item.No}}"]], {"Orders": "A2:A3"}, Orders=orders)
        assert cell_values(sheet, "A1:A5") == [["Header"], [1], [2], [3], [None]]
        assert name_refs(workbook, "Orders") == ["A2:A4"]
        assert len(self.errors) == 0

    def test_failing_directive_leaves_siblings_running(self, orders):
        rows = [
            ["{{item.No}}", "{{item.Amount}}"],
            ["<<sort num=x>>", "<<desc>>"],
            ["end", None],
        ]
        workbook, sheet, _ = self._render(rows, {"Orders": "A1:B2"}, Orders=orders)

        assert cell_values(sheet, "A1:B4") == [[2, 30], [3, 20], [1, 10], ["end", None]]
        assert self.errors.messages == ["Sort directive 'sort': 'num' must be an integer, got 'x'"]
        assert self.errors[0].range.key == "Sheet1!A1:B4"
        assert name_refs(workbook, "Orders") == ["A1:B3"]

    def test_large_collection(self):
        items = [{"No": i} for i in range(10000)]
        workbook, sheet, _ = self._render([["{{item.No}}", "{{item.No * 2}}"]], {"Rows": "A1:B1"}, Rows=items)
        assert cell_values(sheet, "A1:B1") == [[0, 0]]
        assert cell_values(sheet, "A10000:B10000") == [[9999, 19998]]
        assert name_refs(workbook, "Rows") == ["A1:B10000"]
        assert len(self.errors) == 0


class TestCellRendering:

    def setup_method(self):
        self.errors = TemplateErrors()
        self.interpreter = RegionInterpreter(None, self.errors)

    def _sheet(self, rows):
        workbook = make_workbook(rows)
        return workbook.sheet("Sheet1")

    def test_typed_values(self):
        sheet = self._sheet([["{{d}}", "{{n}}", "{{obj}}", "n = {{n}}"]])
        self.interpreter.add_variable("d", date(2024, 1, 2))
        self.interpreter.add_variable("n", 5)
        self.interpreter.add_variable("obj", [1, 2])
        self.interpreter.evaluate(sheet.used_range())
        assert sheet.value("A1") == date(2024, 1, 2)
        assert sheet["B1"].kind == CellKind.NUMBER
        assert sheet.value("C1") == "[1, 2]"
        assert sheet.value("D1") == "n = 5"

    def test_formula_prefix(self):
        sheet = self._sheet([["&=SUM(B1:B{{last}})"]])
        self.interpreter.add_variable("last", 4)
        self.interpreter.evaluate(sheet.used_range())
        assert sheet["A1"].kind == CellKind.FORMULA
        assert sheet.value("A1") == "=SUM(B1:B4)"

    def test_existing_formulas_untouched(self):
        sheet = self._sheet([["={{x}}"]])
        self.interpreter.evaluate(sheet.used_range())
        assert sheet.value("A1") == "={{x}}"
        assert len(self.errors) == 0

    def test_rich_text_runs(self):
        sheet = self._sheet([[None]])
        sheet.cell(1, 1).set_rich_text(["Hello, ", "{{name}}", "!"])
        self.interpreter.add_variable("name", "World")
        self.interpreter.evaluate(sheet.range("A1"))
        assert sheet["A1"].rich_text == ["Hello, ", "World", "!"]

    def test_comment_and_hyperlink(self):
        sheet = self._sheet([["link"]])
        cell = sheet["A1"]
        cell.comment = "By {{author}}"
        cell.hyperlink = Hyperlink(external="https://example.org/{{id}}")
        self.interpreter.add_variable("author", "Ann")
        self.interpreter.add_variable("id", 7)
        self.interpreter.evaluate(sheet.used_range())
        assert cell.comment == "By Ann"
        assert cell.hyperlink.external == "https://example.org/7"

    def test_comment_only_cell(self):
        sheet = self._sheet([["x"]])
        blank = sheet.cell(1, 2)
        blank.comment = "{{1 + 1}}"
        self.interpreter.evaluate(sheet.range("A1:B1"))
        assert blank.comment == "2"

    def test_expression_error_written_to_cell(self):
        sheet = self._sheet([["{{1 / 0}}", "ok"]])
        self.interpreter.evaluate(sheet.used_range())
        assert sheet.value("A1") == "Attempted to divide by zero."
        assert sheet["A1"].style.font_color == "FFFF0000"
        assert self.errors.messages == ["Attempted to divide by zero."]
        assert self.errors[0].range.key == "Sheet1!A1"

    def test_item_outside_region_reports_misuse(self):
        sheet = self._sheet([["Header"], [None], ["{{item.Name}}"]])
        self.interpreter.evaluate(sheet.used_range())

        config = ReportConfig()
        assert sheet.value("A2") == config.list_range_misuse_message
        assert sheet["A2"].style.font_color == config.error_font_color
        assert sheet.value("A3") == "Unknown identifier 'item'"
        assert self.errors.messages == [config.list_range_misuse_message, "Unknown identifier 'item'"]

    def test_error_inside_item_block(self, orders):
        workbook = make_workbook([["{{item.Missing}}"]], names={"Orders": "A1"})
        sheet = workbook.sheet("Sheet1")
        self.interpreter.add_variable("Orders", orders)
        self.interpreter.evaluate(sheet.used_range())
        message = "No property or field 'Missing' exists in type 'Order'"
        assert cell_values(sheet, "A1:A3") == [[message]] * 3
        assert self.errors.messages == [message] * 3

    def test_error_color_from_config(self):
        interpreter = RegionInterpreter(None, self.errors, ReportConfig(error_font_color="FF00FF00"))
        sheet = self._sheet([["{{missing}}"]])
        interpreter.evaluate(sheet.used_range())
        assert sheet["A1"].style.font_color == "FF00FF00"

    def test_directives_outside_regions_run_on_shape(self):
        sheet = self._sheet([["b"], ["a"], ["<<sort>>"]])
        self.interpreter.evaluate(sheet.used_range())
        assert cell_values(sheet, "A1:A3") == [["a"], ["b"], [None]]
