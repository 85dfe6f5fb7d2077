from __future__ import annotations

import sys
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from diascript import (
    Circle,
    ConfigurationError,
    Database,
    Diagram,
    Hbox,
    Line,
    Placement,
    Text,
    Vbox,
    canvas_size,
    render_svg,
)

SVG = "{http://www.w3.org/2000/svg}"


class FixedMeasurer:
    def measure(self, text, *, font_size, font_weight="normal", font_family=None):
        return len(text) * font_size * 0.5, font_size * 1.25


def box(width: float, height: float, **options) -> Vbox:
    return Vbox(width=width, height=height, **options)


class CanvasTests(unittest.TestCase):
    def rendered(self, x, y, width, height):
        shape = box(width, height)
        shape.layout(None)
        shape.render(x, y)
        return shape

    def test_union_offsets_from_origin(self) -> None:
        shapes = [self.rendered(10, 10, 40, 20), self.rendered(-5, 30, 20, 20)]
        # left = max(0, -5) = 0, top = max(0, 10) = 10, right = 50, bottom = 50
        self.assertEqual(canvas_size(shapes), (50.0, 60.0))

    def test_shapes_at_origin_fit_exactly(self) -> None:
        shapes = [self.rendered(0, 0, 40, 20), self.rendered(-5, 30, 20, 20)]
        self.assertEqual(canvas_size(shapes), (40.0, 50.0))

    def test_margin_is_mirrored(self) -> None:
        shapes = [self.rendered(20, 30, 100, 50)]
        self.assertEqual(canvas_size(shapes), (140.0, 110.0))

    def test_empty(self) -> None:
        self.assertEqual(canvas_size([]), (0.0, 0.0))


class DiagramRenderTests(unittest.TestCase):
    def make(self) -> Diagram:
        diagram = Diagram(measurer=FixedMeasurer())
        diagram.add(Vbox(Text("API", id="api-label"), id="api", padding=10), 0, 0)
        diagram.add(box(80, 60, id="db"), 200, 0)
        diagram.add(Hbox(Circle(radius=10, id="cache"), padding=5, id="side"), 0, 200)
        diagram.connect("api", "db", end_marker="arrow")
        diagram.connect("side", "cache", start_marker="dot")
        return diagram

    def test_shapes_then_lines_in_declaration_order(self) -> None:
        result = self.make().render()
        tags = [element.tag for element in result.elements]
        self.assertEqual(tags, ["rect", "text", "rect", "rect", "circle", "line", "path", "line", "path"])
        self.assertEqual(result.warnings, [])

    def test_line_geometry_and_marker(self) -> None:
        result = self.make().render()
        line = next(e for e in result.elements if e.tag == "line")
        # api is 44x40 at the origin, db is 80x60 at (200, 0)
        self.assertEqual((line.attrs["x1"], line.attrs["y1"]), (44.0, 20.0))
        self.assertEqual((line.attrs["x2"], line.attrs["y2"]), (200, 30))
        marker = result.elements[result.elements.index(line) + 1]
        self.assertEqual(marker.attrs["transform"], "matrix(-1 0 0 -1 200 30)")

    def test_nested_shapes_are_routable(self) -> None:
        diagram = self.make()
        result = diagram.render()
        self.assertIs(diagram.shape_by_id("cache"), diagram.shapes[2].children[0])
        second_line = [e for e in result.elements if e.tag == "line"][1]
        self.assertEqual((second_line.attrs["x1"], second_line.attrs["y1"]), (15.0, 200))
        self.assertEqual((second_line.attrs["x2"], second_line.attrs["y2"]), (15.0, 205.0))

    def test_canvas_covers_all_shapes(self) -> None:
        result = self.make().render()
        self.assertEqual((result.width, result.height), (280.0, 230.0))

    def test_missing_reference_renders_nothing_for_that_line(self) -> None:
        diagram = self.make()
        diagram.connect("api", "nowhere")
        with self.assertLogs("diascript.diagram", level="WARNING") as logs:
            result = diagram.render()
        self.assertEqual([e.tag for e in result.elements].count("line"), 2)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("nowhere", logs.output[0])

    def test_line_without_endpoints_is_skipped(self) -> None:
        diagram = Diagram([Placement(box(10, 10, id="a"), 0, 0)], [Line("a")])
        with self.assertLogs("diascript.diagram", level="WARNING"):
            result = diagram.render()
        self.assertEqual([e.tag for e in result.elements], ["rect"])

    def test_unknown_marker_still_draws_line(self) -> None:
        diagram = Diagram(
            [Placement(box(10, 10, id="a"), 0, 0), Placement(box(10, 10, id="b"), 50, 0)],
            [Line("a", "b", end_marker="harpoon")],
        )
        with self.assertLogs("diascript.diagram", level="WARNING") as logs:
            result = diagram.render()
        self.assertEqual([e.tag for e in result.elements], ["rect", "rect", "line"])
        self.assertIn("harpoon", logs.output[0])

    def test_unpositioned_shape_is_skipped(self) -> None:
        diagram = Diagram([Placement(box(10, 10, id="a"), 0, 0), Placement(box(10, 10, id="b"), x=5)])
        with self.assertLogs("diascript.diagram", level="WARNING") as logs:
            result = diagram.render()
        self.assertEqual(len(result.elements), 1)
        self.assertIn("no y", logs.output[0])
        self.assertEqual((result.width, result.height), (10.0, 10.0))

    def test_custom_marker_registry(self) -> None:
        diagram = Diagram(
            [Placement(box(10, 10, id="a"), 0, 0), Placement(box(10, 10, id="b"), 50, 0)],
            [Line("a", "b", end_marker="bar")],
            markers={"bar": {"path": "M 0 -4 L 0 4", "fill": "none"}},
        )
        result = diagram.render()
        self.assertEqual(result.elements[-1].attrs["d"], "M 0 -4 L 0 4")


class RelativePlacementTests(unittest.TestCase):
    def test_center_is_offset_from_target_center(self) -> None:
        diagram = Diagram()
        diagram.add(box(100, 40, id="anchor"), 0, 0)
        follower = diagram.add(box(20, 20, id="follower"), align=("anchor", 150, 10))
        diagram.render()
        self.assertEqual((follower.x, follower.y), (190.0, 20.0))

    def test_chains_resolve_in_any_order(self) -> None:
        diagram = Diagram()
        last = diagram.add(box(10, 10, id="c"), align=("b", 0, 50))
        middle = diagram.add(box(10, 10, id="b"), align=("a", 50, 0))
        diagram.add(box(10, 10, id="a"), 0, 0)
        result = diagram.render()
        self.assertEqual((middle.x, middle.y), (50.0, 0.0))
        self.assertEqual((last.x, last.y), (50.0, 50.0))
        self.assertEqual(result.warnings, [])

    def test_align_to_nested_shape(self) -> None:
        diagram = Diagram()
        diagram.add(Vbox(Database(id="store"), padding=10), 0, 0)
        badge = diagram.add(box(10, 10), align=("store", 0, 0))
        diagram.render()
        self.assertEqual(badge.center(), (40.0, 50.0))

    def test_unresolvable_align_is_skipped(self) -> None:
        diagram = Diagram()
        diagram.add(box(10, 10, id="x"), align=("y", 0, 0))
        diagram.add(box(10, 10, id="y"), align=("x", 0, 0))
        with self.assertLogs("diascript.diagram", level="WARNING") as logs:
            result = diagram.render()
        self.assertEqual(result.elements, [])
        self.assertEqual(len(logs.output), 2)

    def test_non_finite_positions_are_rejected(self) -> None:
        diagram = Diagram()
        with self.assertRaises(ConfigurationError):
            diagram.add(box(10, 10, id="a"), float("inf"), 0)
        with self.assertRaises(ConfigurationError):
            diagram.add(box(10, 10, id="b"), 0, float("nan"))
        with self.assertRaises(ConfigurationError):
            diagram.add(box(10, 10, id="c"), align=("a", float("nan"), 0))
        with self.assertRaises(ConfigurationError):
            Placement(box(10, 10), align=("a", 0, float("-inf")))
        self.assertEqual(diagram.placements, [])

    def test_offsets_are_coerced_to_floats(self) -> None:
        placement = Placement(box(10, 10), align=("a", 3, "4"))
        self.assertEqual(placement.align, ("a", 3.0, 4.0))


class SvgOutputTests(unittest.TestCase):
    def test_svg_document_is_sized_to_canvas(self) -> None:
        diagram = Diagram(measurer=FixedMeasurer())
        diagram.add(Vbox(Text("A & B"), id="card", padding=4), 10, 10)
        svg = diagram.render().to_svg(background="#fafafa")
        root = ET.fromstring(svg)
        self.assertEqual(root.tag, f"{SVG}svg")
        self.assertEqual(root.get("width"), "68")
        self.assertEqual(root.get("height"), "48")
        rects = root.findall(f"{SVG}rect")
        self.assertEqual(rects[0].get("fill"), "#fafafa")
        self.assertEqual(rects[1].get("id"), "card")
        self.assertEqual(root.find(f"{SVG}text").text, "A & B")

    def test_render_svg_shortcut(self) -> None:
        diagram = Diagram()
        diagram.add(box(30, 20, id="only"), 5, 5)
        root = ET.fromstring(render_svg(diagram, background="white"))
        self.assertEqual((root.get("width"), root.get("height")), ("40", "30"))
        self.assertEqual(root.get("viewBox"), "0 0 40 30")
        background, card = root.findall(f"{SVG}rect")
        self.assertEqual(background.get("fill"), "white")
        self.assertEqual((card.get("x"), card.get("y")), ("5", "5"))


if __name__ == "__main__":
    unittest.main()
